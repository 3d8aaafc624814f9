"""
Sanitizer for raw model output.

Models occasionally wrap their answer in a ``<think>`` block or Markdown code
fences. We strip both and only hand back text that parses as the JSON shape
the client expects.
"""

import json
import re
from typing import Any, Callable

from shared.errors import DownstreamError

_REASONING_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)
_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_markup(raw: str) -> str:
    """Remove reasoning blocks and code fences, then trim."""
    text = _REASONING_BLOCK.sub("", raw).strip()
    return _CODE_FENCE.sub("", text).strip()


def is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def is_checklist(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("title"), str)
        and is_string_list(value.get("items"))
    )


def sanitize(raw: str, validator: Callable[[Any], bool], shape: str) -> str:
    """Return cleaned JSON text, or raise DownstreamError if it is not ``shape``."""
    if not raw:
        raise DownstreamError("ai", "Failed to generate AI suggestion")

    text = strip_markup(raw)
    try:
        parsed = json.loads(text)
    except ValueError:
        raise DownstreamError(
            "ai",
            "AI returned malformed output",
            details={"expected": shape}
        )

    if not validator(parsed):
        raise DownstreamError(
            "ai",
            "AI returned unexpected output",
            details={"expected": shape}
        )
    return text


def sanitize_suggestions(raw: str) -> str:
    """Expect a JSON array of strings."""
    return sanitize(raw, is_string_list, "array")


def sanitize_checklist(raw: str) -> str:
    """Expect ``{"title": str, "items": [str, ...]}``."""
    return sanitize(raw, is_checklist, "object")
