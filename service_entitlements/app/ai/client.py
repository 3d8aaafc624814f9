"""
AI text generation client (OpenAI-compatible chat completions via OpenRouter).
"""

from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from shared.logging import get_logger
from shared.errors import DownstreamError

from .prompts import (
    SUGGESTIONS_SYSTEM_PROMPT, PARSE_SYSTEM_PROMPT,
    build_suggestions_prompt, build_parse_prompt,
)
from .sanitizer import sanitize_suggestions, sanitize_checklist


class AIClient:
    """Generates checklist suggestions and parses dictated checklists."""

    def __init__(self, api_key: str, model: str, base_url: str = "https://openrouter.ai/api/v1",
                 site_url: str = "", site_name: str = "", timeout: float = 30.0,
                 temperature: float = 0.7):
        self.model = model
        self.temperature = temperature
        self.logger = get_logger("entitlements.ai_client")
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            default_headers={
                "HTTP-Referer": site_url,
                "X-Title": site_name,
            },
        )

    async def suggest_items(self, user_id: str, title: str, items: List[Any]) -> str:
        """Return a JSON array (as text) of new checklist items."""
        raw = await self._complete(user_id, SUGGESTIONS_SYSTEM_PROMPT, build_suggestions_prompt(title, items))
        return sanitize_suggestions(raw)

    async def parse_checklist(self, user_id: str, text: str) -> str:
        """Return ``{"title", "items"}`` JSON text extracted from free text."""
        raw = await self._complete(user_id, PARSE_SYSTEM_PROMPT, build_parse_prompt(text))
        return sanitize_checklist(raw)

    async def _complete(self, user_id: str, system_prompt: str, user_prompt: str) -> Optional[str]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            completion = await self.client.chat.completions.create(
                user=user_id,
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                extra_body={"reasoning": {"enabled": False, "exclude": True}},
            )
        except OpenAIError as e:
            self.logger.error("AI generation failed", user_id=user_id, error=str(e))
            raise DownstreamError("ai", "Failed to generate AI suggestions", details={"error": str(e)})

        if not completion.choices:
            raise DownstreamError("ai", "Failed to generate AI suggestion")
        return completion.choices[0].message.content
