"""
Prompt construction for checklist AI features.
"""

from typing import Any, Iterable, List

SUGGESTIONS_SYSTEM_PROMPT = (
    "You are a helpful AI assistant that provides intelligent suggestions for checklist "
    "management and productivity. Provide concise, actionable advice. Do not include hidden "
    "reasoning or <think> sections in your output. Return only a JSON array of suggested new "
    "items, without numbering or explanations."
)

PARSE_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts structured data from text. Rules: "
    "- Always return JSON only, without numbering or explanations; "
    '- JSON must have two fields: "title": string, "items": array of strings; '
    "- The title should be short (2-6 words max); "
    "- Items should be clear, concise, without duplicates; "
    "- If no items are detected, return an empty array. "
    "Do not include hidden reasoning or <think> sections in your output. "
    'Return only a JSON in format: {"title": "...", "items": ["...", "...", "..."]}, '
    "without numbering or explanations."
)

MIN_ITEM_LENGTH = 2
FULL_CONTEXT_ITEMS = 2
MAX_SUGGESTIONS_WITH_CONTEXT = 10
MAX_SUGGESTIONS_WITHOUT_CONTEXT = 5


def valid_items(items: Iterable[Any]) -> List[str]:
    """Keep string items with at least two non-blank characters."""
    return [
        item.strip() for item in items
        if isinstance(item, str) and len(item.strip()) >= MIN_ITEM_LENGTH
    ]


def max_suggestions(items: List[str]) -> int:
    if len(items) >= FULL_CONTEXT_ITEMS:
        return MAX_SUGGESTIONS_WITH_CONTEXT
    return MAX_SUGGESTIONS_WITHOUT_CONTEXT


def build_suggestions_prompt(title: str, items: Iterable[Any]) -> str:
    items = valid_items(items)
    limit = max_suggestions(items)
    prompt = "You are given a checklist with a title"
    if items:
        return prompt + (
            f" and some existing items. Suggest up to {limit} additional useful and practical "
            "items that logically complement the existing list, avoiding duplicates. Each item "
            f"should be 1 short sentence. Title: {title}.\nExisting items: {', '.join(items)}."
        )
    return prompt + (
        f". Suggest up to {limit} of the most essential and common items that are typically "
        f"included for this type of checklist. Each item should be 1 short sentence. Title: {title}."
    )


def build_parse_prompt(text: str) -> str:
    return (
        "The user provides a single piece of transcribed text (from voice input) that includes "
        f"both a checklist title and list items. Now process this input: {text}"
    )
