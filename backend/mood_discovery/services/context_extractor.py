"""
Extract mood, occasion and group size from what the user has said so far.

Each table is an ordered list of (result, keywords) pairs evaluated top to bottom; the first
entry with a keyword found in the text wins, so table order is the tie-break between moods
(or occasions) that both match.
"""
import re
from collections.abc import Iterable
from typing import Any, TypedDict

from mood_discovery.core.constants import MAX_GROUP_SIZE


class ExtractedContext(TypedDict, total=False):
    mood: str
    occasion: str
    group_size: int


MOOD_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("romantic", ("romantic", "date", "intimate", "cozy", "candlelit")),
    ("casual", ("casual", "relaxed", "laid-back", "chill")),
    ("energetic", ("energetic", "lively", "vibrant", "bustling", "busy")),
    ("quiet", ("quiet", "peaceful", "calm", "serene", "tranquil")),
    ("upscale", ("upscale", "fancy", "elegant", "sophisticated", "fine dining")),
]

# "romantic dinner" alone is a mood and "group of N" alone is a size; neither is an occasion.
OCCASION_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("date night", ("date", "anniversary")),
    ("business meeting", ("business", "meeting", "professional", "client")),
    ("group hangout", ("friends", "hangout", "gathering", "get-together")),
    ("family dinner", ("family", "kids", "children")),
    ("celebration", ("celebration", "birthday", "party", "special occasion")),
]

# Any of these means a party of one and numeric patterns are not consulted.
SOLO_PHRASES: tuple[str, ...] = ("just me", "by myself", "solo", "just for me")

GROUP_SIZE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(\d+)\s+people\b", re.IGNORECASE),
    re.compile(r"\bgroup\s+of\s+(\d+)\b", re.IGNORECASE),
    re.compile(r"\bparty\s+of\s+(\d+)\b", re.IGNORECASE),
    re.compile(r"\b(\d+)\s+of\s+us\b", re.IGNORECASE),
    re.compile(r"\bfor\s+(\d+)\b", re.IGNORECASE),
    re.compile(r"\bjust\s+for\s+(\d+)\b", re.IGNORECASE),
]


def _role_and_content(message: Any) -> tuple[str, str]:
    if isinstance(message, dict):
        return message.get("role") or "", message.get("content") or ""
    return getattr(message, "role", "") or "", getattr(message, "content", "") or ""


def user_text(messages: Iterable[Any]) -> str:
    """Lower-cased user turns joined with spaces; assistant turns are ignored."""
    parts = []
    for message in messages:
        role, content = _role_and_content(message)
        if role == "user":
            parts.append(content.lower())
    return " ".join(parts)


def _first_match(text: str, rules: list[tuple[str, tuple[str, ...]]]) -> str | None:
    for result, keywords in rules:
        if any(keyword in text for keyword in keywords):
            return result
    return None


def extract_group_size(text: str) -> int | None:
    if any(phrase in text for phrase in SOLO_PHRASES):
        return 1
    for pattern in GROUP_SIZE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            size = int(match.group(1))
            if 0 < size <= MAX_GROUP_SIZE:
                return size
    return None


def extract_context(messages: Iterable[Any]) -> ExtractedContext:
    """
    Partial context from the user's turns: {mood?, occasion?, group_size?}.
    Accepts ChatMessage objects or {role, content} dicts. Keys are omitted when nothing matched.
    """
    text = user_text(messages)
    context: ExtractedContext = {}
    mood = _first_match(text, MOOD_RULES)
    if mood:
        context["mood"] = mood
    occasion = _first_match(text, OCCASION_RULES)
    if occasion:
        context["occasion"] = occasion
    group_size = extract_group_size(text)
    if group_size is not None:
        context["group_size"] = group_size
    return context
