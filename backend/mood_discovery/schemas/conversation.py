"""Chat transcript types and the context snapshot attached to a conversation."""
from datetime import datetime, timezone
from typing import Literal

from pydantic import Field

from mood_discovery.schemas.base import CamelModel
from mood_discovery.schemas.context import LocationContext


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Recommendation(CamelModel):
    place_id: str
    place_name: str
    relevance_score: float
    reasoning: str | None = None


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    recommendations: list[Recommendation] | None = None


class ConversationContext(CamelModel):
    location: LocationContext | None = None
    time_of_day: str | None = None
    weather: str | None = None
    group_size: int | None = None
    occasion: str | None = None
    mood: str | None = None


class ChatResult(CamelModel):
    """Normalized reply from the recommendation service."""

    response: str
    recommendations: list[Recommendation] = Field(default_factory=list)


class ChatTurnResponse(ChatResult):
    session_id: str


class ChatHistory(CamelModel):
    session_id: str
    messages: list[ChatMessage]
    context: ConversationContext
    active: bool = True
