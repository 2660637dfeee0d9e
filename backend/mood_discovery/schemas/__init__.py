from mood_discovery.schemas.context import (
    CurrentContext,
    LocationContext,
    TimeContext,
    WeatherContext,
)
from mood_discovery.schemas.conversation import (
    ChatHistory,
    ChatMessage,
    ChatResult,
    ChatTurnResponse,
    ConversationContext,
    Recommendation,
)
from mood_discovery.schemas.place import (
    Coordinates,
    Place,
    PlaceFilters,
    PlaceSnapshot,
    SavedPlaceOut,
    SearchContext,
)
from mood_discovery.schemas.user import UserPreferences, UserProfile

__all__ = [
    "ChatHistory",
    "ChatMessage",
    "ChatResult",
    "ChatTurnResponse",
    "ConversationContext",
    "Coordinates",
    "CurrentContext",
    "LocationContext",
    "Place",
    "PlaceFilters",
    "PlaceSnapshot",
    "Recommendation",
    "SavedPlaceOut",
    "SearchContext",
    "TimeContext",
    "UserPreferences",
    "UserProfile",
    "WeatherContext",
]
