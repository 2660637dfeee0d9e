from mood_discovery.models.chat_session import ChatSession
from mood_discovery.models.conversation import Conversation
from mood_discovery.models.saved_place import SavedPlace
from mood_discovery.models.user import User

__all__ = [
    "ChatSession",
    "Conversation",
    "SavedPlace",
    "User",
]
