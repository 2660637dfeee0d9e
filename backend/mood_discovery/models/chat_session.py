"""
Chat session: links a signed-in user to the conversation they are in.
Rows expire SESSION_TTL_HOURS after creation and are swept by the session cleanup job.
"""
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from mood_discovery.core.constants import SESSION_TTL_HOURS
from mood_discovery.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_expiry() -> datetime:
    return _utcnow() + timedelta(hours=SESSION_TTL_HOURS)


class ChatSession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False)
    last_activity = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, default=default_expiry, index=True)
