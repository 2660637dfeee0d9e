"""
Conversation: ordered chat transcript for one session, plus the context snapshot used for recommendations.
"""
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func

from mood_discovery.db.base import Base


class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (Index("ix_conversations_user_active", "user_id", "active"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    # [{role: user|assistant, content, timestamp, recommendations: [{place_id, place_name, relevance_score}]}]
    messages = Column(JSON, nullable=False, default=list)
    # {location: {lat, lng, name}, time_of_day, weather, group_size, occasion, mood}
    context = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), index=True)
