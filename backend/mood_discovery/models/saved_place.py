"""Place saved by a user, with a snapshot of the place and the context it was found in. One row per (user, place)."""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint

from mood_discovery.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SavedPlace(Base):
    __tablename__ = "saved_places"
    __table_args__ = (
        UniqueConstraint("user_id", "place_id", name="uq_saved_places_user_place"),
        Index("ix_saved_places_user_saved_at", "user_id", "saved_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    place_id = Column(String(128), nullable=False)
    place_name = Column(String(256), nullable=False)
    # {name, address, rating, categories, photos, coordinates: {lat, lng}}
    place_data = Column(JSON, nullable=False)
    context_note = Column(Text, nullable=False)
    # {mood, weather, time_of_day, group_size, occasion, search_query}
    search_context = Column(JSON, nullable=False, default=dict)
    saved_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    tags = Column(JSON, nullable=False, default=list)
