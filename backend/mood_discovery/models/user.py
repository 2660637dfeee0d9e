"""Local user record, keyed by the identity provider's user id. Created on first authenticated request."""
from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from mood_discovery.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    clerk_id = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(320), nullable=False, server_default="", index=True)
    # {favorite_categories: [..], dietary_restrictions: [..], default_location: {lat, lng, name}}
    preferences = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
