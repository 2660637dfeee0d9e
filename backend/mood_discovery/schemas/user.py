from datetime import datetime

from pydantic import Field

from mood_discovery.schemas.base import CamelModel
from mood_discovery.schemas.context import LocationContext


class UserPreferences(CamelModel):
    default_location: LocationContext | None = None
    favorite_categories: list[str] = Field(default_factory=list)
    dietary_restrictions: list[str] = Field(default_factory=list)


class UserProfile(CamelModel):
    id: int
    clerk_id: str
    email: str
    created_at: datetime | None = None
    preferences: UserPreferences
