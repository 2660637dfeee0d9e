"""Place types returned by the recommendation client and stored with saved places."""
from datetime import datetime

from pydantic import Field

from mood_discovery.schemas.base import CamelModel


class Coordinates(CamelModel):
    lat: float
    lng: float


class Place(CamelModel):
    place_id: str
    name: str
    address: str
    rating: float = 0.0
    categories: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    coordinates: Coordinates
    phone: str | None = None
    hours: str | None = None
    price_range: str | None = None


class PlaceFilters(CamelModel):
    categories: list[str] | None = None
    price: list[str] | None = None
    radius: int | None = None
    limit: int | None = None


class SearchContext(CamelModel):
    mood: str | None = None
    weather: str | None = None
    time_of_day: str | None = None
    group_size: int | None = None
    occasion: str | None = None
    search_query: str | None = None


class PlaceSnapshot(CamelModel):
    """Denormalized copy of a place kept with a saved place."""

    name: str
    address: str
    rating: float
    categories: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    coordinates: Coordinates


class SavedPlaceOut(CamelModel):
    id: int
    place_id: str
    place_name: str
    place_data: PlaceSnapshot
    context_note: str
    search_context: SearchContext
    saved_at: datetime
    tags: list[str] = Field(default_factory=list)
