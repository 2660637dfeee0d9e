"""
Typed definitions for Yelp API responses.

The client never returns these shapes; they are normalized into mood_discovery.schemas
(Place, ChatResult). Coordinates arrive as {latitude, longitude} and leave as {lat, lng}.
"""

from typing import Any, TypedDict


class YelpCoordinates(TypedDict):
    latitude: float
    longitude: float


class YelpLocation(TypedDict, total=False):
    address1: str | None
    address2: str | None
    city: str
    state: str
    zip_code: str


class YelpCategory(TypedDict, total=False):
    alias: str
    title: str


class YelpBusinessDetails(TypedDict, total=False):
    """GET /v3/businesses/{id}."""
    id: str
    name: str
    rating: float
    coordinates: YelpCoordinates
    location: YelpLocation
    categories: list[YelpCategory]
    photos: list[str]
    phone: str
    hours: list[dict[str, Any]]  # [{open: [{start, end, day}]}]
    price: str


class YelpBusiness(TypedDict, total=False):
    """One entry of GET /v3/businesses/search -> businesses[]."""
    id: str
    name: str
    rating: float
    coordinates: YelpCoordinates
    location: YelpLocation
    categories: list[YelpCategory]
    image_url: str
    phone: str
    price: str


class YelpChatRecommendation(TypedDict, total=False):
    place_id: str
    name: str
    rating: float
    coordinates: dict[str, float]
    relevance_score: float
    reasoning: str
    address: str
    categories: list[str]
    photos: list[str]


class YelpChatResponse(TypedDict, total=False):
    """POST /v2/ai/chat."""
    response: str
    recommendations: list[YelpChatRecommendation]


class YelpChatRequestContext(TypedDict, total=False):
    location: dict[str, float]
    time_of_day: str
    weather: str
    group_size: int
    occasion: str
    mood: str
