"""
Place endpoints: search, details, and the caller's saved places.
Saved-place routes are declared before /{place_id} so "saved" is never taken for a place id.
"""
from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from mood_discovery.core.auth import get_current_user
from mood_discovery.core.deps import get_yelp_client
from mood_discovery.db.session import get_db
from mood_discovery.models.user import User
from mood_discovery.schemas.base import CamelModel
from mood_discovery.schemas.place import Coordinates, PlaceFilters, SearchContext
from mood_discovery.services import saved_place_service
from mood_discovery.services.yelp.client import YelpClient

router = APIRouter()


class SavePlaceRequest(CamelModel):
    place_id: str = Field(min_length=1)
    search_context: SearchContext | None = None
    tags: list[str] = Field(default_factory=list)


def _split_csv(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


@router.get("/search")
async def search_places(
    query: str = Query(..., min_length=1),
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    categories: str | None = Query(None, description="Comma-separated Yelp category aliases"),
    price: str | None = Query(None, description="Comma-separated price levels, e.g. 1,2"),
    radius: int | None = Query(None, gt=0, le=40000, description="Meters"),
    limit: int | None = Query(None, gt=0, le=50),
    user: User = Depends(get_current_user),
    yelp: YelpClient = Depends(get_yelp_client),
):
    filters = PlaceFilters(
        categories=_split_csv(categories),
        price=_split_csv(price),
        radius=radius,
        limit=limit,
    )
    places = await yelp.search_places(query, Coordinates(lat=lat, lng=lng), filters)
    return {"places": places}


@router.get("/saved")
async def list_saved_places(
    mood: str | None = None,
    occasion: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Caller's saved places, newest first. Optional mood / occasion filter."""
    return {"savedPlaces": saved_place_service.list_saved_places(db, user, mood=mood, occasion=occasion)}


@router.post("/save", status_code=201)
async def save_place(
    body: SavePlaceRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    yelp: YelpClient = Depends(get_yelp_client),
):
    """Save a place with the context it was found in. 409 if already saved."""
    saved = await saved_place_service.save_place(
        db, user, yelp, body.place_id, search_context=body.search_context, tags=body.tags
    )
    return {"savedPlace": saved}


@router.delete("/saved/{saved_id}")
async def delete_saved_place(
    saved_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return saved_place_service.delete_saved_place(db, user, saved_id)


@router.get("/{place_id}")
async def get_place(
    place_id: str,
    user: User = Depends(get_current_user),
    yelp: YelpClient = Depends(get_yelp_client),
):
    return {"place": await yelp.get_place_details(place_id)}
