"""
Saved places: a user's bookmarks with a snapshot of the place and the context it was found in.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mood_discovery.core.constants import SAVED_PLACES_LIMIT
from mood_discovery.core.errors import ConflictError, NotFoundError
from mood_discovery.models.saved_place import SavedPlace
from mood_discovery.models.user import User
from mood_discovery.schemas.place import PlaceSnapshot, SavedPlaceOut, SearchContext
from mood_discovery.services.context_service import generate_context_note
from mood_discovery.services.yelp.client import YelpClient

logger = logging.getLogger(__name__)

MSG_ALREADY_SAVED = "Place already saved"
MSG_SAVED_PLACE_NOT_FOUND = "Saved place not found"


def _find(db: Session, user: User, place_id: str) -> SavedPlace | None:
    return (
        db.query(SavedPlace)
        .filter(SavedPlace.user_id == user.id, SavedPlace.place_id == place_id)
        .first()
    )


def saved_place_out(row: SavedPlace) -> SavedPlaceOut:
    return SavedPlaceOut(
        id=row.id,
        place_id=row.place_id,
        place_name=row.place_name,
        place_data=PlaceSnapshot.model_validate(row.place_data),
        context_note=row.context_note,
        search_context=SearchContext.model_validate(row.search_context or {}),
        saved_at=row.saved_at,
        tags=list(row.tags or []),
    )


async def save_place(
    db: Session,
    user: User,
    yelp: YelpClient,
    place_id: str,
    search_context: SearchContext | None = None,
    tags: list[str] | None = None,
) -> SavedPlaceOut:
    """
    Look the place up, snapshot it and store it with a generated context note.
    Raises ConflictError when the user already saved this place.
    """
    if _find(db, user, place_id) is not None:
        raise ConflictError(MSG_ALREADY_SAVED)
    search_context = search_context or SearchContext()
    place = await yelp.get_place_details(place_id)
    snapshot = PlaceSnapshot(
        name=place.name,
        address=place.address,
        rating=place.rating,
        categories=place.categories,
        photos=place.photos,
        coordinates=place.coordinates,
    )
    row = SavedPlace(
        user_id=user.id,
        place_id=place.place_id,
        place_name=place.name,
        place_data=snapshot.model_dump(mode="json"),
        context_note=generate_context_note(search_context, place.name),
        search_context=search_context.model_dump(mode="json", exclude_none=True),
        tags=list(tags or []),
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError as e:
        # Concurrent save of the same place
        db.rollback()
        raise ConflictError(MSG_ALREADY_SAVED) from e
    db.refresh(row)
    logger.info("User %s saved place %s", user.id, place.place_id)
    return saved_place_out(row)


def list_saved_places(
    db: Session,
    user: User,
    *,
    mood: str | None = None,
    occasion: str | None = None,
    limit: int = SAVED_PLACES_LIMIT,
) -> list[SavedPlaceOut]:
    """Newest first. mood / occasion filter on the stored search context."""
    rows = (
        db.query(SavedPlace)
        .filter(SavedPlace.user_id == user.id)
        .order_by(SavedPlace.saved_at.desc(), SavedPlace.id.desc())
        .all()
    )
    out: list[SavedPlaceOut] = []
    for row in rows:
        ctx = row.search_context or {}
        if mood and ctx.get("mood") != mood:
            continue
        if occasion and ctx.get("occasion") != occasion:
            continue
        out.append(saved_place_out(row))
        if len(out) >= limit:
            break
    return out


def delete_saved_place(db: Session, user: User, saved_id: int) -> dict:
    row = (
        db.query(SavedPlace)
        .filter(SavedPlace.id == saved_id, SavedPlace.user_id == user.id)
        .first()
    )
    if row is None:
        raise NotFoundError(MSG_SAVED_PLACE_NOT_FOUND)
    db.delete(row)
    db.commit()
    return {"ok": True, "id": saved_id}
