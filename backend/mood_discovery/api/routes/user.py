from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mood_discovery.core.auth import get_current_user
from mood_discovery.db.session import get_db
from mood_discovery.models.user import User
from mood_discovery.schemas.base import CamelModel
from mood_discovery.schemas.context import LocationContext
from mood_discovery.services.user_service import update_preferences, user_profile

router = APIRouter()


class PreferencesUpdate(CamelModel):
    default_location: LocationContext | None = None
    favorite_categories: list[str] | None = None
    dietary_restrictions: list[str] | None = None


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    return {"user": user_profile(user)}


@router.patch("/preferences")
async def patch_preferences(
    body: PreferencesUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only the fields sent are changed; send null to clear one."""
    updates = body.model_dump(mode="json", exclude_unset=True)
    user = update_preferences(db, user, updates)
    return {"user": user_profile(user)}
