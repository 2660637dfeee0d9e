"""
Current context (time of day, weather, location) for a point.
"""
from fastapi import APIRouter, Depends, Query

from mood_discovery.core.auth import get_current_user
from mood_discovery.core.deps import get_context_service
from mood_discovery.models.user import User
from mood_discovery.schemas.context import LocationContext
from mood_discovery.services.context_service import ContextService

router = APIRouter()


@router.get("/current")
async def current_context(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    name: str | None = None,
    user: User = Depends(get_current_user),
    context_service: ContextService = Depends(get_context_service),
):
    context = await context_service.get_current_context(LocationContext(lat=lat, lng=lng, name=name))
    return {"context": context}
