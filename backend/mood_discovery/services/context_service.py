"""
Current context for a location: time of day, optional weather (OpenWeatherMap) and the location itself.
Weather is best effort: any failure is logged and the context is returned without it.
"""
import logging
from datetime import datetime
from typing import Any

import httpx

from mood_discovery.core.constants import WEATHER_BASE_URL, WEATHER_TIMEOUT_SECONDS
from mood_discovery.schemas.context import (
    CurrentContext,
    LocationContext,
    TimeContext,
    TimeOfDay,
    WeatherContext,
)
from mood_discovery.schemas.conversation import ConversationContext
from mood_discovery.schemas.place import SearchContext

logger = logging.getLogger(__name__)


def time_of_day_for_hour(hour: int) -> TimeOfDay:
    """[5,12) morning, [12,17) afternoon, [17,21) evening, otherwise night."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def get_time_context(now: datetime | None = None) -> TimeContext:
    """Time context from local wall-clock time."""
    now = now or datetime.now().astimezone()
    return TimeContext(
        timestamp=now,
        time_of_day=time_of_day_for_hour(now.hour),
        day_of_week=now.strftime("%A"),
    )


class ContextService:
    """Assembles CurrentContext. Weather is only fetched when an API key is configured."""

    def __init__(
        self,
        weather_api_key: str | None = None,
        *,
        base_url: str = WEATHER_BASE_URL,
        timeout: float = WEATHER_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._weather_api_key = (weather_api_key or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def weather_enabled(self) -> bool:
        return self._weather_api_key is not None

    async def get_current_context(self, location: LocationContext, *, now: datetime | None = None) -> CurrentContext:
        time = get_time_context(now)
        weather = await self.get_weather(location)
        return CurrentContext(time=time, weather=weather, location=location)

    async def get_weather(self, location: LocationContext) -> WeatherContext | None:
        """Current weather at location, or None when not configured or on any failure."""
        if not self._weather_api_key:
            return None
        params: dict[str, Any] = {
            "lat": location.lat,
            "lon": location.lng,
            "appid": self._weather_api_key,
            "units": "imperial",  # Fahrenheit
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                r = await client.get(f"{self._base_url}/weather", params=params)
                r.raise_for_status()
                data = r.json()
            first = (data.get("weather") or [])[0]
            return WeatherContext(
                condition=first["main"],
                temperature=float(data["main"]["temp"]),
                description=first.get("description") or "",
            )
        except Exception as e:
            logger.warning("Weather API failed, continuing without weather context: %s", e)
            return None


def context_from_current(current: CurrentContext) -> ConversationContext:
    """The parts of an assembled CurrentContext that travel with a conversation."""
    loc = current.location
    return ConversationContext(
        location=LocationContext(lat=loc.lat, lng=loc.lng, name=loc.name),
        time_of_day=current.time.time_of_day,
        weather=current.weather.condition if current.weather else None,
    )


def merge_contexts(*contexts: ConversationContext | dict[str, Any] | None) -> ConversationContext:
    """Merge left to right; a later source overrides a field only when it sets it."""
    merged: dict[str, Any] = {}
    for ctx in contexts:
        if ctx is None:
            continue
        if isinstance(ctx, ConversationContext):
            ctx = ctx.model_dump(exclude_none=True)
        merged.update({k: v for k, v in ctx.items() if v is not None})
    return ConversationContext.model_validate(merged)


def generate_context_note(search_context: SearchContext, place_name: str) -> str:
    """Human-readable note stored with a saved place, e.g. "Saved Lupa when looking for cozy vibes, for two"."""
    parts: list[str] = []
    if search_context.mood:
        parts.append(f"when looking for {search_context.mood} vibes")
    if search_context.occasion:
        parts.append(f"for {search_context.occasion}")
    if search_context.group_size:
        if search_context.group_size == 1:
            parts.append("solo")
        elif search_context.group_size == 2:
            parts.append("for two")
        else:
            parts.append(f"for a group of {search_context.group_size}")
    if search_context.weather:
        parts.append(f"on a {search_context.weather.lower()} day")
    if search_context.time_of_day:
        parts.append(f"during {search_context.time_of_day}")
    if search_context.search_query:
        parts.append(f'while searching for "{search_context.search_query}"')
    if not parts:
        return f"Saved {place_name}"
    return f"Saved {place_name} {', '.join(parts)}"
