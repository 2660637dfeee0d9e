"""Situational context: time of day, weather and location."""
from datetime import datetime
from typing import Literal

from pydantic import Field

from mood_discovery.schemas.base import CamelModel

TimeOfDay = Literal["morning", "afternoon", "evening", "night"]


class TimeContext(CamelModel):
    timestamp: datetime
    time_of_day: TimeOfDay
    day_of_week: str


class WeatherContext(CamelModel):
    condition: str
    temperature: float
    description: str


class LocationContext(CamelModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    name: str | None = None


class CurrentContext(CamelModel):
    time: TimeContext
    weather: WeatherContext | None = None
    location: LocationContext
