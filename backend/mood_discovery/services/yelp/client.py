"""
Yelp API client: AI chat, business details and business search.

Every call goes through the response cache (5 minute TTL) and the retry loop: up to 3 attempts,
1s then 2s apart, for 5xx / timeouts / transport failures. 4xx responses are never retried.
Results are normalized into mood_discovery.schemas; failures leave as RecommendationAPIError.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar
from urllib.parse import quote

import httpx

from mood_discovery.core.constants import (
    YELP_BACKOFF_BASE_SECONDS,
    YELP_MAX_ATTEMPTS,
    YELP_SEARCH_DEFAULT_LIMIT,
)
from mood_discovery.core.errors import (
    MSG_YELP_AUTH_FAILED,
    MSG_YELP_RATE_LIMITED,
    YELP_SERVER_ERROR_PREFIX,
    RecommendationAPIError,
)
from mood_discovery.schemas.conversation import ChatMessage, ChatResult, ConversationContext, Recommendation
from mood_discovery.schemas.place import Coordinates, Place, PlaceFilters
from mood_discovery.services.yelp.cache import ResponseCache, make_cache_key
from mood_discovery.services.yelp.config import YelpConfig
from mood_discovery.services.yelp.types import (
    YelpBusiness,
    YelpBusinessDetails,
    YelpChatRecommendation,
    YelpChatRequestContext,
    YelpLocation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

HOURS_PLACEHOLDER = "See Yelp for hours"


class YelpClient:
    """Async Yelp client with a shared response cache."""

    def __init__(
        self,
        config: YelpConfig | None = None,
        *,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_attempts: int = YELP_MAX_ATTEMPTS,
        backoff_base: float = YELP_BACKOFF_BASE_SECONDS,
    ) -> None:
        self._config = config or YelpConfig()
        if not self._config.is_configured():
            raise RecommendationAPIError("Yelp API key is required")
        self._cache = cache if cache is not None else ResponseCache()
        self._transport = transport
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base
        self._in_flight: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_chat_message(
        self,
        message: str,
        conversation_history: list[ChatMessage] | None = None,
        context: ConversationContext | None = None,
    ) -> ChatResult:
        """Send one user turn to the AI chat endpoint; returns reply text and recommendations."""
        key = make_cache_key(
            "chat",
            {"message": message, "context": context.model_dump(exclude_none=True) if context else None},
        )
        body: dict[str, Any] = {
            "message": message,
            "conversation_history": [
                {"role": m.role, "content": m.content} for m in (conversation_history or [])
            ],
        }
        if context is not None:
            body["context"] = format_context(context)

        def parse(data: dict[str, Any]) -> ChatResult:
            return ChatResult(
                response=data.get("response") or "",
                recommendations=parse_recommendations(data.get("recommendations")),
            )

        async def fetch() -> ChatResult:
            return await self._call("POST", "/v2/ai/chat", "Failed to send chat message", parse, json_body=body)

        return await self._cached(key, fetch)

    async def get_place_details(self, place_id: str) -> Place:
        key = make_cache_key("place", {"place_id": place_id})

        async def fetch() -> Place:
            return await self._call(
                "GET",
                f"/v3/businesses/{quote(place_id, safe='')}",
                f"Failed to get place details for {place_id}",
                format_place_details,
            )

        return await self._cached(key, fetch)

    async def search_places(
        self,
        query: str,
        location: Coordinates,
        filters: PlaceFilters | None = None,
    ) -> list[Place]:
        key = make_cache_key(
            "search",
            {
                "query": query,
                "location": location.model_dump(),
                "filters": filters.model_dump(exclude_none=True) if filters else None,
            },
        )
        params: dict[str, Any] = {
            "term": query,
            "latitude": location.lat,
            "longitude": location.lng,
            "limit": (filters.limit if filters and filters.limit else YELP_SEARCH_DEFAULT_LIMIT),
        }
        if filters:
            if filters.categories:
                params["categories"] = ",".join(filters.categories)
            if filters.price:
                params["price"] = ",".join(filters.price)
            if filters.radius:
                params["radius"] = filters.radius

        def parse(data: dict[str, Any]) -> list[Place]:
            return [format_search_result(b) for b in data.get("businesses") or []]

        async def fetch() -> list[Place]:
            return await self._call("GET", "/v3/businesses/search", "Failed to search places", parse, params=params)

        return await self._cached(key, fetch)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Cache + retry plumbing
    # ------------------------------------------------------------------

    async def _cached(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Serve from cache; otherwise fetch once per key even when several callers miss together."""
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(key, fetch))
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        # Shielded: a caller that gives up does not cancel the shared request.
        return await asyncio.shield(task)

    async def _fetch_and_store(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        value = await fetch()
        self._cache.set(key, value)
        return value

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _call(
        self,
        method: str,
        path: str,
        message: str,
        parse: Callable[[dict[str, Any]], T],
        **kwargs: Any,
    ) -> T:
        """Request with retry, then normalize; any failure leaves as RecommendationAPIError."""
        try:
            data = await self._request_with_retry(method, path, **kwargs)
            return parse(data)
        except Exception as e:
            logger.warning("Yelp %s %s failed: %s", method, path, e)
            raise to_api_error(e, message) from e

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._config.base_url}{path}"
        attempt = 1
        while True:
            try:
                async with httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport) as c:
                    r = await c.request(method, url, params=params, json=json_body, headers=self._config.headers())
                r.raise_for_status()
                return r.json() if r.content else {}
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500 or attempt >= self._max_attempts:
                    raise
                error: Exception = e
            except httpx.TransportError as e:  # timeouts, connect/read failures
                if attempt >= self._max_attempts:
                    raise
                error = e
            delay = self._backoff_base * (2 ** (attempt - 1))
            logger.warning(
                "Yelp %s %s failed (attempt %s/%s): %s; retrying in %ss",
                method, path, attempt, self._max_attempts, error, delay,
            )
            await asyncio.sleep(delay)
            attempt += 1


# ----------------------------------------------------------------------
# Normalization
# ----------------------------------------------------------------------

def format_context(context: ConversationContext) -> YelpChatRequestContext:
    """ConversationContext -> Yelp chat request context (unset fields omitted)."""
    out: YelpChatRequestContext = {}
    if context.location is not None:
        out["location"] = {"lat": context.location.lat, "lng": context.location.lng}
    if context.time_of_day:
        out["time_of_day"] = context.time_of_day
    if context.weather:
        out["weather"] = context.weather
    if context.group_size is not None:
        out["group_size"] = context.group_size
    if context.occasion:
        out["occasion"] = context.occasion
    if context.mood:
        out["mood"] = context.mood
    return out


def parse_recommendations(recommendations: list[YelpChatRecommendation] | None) -> list[Recommendation]:
    """Missing or null recommendations become an empty list."""
    if not recommendations:
        return []
    return [
        Recommendation(
            place_id=rec["place_id"],
            place_name=rec.get("name") or "",
            relevance_score=float(rec.get("relevance_score") or 0.0),
            reasoning=rec.get("reasoning"),
        )
        for rec in recommendations
    ]


def format_address(location: YelpLocation | None) -> str:
    """"<address1>, <city>, <state> <zip>"."""
    loc = location or {}
    return f"{loc.get('address1') or ''}, {loc.get('city') or ''}, {loc.get('state') or ''} {loc.get('zip_code') or ''}"


def format_hours(hours: list[dict[str, Any]] | None) -> str | None:
    if not hours:
        return None
    return HOURS_PLACEHOLDER


def _coordinates(raw: Any) -> Coordinates:
    raw = raw or {}
    return Coordinates(lat=raw["latitude"], lng=raw["longitude"])


def _category_titles(categories: Any) -> list[str]:
    return [c["title"] for c in categories or [] if isinstance(c, dict) and c.get("title")]


def format_place_details(data: YelpBusinessDetails) -> Place:
    return Place(
        place_id=data["id"],
        name=data.get("name") or "",
        address=format_address(data.get("location")),
        rating=float(data.get("rating") or 0.0),
        categories=_category_titles(data.get("categories")),
        photos=list(data.get("photos") or []),
        coordinates=_coordinates(data.get("coordinates")),
        phone=data.get("phone") or None,
        hours=format_hours(data.get("hours")),
        price_range=data.get("price"),
    )


def format_search_result(business: YelpBusiness) -> Place:
    image_url = business.get("image_url")
    return Place(
        place_id=business["id"],
        name=business.get("name") or "",
        address=format_address(business.get("location")),
        rating=float(business.get("rating") or 0.0),
        categories=_category_titles(business.get("categories")),
        photos=[image_url] if image_url else [],
        coordinates=_coordinates(business.get("coordinates")),
        phone=business.get("phone") or None,
        price_range=business.get("price"),
    )


def _error_body(response: httpx.Response) -> dict[str, Any] | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def to_api_error(exc: Exception, message: str) -> RecommendationAPIError:
    """
    Map a failed call to RecommendationAPIError:
    401 -> auth failed, 429 -> rate limited, 5xx -> server error with context,
    structured error body -> its description, anything else -> the context message alone.
    """
    if isinstance(exc, RecommendationAPIError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 401:
            return RecommendationAPIError(MSG_YELP_AUTH_FAILED)
        if status == 429:
            return RecommendationAPIError(MSG_YELP_RATE_LIMITED)
        if status >= 500:
            return RecommendationAPIError(f"{YELP_SERVER_ERROR_PREFIX}: {message}")
        body = _error_body(exc.response)
        error = body.get("error") if body else None
        if error:
            description = error.get("description") if isinstance(error, dict) else str(error)
            return RecommendationAPIError(f"Yelp API error: {description or message}")
    # Upstream text (URLs, httpx wording) stays on the exception chain, not in the message
    return RecommendationAPIError(message)
