"""Yelp API client: AI chat recommendations, business details and business search."""
import logging

from mood_discovery.services.yelp.cache import ResponseCache, make_cache_key
from mood_discovery.services.yelp.client import YelpClient
from mood_discovery.services.yelp.config import YelpConfig

logger = logging.getLogger(__name__)


def build_client(api_key: str | None) -> YelpClient | None:
    """Client for the configured key, or None (logged) when YELP_API_KEY is not set."""
    config = YelpConfig(api_key=api_key or "")
    if not config.is_configured():
        logger.warning("YELP_API_KEY not set; chat and place endpoints will return 503")
        return None
    return YelpClient(config)


__all__ = [
    "ResponseCache",
    "YelpClient",
    "YelpConfig",
    "build_client",
    "make_cache_key",
]
