"""Yelp API config. API key from settings (YELP_API_KEY) or YelpClient args."""
from mood_discovery.core.constants import YELP_BASE_URL, YELP_TIMEOUT_SECONDS


class YelpConfig:
    """API key, base URL and request timeout for Yelp."""

    __slots__ = ("api_key", "base_url", "timeout")

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str = YELP_BASE_URL,
        timeout: float = YELP_TIMEOUT_SECONDS,
    ) -> None:
        if api_key is None:
            from mood_discovery.config import settings

            api_key = settings.yelp_api_key
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
