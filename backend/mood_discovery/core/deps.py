"""
Shared route dependencies for the long-lived clients created by the application lifespan.
"""
from fastapi import Request

from mood_discovery.core.errors import ServiceUnavailableError
from mood_discovery.services.context_service import ContextService
from mood_discovery.services.yelp.client import YelpClient


def get_yelp_client(request: Request) -> YelpClient:
    client = getattr(request.app.state, "yelp", None)
    if client is None:
        raise ServiceUnavailableError("Recommendation service is not configured")
    return client


def get_context_service(request: Request) -> ContextService:
    service = getattr(request.app.state, "context_service", None)
    if service is None:
        service = ContextService()
        request.app.state.context_service = service
    return service
