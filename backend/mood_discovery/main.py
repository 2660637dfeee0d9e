"""
FastAPI app entrypoint.

create_app() builds the app; the lifespan owns the database handle, the Yelp client, the context
service and the session cleanup scheduler, and releases them on shutdown.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from mood_discovery.api.routes import auth, chat, context, places, user
from mood_discovery.config import Settings, settings as default_settings
from mood_discovery.core.auth import build_verifier, optional_auth
from mood_discovery.core.constants import SESSION_CLEANUP_JOB_ID
from mood_discovery.core.errors import register_exception_handlers
from mood_discovery.core.logging_config import setup_logging
from mood_discovery.core.rate_limit import limiter, rate_limit_exceeded_handler
from mood_discovery.db.session import Database
from mood_discovery.scheduler.session_cleanup_job import run_session_cleanup_job
from mood_discovery.services.context_service import ContextService
from mood_discovery.services.yelp import build_client

logger = logging.getLogger(__name__)

API_ENDPOINTS = {
    "auth": "/api/auth",
    "chat": "/api/chat",
    "places": "/api/places",
    "user": "/api/user",
    "context": "/api/context",
}


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the app. Pass database to reuse an existing handle (tests); otherwise one is created
    from settings.database_url at startup and disposed at shutdown.
    """
    settings = settings or default_settings
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_database = database is None
        db_handle = database or Database(settings.database_url)
        app.state.database = db_handle
        app.state.yelp = build_client(settings.yelp_api_key)
        app.state.context_service = ContextService(settings.openweather_api_key)
        app.state.token_verifier = build_verifier(settings.clerk_jwks_url, settings.clerk_issuer)
        if not app.state.context_service.weather_enabled:
            logger.info("OPENWEATHER_API_KEY not set; context will not include weather")

        scheduler = BackgroundScheduler()
        scheduler.add_job(
            run_session_cleanup_job,
            "interval",
            minutes=settings.session_cleanup_interval_minutes,
            id=SESSION_CLEANUP_JOB_ID,
            args=[db_handle],
        )
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info("Backend ready on port %s (%s)", settings.port, settings.environment)
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            if app.state.yelp is not None:
                app.state.yelp.clear_cache()
            if owns_database:
                db_handle.dispose()
            logger.info("Backend stopped")

    app = FastAPI(title="Mood Discovery", version="0.1.0", lifespan=lifespan)

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, debug=settings.is_development)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(places.router, prefix="/api/places", tags=["places"])
    app.include_router(user.router, prefix="/api/user", tags=["user"])
    app.include_router(context.router, prefix="/api/context", tags=["context"])

    @app.get("/", include_in_schema=False)
    @limiter.exempt
    def root(request: Request):
        return {"message": "Mood Discovery API", "docs": "/docs", "health": "/health"}

    @app.get("/health")
    @limiter.exempt
    def health(request: Request) -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api")
    def api_index(request: Request):
        """Capability listing; `authenticated` reflects the bearer token, if any."""
        caller = optional_auth(request, request.headers.get("authorization"))
        return {
            "message": "Mood Discovery API",
            "version": app.version,
            "endpoints": API_ENDPOINTS,
            "authenticated": caller is not None,
        }

    return app


app = create_app()
