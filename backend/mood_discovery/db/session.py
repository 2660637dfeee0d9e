"""
Database handle: engine + session factory.

Created by the application lifespan and attached to app.state; disposed on shutdown.
"""
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


class Database:
    """Owns one engine and its sessionmaker."""

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not url:
                raise ValueError("Database URL is required")
            engine = create_engine(
                url,
                pool_size=8,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=300,
                pool_timeout=30,
            )
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        """Create tables directly (tests / local dev). Production schema is managed by alembic."""
        from mood_discovery.db.base import Base
        import mood_discovery.models  # noqa: F401  (register tables on Base.metadata)

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
