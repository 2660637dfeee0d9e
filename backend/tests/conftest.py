"""Shared test fixtures."""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from mood_discovery.config import Settings
from mood_discovery.core.auth import AuthContext, require_auth
from mood_discovery.core.rate_limit import limiter
from mood_discovery.db.session import Database
from mood_discovery.main import create_app
from mood_discovery.models.user import User
from mood_discovery.schemas.conversation import ChatResult, Recommendation
from mood_discovery.schemas.place import Coordinates, Place

TEST_AUTH = AuthContext(user_id="user_test", session_id="sess_test", email="test@example.com")


class FakeYelp:
    """Stands in for YelpClient at the route layer; records every call."""

    def __init__(self) -> None:
        self.chat_calls: list[SimpleNamespace] = []
        self.detail_calls: list[str] = []
        self.search_calls: list[SimpleNamespace] = []
        self.chat_error: Exception | None = None
        self.reply = ChatResult(
            response="Try Lupa, it's cozy.",
            recommendations=[Recommendation(place_id="lupa-nyc", place_name="Lupa", relevance_score=0.92)],
        )

    async def send_chat_message(self, message, conversation_history=None, context=None):
        self.chat_calls.append(
            SimpleNamespace(message=message, history=list(conversation_history or []), context=context)
        )
        if self.chat_error is not None:
            raise self.chat_error
        return self.reply

    async def get_place_details(self, place_id):
        self.detail_calls.append(place_id)
        return make_place(place_id)

    async def search_places(self, query, location, filters=None):
        self.search_calls.append(SimpleNamespace(query=query, location=location, filters=filters))
        return [make_place("lupa-nyc"), make_place("via-carota")]

    def clear_cache(self) -> None:
        pass


def make_place(place_id: str, name: str | None = None) -> Place:
    return Place(
        place_id=place_id,
        name=name or place_id.replace("-", " ").title(),
        address="170 Thompson St, New York, NY 10012",
        rating=4.5,
        categories=["Italian"],
        photos=["https://example.com/photo.jpg"],
        coordinates=Coordinates(lat=40.7276, lng=-73.9994),
        price_range="$$",
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        environment="test",
        yelp_api_key="",
        clerk_jwks_url="",
        openweather_api_key="",
    )


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine=engine)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db_session) -> User:
    row = User(clerk_id="user_test", email="test@example.com", preferences={})
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def app(test_settings, database):
    application = create_app(test_settings, database=database)
    application.dependency_overrides[require_auth] = lambda: TEST_AUTH
    return application


@pytest.fixture
def client(app):
    limiter.reset()
    with TestClient(app) as c:
        yield c
    limiter.reset()


@pytest.fixture
def fake_yelp(client) -> FakeYelp:
    fake = FakeYelp()
    client.app.state.yelp = fake
    return fake
