"""End-to-end tests for the HTTP routes (authentication overridden, Yelp faked)."""
from mood_discovery.core.errors import RecommendationAPIError
from mood_discovery.core.rate_limit import limiter
from mood_discovery.models.chat_session import ChatSession
from mood_discovery.models.conversation import Conversation

# -- Health / index ----------------------------------------------------------


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_health_is_not_rate_limited(client) -> None:
    statuses = {client.get("/health").status_code for _ in range(120)}
    assert statuses == {200}


def test_api_index(client) -> None:
    body = client.get("/api").json()
    assert set(body["endpoints"]) == {"auth", "chat", "places", "user", "context"}


def test_unknown_route(client) -> None:
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json()["message"] == "The requested resource was not found"


def test_general_rate_limit(client) -> None:
    limiter.reset()
    statuses = [client.get("/api").status_code for _ in range(101)]
    assert statuses[:100] == [200] * 100
    assert statuses[100] == 429
    r = client.get("/api")
    assert r.json()["message"] == "Too many requests from this IP, please try again later"


def test_general_rate_limit_is_shared_across_routes(client, fake_yelp) -> None:
    limiter.reset()
    statuses = [client.get("/api").status_code for _ in range(40)]
    statuses += [client.get(f"/api/places/p{i}").status_code for i in range(40)]
    statuses += [client.post("/api/auth/verify").status_code for _ in range(3)]
    statuses += [client.post("/api/chat/message", json={"message": "hi"}).status_code for _ in range(5)]
    statuses += [client.get("/api/user/profile").status_code for _ in range(12)]
    assert len(statuses) == 100
    assert 429 not in statuses

    # Request 101 from the same IP is over the limit, whichever route it hits
    r = client.get("/api/places/p100")
    assert r.status_code == 429
    assert r.json()["message"] == "Too many requests from this IP, please try again later"
    r = client.post("/api/chat/message", json={"message": "hi"})
    assert r.status_code == 429
    assert r.json()["message"] == "Too many requests from this IP, please try again later"
    assert client.get("/health").status_code == 200


# -- Chat --------------------------------------------------------------------


def test_chat_flow(client, fake_yelp) -> None:
    r = client.post(
        "/api/chat/message",
        json={"message": "Looking for a romantic dinner for 2 people", "context": {"location": {"lat": 40.7, "lng": -74.0}}},
    )
    assert r.status_code == 200
    body = r.json()
    session_id = body["sessionId"]
    assert body["response"] == "Try Lupa, it's cozy."
    assert body["recommendations"][0]["placeId"] == "lupa-nyc"

    first = fake_yelp.chat_calls[0]
    assert first.history == []
    assert first.context.mood == "romantic"
    assert first.context.group_size == 2
    assert first.context.location.lat == 40.7
    assert first.context.time_of_day is not None

    r = client.post("/api/chat/message", json={"message": "Something quieter", "sessionId": session_id})
    assert r.status_code == 200
    assert r.json()["sessionId"] == session_id
    second = fake_yelp.chat_calls[1]
    assert [m.content for m in second.history] == [
        "Looking for a romantic dinner for 2 people",
        "Try Lupa, it's cozy.",
    ]
    # Stored location and group size carry over; mood keeps the first matching rule
    assert second.context.location.lat == 40.7
    assert second.context.group_size == 2

    history = client.get(f"/api/chat/history/{session_id}").json()
    assert history["sessionId"] == session_id
    assert [m["role"] for m in history["messages"]] == ["user", "assistant", "user", "assistant"]
    assert history["messages"][1]["recommendations"][0]["placeName"] == "Lupa"
    assert history["context"]["groupSize"] == 2


def test_chat_failure_stores_nothing(client, fake_yelp) -> None:
    fake_yelp.chat_error = RecommendationAPIError("Yelp API server error: Failed to send chat message")
    r = client.post("/api/chat/message", json={"message": "hi", "sessionId": "s-fail"})
    assert r.status_code == 502
    assert r.json()["statusCode"] == 502

    assert client.get("/api/chat/history/s-fail").status_code == 404


def test_failed_first_turn_leaves_no_conversation(client, fake_yelp, database) -> None:
    fake_yelp.chat_error = RecommendationAPIError("Yelp API server error: Failed to send chat message")
    for _ in range(3):
        assert client.post("/api/chat/message", json={"message": "hi"}).status_code == 502

    db = database.session()
    try:
        assert db.query(Conversation).count() == 0
        assert db.query(ChatSession).count() == 0
    finally:
        db.close()


def test_failed_turn_keeps_existing_conversation(client, fake_yelp) -> None:
    session_id = client.post("/api/chat/message", json={"message": "hi"}).json()["sessionId"]
    fake_yelp.chat_error = RecommendationAPIError("Yelp API server error: Failed to send chat message")
    assert client.post("/api/chat/message", json={"message": "again", "sessionId": session_id}).status_code == 502

    history = client.get(f"/api/chat/history/{session_id}").json()
    assert history["active"] is True
    assert [m["content"] for m in history["messages"]] == ["hi", "Try Lupa, it's cozy."]


def test_chat_rate_limited_by_remote(client, fake_yelp) -> None:
    fake_yelp.chat_error = RecommendationAPIError("Yelp API rate limit exceeded")
    r = client.post("/api/chat/message", json={"message": "hi"})
    assert r.status_code == 503


def test_chat_rejects_blank_message(client, fake_yelp) -> None:
    r = client.post("/api/chat/message", json={"message": "   "})
    assert r.status_code == 400
    assert fake_yelp.chat_calls == []


def test_chat_without_yelp_is_503(client) -> None:
    r = client.post("/api/chat/message", json={"message": "hi"})
    assert r.status_code == 503
    assert r.json()["message"] == "Recommendation service is not configured"


def test_chat_rate_limit(client, fake_yelp) -> None:
    limiter.reset()
    statuses = [client.post("/api/chat/message", json={"message": "hi"}).status_code for _ in range(11)]
    assert statuses[:10] == [200] * 10
    assert statuses[10] == 429
    r = client.post("/api/chat/message", json={"message": "hi"})
    assert r.json()["message"] == "Too many chat requests, please slow down"


def test_end_session(client, fake_yelp) -> None:
    session_id = client.post("/api/chat/message", json={"message": "hi"}).json()["sessionId"]
    r = client.delete(f"/api/chat/session/{session_id}")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "sessionId": session_id}
    history = client.get(f"/api/chat/history/{session_id}").json()
    assert history["active"] is False
    assert len(history["messages"]) == 2


def test_history_unknown_session(client) -> None:
    r = client.get("/api/chat/history/nope")
    assert r.status_code == 404
    assert r.json()["message"] == "Conversation not found"


# -- Places ------------------------------------------------------------------


def test_search_places(client, fake_yelp) -> None:
    r = client.get(
        "/api/places/search",
        params={"query": "pasta", "lat": 40.7, "lng": -74.0, "categories": "italian, pizza", "price": "1,2", "limit": 5},
    )
    assert r.status_code == 200
    places = r.json()["places"]
    assert [p["placeId"] for p in places] == ["lupa-nyc", "via-carota"]
    call = fake_yelp.search_calls[0]
    assert call.query == "pasta"
    assert call.filters.categories == ["italian", "pizza"]
    assert call.filters.price == ["1", "2"]
    assert call.filters.limit == 5


def test_search_validates_coordinates(client, fake_yelp) -> None:
    r = client.get("/api/places/search", params={"query": "pasta", "lat": 91, "lng": 0})
    assert r.status_code == 400
    assert fake_yelp.search_calls == []


def test_place_details(client, fake_yelp) -> None:
    r = client.get("/api/places/lupa-nyc")
    assert r.status_code == 200
    place = r.json()["place"]
    assert place["placeId"] == "lupa-nyc"
    assert place["coordinates"] == {"lat": 40.7276, "lng": -73.9994}
    assert place["priceRange"] == "$$"


def test_save_list_delete_place(client, fake_yelp) -> None:
    r = client.post(
        "/api/places/save",
        json={"placeId": "lupa-nyc", "searchContext": {"mood": "cozy", "groupSize": 2}, "tags": ["pasta"]},
    )
    assert r.status_code == 201
    saved = r.json()["savedPlace"]
    assert saved["placeName"] == "Lupa Nyc"
    assert saved["contextNote"] == "Saved Lupa Nyc when looking for cozy vibes, for two"
    assert saved["placeData"]["coordinates"] == {"lat": 40.7276, "lng": -73.9994}
    assert saved["tags"] == ["pasta"]

    client.post("/api/places/save", json={"placeId": "via-carota", "searchContext": {"mood": "lively"}})

    listed = client.get("/api/places/saved").json()["savedPlaces"]
    assert [p["placeId"] for p in listed] == ["via-carota", "lupa-nyc"]
    cozy = client.get("/api/places/saved", params={"mood": "cozy"}).json()["savedPlaces"]
    assert [p["placeId"] for p in cozy] == ["lupa-nyc"]

    r = client.delete(f"/api/places/saved/{saved['id']}")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "id": saved["id"]}
    assert [p["placeId"] for p in client.get("/api/places/saved").json()["savedPlaces"]] == ["via-carota"]


def test_save_duplicate_place_conflicts(client, fake_yelp) -> None:
    assert client.post("/api/places/save", json={"placeId": "lupa-nyc"}).status_code == 201
    r = client.post("/api/places/save", json={"placeId": "lupa-nyc"})
    assert r.status_code == 409
    assert r.json()["message"] == "Place already saved"
    assert len(client.get("/api/places/saved").json()["savedPlaces"]) == 1


def test_delete_unknown_saved_place(client) -> None:
    r = client.delete("/api/places/saved/999")
    assert r.status_code == 404


# -- User --------------------------------------------------------------------


def test_profile_and_preferences(client) -> None:
    profile = client.get("/api/user/profile").json()["user"]
    assert profile["clerkId"] == "user_test"
    assert profile["preferences"] == {
        "defaultLocation": None,
        "favoriteCategories": [],
        "dietaryRestrictions": [],
    }

    r = client.patch("/api/user/preferences", json={"favoriteCategories": ["thai"]})
    assert r.status_code == 200
    r = client.patch(
        "/api/user/preferences",
        json={"defaultLocation": {"lat": 30.27, "lng": -97.74, "name": "Austin"}},
    )
    prefs = r.json()["user"]["preferences"]
    assert prefs["favoriteCategories"] == ["thai"]
    assert prefs["defaultLocation"] == {"lat": 30.27, "lng": -97.74, "name": "Austin"}

    prefs = client.patch("/api/user/preferences", json={"favoriteCategories": None}).json()["user"]["preferences"]
    assert prefs["favoriteCategories"] == []
    assert prefs["defaultLocation"]["name"] == "Austin"


def test_preferences_reject_bad_location(client) -> None:
    r = client.patch("/api/user/preferences", json={"defaultLocation": {"lat": 100, "lng": 0}})
    assert r.status_code == 400


# -- Context -----------------------------------------------------------------


def test_current_context(client) -> None:
    r = client.get("/api/context/current", params={"lat": 40.7, "lng": -74.0, "name": "SoHo"})
    assert r.status_code == 200
    context = r.json()["context"]
    assert context["location"] == {"lat": 40.7, "lng": -74.0, "name": "SoHo"}
    assert context["time"]["timeOfDay"] in {"morning", "afternoon", "evening", "night"}
    assert "dayOfWeek" in context["time"]
    assert context["weather"] is None
