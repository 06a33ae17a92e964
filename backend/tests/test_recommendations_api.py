"""HTTP tests for the recommendation, emotion and book endpoints."""
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from conftest import FakeCorpus, FakeSelectionLog, make_book
from moodbook.core.auth import get_current_user
from moodbook.core.config import settings
from moodbook.database import get_db
from moodbook.main import app
from moodbook.models import EmotionRecord
from moodbook.routers.deps import get_recommendation_service
from moodbook.services.recommendation_engine import EmotionRecommendationService
from moodbook.services.repositories import SqlBookCorpus

TEST_USER = {"id": "user-1", "email": "reader@example.com", "auth_user_id": "user-1", "claims": {}}


@pytest.fixture
def client(db: Session):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seeded_books(db: Session):
    corpus = SqlBookCorpus(db)
    corpus.upsert_book({"title": "Sunny", "emotions": {"happy": 0.8, "sad": 0.1, "calm": 0.3, "excited": 0.2}})
    corpus.upsert_book({"title": "Thriller", "author": "A. Writer", "emotions": {"happy": 0.9, "sad": 0.05, "calm": 0, "excited": 0.9}})
    corpus.upsert_book({"title": "Rainy", "emotions": {"sad": 0.9, "calm": 0.5}})


def test_recommendations_happy_path(client, db, seeded_books):
    response = client.post("/api/recommendations", json={"emotion": "excited", "emotionScore": 8})
    assert response.status_code == 200, response.text
    body = response.json()

    assert body["success"] is True
    assert [b["title"] for b in body["recommendations"]] == ["Thriller", "Sunny"]
    top = body["recommendations"][0]
    assert top["similarity_score"] == 0.81
    assert top["author"] == "A. Writer"
    assert body["recommendations"][1]["author"] == "unknown"
    assert body["user_emotion"]["current"] == "excited"
    assert body["user_emotion"]["score"] == 8
    assert body["user_emotion"]["history"][0]["emotion_type"] == "excited"
    assert body["recommendation_info"] == {
        "total_books": 3,
        "matched_books": 2,
        "emotion_criteria": "excited",
    }
    assert db.query(EmotionRecord).count() == 1


def test_recommendations_empty_corpus(client):
    response = client.post("/api/recommendations", json={"emotion": "calm"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "recommendations": [], "message": "No books found"}


def test_recommendations_rejects_unknown_emotion(client, db, seeded_books):
    response = client.post("/api/recommendations", json={"emotion": "angry"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "happy" in body["error"]
    assert db.query(EmotionRecord).count() == 0


def test_recommendations_rejects_bad_limit(client, seeded_books):
    response = client.post("/api/recommendations", json={"emotion": "happy", "limit": 0})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_recommendations_rejects_malformed_body(client):
    response = client.post("/api/recommendations", json={"emotion": "happy", "emotionScore": "very"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "emotionScore" in body["error"]


def test_recommendations_survive_selection_log_failure(db):
    corpus = FakeCorpus([make_book("Sunny", {"happy": 0.8, "excited": 0.2, "calm": 0.3})])
    selection_log = FakeSelectionLog(append_error=RuntimeError("log store unavailable"))
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    app.dependency_overrides[get_recommendation_service] = lambda: EmotionRecommendationService(corpus, selection_log)
    try:
        response = TestClient(app).post("/api/recommendations", json={"emotion": "happy"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["recommendations"][0]["similarity_score"] == 0.63
    assert "log store unavailable" not in response.text


def test_recommendations_corpus_failure_is_generic(db):
    corpus = FakeCorpus(error=RuntimeError("password=hunter2 connection refused"))
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    app.dependency_overrides[get_recommendation_service] = lambda: EmotionRecommendationService(corpus, FakeSelectionLog())
    try:
        response = TestClient(app).post("/api/recommendations", json={"emotion": "happy"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "Failed to fetch books"}


def test_recommendations_require_authentication(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app).post("/api/recommendations", json={"emotion": "happy"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Missing Authorization header"}
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert db.query(EmotionRecord).count() == 0


def test_recommendations_reject_invalid_token(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app).post(
            "/api/recommendations",
            json={"emotion": "happy"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_recommendations_with_supabase_token(db, seeded_books):
    token = jwt.encode(
        {
            "sub": "supabase-user-42",
            "email": "reader@example.com",
            "aud": settings.SUPABASE_JWT_AUD,
            "iss": settings.SUPABASE_JWT_ISS,
        },
        settings.SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app).post(
            "/api/recommendations",
            json={"emotion": "sad"},
            headers={"Authorization": f"Bearer {token}"},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200, response.text
    assert [b["title"] for b in response.json()["recommendations"]] == ["Rainy"]
    assert db.query(EmotionRecord).one().user_id == "supabase-user-42"


def test_emotion_catalog(client):
    response = client.get("/api/emotions")
    assert response.status_code == 200
    assert [e["key"] for e in response.json()] == ["happy", "sad", "calm", "excited"]


def test_emotion_history_summary(client, seeded_books):
    for emotion, score in [("calm", 4), ("happy", 9), ("calm", 6)]:
        assert client.post("/api/recommendations", json={"emotion": emotion, "emotionScore": score}).status_code == 200

    response = client.get("/api/emotions/history")
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["stats"] == {"happy": 1, "calm": 2}
    assert body["most_frequent"] == "calm"
    assert body["average_score"] == 6.3
    assert body["distribution"][0] == {"emotion": "calm", "count": 2, "percentage": 67}
    assert len(body["records"]) == 3
    assert all(r["relative_date"] == "today" for r in body["records"])


def test_emotion_history_empty(client):
    body = client.get("/api/emotions/history").json()
    assert body["total"] == 0
    assert body["most_frequent"] is None
    assert body["average_score"] == 0
    assert body["records"] == []


def test_books_upsert_search_and_get(client):
    payload = {
        "title": "Kitchen",
        "author": "Banana Yoshimoto",
        "cover_url": "https://cdn.example.com/kitchen.png",
        "emotions": {"happy": 0.3, "sad": 0.6, "calm": 0.7, "excited": 0.1},
        "tags": ["tender", "grief"],
    }
    created = client.post("/api/books", json=payload)
    assert created.status_code == 201, created.text
    book_id = created.json()["book_id"]

    again = client.post("/api/books", json=dict(payload, title="kitchen"))
    assert again.json()["book_id"] == book_id

    found = client.get("/api/books", params={"q": "KIT"}).json()
    assert [b["id"] for b in found] == [book_id]

    book = client.get(f"/api/books/{book_id}").json()
    assert book["emotion_tags"] == ["tender", "grief"]
    assert book["description"] == ""


def test_books_upsert_rejects_out_of_range_intensity(client):
    response = client.post("/api/books", json={"title": "Loud", "emotions": {"excited": 1.5}})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_get_book_errors(client):
    assert client.get("/api/books/not-a-uuid").status_code == 400
    missing = client.get("/api/books/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Book not found"}


def test_book_reads_require_token(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        client = TestClient(app)
        listing = client.get("/api/books")
        detail = client.get("/api/books/00000000-0000-0000-0000-000000000000")
    finally:
        app.dependency_overrides.clear()

    for response in (listing, detail):
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Missing Authorization header"}


def test_emotion_history_window_capped(client):
    assert client.get("/api/emotions/history", params={"limit": settings.EMOTION_HISTORY_WINDOW}).status_code == 200

    response = client.get("/api/emotions/history", params={"limit": settings.EMOTION_HISTORY_WINDOW + 1})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_recommendations_documents_error_shape():
    responses = app.openapi()["paths"]["/api/recommendations"]["post"]["responses"]
    for code in ("400", "401", "502"):
        schema = responses[code]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")
