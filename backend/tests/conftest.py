"""Pytest configuration for backend tests."""
import sys
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time; point them at throwaway values before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-moodbook-backend")

from moodbook.database import Base  # noqa: E402
from moodbook.models import Book, EmotionRecord, EmotionType  # noqa: E402

# Used by make_record() so relative timestamps are stable within a run
BASE_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def engine():
    """
    In-memory SQLite engine shared across threads (TestClient runs sync
    endpoints in a worker thread), with a fresh schema per test.
    """
    test_engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """Database session for each test."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


def make_book(title: str, emotions: Optional[dict] = None, **fields) -> Book:
    """Transient Book with an id, as the corpus store would return it."""
    return Book(
        id=fields.pop("id", uuid4()),
        title=title,
        emotions=emotions if emotions is not None else {},
        emotion_tags=fields.pop("emotion_tags", []),
        **fields,
    )


def make_record(
    emotion: str,
    score: int = 5,
    user_id: str = "user-1",
    minutes_ago: int = 0,
) -> EmotionRecord:
    return EmotionRecord(
        id=uuid4(),
        user_id=user_id,
        emotion_type=EmotionType(emotion),
        emotion_score=score,
        selected_at=BASE_TIME - timedelta(minutes=minutes_ago),
    )


class FakeCorpus:
    """In-memory CorpusReader."""

    def __init__(self, books: Optional[List[Book]] = None, error: Optional[Exception] = None):
        self.books = list(books or [])
        self.error = error
        self.reads = 0

    def read_all(self) -> List[Book]:
        self.reads += 1
        if self.error:
            raise self.error
        return list(self.books)


class FakeSelectionLog:
    """In-memory SelectionLog; records are kept most recent first."""

    def __init__(
        self,
        records: Optional[List[EmotionRecord]] = None,
        append_error: Optional[Exception] = None,
        read_error: Optional[Exception] = None,
    ):
        self.records = list(records or [])
        self.append_error = append_error
        self.read_error = read_error
        self.appended: List[EmotionRecord] = []

    def append(self, record: EmotionRecord):
        if self.append_error:
            raise self.append_error
        record.id = uuid4()
        self.appended.append(record)
        self.records.insert(0, record)
        return record.id

    def read_recent(self, user_id: str, limit: int) -> List[EmotionRecord]:
        if self.read_error:
            raise self.read_error
        return [r for r in self.records if r.user_id == user_id][:limit]
