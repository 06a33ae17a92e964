"""
Storage seams for the recommendation core.

The service depends on the CorpusReader / SelectionLog protocols only; the
SQLAlchemy implementations below back them in production.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from moodbook.models import Book, EmotionRecord

logger = logging.getLogger(__name__)


class CorpusReader(Protocol):
    def read_all(self) -> Sequence[Book]:
        ...


class SelectionLog(Protocol):
    def append(self, record: EmotionRecord) -> Any:
        ...

    def read_recent(self, user_id: str, limit: int) -> Sequence[EmotionRecord]:
        ...


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlBookCorpus:
    """Book corpus backed by the `books` table."""

    def __init__(self, db: Session):
        self.db = db

    def read_all(self) -> List[Book]:
        # No filtering pushed down: the scorer needs every book
        return self.db.query(Book).all()

    def get(self, book_id: UUID) -> Optional[Book]:
        return self.db.query(Book).filter(Book.id == book_id).first()

    def find_by_title_fuzzy(self, substr: str, limit: Optional[int] = None) -> List[Book]:
        """Case-insensitive substring match on title, ordered by title."""
        pattern = f"%{_escape_like(substr.strip())}%"
        query = (
            self.db.query(Book)
            .filter(Book.title.ilike(pattern, escape="\\"))
            .order_by(Book.title.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def upsert_book(self, fields: Dict[str, Any]) -> UUID:
        """
        Find-or-create a book from cover analysis output.

        An existing book whose title contains fields["title"] (case-insensitive)
        is returned as-is; otherwise a new row is inserted and committed.
        """
        title = (fields.get("title") or "").strip()
        if not title:
            raise ValueError("title is required")

        existing = self.find_by_title_fuzzy(title, limit=1)
        if existing:
            logger.debug("Book already in corpus: title=%s id=%s", title, existing[0].id)
            return existing[0].id

        book = Book(
            title=title,
            author=fields.get("author") or None,
            description=fields.get("description") or None,
            cover_url=fields.get("cover_url") or None,
            emotions=dict(fields.get("emotions") or {}),
            emotion_tags=list(fields.get("emotion_tags") or []),
        )
        try:
            self.db.add(book)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(book)
        logger.info("Created book: title=%s id=%s", title, book.id)
        return book.id


class SqlSelectionLog:
    """Append-only emotion selection log backed by `emotion_records`."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, record: EmotionRecord) -> UUID:
        if record.selected_at is None:
            record.selected_at = datetime.utcnow()
        try:
            self.db.add(record)
            self.db.commit()
        except Exception:
            # Leave the session usable for the reads that follow
            self.db.rollback()
            raise
        return record.id

    def read_recent(self, user_id: str, limit: int) -> List[EmotionRecord]:
        """Most recent first."""
        return (
            self.db.query(EmotionRecord)
            .filter(EmotionRecord.user_id == user_id)
            .order_by(EmotionRecord.selected_at.desc())
            .limit(limit)
            .all()
        )
