from fastapi import APIRouter, Depends, Query, status
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from moodbook.core.auth import get_current_user
from moodbook.core.errors import NotFoundError, UpstreamError, ValidationError
from moodbook.models import Book
from moodbook.routers.deps import get_book_corpus
from moodbook.schemas.book import BookResponse, BookUpsert, BookUpsertResponse
from moodbook.services.repositories import SqlBookCorpus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])


def _book_response(book: Book) -> BookResponse:
    return BookResponse(
        id=str(book.id),
        title=book.title,
        author=book.author or "unknown",
        description=book.description or "",
        cover_url=book.cover_url or "",
        emotions=dict(book.emotions or {}),
        emotion_tags=list(book.emotion_tags or []),
        created_at=book.created_at,
        updated_at=book.updated_at,
    )


@router.get("", response_model=List[BookResponse])
def get_books(
    q: Optional[str] = Query(None, description="Case-insensitive search in title"),
    limit: int = Query(50, ge=1, le=500),
    user: Dict[str, Any] = Depends(get_current_user),
    corpus: SqlBookCorpus = Depends(get_book_corpus),
):
    """List books, optionally filtered by a fuzzy title match."""
    try:
        if q and q.strip():
            books = corpus.find_by_title_fuzzy(q, limit=limit)
        else:
            books = corpus.read_all()[:limit]
    except Exception as e:
        logger.exception("Failed to fetch books", extra={"q": q, "limit": limit})
        raise UpstreamError("Failed to fetch books") from e

    logger.info("Fetched %d books for user %s", len(books), user["id"], extra={"q": q, "limit": limit})
    return [_book_response(book) for book in books]


@router.get("/{book_id}", response_model=BookResponse)
def get_book(
    book_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    corpus: SqlBookCorpus = Depends(get_book_corpus),
):
    """Get full details of a specific book."""
    try:
        book_uuid = UUID(book_id)
    except ValueError:
        raise ValidationError("book_id must be a UUID")

    book = corpus.get(book_uuid)
    if not book:
        raise NotFoundError("Book not found")
    return _book_response(book)


@router.post("", response_model=BookUpsertResponse, status_code=status.HTTP_201_CREATED)
def upsert_book(
    payload: BookUpsert,
    user: Dict[str, Any] = Depends(get_current_user),
    corpus: SqlBookCorpus = Depends(get_book_corpus),
):
    """
    Register a book from cover analysis output.

    If a book with a matching title already exists its id is returned unchanged.
    """
    try:
        book_id = corpus.upsert_book(
            {
                "title": payload.title,
                "author": payload.author,
                "description": payload.description,
                "cover_url": payload.cover_url,
                "emotions": payload.emotions,
                "emotion_tags": payload.tags,
            }
        )
    except ValueError as e:
        raise ValidationError(str(e))
    except Exception as e:
        logger.exception("Failed to upsert book for user %s", user["id"])
        raise UpstreamError("Failed to save book") from e

    return BookUpsertResponse(book_id=str(book_id))
