"""
Emotion-to-book recommendation engine.

Scoring is a hand-weighted, deterministic function over the closed emotion
taxonomy (happy, sad, calm, excited): no learned weights, no collaborative
signal. The selected intensity is logged as context but never scored.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from moodbook.core.errors import (
    AuthenticationError,
    BestEffortWriteError,
    UpstreamError,
    ValidationError,
)
from moodbook.models import Book, EmotionRecord, EmotionType, EMOTION_KEYS
from moodbook.services.repositories import CorpusReader, SelectionLog
from moodbook.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

# Weight of the requested emotion's own intensity
PRIMARY_WEIGHT = Decimal("0.7")

# Signed contributions from the *other* emotions in a book's vector
ADJUSTMENT_MATRIX: Dict[EmotionType, Tuple[Tuple[EmotionType, Decimal], ...]] = {
    EmotionType.HAPPY: (
        (EmotionType.EXCITED, Decimal("0.2")),
        (EmotionType.CALM, Decimal("0.1")),
    ),
    EmotionType.SAD: (
        (EmotionType.CALM, Decimal("0.2")),
        (EmotionType.HAPPY, Decimal("-0.1")),  # happy books for a sad mood rank lower
    ),
    EmotionType.CALM: (
        (EmotionType.HAPPY, Decimal("0.1")),
        (EmotionType.EXCITED, Decimal("-0.1")),
    ),
    EmotionType.EXCITED: (
        (EmotionType.HAPPY, Decimal("0.2")),
        (EmotionType.SAD, Decimal("-0.1")),
    ),
}

# Scores at or below this are dropped from ranked results (strict: 0.10 itself is dropped)
MIN_SIMILARITY_SCORE = 0.10

DEFAULT_EMOTION_SCORE = 5
MIN_EMOTION_SCORE = 1
MAX_EMOTION_SCORE = 10
DEFAULT_LIMIT = 10

NO_BOOKS_MESSAGE = "No books found"
INVALID_EMOTION_MESSAGE = f"Valid emotion is required ({', '.join(EMOTION_KEYS)})"

_ZERO = Decimal(0)
_ONE = Decimal(1)


@dataclass(frozen=True)
class ScoredBook:
    """A corpus book paired with its similarity score (rounded to 2 decimals)."""
    book: Book
    score: float


@dataclass
class RecommendationQuery:
    emotion: Any
    emotion_score: Any = DEFAULT_EMOTION_SCORE
    limit: Any = DEFAULT_LIMIT


@dataclass(frozen=True)
class BestEffortWrite:
    """
    Outcome of a write whose failure must not fail the caller.

    `error` is set when the write failed; the failure has already been logged.
    """
    record_id: Optional[str] = None
    error: Optional[BestEffortWriteError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RecommendationResult:
    emotion: EmotionType
    emotion_score: int
    recommendations: List[ScoredBook] = field(default_factory=list)
    history: List[EmotionRecord] = field(default_factory=list)
    total_books: int = 0
    message: Optional[str] = None
    selection_write: BestEffortWrite = field(default_factory=BestEffortWrite)

    @property
    def matched_books(self) -> int:
        return len(self.recommendations)


def normalize_emotion(value: Union[str, EmotionType, None]) -> EmotionType:
    """
    Map user input to an EmotionType.

    Accepts enum members and case-insensitive strings ("Happy", " calm ").
    Raises ValidationError for anything outside the taxonomy.
    """
    if isinstance(value, EmotionType):
        return value
    if isinstance(value, str):
        try:
            return EmotionType(value.strip().lower())
        except ValueError:
            pass
    raise ValidationError(INVALID_EMOTION_MESSAGE)


def _intensity(vector: Optional[Mapping[str, Any]], emotion: EmotionType) -> Decimal:
    """Read one intensity from a book vector. Absent, null, non-numeric or non-finite values read as 0."""
    if not vector:
        return _ZERO
    raw = vector.get(emotion.value)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return _ZERO
    if not math.isfinite(raw):
        return _ZERO
    return Decimal(str(raw))


def score_similarity(target: Union[str, EmotionType], vector: Optional[Mapping[str, Any]]) -> float:
    """
    Score how well an emotion vector matches the requested emotion.

    raw = vector[target] * 0.7 + sum(weight * vector[other]) over ADJUSTMENT_MATRIX[target],
    clamped to [0, 1] (no renormalization) and rounded half-up to 2 decimals.
    Pure and deterministic.
    """
    emotion = normalize_emotion(target)

    raw = _intensity(vector, emotion) * PRIMARY_WEIGHT
    for other, weight in ADJUSTMENT_MATRIX[emotion]:
        raw += _intensity(vector, other) * weight

    clamped = max(_ZERO, min(_ONE, raw))
    return round_half_up(clamped, 2)


def rank_scored_books(scored: Sequence[ScoredBook], limit: int) -> List[ScoredBook]:
    """
    Filter, sort and truncate scored books.

    1. drop entries with score <= MIN_SIMILARITY_SCORE
    2. sort by score descending; equal scores keep input order (sorted() is stable)
    3. keep the first `limit`
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("limit must be a positive integer")

    kept = [item for item in scored if item.score > MIN_SIMILARITY_SCORE]
    ranked = sorted(kept, key=lambda item: item.score, reverse=True)
    return ranked[:limit]


def _validate_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    return value


def validate_query(query: RecommendationQuery) -> Tuple[EmotionType, int, int]:
    """Return (emotion, emotion_score, limit) or raise ValidationError."""
    if query.emotion is None or query.emotion == "":
        raise ValidationError(INVALID_EMOTION_MESSAGE)
    emotion = normalize_emotion(query.emotion)

    emotion_score = _validate_int(query.emotion_score, "emotionScore", DEFAULT_EMOTION_SCORE)
    if not MIN_EMOTION_SCORE <= emotion_score <= MAX_EMOTION_SCORE:
        raise ValidationError(
            f"emotionScore must be between {MIN_EMOTION_SCORE} and {MAX_EMOTION_SCORE}"
        )

    limit = _validate_int(query.limit, "limit", DEFAULT_LIMIT)
    if limit < 1:
        raise ValidationError("limit must be a positive integer")

    return emotion, emotion_score, limit


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmotionRecommendationService:
    """
    Orchestrates one recommendation request.

    log selection (best effort) -> read corpus -> score every book -> rank
    -> attach recent history. Storage is injected so tests can use fakes.
    """

    def __init__(
        self,
        corpus: CorpusReader,
        selection_log: SelectionLog,
        history_size: int = 10,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.corpus = corpus
        self.selection_log = selection_log
        self.history_size = history_size
        self.clock = clock or _utcnow

    def recommend(self, user_id: str, query: RecommendationQuery) -> RecommendationResult:
        if not user_id:
            raise AuthenticationError()

        emotion, emotion_score, limit = validate_query(query)
        logger.info(
            "Recommending books for user %s: emotion=%s score=%s limit=%s",
            user_id, emotion.value, emotion_score, limit,
        )

        selection_write = self.record_selection(user_id, emotion, emotion_score)

        books = self._read_corpus()
        if not books:
            logger.info("Book corpus is empty, returning no recommendations")
            return RecommendationResult(
                emotion=emotion,
                emotion_score=emotion_score,
                message=NO_BOOKS_MESSAGE,
                selection_write=selection_write,
            )

        scored = [
            ScoredBook(book=book, score=score_similarity(emotion, book.emotions))
            for book in books
        ]
        ranked = rank_scored_books(scored, limit)
        history = self._read_history(user_id)

        logger.info(
            "Matched %d of %d books for emotion=%s",
            len(ranked), len(books), emotion.value,
        )
        return RecommendationResult(
            emotion=emotion,
            emotion_score=emotion_score,
            recommendations=ranked,
            history=history,
            total_books=len(books),
            selection_write=selection_write,
        )

    def record_selection(self, user_id: str, emotion: EmotionType, emotion_score: int) -> BestEffortWrite:
        """
        Append the selection to the log. Never raises: a failure is logged and
        returned inside the BestEffortWrite.
        """
        record = EmotionRecord(
            user_id=user_id,
            emotion_type=emotion,
            emotion_score=emotion_score,
            selected_at=self.clock(),
        )
        try:
            record_id = self.selection_log.append(record)
        except Exception as e:
            logger.warning(
                "Failed to record emotion selection: user_id=%s, emotion=%s, error=%s",
                user_id,
                emotion.value,
                str(e),
                exc_info=True,
            )
            return BestEffortWrite(error=BestEffortWriteError(f"Failed to record emotion selection ({type(e).__name__})"))
        return BestEffortWrite(record_id=str(record_id) if record_id is not None else None)

    def _read_corpus(self) -> List[Book]:
        try:
            return list(self.corpus.read_all())
        except Exception as e:
            logger.exception("Failed to fetch books: %s", type(e).__name__)
            raise UpstreamError("Failed to fetch books") from e

    def _read_history(self, user_id: str) -> List[EmotionRecord]:
        try:
            return list(self.selection_log.read_recent(user_id, self.history_size))
        except Exception as e:
            logger.exception("Failed to fetch emotion history for user %s", user_id)
            raise UpstreamError("Failed to fetch emotion history") from e
