from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends

from moodbook.core.auth import get_current_user
from moodbook.core.config import settings
from moodbook.models import EmotionRecord, EmotionType
from moodbook.routers.deps import get_recommendation_service
from moodbook.schemas.recommendation import (
    EmotionHistoryItem,
    ErrorResponse,
    RecommendationInfo,
    RecommendationRequest,
    RecommendationsResponse,
    ScoredBookItem,
    UserEmotion,
)
from moodbook.services.recommendation_engine import (
    EmotionRecommendationService,
    RecommendationQuery,
    RecommendationResult,
    ScoredBook,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommendations"])


def _scored_book_item(item: ScoredBook) -> ScoredBookItem:
    book = item.book
    return ScoredBookItem(
        id=str(book.id),
        title=book.title,
        author=book.author or "unknown",
        description=book.description or "",
        cover_url=book.cover_url or "",
        emotions=dict(book.emotions or {}),
        emotion_tags=list(book.emotion_tags or []),
        similarity_score=item.score,
    )


def _history_item(record: EmotionRecord) -> EmotionHistoryItem:
    emotion = record.emotion_type
    return EmotionHistoryItem(
        emotion_type=emotion.value if isinstance(emotion, EmotionType) else str(emotion),
        emotion_score=record.emotion_score,
        selected_at=record.selected_at,
    )


def build_recommendations_response(result: RecommendationResult) -> RecommendationsResponse:
    if result.message:
        return RecommendationsResponse(recommendations=[], message=result.message)

    return RecommendationsResponse(
        recommendations=[_scored_book_item(item) for item in result.recommendations],
        user_emotion=UserEmotion(
            current=result.emotion.value,
            score=result.emotion_score,
            history=[_history_item(record) for record in result.history],
        ),
        recommendation_info=RecommendationInfo(
            total_books=result.total_books,
            matched_books=result.matched_books,
            emotion_criteria=result.emotion.value,
        ),
    )


@router.post(
    "/recommendations",
    response_model=RecommendationsResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
def recommend_books(
    request: RecommendationRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: EmotionRecommendationService = Depends(get_recommendation_service),
):
    """
    Recommend books matching the selected emotion.

    The selection is recorded first (best effort); failures surface as
    {"success": false, "error": ...} through the app's exception handlers.
    """
    query = RecommendationQuery(
        emotion=request.emotion,
        emotion_score=request.emotion_score,
        limit=request.limit if request.limit is not None else settings.RECOMMENDATION_DEFAULT_LIMIT,
    )
    result = service.recommend(user["id"], query)

    if not result.selection_write.ok:
        logger.info(
            "Recommendations served without a recorded selection for user %s",
            user["id"],
        )

    return build_recommendations_response(result)
