from typing import Any, Dict, List
import logging

from fastapi import APIRouter, Depends, Query

from moodbook.core.auth import get_current_user
from moodbook.core.config import settings
from moodbook.core.errors import UpstreamError
from moodbook.models import EmotionType
from moodbook.routers.deps import get_selection_log
from moodbook.schemas.emotion import (
    EmotionHistoryResponse,
    EmotionInfoResponse,
    EmotionRecordResponse,
    EmotionShareResponse,
)
from moodbook.services.emotion_history import (
    EMOTION_INFO,
    aggregate_emotion_history,
    format_relative_date,
)
from moodbook.services.repositories import SqlSelectionLog

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/emotions", tags=["emotions"])


@router.get("", response_model=List[EmotionInfoResponse])
def list_emotions():
    """The emotion taxonomy with display data, in declaration order."""
    return [
        EmotionInfoResponse(
            key=emotion.value,
            label=EMOTION_INFO[emotion].label,
            emoji=EMOTION_INFO[emotion].emoji,
            description=EMOTION_INFO[emotion].description,
        )
        for emotion in EmotionType
    ]


@router.get("/history", response_model=EmotionHistoryResponse)
def get_emotion_history(
    limit: int = Query(settings.EMOTION_HISTORY_WINDOW, ge=1, le=settings.EMOTION_HISTORY_WINDOW),
    user: Dict[str, Any] = Depends(get_current_user),
    selection_log: SqlSelectionLog = Depends(get_selection_log),
):
    """Summary of the user's most recent emotion selections (read-only)."""
    try:
        records = selection_log.read_recent(user["id"], limit)
    except Exception as e:
        logger.exception("Failed to fetch emotion history for user %s", user["id"])
        raise UpstreamError("Failed to fetch emotion history") from e

    summary = aggregate_emotion_history(records)
    logger.info(
        "Emotion history for user %s: total=%d most_frequent=%s",
        user["id"], summary.total, summary.most_frequent,
    )

    return EmotionHistoryResponse(
        total=summary.total,
        stats=summary.stats,
        most_frequent=summary.most_frequent,
        average_score=summary.average_score,
        distribution=[
            EmotionShareResponse(emotion=s.emotion, count=s.count, percentage=s.percentage)
            for s in summary.distribution
        ],
        records=[
            EmotionRecordResponse(
                id=str(record.id) if record.id else None,
                emotion_type=record.emotion_type.value
                if isinstance(record.emotion_type, EmotionType)
                else str(record.emotion_type),
                emotion_score=record.emotion_score,
                selected_at=record.selected_at,
                relative_date=format_relative_date(record.selected_at) if record.selected_at else None,
            )
            for record in records
        ],
    )
