"""FastAPI providers for the storage-backed collaborators."""
from fastapi import Depends
from sqlalchemy.orm import Session

from moodbook.core.config import settings
from moodbook.database import get_db
from moodbook.services.recommendation_engine import EmotionRecommendationService
from moodbook.services.repositories import SqlBookCorpus, SqlSelectionLog


def get_book_corpus(db: Session = Depends(get_db)) -> SqlBookCorpus:
    return SqlBookCorpus(db)


def get_selection_log(db: Session = Depends(get_db)) -> SqlSelectionLog:
    return SqlSelectionLog(db)


def get_recommendation_service(
    corpus: SqlBookCorpus = Depends(get_book_corpus),
    selection_log: SqlSelectionLog = Depends(get_selection_log),
) -> EmotionRecommendationService:
    return EmotionRecommendationService(
        corpus=corpus,
        selection_log=selection_log,
        history_size=settings.EMOTION_HISTORY_CONTEXT_SIZE,
    )
