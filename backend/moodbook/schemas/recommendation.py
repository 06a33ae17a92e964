from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    emotion: Optional[str] = None  # 'happy', 'sad', 'calm', 'excited'
    emotion_score: Optional[int] = Field(None, alias="emotionScore")  # 1-10, logged context only
    limit: Optional[int] = None


class ScoredBookItem(BaseModel):
    id: str
    title: str
    author: str
    description: str
    cover_url: str
    emotions: Dict[str, Any]
    emotion_tags: List[str]
    similarity_score: float


class EmotionHistoryItem(BaseModel):
    emotion_type: str
    emotion_score: int
    selected_at: Optional[datetime] = None


class UserEmotion(BaseModel):
    current: str
    score: int
    history: List[EmotionHistoryItem]


class RecommendationInfo(BaseModel):
    total_books: int
    matched_books: int
    emotion_criteria: str


class RecommendationsResponse(BaseModel):
    success: bool = True
    recommendations: List[ScoredBookItem]
    user_emotion: Optional[UserEmotion] = None
    recommendation_info: Optional[RecommendationInfo] = None
    message: Optional[str] = None  # Set when the corpus is empty


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
