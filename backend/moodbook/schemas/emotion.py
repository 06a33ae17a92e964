from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


class EmotionInfoResponse(BaseModel):
    key: str
    label: str
    emoji: str
    description: str


class EmotionShareResponse(BaseModel):
    emotion: str
    count: int
    percentage: int


class EmotionRecordResponse(BaseModel):
    id: Optional[str] = None
    emotion_type: str
    emotion_score: int
    selected_at: Optional[datetime] = None
    relative_date: Optional[str] = None


class EmotionHistoryResponse(BaseModel):
    success: bool = True
    total: int
    stats: Dict[str, int]
    most_frequent: Optional[str] = None
    average_score: float
    distribution: List[EmotionShareResponse]
    records: List[EmotionRecordResponse]
