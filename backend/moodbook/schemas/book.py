from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, List
from datetime import datetime

from moodbook.models import EMOTION_KEYS


class BookResponse(BaseModel):
    id: str
    title: str
    author: str
    description: str
    cover_url: str
    emotions: Dict[str, float]
    emotion_tags: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookUpsert(BaseModel):
    """Cover analysis output for a book: title plus its emotion vector and tags."""
    title: str = Field(..., min_length=1)
    author: Optional[str] = None
    description: Optional[str] = None
    cover_url: Optional[str] = None
    emotions: Dict[str, float] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list, max_length=20)

    @field_validator("emotions")
    @classmethod
    def check_intensities(cls, value: Dict[str, float]) -> Dict[str, float]:
        for key in EMOTION_KEYS:
            if key in value and not 0.0 <= value[key] <= 1.0:
                raise ValueError(f"emotion intensity for '{key}' must be between 0 and 1")
        return value


class BookUpsertResponse(BaseModel):
    success: bool = True
    book_id: str
