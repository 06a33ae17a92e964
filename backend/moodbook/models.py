from sqlalchemy import CheckConstraint, Column, String, Integer, Text, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID, JSONB
import uuid
from datetime import datetime
import enum
import sqlalchemy as sa
from moodbook.database import Base


class EmotionType(str, enum.Enum):
    HAPPY = "happy"
    SAD = "sad"
    CALM = "calm"
    EXCITED = "excited"


# Declaration order is the canonical taxonomy order (history tie-breaks rely on it).
EMOTION_KEYS = tuple(e.value for e in EmotionType)

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Book(Base):
    """
    A book with the emotion vector produced by cover analysis.

    `emotions` maps emotion key -> intensity in [0, 1]. Keys outside the taxonomy
    may be present and are ignored by scoring.
    """
    __tablename__ = "books"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    cover_url = Column(String, nullable=True)
    emotions = Column(JSONType, nullable=False, default=dict)
    emotion_tags = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class EmotionRecord(Base):
    """
    Append-only log of a user's emotion selections.
    Rows are never updated or deleted by the application.
    """
    __tablename__ = "emotion_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)  # Supabase auth user id (JWT sub)
    emotion_type = Column(
        SQLEnum(
            EmotionType,
            name="emotiontype",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
    )
    emotion_score = Column(Integer, nullable=False, default=5)
    selected_at = Column(
        DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        CheckConstraint("emotion_score BETWEEN 1 AND 10", name="ck_emotion_records_score_range"),
    )
