"""
Emotion catalog and history statistics.

EMOTION_INFO is the single lookup table for per-emotion display data.
aggregate_emotion_history() summarizes a window of a user's selections.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from moodbook.models import EmotionRecord, EmotionType, EMOTION_KEYS
from moodbook.utils.rounding import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmotionInfo:
    label: str
    emoji: str
    description: str


EMOTION_INFO: Dict[EmotionType, EmotionInfo] = {
    EmotionType.HAPPY: EmotionInfo("Happy", "😊", "Bright and joyful"),
    EmotionType.SAD: EmotionInfo("Sad", "😔", "Low and wistful"),
    EmotionType.CALM: EmotionInfo("Calm", "😌", "Peaceful and settled"),
    EmotionType.EXCITED: EmotionInfo("Excited", "😮", "Thrilling and energetic"),
}


@dataclass
class EmotionShare:
    emotion: str
    count: int
    percentage: int


@dataclass
class EmotionStats:
    total: int = 0
    stats: Dict[str, int] = field(default_factory=dict)
    most_frequent: Optional[str] = None
    average_score: float = 0
    distribution: List[EmotionShare] = field(default_factory=list)


def _emotion_key(record: EmotionRecord) -> str:
    value = record.emotion_type
    return value.value if isinstance(value, EmotionType) else str(value)


def _ordered_keys(counts: Counter, encounter_order: List[str]) -> List[str]:
    """Taxonomy keys first in declaration order, then any unknown keys as encountered."""
    known = [key for key in EMOTION_KEYS if counts.get(key)]
    unknown = [key for key in encounter_order if key not in EMOTION_KEYS]
    return known + unknown


def aggregate_emotion_history(records: Sequence[EmotionRecord]) -> EmotionStats:
    """
    Summarize a window of emotion records (most recent first).

    most_frequent ties go to the emotion declared first in the taxonomy
    (happy, sad, calm, excited). average_score is rounded half-up to 1 decimal.
    """
    if not records:
        return EmotionStats()

    counts: Counter = Counter()
    encounter_order: List[str] = []
    for record in records:
        key = _emotion_key(record)
        if key not in counts:
            encounter_order.append(key)
        counts[key] += 1

    keys = _ordered_keys(counts, encounter_order)
    stats = {key: counts[key] for key in keys}

    most_frequent = None
    for key in keys:
        if most_frequent is None or stats[key] > stats[most_frequent]:
            most_frequent = key

    total = len(records)
    average_score = round_half_up(
        sum(record.emotion_score for record in records) / total, 1
    )

    # sorted() is stable, so equal counts stay in taxonomy order
    distribution = [
        EmotionShare(
            emotion=key,
            count=stats[key],
            percentage=int(round_half_up(stats[key] * 100 / total, 0)),
        )
        for key in sorted(keys, key=lambda k: stats[k], reverse=True)
    ]

    return EmotionStats(
        total=total,
        stats=stats,
        most_frequent=most_frequent,
        average_score=average_score,
        distribution=distribution,
    )


def format_relative_date(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """
    Human-friendly date for a history entry.

    Calendar-day difference: "today", "yesterday", "N days ago" up to 6 days,
    otherwise "October 3, 2026". Naive datetimes are treated as UTC.
    """
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    timestamp = timestamp.astimezone(timezone.utc)
    days = (now.astimezone(timezone.utc).date() - timestamp.date()).days
    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days <= 6:
        return f"{days} days ago"
    return f"{timestamp:%B} {timestamp.day}, {timestamp.year}"
