# backend/moodbook/scripts/seed_books.py

"""
Seed the MoodBook corpus from one or more JSON files.

Usage examples:

  # Default: seed the bundled sample corpus
  cd backend
  python -m moodbook.scripts.seed_books

  # Seed specific files
  python -m moodbook.scripts.seed_books --file data/my_books.json --file data/more_books.json

Each record needs a title; author, description, cover_url, emotions and tags are optional.
Books whose title already matches an existing one are left untouched.
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from moodbook.database import SessionLocal
from moodbook.models import EMOTION_KEYS
from moodbook.services.repositories import SqlBookCorpus

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_FILES = [
    BASE_DIR / "data" / "seed_books.json",
]


def _coerce_emotions(raw) -> Dict[str, float]:
    """
    Keep taxonomy keys with numeric values, clamped to [0, 1].
    Anything else is dropped instead of crashing the seed.
    """
    if not isinstance(raw, dict):
        return {}
    emotions: Dict[str, float] = {}
    for key in EMOTION_KEYS:
        value = raw.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        emotions[key] = min(1.0, max(0.0, float(value)))
    return emotions


def _load_books_from_file(path: Path) -> List[dict]:
    """Load a single JSON file of books, or return empty if file missing."""
    if not path.exists():
        logger.warning("[seed_books] File not found, skipping: %s", path)
        return []

    logger.info("[seed_books] Loading books from: %s", path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Expected list of books in {path}, got {type(data)}")

    return data


def seed_books(files: List[Path], db: Optional[Session] = None) -> Dict[str, int]:
    """Upsert every record from `files`. Returns counts of processed and skipped records."""
    raw_books: List[dict] = []
    for path in files:
        raw_books.extend(_load_books_from_file(path))

    owns_session = db is None
    db = db or SessionLocal()
    try:
        corpus = SqlBookCorpus(db)
        seeded = 0
        skipped = 0

        for b in raw_books:
            title = (b.get("title") or "").strip()
            if not title:
                # Hard skip any garbage rows
                skipped += 1
                continue

            corpus.upsert_book(
                {
                    "title": title,
                    "author": (b.get("author") or "").strip() or None,
                    "description": b.get("description"),
                    "cover_url": b.get("cover_url"),
                    "emotions": _coerce_emotions(b.get("emotions")),
                    "emotion_tags": [str(t) for t in (b.get("tags") or [])],
                }
            )
            seeded += 1

        logger.info("[seed_books] Seed complete. Seeded=%d, Skipped=%d", seeded, skipped)
        return {"seeded": seeded, "skipped": skipped}
    finally:
        if owns_session:
            db.close()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(
        description="Seed the MoodBook corpus from JSON files."
    )
    parser.add_argument(
        "--file",
        "-f",
        action="append",
        dest="files",
        help=(
            "Path to a JSON file of books. "
            "Can be specified multiple times. "
            "If omitted, uses the bundled sample corpus."
        ),
    )

    args = parser.parse_args()

    if args.files:
        files = [Path(f).resolve() for f in args.files]
    else:
        files = [p for p in DEFAULT_FILES if p.exists()]

    if not files:
        raise FileNotFoundError(
            "No seed files found. Use --file to specify explicitly."
        )

    seed_books(files)


if __name__ == "__main__":
    main()
