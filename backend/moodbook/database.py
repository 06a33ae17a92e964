from pathlib import Path
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from moodbook.core.config import settings

logger = logging.getLogger(__name__)

ALEMBIC_VERSIONS_DIR = Path(__file__).resolve().parent.parent / "alembic" / "versions"


def _engine_kwargs(url: str) -> dict:
    # SQLite (local runs, tests) shares one connection across FastAPI's threadpool
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


logger.info("Connecting to book corpus database: %s", settings.get_masked_database_url())

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session for the book corpus and the emotion selection log."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Create `books` and `emotion_records` for a fresh local database.

    Does nothing once Alembic revisions exist; use 'alembic upgrade head' there.
    """
    if ALEMBIC_VERSIONS_DIR.is_dir() and any(ALEMBIC_VERSIONS_DIR.glob("*.py")):
        logger.info("Alembic revisions found in %s, leaving schema to migrations", ALEMBIC_VERSIONS_DIR)
        return

    from moodbook import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
