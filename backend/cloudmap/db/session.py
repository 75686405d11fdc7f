import logging
import time
from typing import List, Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cloudmap.config import DATABASE_URL
from cloudmap.db.models import Base, GenerationLog

logger = logging.getLogger(__name__)

# Prompts/outputs are truncated before storage
MAX_STORED_CHARS = 20000


def _make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory SQLite must share one connection across threads
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

_persistence_enabled = False


def init_db(retries: int = 5, delay: float = 2.0) -> bool:
    """Create tables, waiting for the database to come up."""
    global _persistence_enabled

    for attempt in range(retries):
        try:
            Base.metadata.create_all(bind=engine)
            _persistence_enabled = True
            logger.info("[DB] Database connected")
            return True
        except OperationalError:
            logger.warning("[DB] Waiting for database... (%d/%d)", attempt + 1, retries)
            time.sleep(delay)

    # Do not crash the app
    _persistence_enabled = False
    logger.warning("[DB] Database not ready - running without persistence")
    return False


def persistence_enabled() -> bool:
    return _persistence_enabled


def log_generation(
    kind: str,
    prompt: str,
    output: Optional[str],
    success: bool,
    architecture_id: Optional[str] = None,
) -> None:
    if not _persistence_enabled:
        return

    entry = GenerationLog(
        kind=kind,
        architecture_id=architecture_id,
        prompt=(prompt or "")[:MAX_STORED_CHARS],
        output=(output or "")[:MAX_STORED_CHARS],
        success=success,
    )

    try:
        with SessionLocal() as session:
            session.add(entry)
            session.commit()
    except SQLAlchemyError as e:
        logger.warning("[DB] Could not record %s generation: %s", kind, e)


def recent_generations(limit: int = 20) -> List[dict]:
    if not _persistence_enabled:
        return []

    try:
        with SessionLocal() as session:
            rows = (
                session.query(GenerationLog)
                .order_by(GenerationLog.id.desc())
                .limit(limit)
                .all()
            )
            return [r.to_dict() for r in rows]
    except SQLAlchemyError as e:
        logger.warning("[DB] Could not read generation log: %s", e)
        return []
