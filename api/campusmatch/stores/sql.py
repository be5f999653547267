import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from ..errors import DependencyFailure

logger = logging.getLogger(__name__)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Timestamps are stored in UTC; SQLite hands them back naive."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@contextmanager
def sql_session(session_factory, operation: str) -> Iterator:
    """Open a session and surface driver errors as ``DependencyFailure``."""
    try:
        with session_factory() as db:
            yield db
    except SQLAlchemyError as exc:
        logger.error("[STORE] %s failed: %s", operation, exc.__class__.__name__)
        raise DependencyFailure(f"Store unavailable during {operation}") from exc
