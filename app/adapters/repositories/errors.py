import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from app.domain.errors import RepositoryError

logger = logging.getLogger(__name__)


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Re-raise storage failures as ``RepositoryError`` without retrying."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Repository failure during %s: %s", operation, exc)
        raise RepositoryError(f"Storage failure during {operation}") from exc
