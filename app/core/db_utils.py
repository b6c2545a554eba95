# app/core/db_utils.py
import asyncio
import functools
import logging
from typing import Callable, Any, TypeVar, Awaitable

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Exception class names raised by asyncpg / SQLAlchemy when the pooler drops a connection
TRANSIENT_ERROR_NAMES = (
    "ConnectionError",
    "OperationalError",
    "InterfaceError",
    "ConnectionDoesNotExistError",
    "ConnectionRefusedError",
    "TimeoutError",
)


def is_transient_db_error(error: Exception) -> bool:
    error_name = type(error).__name__
    return any(name in error_name for name in TRANSIENT_ERROR_NAMES)


def with_db_retry(
    max_retries: int = 3,
    retry_delay: float = 0.5
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Retry a read-only query when the database connection drops.

    The delay doubles after every failed attempt. Errors that are not
    connection problems are raised straight away.
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_transient_db_error(e):
                        raise
                    attempt += 1
                    if attempt > max_retries:
                        logger.error(f"❌ {func.__name__} failed after {max_retries} retries: {e}")
                        raise
                    delay = retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"⚠️ Database connection error in {func.__name__}: {e}. "
                        f"Retrying in {delay:.2f}s ({attempt}/{max_retries})"
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator
