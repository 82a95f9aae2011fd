"""Database utility functions."""
import asyncio
import logging
from typing import Callable, Iterator, List, Sequence, TypeVar

from sqlalchemy.exc import OperationalError, InterfaceError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Upper bound on operations per batched write/delete. Document stores commonly
# cap a batch at 500 operations; stay well under that.
MAX_BATCH_OPERATIONS = 450


async def retry_on_lock(coro_func: Callable[[], T], max_retries: int = 3, base_delay: float = 0.1) -> T:
    """Retry a database operation on transient errors with exponential backoff.

    Handles SQLite lock contention and PostgreSQL transient connection errors
    that may occur while many targets are checked at once.

    Args:
        coro_func: Async function to call (should be a callable that returns a coroutine)
        max_retries: Maximum number of retry attempts
        base_delay: Base delay in seconds (doubles with each retry)

    Returns:
        The result of the coroutine function

    Raises:
        OperationalError: If all retries fail or error is not transient
    """
    last_exception = None
    for attempt in range(max_retries):
        try:
            return await coro_func()
        except (OperationalError, InterfaceError) as e:
            error_str = str(e).lower()
            if any(msg in error_str for msg in [
                "database is locked",
                "connection refused",
                "connection reset",
                "connection closed",
                "server closed",
                "timeout",
                "too many clients",
            ]):
                last_exception = e
                delay = base_delay * (2 ** attempt)
                logger.warning(f"Database transient error, retrying in {delay}s (attempt {attempt + 1}/{max_retries})")
                await asyncio.sleep(delay)
            else:
                raise
    raise last_exception


def chunked(items: Sequence[T], size: int = MAX_BATCH_OPERATIONS) -> Iterator[List[T]]:
    """Split items into lists of at most `size` elements."""
    if size < 1:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
