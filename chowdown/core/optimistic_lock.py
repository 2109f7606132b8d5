"""
Chow Service - Optimistic locking retry

A conditional write (UPDATE ... WHERE <column> = <value read earlier>) that
matches no row means another writer got there first. The writer raises
StaleDataError and the decorated call is retried after an exponential,
jittered delay.
"""
import asyncio
import functools
import logging
import random

from chowdown.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class StaleDataError(Exception):
    """The row changed between our read and our conditional write."""


def backoff_delay(attempt: int, settings: Settings) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based)."""
    delay_ms = min(settings.OPT_LOCK_BASE_DELAY_MS * 2 ** attempt, settings.OPT_LOCK_MAX_DELAY_MS)
    return (delay_ms + random.uniform(0, settings.OPT_LOCK_JITTER_MS)) / 1000.0


def with_optimistic_retry(max_retries: int | None = None):
    """
    Retry an async optimistic-lock write on StaleDataError; the error is
    re-raised once ``max_retries`` attempts (default OPT_LOCK_MAX_RETRIES)
    have all lost the race. The first attempt always runs, so 0 and 1 both
    mean "never retry".

        @with_optimistic_retry()
        async def _advance(self) -> int:
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            settings = get_settings()
            attempts = settings.OPT_LOCK_MAX_RETRIES if max_retries is None else max_retries
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except StaleDataError as exc:
                    if attempt >= attempts:
                        logger.error("%s: gave up after %d conflicting attempts (%s)",
                                     func.__qualname__, attempt, exc)
                        raise
                    delay = backoff_delay(attempt, settings)
                    logger.warning("%s: conflict on attempt %d/%d, retrying in %.3fs",
                                   func.__qualname__, attempt, attempts, delay)
                    await asyncio.sleep(delay)
                    attempt += 1
        return wrapper
    return decorator
