"""Retry policy for transactions that lose a write-write race."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from pricing_engine.core.config import Settings, get_settings
from pricing_engine.services.errors import TransientConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01"})


def _sqlstate(error: BaseException | None) -> str | None:
    for attr in ("sqlstate", "pgcode"):
        value = getattr(error, attr, None)
        if isinstance(value, str):
            return value
    return None


def is_transient_conflict(exc: BaseException) -> bool:
    """Return True for storage errors worth retrying the whole transaction."""
    if isinstance(exc, TransientConflict):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    if _sqlstate(exc.orig) in _TRANSIENT_SQLSTATES:
        return True
    return "database is locked" in str(exc.orig).lower()


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with linear backoff for a matched class of errors.

    Attempt ``n`` (1-based) that fails with a matched error waits
    ``backoff_seconds * n`` before the next attempt. Unmatched errors
    propagate immediately.
    """

    max_attempts: int = 3
    backoff_seconds: float = 0.1
    retry_on: Callable[[BaseException], bool] = field(default=is_transient_conflict)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        settings = settings or get_settings()
        return cls(
            max_attempts=settings.redemption_retry_attempts,
            backoff_seconds=settings.redemption_retry_backoff_seconds,
        )

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(
                start=self.backoff_seconds, increment=self.backoff_seconds
            ),
            retry=retry_if_exception(self.retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` until it succeeds, fails hard, or attempts run out."""
        return await self.retrying()(operation)


__all__ = ["RetryPolicy", "is_transient_conflict"]
