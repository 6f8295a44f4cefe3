"""Exponential-backoff retry policy for remote operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from megaverse.api.base import HTTP_TOO_MANY_REQUESTS, RetriesExhaustedError, status_code_of

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY_SECONDS = 0.2
logger = logging.getLogger(__name__)


class FailureClass(str, Enum):
    """How the retry policy treats one failure."""

    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    FATAL = "fatal"

    @property
    def retryable(self) -> bool:
        return self is not FailureClass.FATAL


def classify_failure(error: BaseException) -> FailureClass:
    """Map a failure to its retry class using the HTTP status it carries."""

    status_code = status_code_of(error)
    if status_code is None:
        return FailureClass.NETWORK
    if status_code == HTTP_TOO_MANY_REQUESTS:
        return FailureClass.RATE_LIMITED
    if 500 <= status_code < 600:  # noqa: PLR2004
        return FailureClass.SERVER_ERROR
    return FailureClass.FATAL


class RetryExecutor:
    """Runs one async operation, retrying transient failures sequentially.

    The executor only governs time: attempts for one operation never overlap,
    and it knows nothing about how many operations run concurrently.
    """

    def __init__(
        self,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay_seconds < 0:
            raise ValueError(f"base_delay_seconds must be >= 0, got {base_delay_seconds}")
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        max_retries: int | None = None,
        base_delay_seconds: float | None = None,
    ) -> T:
        """Await ``operation`` until it succeeds, fails fatally, or retries run out."""

        retries = self.max_retries if max_retries is None else max_retries
        base_delay = self.base_delay_seconds if base_delay_seconds is None else base_delay_seconds
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as error:
                attempt += 1
                failure_class = classify_failure(error)
                if not failure_class.retryable:
                    raise
                if attempt > retries:
                    raise RetriesExhaustedError(
                        message=f"Operation failed after {attempt} attempts: {error}",
                        attempts=attempt,
                    ) from error
                delay = base_delay * (2**attempt)
                logger.warning(
                    "Retrying after %s failure (attempt %d/%d, sleeping %.2fs): %s",
                    failure_class.value,
                    attempt,
                    retries,
                    delay,
                    error,
                )
                await self._sleep(delay)
