"""Opt-in timeout and retry policies for provider services.

The dispatch path sends every request exactly once. Callers that want a
bounded request time or retries on transient failures pass one of these
policies to the service.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import get_settings
from .errors import (
    ChatServiceError,
    InvalidParameterError,
    NetworkError,
    RateLimitExceededError,
    ServerError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (RateLimitExceededError, ServerError, NetworkError)


def _should_retry(exception: BaseException) -> bool:
    """Check if a classified failure should trigger a retry.

    Retries on rate limiting, 5xx responses and network failures. Client
    errors (4xx other than 429) and configuration defects are never retried.
    """
    return (
        isinstance(exception, RETRYABLE_ERRORS)
        and isinstance(exception, ChatServiceError)
        and exception.recoverable
    )


@dataclass(frozen=True)
class TimeoutPolicy:
    """Per-request timeout handed to httpx."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise InvalidParameterError("timeout", "Timeout must be positive")

    def as_httpx(self) -> httpx.Timeout:
        return httpx.Timeout(self.seconds)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff over transient failures.

    ``retry_attempts`` counts retries, so the request is sent at most
    ``retry_attempts + 1`` times.
    """

    retry_attempts: int = 3
    min_wait: Optional[float] = None
    max_wait: Optional[float] = None

    def __post_init__(self) -> None:
        if self.retry_attempts < 0:
            raise InvalidParameterError(
                "retry_attempts", "Retry attempts must be non-negative"
            )

    def _retrying(self) -> AsyncRetrying:
        settings = get_settings()
        min_wait = settings.retry_min_wait if self.min_wait is None else self.min_wait
        max_wait = settings.retry_max_wait if self.max_wait is None else self.max_wait
        return AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts + 1),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception(_should_retry),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` until it succeeds or the policy gives up."""
        async for attempt in self._retrying():
            with attempt:
                return await operation()
