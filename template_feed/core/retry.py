"""
Retry policy for source fetches.

Built on tenacity. Ordinary failures back off exponentially
(min(initial * 2^n, max) where n counts previous non-rate-limit failures).
Rate-limit failures wait for the server's retry-after instead and do not
advance the exponent.
"""
import asyncio
import logging
import re
from typing import Any, Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt
from tenacity.wait import wait_base

from template_feed.core.errors import RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_BACKOFF = 1.0
DEFAULT_MAX_BACKOFF = 8.0
DEFAULT_RETRY_AFTER = 60.0

RATE_LIMIT_MARKERS = ("429", "rate limit", "too many requests")
RETRY_AFTER_RE = re.compile(r"retry[- ]after[:\s]+(\d+)", re.IGNORECASE)


def is_rate_limit_error(error: BaseException) -> bool:
    if isinstance(error, RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def get_retry_after(error: BaseException, default: float = DEFAULT_RETRY_AFTER) -> float:
    """Seconds to wait after a rate-limit error: explicit attribute, then message, then default"""
    retry_after = getattr(error, "retry_after", None)
    if retry_after is not None:
        return float(retry_after)
    match = RETRY_AFTER_RE.search(str(error))
    if match:
        return float(match.group(1))
    return default


class wait_source_backoff(wait_base):
    """tenacity wait strategy; one instance per retried call since it counts backoff failures"""

    def __init__(self, initial: float, maximum: float, default_retry_after: float):
        self.initial = initial
        self.maximum = maximum
        self.default_retry_after = default_retry_after
        self.backoff_failures = 0

    def __call__(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if error is not None and is_rate_limit_error(error):
            return get_retry_after(error, self.default_retry_after)

        wait = min(self.initial * (2 ** self.backoff_failures), self.maximum)
        self.backoff_failures += 1
        return wait


class RetryPolicy:
    """Bounded retries with exponential backoff and rate-limit awareness"""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        default_retry_after: float = DEFAULT_RETRY_AFTER,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self.default_retry_after = default_retry_after
        self.sleep = sleep

    def _log_before_sleep(self, label: str):
        def before_sleep(retry_state: RetryCallState):
            error = retry_state.outcome.exception() if retry_state.outcome else None
            wait = retry_state.next_action.sleep if retry_state.next_action else 0
            kind = "rate limited" if error is not None and is_rate_limit_error(error) else "failed"
            logger.warning(
                f"[retry] {label} {kind} on attempt {retry_state.attempt_number}/{self.max_attempts}: "
                f"{error}; retrying in {wait:.1f}s"
            )
        return before_sleep

    async def call(self, fn: Callable[[], Awaitable[Any]], label: str = "") -> Any:
        """
        Run fn until it succeeds or attempts are exhausted.

        The last exception is re-raised unchanged on exhaustion.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_source_backoff(self.initial_backoff, self.max_backoff, self.default_retry_after),
            retry=retry_if_exception_type(Exception),
            before_sleep=self._log_before_sleep(label or getattr(fn, "__name__", "call")),
            sleep=self.sleep,
            reraise=True,
        )
        return await retrying(fn)
