from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from .errors import is_retryable

MAX_ATTEMPTS = 2
BASE_DELAY_SECONDS = 0.3

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    kind = getattr(exc, "kind", None)
    logger.warning(
        "AI attempt %d failed (%s), retrying in %.2fs",
        retry_state.attempt_number,
        kind.value if kind is not None else exc,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


async def run_with_retries(
    attempt: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
) -> T:
    """Run ``attempt`` until it succeeds or fails terminally.

    Only retryable ``DiagnosisError`` kinds are retried, with a delay of
    ``base_delay * attempt_number`` between attempts. The last error is
    re-raised once ``max_attempts`` is exhausted.
    """
    async for retry_attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with retry_attempt:
            return await attempt()
    raise AssertionError("unreachable")  # pragma: no cover
