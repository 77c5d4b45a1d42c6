"""
Bounded retry with exponential backoff for outbound HTTP calls.

Only the statuses listed in RetryPolicy.retry_on_status (503 by default, the
Gemini "model is overloaded" answer) and transport errors are retried. Any
other non-2xx answer is terminal on the first attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.core.errors import UpstreamServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_interval: float = 2.0
    backoff_factor: float = 2.0
    retry_on_status: frozenset[int] = field(default_factory=lambda: frozenset({503}))


class RetryableStatusError(Exception):
    """A response whose status the policy says to retry."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"status {response.status_code}")
        self.response = response


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (httpx.TransportError, RetryableStatusError))


def _log_retry(service: str) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "upstream_call_retrying",
            service=service,
            attempt=state.attempt_number,
            delay=state.next_action.sleep if state.next_action else None,
            error=str(exc),
        )

    return _before_sleep


async def send_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    *,
    service: str,
    sleep: Sleep = asyncio.sleep,
) -> httpx.Response:
    """Call ``send`` until it returns a 2xx response or the policy gives up.

    Raises UpstreamServiceError for a terminal status, for a retryable status on
    the last attempt, and for a transport error on the last attempt.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.initial_interval, exp_base=policy.backoff_factor),
        retry=retry_if_exception(_is_retryable),
        sleep=sleep,
        before_sleep=_log_retry(service),
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                response = await send()
                if response.status_code in policy.retry_on_status:
                    raise RetryableStatusError(response)
    except RetryableStatusError as e:
        raise UpstreamServiceError(
            service,
            f"request failed with status {e.response.status_code} after "
            f"{policy.max_attempts} attempts: {e.response.text[:500]}",
            status_code=e.response.status_code,
        ) from e
    except httpx.TransportError as e:
        raise UpstreamServiceError(
            service, f"request failed after {policy.max_attempts} attempts: {e}"
        ) from e

    if not response.is_success:
        raise UpstreamServiceError(
            service,
            f"request failed with status {response.status_code}: {response.text[:500]}",
            status_code=response.status_code,
        )
    return response
