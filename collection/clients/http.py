"""Shared HTTP retry policy for provider clients"""
import logging

import httpx
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential_jitter,
)


def is_transient(exc: BaseException) -> bool:
    """429, 5xx and transport failures are worth another attempt"""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return isinstance(exc, httpx.TransportError)


def build_retrying(max_attempts: int, deadline_seconds: float, logger: logging.Logger) -> Retrying:
    """Bounded retry: stops at whichever of attempts/deadline comes first"""
    def _log_retry(retry_state):
        logger.warning(
            f"Retry {retry_state.attempt_number}: {retry_state.outcome.exception()}"
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts) | stop_after_delay(deadline_seconds),
        wait=wait_exponential_jitter(initial=1, max=8, jitter=0.2),
        retry=retry_if_exception(is_transient),
        before_sleep=_log_retry,
        reraise=True,
    )
