"""
Runner: generate-with-retry and attempt observability.
Attempts are strictly sequential with a fixed delay; the last error is re-raised.
"""
import logging
import time
from typing import Any, Callable, TypeVar

from app.utils.metrics import image_generation_attempts_total

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[[], T],
    *,
    max_attempts: int,
    delay_seconds: float,
    operation: str = "generate",
    sleep: Callable[[float], Any] = time.sleep,
    log: logging.Logger | logging.LoggerAdapter | None = None,
) -> T:
    """
    Call func up to max_attempts times, sleeping delay_seconds between attempts.
    Any exception counts as a failed attempt. Returns the first successful result.
    """
    log = log or logger
    max_attempts = max(1, max_attempts)
    attempt = 0

    while True:
        attempt += 1
        try:
            result = func()
        except Exception as e:
            image_generation_attempts_total.labels(mode=operation, outcome="failure").inc()
            retries_left = max_attempts - attempt
            log.warning(
                "image_generation_attempt_failed",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "error": f"{type(e).__name__}: {e}",
                },
            )
            if retries_left <= 0:
                raise
            log.info(
                "image_generation_retry_scheduled",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_seconds": delay_seconds,
                },
            )
            sleep(delay_seconds)
            continue

        image_generation_attempts_total.labels(mode=operation, outcome="success").inc()
        if attempt > 1:
            log.info(
                "image_generation_result",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "success_after_retry": True,
                },
            )
        return result
