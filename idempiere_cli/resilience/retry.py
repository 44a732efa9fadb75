#!/usr/bin/env python3
# CUI // SP-CTI
"""idempiere-cli Resilience — HTTP retry with exponential backoff.

Shared by every AI provider. A request is re-sent only when the server
answers 429 (rate limit) or 5xx; any other response, successful or not,
is returned to the caller untouched. Network exceptions propagate to the
provider, which turns them into a failed AiResponse.

Usage:
    from idempiere_cli.resilience.retry import send_with_retry

    response = send_with_retry(lambda: requests.post(url, json=body, timeout=TIMEOUT))
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger("idempiere_cli.resilience.retry")

MAX_RETRIES = 2          # total 3 attempts
BASE_DELAY = 1.0         # seconds; 1s, 2s
MAX_DELAY = 30.0


def backoff_delay(
    attempt: int,
    base_delay: float = BASE_DELAY,
    max_delay: float = MAX_DELAY,
) -> float:
    """Exponential backoff: min(cap, base * 2^attempt)."""
    return min(max_delay, base_delay * (2 ** attempt))


def is_retryable(status_code: int) -> bool:
    """True for rate limiting (429) and server errors (>= 500)."""
    return status_code == 429 or status_code >= 500


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds.

    HTTP-date values are not supported and yield None.
    """
    if value is None:
        return None
    try:
        seconds = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def send_with_retry(
    send: Callable,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    max_delay: float = MAX_DELAY,
    on_retry: Optional[Callable] = None,
):
    """Call ``send()`` and re-send on 429/5xx responses.

    Args:
        send: Zero-argument callable returning a response object with
            ``status_code`` and ``headers`` (e.g. ``requests.Response``).
        max_retries: Additional attempts after the first one.
        base_delay: Base delay in seconds, doubled per attempt.
        max_delay: Cap for the computed backoff (Retry-After is not capped).
        on_retry: Optional callback(attempt, status_code, delay) called
            before each sleep.

    Returns:
        The first non-retryable response, or the last response once the
        retry budget is spent.
    """
    response = send()

    for attempt in range(max_retries):
        if not is_retryable(response.status_code):
            break

        delay = backoff_delay(attempt, base_delay, max_delay)
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        if retry_after is not None:
            delay = max(delay, retry_after)

        logger.warning(
            "Retry %d/%d after HTTP %d, waiting %.1fs",
            attempt + 1,
            max_retries,
            response.status_code,
            delay,
        )
        if on_retry:
            on_retry(attempt, response.status_code, delay)
        time.sleep(delay)
        response = send()

    return response
