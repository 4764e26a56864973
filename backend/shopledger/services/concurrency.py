# Overview: Retry helper for remote store calls.

from __future__ import annotations

import logging
import time

from ..tabular import StoreError

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 0.1


def run_with_retry(func, *, attempts: int = DEFAULT_ATTEMPTS, backoff_base: float = DEFAULT_BACKOFF, label: str = "store call"):
    """
    Execute a store operation with retry on remote-I/O failures.

    Only StoreError is retried; validation and not-found errors surface
    immediately. Callers must only wrap operations that are safe to repeat
    (a failed store call has no effect).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except StoreError as exc:
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("%s failed (attempt %d/%d): %s", label, attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
