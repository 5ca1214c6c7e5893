"""
Reload-and-retry around conditional account updates.

Lifecycle operations read an account, decide, then write with
update_by_email(..., expected=...). When another request changed the
counters in between, the write does not apply and the operation raises
ConcurrentModification; it is then re-run against a fresh read.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from .exceptions import ConcurrentModification

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_UPDATE_ATTEMPTS = 5


def retry_on_conflict(operation: Callable[[], T], attempts: int = MAX_UPDATE_ATTEMPTS) -> T:
    """Run ``operation`` until it stops losing compare-and-swap races."""
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConcurrentModification:
            if attempt == attempts:
                logger.error("Giving up after %d conflicting account updates", attempts)
                raise
            logger.debug("Account changed concurrently, retrying (attempt %d)", attempt)
    raise AssertionError("unreachable")
