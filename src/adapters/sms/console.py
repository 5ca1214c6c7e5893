"""
Console SMS sender adapter - Implements SmsSender protocol.

Logs text messages instead of delivering them. Used in development.
"""

import logging
from collections.abc import Sequence

from src.domain.exceptions import InvalidRecipients
from src.domain.ports import DeliveryResult

logger = logging.getLogger(__name__)


class ConsoleSmsSender:
    """Implements SmsSender protocol via console logging."""

    def send(self, recipients: Sequence[str], message: str) -> DeliveryResult:
        if not recipients or any(not r for r in recipients):
            raise InvalidRecipients()

        logger.info("[SMS] To: %s Message: %s", ", ".join(recipients), message)
        return DeliveryResult(accepted=tuple(recipients))
