"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging verification codes for demo purposes.
"""

import logging

from src.domain.ports import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - every recipient is accepted.
    """

    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Log the email instead of delivering it.

        The verification code and link are logged at INFO level so they are
        visible in container logs.

        Args:
            message: Templated email produced by the domain layer

        Returns:
            DeliveryResult accepting the single recipient
        """
        logger.info(
            "[EMAIL] To: %s Subject: %s Template: %s",
            message.to,
            message.subject,
            message.template,
        )
        code = message.context.get("verification_code")
        if code is not None:
            logger.info(
                "[VERIFICATION] Email: %s Code: %s Link: %s",
                message.to,
                code,
                message.context.get("verification_link"),
            )
        return DeliveryResult(accepted=(message.to,))
