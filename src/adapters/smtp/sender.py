"""
SMTP email sender adapter - Implements EmailSender protocol.

Renders the domain's named templates to plain text and HTML and submits
them over SMTP (STARTTLS plus login when credentials are configured).
Recipients the server refuses are reported in DeliveryResult.rejected;
connection and protocol failures raise GatewayFailure.
"""

import logging
import smtplib
from collections.abc import Callable, Mapping
from email.message import EmailMessage as MimeMessage
from html import escape
from typing import Any

from src.domain.exceptions import GatewayFailure
from src.domain.ports import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)

# template name -> (plain text body, HTML body); both use str.format fields
TEMPLATES: dict[str, tuple[str, str]] = {
    "email-verify": (
        "Hello {name},\n\n"
        "Your verification code is {verification_code}.\n"
        "Verify your email address here: {verification_link}\n\n"
        "The code is valid for 24 hours.\n",
        "<p>Hello {name},</p>"
        "<p>Your verification code is <strong>{verification_code}</strong>.</p>"
        '<p><a href="{verification_link}">Verify your email address</a></p>'
        "<p>The code is valid for 24 hours.</p>",
    ),
}


def render(template: str, context: Mapping[str, Any]) -> tuple[str, str]:
    """Render a named template to (text, html)."""
    try:
        text, html = TEMPLATES[template]
    except KeyError as e:
        raise GatewayFailure(f"Unknown email template: {template}") from e
    safe = {key: escape(str(value)) for key, value in context.items()}
    return text.format(**context), html.format(**safe)


class SmtpEmailSender:
    """
    Implements EmailSender protocol via smtplib.

    Uses structural subtyping - no explicit inheritance from Protocol.
    A new connection is opened per message.

    Args:
        host: SMTP server host
        port: SMTP server port
        sender: From address
        username: Login user; empty skips authentication
        password: Login password or SMTP key
        use_tls: Upgrade the connection with STARTTLS before login
        timeout: Socket timeout in seconds
        connect: Factory for the SMTP session (tests inject a mock)
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
        connect: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout
        self._connect = connect

    def send(self, message: EmailMessage) -> DeliveryResult:
        if not self._host:
            logger.error("SMTP host is not configured")
            raise GatewayFailure("SMTP host is not configured")

        text, html = render(message.template, message.context)
        mime = MimeMessage()
        mime["From"] = self._sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(text)
        mime.add_alternative(html, subtype="html")

        try:
            with self._connect(host=self._host, port=self._port, timeout=self._timeout) as smtp:
                if self._use_tls:
                    smtp.starttls()
                if self._username:
                    smtp.login(self._username, self._password)
                refused = smtp.send_message(mime)
        except smtplib.SMTPRecipientsRefused as e:
            logger.warning("SMTP server refused %s", ", ".join(e.recipients))
            return DeliveryResult(rejected=tuple(e.recipients))
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery to %s failed: %s", message.to, e)
            raise GatewayFailure("Failed to send email") from e

        rejected = tuple(refused)
        accepted = () if message.to in refused else (message.to,)
        if rejected:
            logger.warning("SMTP server refused %s", ", ".join(rejected))
        else:
            logger.info("Email '%s' sent to %s", message.subject, message.to)
        return DeliveryResult(accepted=accepted, rejected=rejected)
