"""
HTTP SMS sender adapter - Implements SmsSender protocol via httpx.

Posts {sender, message, recipients} as JSON to an Arkesel-style SMS API
authenticated with an ``api-key`` header. Any non-2xx
response is a hard failure; there is no retry or backoff here.
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from src.domain.exceptions import GatewayFailure, InvalidRecipients
from src.domain.ports import DeliveryResult

logger = logging.getLogger(__name__)


def _failure_message(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return GatewayFailure.default_message


class HttpSmsSender:
    """
    Implements SmsSender protocol against a JSON SMS gateway.

    Args:
        url: Gateway endpoint
        api_key: Gateway API key; an empty key fails every send
        sender_id: Sender name shown on the handset
        timeout: Request timeout in seconds
        client: Optional pre-built httpx.Client (tests inject a MockTransport)
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        sender_id: str = "CoMAS",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._sender_id = sender_id
        self._timeout = timeout
        self._client = client

    def send(self, recipients: Sequence[str], message: str) -> DeliveryResult:
        if not recipients or any(not r for r in recipients):
            raise InvalidRecipients()

        if not self._api_key:
            logger.error("SMS API key is not configured")
            raise GatewayFailure("SMS API key is not configured")

        logger.info("Sending SMS to %s", ", ".join(recipients))

        payload = {
            "sender": self._sender_id,
            "message": message,
            "recipients": list(recipients),
        }
        try:
            response = self._post(payload)
        except httpx.HTTPError as e:
            logger.error("SMS gateway unreachable: %s", e)
            raise GatewayFailure("SMS gateway unreachable") from e

        if not response.is_success:
            logger.error("SMS sending failed (%d): %s", response.status_code, response.text)
            raise GatewayFailure(_failure_message(response))

        return DeliveryResult(accepted=tuple(recipients))

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"api-key": self._api_key}
        if self._client is not None:
            return self._client.post(self._url, json=payload, headers=headers, timeout=self._timeout)
        with httpx.Client(timeout=self._timeout) as client:
            return client.post(self._url, json=payload, headers=headers)
