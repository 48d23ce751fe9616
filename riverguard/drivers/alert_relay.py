from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..domain.errors import DispatchError

logger = logging.getLogger(__name__)


class AlertRelayClient:
    """Email relay behind the Apps Script web app (doPost, action=manual_alert).

    With read_response=False the call is fire-and-forget: the body is never
    read and an accepted request counts as delivered.
    """

    relay_id = "apps_script_mail"

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        read_response: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._read_response = read_response
        self._transport = transport

    async def send(self, emails: list[str], message: str) -> list[str] | None:
        if not self._url:
            raise DispatchError("Alert relay URL is not configured")

        payload = {"action": "manual_alert", "emails": emails, "message": message}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, transport=self._transport
            ) as client:
                resp = await client.post(self._url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Alert relay request failed: %s", e, exc_info=True)
            raise DispatchError(f"Error sending alerts: {e}") from e

        if not self._read_response:
            logger.info("Alert relay accepted request for %d recipient(s)", len(emails))
            return None

        try:
            sent_to = resp.json()["sentTo"]
        except (ValueError, KeyError, TypeError):
            logger.info("Alert relay response unreadable, assuming accepted: %r", resp.text[:200])
            return None

        if not isinstance(sent_to, list):
            logger.info("Alert relay returned unexpected sentTo=%r, assuming accepted", sent_to)
            return None

        logger.info("Alert relay sent to: %s", ", ".join(str(e) for e in sent_to))
        return [str(e) for e in sent_to]
