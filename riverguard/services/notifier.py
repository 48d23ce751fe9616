from __future__ import annotations
import asyncio
import logging
from enum import Enum
from typing import Iterable, Optional

from ..domain.errors import (
    DispatchError,
    DispatchInProgressError,
    InvalidRecipientError,
    NoRecipientsError,
)
from ..domain.interfaces import AlertRelay
from ..domain.models import DashboardState, DispatchResult, SeverityTier

logger = logging.getLogger(__name__)


class NotifierState(str, Enum):
    IDLE = "IDLE"
    SENDING = "SENDING"


class AlertNotifier:
    def __init__(
        self,
        relay: AlertRelay,
        recipients: Iterable[str] = (),
        default_message: str = "Manual Test Alert Triggered",
        auto_alert: bool = False,
    ) -> None:
        self._relay = relay
        self._recipients: dict[str, None] = {}
        for email in recipients:
            self.add_recipient(email)
        self.default_message = default_message
        self.auto_alert = auto_alert

        self.state = NotifierState.IDLE
        self.last_result: Optional[DispatchResult] = None
        self.last_error: Optional[str] = None
        self._pending: set[asyncio.Task] = set()

    @property
    def recipients(self) -> list[str]:
        return list(self._recipients)

    def add_recipient(self, email: str) -> bool:
        email = (email or "").strip()
        if "@" not in email:
            raise InvalidRecipientError(email)
        if email in self._recipients:
            return False
        self._recipients[email] = None
        logger.info("Alert recipient added: %s", email)
        return True

    def remove_recipient(self, email: str) -> bool:
        email = (email or "").strip()
        if email not in self._recipients:
            return False
        del self._recipients[email]
        logger.info("Alert recipient removed: %s", email)
        return True

    async def dispatch(
        self,
        recipients: Optional[Iterable[str]] = None,
        message: Optional[str] = None,
    ) -> DispatchResult:
        """Send one relay request carrying every recipient. Not retried on failure."""
        if recipients is None:
            emails = self.recipients
        else:
            emails = [e.strip() for e in recipients if e and e.strip()]
        if not emails:
            raise NoRecipientsError()
        if self.state is NotifierState.SENDING:
            raise DispatchInProgressError()

        text = message or self.default_message
        self.state = NotifierState.SENDING
        try:
            confirmed = await self._relay.send(emails, text)
        except DispatchError as e:
            self.last_error = str(e)
            logger.error("Alert dispatch failed: %s", e)
            raise
        finally:
            self.state = NotifierState.IDLE

        result = DispatchResult(
            sent_to=confirmed if confirmed is not None else emails,
            confirmed=confirmed is not None,
            message=text,
        )
        self.last_result = result
        self.last_error = None
        logger.info(
            "Alert sent to %s (confirmed=%s)", ", ".join(result.sent_to), result.confirmed
        )
        return result

    # --- poller subscription ---
    def on_state(self, previous: DashboardState, current: DashboardState) -> None:
        if not self.auto_alert:
            return
        if current.tier is SeverityTier.CRITICAL and previous.tier is not SeverityTier.CRITICAL:
            depth = current.display_depth or 0.0
            message = f"CRITICAL WATER LEVEL: water is {depth:.0f}cm deep. Capacity limit reached."
            task = asyncio.ensure_future(self._auto_dispatch(message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _auto_dispatch(self, message: str) -> None:
        try:
            await self.dispatch(message=message)
        except (NoRecipientsError, DispatchInProgressError, DispatchError) as e:
            logger.warning("Automatic critical alert not sent: %s", e)
