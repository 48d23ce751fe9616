from __future__ import annotations


class RiverGuardError(Exception):
    """Base class for all dashboard errors."""


class ConfigError(RiverGuardError):
    """Threshold configuration violates warning < flood <= container height."""


class PayloadError(RiverGuardError):
    """Sensor payload cannot be turned into a Reading. The tick is aborted."""


class MissingFieldError(PayloadError):
    def __init__(self, field: str) -> None:
        super().__init__(f"Required field '{field}' missing from sensor payload")
        self.field = field


class ParseError(PayloadError):
    def __init__(self, field: str, raw: object) -> None:
        super().__init__(f"Field '{field}' is not numeric: {raw!r}")
        self.field = field
        self.raw = raw


class TransportError(RiverGuardError):
    """Network failure, non-OK response or malformed JSON from an external endpoint."""


class NoRecipientsError(RiverGuardError):
    def __init__(self) -> None:
        super().__init__("No emails found to send alerts to.")


class InvalidRecipientError(RiverGuardError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Please enter a valid email: {email!r}")
        self.email = email


class DispatchError(RiverGuardError):
    """The alert relay rejected the request or could not be reached. Never retried."""


class DispatchInProgressError(RiverGuardError):
    def __init__(self) -> None:
        super().__init__("An alert dispatch is already in progress")
