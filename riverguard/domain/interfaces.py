from __future__ import annotations
from typing import Any, Protocol, runtime_checkable
from .models import WeatherSnapshot


@runtime_checkable
class ReadingSource(Protocol):
    source_id: str

    async def fetch(self) -> Any:
        """Return the raw sensor payload. Raise TransportError on failure."""
        ...


@runtime_checkable
class AlertRelay(Protocol):
    async def send(self, emails: list[str], message: str) -> list[str] | None:
        """Return the confirmed recipients, or None when the response is not readable."""
        ...


@runtime_checkable
class WeatherSource(Protocol):
    async def fetch(self) -> WeatherSnapshot:
        ...
