from __future__ import annotations
import asyncio
import logging
from typing import Optional

from ..domain.errors import TransportError
from ..domain.interfaces import WeatherSource
from ..domain.models import WeatherSnapshot

logger = logging.getLogger(__name__)


class WeatherService:
    """Keeps the last good weather snapshot. Failures are logged and the stale snapshot stays."""

    def __init__(self, source: WeatherSource, refresh_seconds: float = 900) -> None:
        self._source = source
        self._refresh_seconds = refresh_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

        self.snapshot: Optional[WeatherSnapshot] = None
        self.last_error: Optional[str] = None

    async def refresh(self) -> Optional[WeatherSnapshot]:
        try:
            snapshot = await self._source.fetch()
        except TransportError as e:
            self.last_error = str(e)
            logger.warning("Weather refresh failed, keeping previous snapshot: %s", e)
            return self.snapshot

        self.snapshot = snapshot
        self.last_error = None
        logger.info(
            "Weather: %.1f C, rain %s mm, precipitation probability %.0f%%",
            snapshot.temperature_c,
            snapshot.rain_mm,
            snapshot.precipitation_probability,
        )
        return snapshot

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="weather_loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    async def _run(self) -> None:
        while not self._stop.is_set():
            try:
                await self.refresh()
            except Exception as e:
                logger.exception("Weather loop error: %s", e)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._refresh_seconds)
            except asyncio.TimeoutError:
                pass
