from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..domain.errors import TransportError
from .base import Sensor

logger = logging.getLogger(__name__)


class SheetSensor(Sensor):
    """Reads the latest row of the sensor spreadsheet through its Apps Script web app.

    Apps Script answers with a 302 to googleusercontent.com, so redirects are followed.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        source_id: str = "sheet",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not url:
            raise ValueError("SheetSensor needs a sensor_url")
        self._url = url
        self._timeout = timeout
        self._source_id = source_id
        self._transport = transport

    @property
    def source_id(self) -> str:
        return self._source_id

    async def fetch(self) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, transport=self._transport
            ) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise TransportError(f"Sensor endpoint request failed: {e}") from e
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise TransportError(f"Sensor endpoint returned malformed JSON: {e}") from e

        logger.debug("Sheet payload: %s", data)
        return data
