from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..core.timeutil import now_utc
from ..domain.errors import TransportError
from ..domain.models import WeatherSnapshot

logger = logging.getLogger(__name__)


def _optional_float(block: dict, key: str) -> Optional[float]:
    value = block.get(key)
    return float(value) if value is not None else None


def parse_forecast(data: Any) -> WeatherSnapshot:
    """Pick the fields the dashboard shows out of an Open-Meteo forecast body."""
    try:
        current = data["current"]
        temperature = float(current["temperature_2m"])
        probabilities = data["hourly"]["precipitation_probability"]
        rain_prob = float(probabilities[0]) if probabilities and probabilities[0] is not None else 0.0
        return WeatherSnapshot(
            temperature_c=temperature,
            precipitation_probability=rain_prob,
            rain_mm=_optional_float(current, "rain"),
            humidity_pct=_optional_float(current, "relative_humidity_2m"),
            fetched_at=now_utc(),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise TransportError(f"Malformed weather response: {e!r}") from e


class OpenMeteoClient:
    def __init__(
        self,
        latitude: float,
        longitude: float,
        url: str = "https://api.open-meteo.com/v1/forecast",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,rain,relative_humidity_2m",
            "hourly": "precipitation_probability",
            "forecast_days": 1,
        }
        self._timeout = timeout
        self._transport = transport

    async def fetch(self) -> WeatherSnapshot:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._url, params=self._params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            raise TransportError(f"Weather request failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Weather response is not JSON: {e}") from e

        return parse_forecast(data)
