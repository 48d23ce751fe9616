from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Sensor(ABC):
    """Domain-facing water level source."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        ...

    @property
    def unit(self) -> str:
        return "cm"

    @abstractmethod
    async def fetch(self) -> Any:
        """Return the raw payload ({"WaterLevel", "Rate", "Timestamp"}). Raise TransportError on failure."""
        ...
