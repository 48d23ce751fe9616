from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class DeviceStatus(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class SeverityTier(str, Enum):
    NORMAL = "NORMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Reading:
    depth: float  # raw cm, may be negative or above the container
    rate: float = 0.0
    timestamp: Optional[datetime] = None  # None when the sheet sent an unparsable time

    @property
    def display_depth(self) -> float:
        return max(0.0, self.depth)


@dataclass(frozen=True)
class HistoryPoint:
    label: str
    value: float


@dataclass(frozen=True)
class AlertBanner:
    level: str  # "danger" | "warning"
    title: str
    message: str


@dataclass(frozen=True)
class DashboardState:
    depth: Optional[float] = None
    display_depth: Optional[float] = None
    rate: float = 0.0
    status: DeviceStatus = DeviceStatus.OFFLINE
    tier: SeverityTier = SeverityTier.NORMAL
    percentage: float = 0.0
    timestamp: Optional[datetime] = None
    last_update_label: str = "--:--"
    badge: str = "NORMAL FLOW"
    alert: Optional[AlertBanner] = None
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def has_reading(self) -> bool:
        return self.depth is not None


@dataclass(frozen=True)
class WeatherSnapshot:
    temperature_c: float
    precipitation_probability: float
    rain_mm: Optional[float]
    humidity_pct: Optional[float]
    fetched_at: datetime

    @property
    def is_raining(self) -> bool:
        return (self.rain_mm or 0.0) > 0.0


@dataclass(frozen=True)
class DispatchResult:
    sent_to: list[str] = field(default_factory=list)
    confirmed: bool = False  # False when the relay response could not be read
    message: str = ""
