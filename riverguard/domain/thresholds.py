from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError
from .models import AlertBanner, SeverityTier


_BADGES = {
    SeverityTier.NORMAL: "NORMAL FLOW",
    SeverityTier.WARNING: "WARNING: HIGH LEVEL",
    SeverityTier.CRITICAL: "CRITICAL FLOOD RISK",
}


def classify(depth: float, warning: float, flood: float) -> SeverityTier:
    # Inclusive thresholds: a reading sitting exactly on a level gets the higher tier
    if depth >= flood:
        return SeverityTier.CRITICAL
    if depth >= warning:
        return SeverityTier.WARNING
    return SeverityTier.NORMAL


def fill_percentage(depth: float, container_height: float) -> float:
    """Gauge fill, 0..100. Negative depth shows empty, overflow shows full."""
    return min(100.0, max(0.0, depth) * 100.0 / container_height)


def tier_badge(tier: SeverityTier) -> str:
    return _BADGES[tier]


def alert_banner(tier: SeverityTier, depth: float) -> Optional[AlertBanner]:
    if tier is SeverityTier.CRITICAL:
        return AlertBanner(
            level="danger",
            title="CRITICAL WATER LEVEL",
            message=f"Water is {depth:.0f}cm deep. Capacity limit reached.",
        )
    if tier is SeverityTier.WARNING:
        return AlertBanner(
            level="warning",
            title="Water Rising",
            message=f"Water level is {depth:.0f}cm. Approaching safe limits.",
        )
    return None


@dataclass(frozen=True)
class ThresholdPolicy:
    container_height: float
    warning: float
    flood: float

    def validate(self) -> "ThresholdPolicy":
        if self.container_height <= 0:
            raise ConfigError(f"Container height must be positive, got {self.container_height}")
        if not self.warning < self.flood <= self.container_height:
            raise ConfigError(
                f"Expected warning < flood <= container height, got "
                f"warning={self.warning} flood={self.flood} height={self.container_height}"
            )
        return self

    def classify(self, depth: float) -> SeverityTier:
        return classify(depth, self.warning, self.flood)

    def percentage(self, depth: float) -> float:
        return fill_percentage(depth, self.container_height)
