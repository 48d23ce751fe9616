from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional

from ..core.timeutil import as_utc
from .models import DeviceStatus

STALENESS_WINDOW = timedelta(minutes=5)


def evaluate_status(
    reading_ts: Optional[datetime],
    now: datetime,
    window: timedelta = STALENESS_WINDOW,
) -> DeviceStatus:
    """ONLINE while the reading is at most `window` old.

    A reading stamped in the future (sensor clock ahead of ours) counts as the
    freshest possible one. A missing/unparsable timestamp cannot prove
    freshness, so it is OFFLINE.
    """
    if reading_ts is None:
        return DeviceStatus.OFFLINE
    age = as_utc(now) - as_utc(reading_ts)
    if age <= window:
        return DeviceStatus.ONLINE
    return DeviceStatus.OFFLINE
