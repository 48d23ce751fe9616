from __future__ import annotations
import math
from collections.abc import Mapping
from typing import Any

from ..core.timeutil import parse_instant
from .errors import MissingFieldError, ParseError
from .models import Reading

DEPTH_FIELD = "WaterLevel"
RATE_FIELD = "Rate"
TIMESTAMP_FIELD = "Timestamp"


def _to_number(field: str, raw: Any) -> float:
    # bool is an int subclass; a True water level is a sheet formatting accident
    if isinstance(raw, bool):
        raise ParseError(field, raw)
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            # JSON integers have no size limit
            raise ParseError(field, raw) from None
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            raise ParseError(field, raw) from None
    else:
        raise ParseError(field, raw)
    if not math.isfinite(value):
        raise ParseError(field, raw)
    return value


def normalize_payload(payload: Any) -> Reading:
    """Turn the sheet's JSON row into a Reading.

    WaterLevel is required and must be numeric. Rate is optional (blank cells
    come through as ""). An unparsable Timestamp is kept as None rather than
    rejected: the depth is still shown, the device is reported OFFLINE.
    """
    if not isinstance(payload, Mapping) or payload.get(DEPTH_FIELD) is None:
        raise MissingFieldError(DEPTH_FIELD)

    depth = _to_number(DEPTH_FIELD, payload[DEPTH_FIELD])

    raw_rate = payload.get(RATE_FIELD)
    if raw_rate is None or (isinstance(raw_rate, str) and not raw_rate.strip()):
        rate = 0.0
    else:
        rate = _to_number(RATE_FIELD, raw_rate)

    return Reading(depth=depth, rate=rate, timestamp=parse_instant(payload.get(TIMESTAMP_FIELD)))
