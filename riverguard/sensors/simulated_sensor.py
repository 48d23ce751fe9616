from __future__ import annotations

import math
import random
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable

from ..core.timeutil import now_utc
from ..domain.errors import TransportError
from .base import Sensor


@dataclass
class PatternConfig:
    type: str = "sine"     # sine|step|ramp|random
    baseline: float = 50.0
    amplitude: float = 30.0
    period_s: float = 600
    noise: float = 1.0

    step_low: float = 40.0
    step_high: float = 85.0
    step_period_s: float = 120

    ramp_min: float = 10.0
    ramp_max: float = 95.0
    ramp_period_s: float = 600


def pattern_depth(cfg: PatternConfig, t: float) -> float:
    """Depth in cm a rising/falling river pattern gives at `t` seconds, never below zero."""
    if cfg.type == "step":
        # Surge then recede: the high half exercises the CRITICAL path
        surging = (t % cfg.step_period_s) < cfg.step_period_s / 2.0
        depth = cfg.step_high if surging else cfg.step_low
    elif cfg.type == "ramp":
        depth = cfg.ramp_min + (cfg.ramp_max - cfg.ramp_min) * ((t % cfg.ramp_period_s) / cfg.ramp_period_s)
    elif cfg.type == "random":
        depth = cfg.baseline + random.uniform(-cfg.amplitude, cfg.amplitude)
    elif cfg.type == "sine":
        depth = cfg.baseline + cfg.amplitude * math.sin(2.0 * math.pi * (t % cfg.period_s) / cfg.period_s)
    else:
        depth = cfg.baseline

    if cfg.noise > 0:
        depth += random.uniform(-cfg.noise, cfg.noise)
    return max(0.0, depth)


class SimulatedDepthSensor(Sensor):
    """Stands in for the sheet endpoint: returns payloads shaped like the sheet's JSON.

    Controls and `fetch()` all run on the event loop, so no locking is needed.
    """

    def __init__(self, source_id: str = "depth_sim", clock: Callable[[], float] = time.time):
        self._source_id = source_id
        self._clock = clock
        self._enabled = True
        self._mode = "manual"   # manual|pattern
        self._manual_depth = 35.0
        self._pattern = PatternConfig()
        self._previous: tuple[float, float] | None = None   # (t, depth) of the last payload

    @property
    def source_id(self) -> str:
        return self._source_id

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def set_manual(self, depth: float) -> None:
        self._mode = "manual"
        self._manual_depth = float(depth)

    def set_pattern(self, cfg: PatternConfig) -> None:
        self._mode = "pattern"
        self._pattern = cfg

    def status(self) -> dict:
        return {
            "enabled": self._enabled,
            "mode": self._mode,
            "manual_depth": self._manual_depth,
            "pattern": asdict(self._pattern),
        }

    async def fetch(self) -> Any:
        if not self._enabled:
            # Disabled sim behaves like an unreachable endpoint
            raise TransportError("Simulated sensor disabled")

        t = self._clock()
        if self._mode == "manual":
            depth = self._manual_depth
        else:
            depth = pattern_depth(self._pattern, t)

        # Rate of rise in cm/min against the previous payload
        rate = 0.0
        if self._previous is not None and t > self._previous[0]:
            rate = (depth - self._previous[1]) / (t - self._previous[0]) * 60.0
        self._previous = (t, depth)

        return {
            "WaterLevel": round(depth, 1),
            "Rate": round(rate, 2),
            "Timestamp": now_utc().isoformat(),
        }
