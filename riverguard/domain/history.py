from __future__ import annotations
from collections import deque
from typing import Optional

from .models import HistoryPoint

HISTORY_CAPACITY = 20


class RollingHistory:
    """Fixed-size, arrival-ordered window of chart points.

    Consecutive points with the same label collapse into the first one, so
    polls landing in the same displayed second only plot once.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._points: deque[HistoryPoint] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def last_label(self) -> Optional[str]:
        return self._points[-1].label if self._points else None

    def append(self, label: str, value: float) -> bool:
        """Returns False when the point was dropped as a repeat of the last label."""
        if label == self.last_label:
            return False
        # deque(maxlen) drops exactly one oldest point per append once full
        self._points.append(HistoryPoint(label=label, value=float(value)))
        return True

    def snapshot(self) -> list[HistoryPoint]:
        return list(self._points)

    def labels(self) -> list[str]:
        return [p.label for p in self._points]

    def values(self) -> list[float]:
        return [p.value for p in self._points]

    def clear(self) -> None:
        self._points.clear()
