from __future__ import annotations
import asyncio
import inspect
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Union

from ..core.timeutil import as_utc, now_utc, time_label
from ..domain.errors import PayloadError, TransportError
from ..domain.history import RollingHistory
from ..domain.interfaces import ReadingSource
from ..domain.models import DashboardState, DeviceStatus, Reading
from ..domain.normalize import normalize_payload
from ..domain.staleness import STALENESS_WINDOW, evaluate_status
from ..domain.thresholds import ThresholdPolicy, alert_banner, tier_badge


logger = logging.getLogger(__name__)

StateCallback = Callable[[DashboardState, DashboardState], Union[None, Awaitable[None]]]


class DashboardPoller:
    """Owns the dashboard state and keeps it in step with the sensor.

    Every `poll_seconds` a tick is launched (fetch, validate, status, tier,
    history, publish). A tick that starts while the previous one is still
    waiting on the network is skipped, and a fetched reading older than the
    last accepted one is dropped, so a slow response can never overwrite a
    newer state. Simulated readings go through `ingest()` and share the same
    apply path.
    """

    def __init__(
        self,
        source: ReadingSource,
        policy: ThresholdPolicy,
        history: Optional[RollingHistory] = None,
        poll_seconds: float = 3.0,
        staleness: timedelta = STALENESS_WINDOW,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._source = source
        self._policy = policy
        self.history = history if history is not None else RollingHistory()
        self._poll_seconds = poll_seconds
        self._staleness = staleness
        self._clock = clock

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._ticks: set[asyncio.Task] = set()
        self._in_flight = False
        self._last_fetched_ts: Optional[datetime] = None

        self._subscribers: list[StateCallback] = []
        self._callbacks: set[asyncio.Task] = set()

        self.last_reading: Optional[Reading] = None
        self.state = DashboardState()

    @property
    def policy(self) -> ThresholdPolicy:
        return self._policy

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    # --- lifecycle ---
    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="poll_loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    async def _run(self) -> None:
        logger.info(
            "Poll loop started (source=%s poll_seconds=%s staleness=%s)",
            getattr(self._source, "source_id", "?"),
            self._poll_seconds,
            self._staleness,
        )

        while not self._stop.is_set():
            # Fixed cadence: a slow tick does not delay the next one, it makes it skip
            task = asyncio.create_task(self._safe_tick(), name="poll_tick")
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._poll_seconds)
            except asyncio.TimeoutError:
                pass

        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)
        logger.info("Poll loop stopped")

    async def _safe_tick(self) -> None:
        try:
            await self.tick()
        except Exception as e:
            logger.exception("Poll tick error: %s", e)

    # --- subscriptions ---
    def subscribe(self, callback: StateCallback) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: StateCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _publish(self, previous: DashboardState, current: DashboardState) -> None:
        for callback in self._subscribers[:]:
            try:
                result = callback(previous, current)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._callbacks.add(task)
                    task.add_done_callback(self._callback_done)
            except Exception as e:
                logger.error("State subscriber %r failed: %s", callback, e)

    def _callback_done(self, task: asyncio.Task) -> None:
        self._callbacks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Async state subscriber failed: %s", task.exception())

    # --- ticks ---
    async def tick(self) -> Optional[DashboardState]:
        """One fetch-and-reconcile cycle. Returns the new state, or None when nothing changed."""
        if self._in_flight:
            logger.debug("Previous poll still in flight, skipping tick")
            return None

        self._in_flight = True
        try:
            try:
                payload = await self._source.fetch()
            except TransportError as e:
                logger.error("Error fetching sensor data: %s", e)
                return self._mark_offline(str(e))

            try:
                reading = normalize_payload(payload)
            except PayloadError as e:
                logger.warning("Sensor payload rejected, tick aborted: %s (payload=%r)", e, payload)
                return None

            if (
                reading.timestamp is not None
                and self._last_fetched_ts is not None
                and reading.timestamp < self._last_fetched_ts
            ):
                logger.warning(
                    "Discarding out-of-order reading ts=%s (last accepted ts=%s)",
                    reading.timestamp.isoformat(),
                    self._last_fetched_ts.isoformat(),
                )
                self._refresh_status()
                return None
            if reading.timestamp is not None:
                # A future-dated row must not hold back the readings that follow it
                self._last_fetched_ts = min(reading.timestamp, as_utc(self._clock()))

            logger.debug(
                "Water depth %.1f cm (container %.0f cm) ts=%s",
                reading.depth, self._policy.container_height, time_label(reading.timestamp),
            )
            return self._apply(reading)
        finally:
            self._in_flight = False

    async def ingest(self, reading: Reading) -> DashboardState:
        """Simulation entry point: apply a reading without touching the network."""
        logger.info("Simulating water depth: %.1f cm", reading.depth)
        return self._apply(reading)

    def _refresh_status(self) -> None:
        """Re-age the retained reading when a tick brings nothing newer."""
        if self.last_reading is None:
            return
        now = self._clock()
        status = evaluate_status(self.last_reading.timestamp, now, self._staleness)
        if status is self.state.status:
            return
        previous = self.state
        self.state = replace(previous, status=status, updated_at=now)
        logger.warning("Device status: %s (no newer reading)", status.value)
        self._publish(previous, self.state)

    def _mark_offline(self, error: str) -> DashboardState:
        previous = self.state
        self.state = replace(
            previous,
            status=DeviceStatus.OFFLINE,
            last_error=error,
            updated_at=self._clock(),
        )
        if previous.status is not DeviceStatus.OFFLINE:
            logger.warning("Device status: OFFLINE (sensor endpoint unreachable)")
        self._publish(previous, self.state)
        return self.state

    def _apply(self, reading: Reading) -> DashboardState:
        now = self._clock()
        status = evaluate_status(reading.timestamp, now, self._staleness)
        tier = self._policy.classify(reading.depth)
        label = time_label(reading.timestamp)
        display_depth = reading.display_depth

        # No timestamp, no x-axis position: such readings are shown but not plotted
        if reading.timestamp is not None:
            self.history.append(label, display_depth)

        previous = self.state
        self.last_reading = reading
        self.state = DashboardState(
            depth=reading.depth,
            display_depth=display_depth,
            rate=reading.rate,
            status=status,
            tier=tier,
            percentage=self._policy.percentage(reading.depth),
            timestamp=reading.timestamp,
            last_update_label=label,
            badge=tier_badge(tier),
            alert=alert_banner(tier, display_depth),
            last_error=None,
            updated_at=now,
        )

        if status is not previous.status:
            if status is DeviceStatus.OFFLINE:
                logger.warning("Device status: OFFLINE (data is old, ts=%s)", label)
            else:
                logger.info("Device status: ONLINE")
        if tier is not previous.tier:
            logger.info("Tier %s -> %s at %.1f cm", previous.tier.value, tier.value, reading.depth)

        self._publish(previous, self.state)
        return self.state
