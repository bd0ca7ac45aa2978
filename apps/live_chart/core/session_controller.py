"""Session and reconciliation controller.

The controller decides what the user sees: whether the snapshot has loaded,
whether the stream is healthy, which notification is shown and whether the
deal (buy/sell) panel is visible.

Two layers:

- ``transition(state, event, policy)`` is a pure function returning the next
  state and an ordered list of effects. All rules live here.
- ``SessionController`` feeds events from an ``asyncio.Queue`` through
  ``transition`` one at a time and applies the effects against the market
  data client, the chart reconciler and the notification state.

Every external signal (connectivity, stream data, stream errors, snapshot
results, user clicks, retry timers) becomes an event on the same queue, so
transitions never interleave and arrival order is preserved.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Protocol

from apps.live_chart.core import metrics
from apps.live_chart.core.chart_reconciler import ChartReconciler
from apps.live_chart.core.models import (
    HIDDEN_NOTIFICATION,
    DataPoint,
    MarkerSide,
    NotificationKind,
    NotificationRecord,
    Session,
)
from apps.live_chart.core.notification_state import NOTIFICATION_TEXTS, NotificationState
from apps.live_chart.core.reconnect import ManualReconnect, ReconnectPolicy
from libs.common.exceptions import LiveChartError

logger = logging.getLogger(__name__)


class MarketDataSource(Protocol):
    """Exchange client as seen by the controller."""

    async def fetch_initial_snapshot(self, symbol: str) -> list[DataPoint]:
        """Fetch recent history. Raises SnapshotFetchError on failure."""

    def subscribe(
        self,
        symbol: str,
        on_point: Callable[[DataPoint], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        """Open the push stream. Returns immediately; signals arrive via callbacks."""


# ================= State =================


class Phase(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    DEGRADED = "degraded"


class DegradedReason(Enum):
    API_UNAVAILABLE = "api-unavailable"
    STREAM_ERROR = "stream-error"


@dataclass(frozen=True)
class ControllerState:
    session: Session
    phase: Phase = Phase.IDLE
    degraded_reason: DegradedReason | None = None
    notification: NotificationRecord = HIDDEN_NOTIFICATION
    deal_visible: bool = False
    fetch_failures: int = 0


def initial_state(symbol: str) -> ControllerState:
    return ControllerState(session=Session(symbol=symbol))


# ================= Events =================


@dataclass(frozen=True)
class Startup:
    pass


@dataclass(frozen=True)
class Online:
    pass


@dataclass(frozen=True)
class Offline:
    pass


@dataclass(frozen=True)
class SnapshotLoaded:
    points: tuple[DataPoint, ...] = ()


@dataclass(frozen=True)
class SnapshotFailed:
    error: str = ""


@dataclass(frozen=True)
class StreamPointReceived:
    point: DataPoint


@dataclass(frozen=True)
class StreamFailed:
    error: str = ""


@dataclass(frozen=True)
class MarkerRequested:
    side: MarkerSide


@dataclass(frozen=True)
class RetryTimerFired:
    pass


Event = (
    Startup
    | Online
    | Offline
    | SnapshotLoaded
    | SnapshotFailed
    | StreamPointReceived
    | StreamFailed
    | MarkerRequested
    | RetryTimerFired
)


# ================= Effects =================


@dataclass(frozen=True)
class FetchSnapshot:
    symbol: str


@dataclass(frozen=True)
class SeedChart:
    points: tuple[DataPoint, ...] = ()


@dataclass(frozen=True)
class PublishNotification:
    record: NotificationRecord


@dataclass(frozen=True)
class PublishDealVisibility:
    visible: bool


@dataclass(frozen=True)
class Subscribe:
    symbol: str


@dataclass(frozen=True)
class ReconcilePoint:
    point: DataPoint


@dataclass(frozen=True)
class AddMarker:
    side: MarkerSide


@dataclass(frozen=True)
class ScheduleRetry:
    delay: float
    attempt: int


Effect = (
    FetchSnapshot
    | SeedChart
    | PublishNotification
    | PublishDealVisibility
    | Subscribe
    | ReconcilePoint
    | AddMarker
    | ScheduleRetry
)

_MANUAL = ManualReconnect()


def _notification(kind: NotificationKind) -> NotificationRecord:
    return NotificationRecord(visible=True, kind=kind, text=NOTIFICATION_TEXTS[kind])


def _begin_initializing(state: ControllerState) -> tuple[ControllerState, list[Effect]]:
    if state.phase is Phase.INITIALIZING:
        # A fetch is already in flight
        return state, []
    new_state = replace(state, phase=Phase.INITIALIZING)
    return new_state, [FetchSnapshot(state.session.symbol)]


def transition(
    state: ControllerState,
    event: Event,
    policy: ReconnectPolicy = _MANUAL,
) -> tuple[ControllerState, list[Effect]]:
    """Return the next state and the ordered effects for ``event``.

    Events that do not apply in the current state return ``(state, [])``.
    """
    session = state.session

    if isinstance(event, Startup):
        if state.phase is not Phase.IDLE:
            return state, []
        return _begin_initializing(state)

    if isinstance(event, Online):
        if session.initialized:
            return replace(state, deal_visible=True), [PublishDealVisibility(True)]
        return _begin_initializing(state)

    if isinstance(event, Offline):
        return replace(state, deal_visible=False), [PublishDealVisibility(False)]

    if isinstance(event, RetryTimerFired):
        if session.initialized:
            return state, []
        return _begin_initializing(state)

    if isinstance(event, SnapshotLoaded):
        if state.phase is not Phase.INITIALIZING:
            return state, []
        effects: list[Effect] = [
            SeedChart(event.points),
            PublishNotification(HIDDEN_NOTIFICATION),
            PublishDealVisibility(True),
        ]
        if not session.subscribed:
            effects.append(Subscribe(session.symbol))
        new_state = replace(
            state,
            session=replace(session, initialized=True, subscribed=True),
            phase=Phase.READY,
            degraded_reason=None,
            notification=HIDDEN_NOTIFICATION,
            deal_visible=True,
            fetch_failures=0,
        )
        return new_state, effects

    if isinstance(event, SnapshotFailed):
        if state.phase is not Phase.INITIALIZING:
            return state, []
        record = _notification(NotificationKind.SNAPSHOT_FAILURE)
        failures = state.fetch_failures + 1
        new_state = replace(
            state,
            session=replace(session, initialized=False),
            phase=Phase.DEGRADED,
            degraded_reason=DegradedReason.API_UNAVAILABLE,
            notification=record,
            deal_visible=False,
            fetch_failures=failures,
        )
        effects = [PublishNotification(record), PublishDealVisibility(False)]
        delay = policy.next_delay(failures)
        if delay is not None:
            effects.append(ScheduleRetry(delay=delay, attempt=failures))
        return new_state, effects

    if isinstance(event, StreamFailed):
        if not session.subscribed:
            return state, []
        record = _notification(NotificationKind.STREAM_FAILURE)
        new_state = replace(
            state,
            phase=Phase.DEGRADED,
            degraded_reason=DegradedReason.STREAM_ERROR,
            notification=record,
            deal_visible=False,
        )
        return new_state, [PublishNotification(record), PublishDealVisibility(False)]

    if isinstance(event, StreamPointReceived):
        if not session.subscribed:
            return state, []
        effects = []
        new_state = state
        # Any point after a stream error is taken as proof the stream recovered
        if (
            state.notification.visible
            and state.notification.kind is NotificationKind.STREAM_FAILURE
        ):
            new_state = replace(
                state,
                phase=Phase.READY,
                degraded_reason=None,
                notification=HIDDEN_NOTIFICATION,
                deal_visible=True,
            )
            effects += [PublishNotification(HIDDEN_NOTIFICATION), PublishDealVisibility(True)]
        effects.append(ReconcilePoint(event.point))
        return new_state, effects

    if isinstance(event, MarkerRequested):
        if not session.initialized:
            return state, []
        return state, [AddMarker(event.side)]

    raise TypeError(f"Unknown event: {event!r}")


# ================= Runner =================


class SessionController:
    """Runs the session state machine for one dashboard page.

    Usage:
        controller = SessionController(symbol, client, reconciler)
        controller.start()               # spawns the event loop task, queues Startup
        monitor.on_online(controller.handle_online)
        ...
        await controller.stop()
    """

    def __init__(
        self,
        symbol: str,
        market_data: MarketDataSource,
        reconciler: ChartReconciler,
        notifications: NotificationState | None = None,
        *,
        policy: ReconnectPolicy | None = None,
        on_deal_visibility: Callable[[bool], None] | None = None,
    ) -> None:
        self._state = initial_state(symbol)
        self._market_data = market_data
        self._reconciler = reconciler
        self._notifications = notifications or NotificationState()
        self._policy: ReconnectPolicy = policy or _MANUAL
        self._on_deal_visibility = on_deal_visibility
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._runner: asyncio.Task[None] | None = None
        self._pending_tasks: set[asyncio.Task[None]] = set()
        # At most one backoff timer is armed at a time
        self._retry_task: asyncio.Task[None] | None = None
        self._fetch_calls = 0
        self._stopped = False

    # ---------------- Read-only view ----------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def session(self) -> Session:
        return self._state.session

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def deal_visible(self) -> bool:
        return self._state.deal_visible

    @property
    def notifications(self) -> NotificationState:
        return self._notifications

    @property
    def reconciler(self) -> ChartReconciler:
        return self._reconciler

    @property
    def fetch_calls(self) -> int:
        return self._fetch_calls

    # ---------------- Signal entry points ----------------

    def dispatch(self, event: Event) -> None:
        """Queue an event. Safe to call from any callback on the event loop."""
        if self._stopped:
            logger.debug("session_event_after_stop", extra={"event": type(event).__name__})
            return
        self._queue.put_nowait(event)

    def handle_online(self) -> None:
        metrics.connectivity_transitions_total.labels(state="online").inc()
        self.dispatch(Online())

    def handle_offline(self) -> None:
        metrics.connectivity_transitions_total.labels(state="offline").inc()
        self.dispatch(Offline())

    def handle_stream_point(self, point: DataPoint) -> None:
        metrics.stream_points_total.inc()
        self.dispatch(StreamPointReceived(point))

    def handle_stream_error(self, error: Exception | None = None) -> None:
        metrics.stream_errors_total.inc()
        self.dispatch(StreamFailed(str(error) if error is not None else ""))

    def request_buy(self) -> None:
        self.dispatch(MarkerRequested("buy"))

    def request_sale(self) -> None:
        self.dispatch(MarkerRequested("sell"))

    # ---------------- Lifecycle ----------------

    def start(self) -> None:
        """Start the event loop task and queue the startup event. Idempotent."""
        if self._runner is not None:
            return
        self._runner = asyncio.create_task(self._run(), name=f"session-{self.session.symbol}")
        metrics.active_sessions.inc()
        self.dispatch(Startup())

    async def stop(self) -> None:
        """Cancel the event loop and any pending fetch or retry tasks."""
        if self._stopped:
            return
        self._stopped = True
        tasks = list(self._pending_tasks)
        if self._runner is not None:
            tasks.append(self._runner)
            metrics.active_sessions.dec()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending_tasks.clear()
        self._retry_task = None
        self._runner = None
        logger.info("session_stopped", extra={"symbol": self.session.symbol})

    async def drain(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()

    async def wait_idle(self, *, include_retries: bool = False) -> None:
        """Wait until queued events and in-flight fetches have been processed.

        Retry timers are only awaited with ``include_retries``; under a real
        policy they may sleep for a long time.
        """
        prefixes = ("fetch-", "retry-") if include_retries else ("fetch-",)
        while True:
            await self.drain()
            pending = [t for t in self._pending_tasks if t.get_name().startswith(prefixes)]
            if not pending:
                if self._queue.empty():
                    return
                continue
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self.process(event)
            except Exception:
                logger.exception(
                    "session_event_failed", extra={"event": type(event).__name__}
                )
            finally:
                self._queue.task_done()

    # ---------------- Transition + effects ----------------

    def process(self, event: Event) -> list[Effect]:
        """Apply one event synchronously and return the effects that were executed."""
        previous = self._state
        self._state, effects = transition(previous, event, self._policy)
        if self._state.phase is not previous.phase:
            logger.info(
                "session_phase_changed",
                extra={
                    "event": type(event).__name__,
                    "from_phase": previous.phase.value,
                    "to_phase": self._state.phase.value,
                    "reason": (
                        self._state.degraded_reason.value
                        if self._state.degraded_reason
                        else None
                    ),
                },
            )
        # One failing collaborator must not starve the effects after it
        for effect in effects:
            try:
                self._apply(effect)
            except Exception:
                logger.exception(
                    "session_effect_failed", extra={"effect": type(effect).__name__}
                )
        return effects

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, FetchSnapshot):
            self._cancel_retry()
            self._spawn(self._fetch_snapshot(effect.symbol), name=f"fetch-{effect.symbol}")
        elif isinstance(effect, SeedChart):
            self._reconciler.seed(effect.points)
        elif isinstance(effect, PublishNotification):
            if effect.record.visible:
                metrics.notifications_shown_total.labels(kind=effect.record.kind.value).inc()
            self._notifications.replace(effect.record)
        elif isinstance(effect, PublishDealVisibility):
            if self._on_deal_visibility is not None:
                self._on_deal_visibility(effect.visible)
        elif isinstance(effect, Subscribe):
            self._subscribe(effect.symbol)
        elif isinstance(effect, ReconcilePoint):
            self._reconciler.on_data_point(effect.point)
        elif isinstance(effect, AddMarker):
            marker = (
                self._reconciler.on_buy_marker()
                if effect.side == "buy"
                else self._reconciler.on_sale_marker()
            )
            if marker is not None:
                metrics.markers_added_total.labels(side=effect.side).inc()
        elif isinstance(effect, ScheduleRetry):
            logger.info(
                "snapshot_retry_scheduled",
                extra={"delay": effect.delay, "attempt": effect.attempt},
            )
            self._cancel_retry()
            self._retry_task = self._spawn(
                self._retry_after(effect.delay), name=f"retry-{effect.attempt}"
            )
        else:
            raise TypeError(f"Unknown effect: {effect!r}")

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)
        return task

    def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        if task is not None and not task.done():
            logger.debug("snapshot_retry_cancelled", extra={"task": task.get_name()})
            task.cancel()

    async def _fetch_snapshot(self, symbol: str) -> None:
        self._fetch_calls += 1
        try:
            points = await self._market_data.fetch_initial_snapshot(symbol)
        except asyncio.CancelledError:
            raise
        except LiveChartError as exc:
            metrics.snapshot_fetch_total.labels(outcome="failure").inc()
            logger.warning("snapshot_fetch_failed", extra={"symbol": symbol, "error": str(exc)})
            self.dispatch(SnapshotFailed(str(exc)))
            return
        except Exception as exc:
            metrics.snapshot_fetch_total.labels(outcome="failure").inc()
            logger.exception("snapshot_fetch_unexpected_error", extra={"symbol": symbol})
            self.dispatch(SnapshotFailed(str(exc)))
            return
        metrics.snapshot_fetch_total.labels(outcome="success").inc()
        logger.info("snapshot_fetched", extra={"symbol": symbol, "points": len(points)})
        self.dispatch(SnapshotLoaded(tuple(points)))

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.dispatch(RetryTimerFired())

    def _subscribe(self, symbol: str) -> None:
        try:
            self._market_data.subscribe(
                symbol,
                on_point=self.handle_stream_point,
                on_error=self.handle_stream_error,
            )
        except Exception as exc:
            logger.exception("stream_subscribe_failed", extra={"symbol": symbol})
            self.handle_stream_error(exc)
            return
        logger.info("stream_subscribed", extra={"symbol": symbol})


__all__ = [
    "AddMarker",
    "ControllerState",
    "DegradedReason",
    "Effect",
    "Event",
    "FetchSnapshot",
    "MarkerRequested",
    "MarketDataSource",
    "Offline",
    "Online",
    "Phase",
    "PublishDealVisibility",
    "PublishNotification",
    "ReconcilePoint",
    "RetryTimerFired",
    "ScheduleRetry",
    "SeedChart",
    "SessionController",
    "SnapshotFailed",
    "SnapshotLoaded",
    "Startup",
    "StreamFailed",
    "StreamPointReceived",
    "Subscribe",
    "initial_state",
    "transition",
]
