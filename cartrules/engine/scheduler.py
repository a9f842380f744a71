# cartrules/engine/scheduler.py
import asyncio
from enum import Enum
from typing import Any, List, Optional

from ..utils.logging import logger
from .events import CHANGE_SIGNAL_EVENTS, HostEventBus
from .state import EngineState

POLL_SIGNAL = "poll"


class SchedulerState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RECONCILING = "reconciling"


class ReconciliationScheduler:
    """
    Single consumer of the change-signal queue.

    Every producer (host events, drawer opens, the poll) puts a signal on the
    queue. A burst ends once the queue stays quiet for the debounce window;
    the burst then yields at most one reconciliation pass.
    """

    def __init__(self, reconciler, state: EngineState,
                 debounce_seconds: float = 0.5, poll_interval_seconds: float = 30.0):
        self.reconciler = reconciler
        self.state = state
        self.debounce_seconds = debounce_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.phase = SchedulerState.IDLE
        self.signals_received = 0
        self.bursts_dropped = 0
        self.bursts_missed = 0
        self._queue: asyncio.Queue = asyncio.Queue()
        self._tasks: List[asyncio.Task] = []
        self._bus: Optional[HostEventBus] = None

    # -- producers --------------------------------------------------------
    def signal(self, source: str = "signal") -> None:
        self.signals_received += 1
        self._queue.put_nowait(source)

    def handle_event(self, event_name: str, payload: Any = None) -> None:
        self.signal(event_name)

    def attach(self, bus: HostEventBus) -> None:
        for name in CHANGE_SIGNAL_EVENTS:
            bus.subscribe(name, self.handle_event)
        self._bus = bus

    def detach(self) -> None:
        if self._bus is None:
            return
        for name in CHANGE_SIGNAL_EVENTS:
            self._bus.unsubscribe(name, self.handle_event)
        self._bus = None

    # -- lifecycle --------------------------------------------------------
    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._tasks = [loop.create_task(self._consume(), name="cartrules-consume")]
        if self.poll_interval_seconds and self.poll_interval_seconds > 0:
            self._tasks.append(loop.create_task(self._poll(), name="cartrules-poll"))

    async def stop(self) -> None:
        self.detach()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.phase = SchedulerState.IDLE

    # -- loops ------------------------------------------------------------
    async def _debounce(self) -> int:
        burst = 1
        while True:
            try:
                await asyncio.wait_for(self._queue.get(), timeout=self.debounce_seconds)
            except asyncio.TimeoutError:
                return burst
            burst += 1

    async def _consume(self) -> None:
        while True:
            source = await self._queue.get()
            self.phase = SchedulerState.DEBOUNCING
            burst = await self._debounce()

            if self.state.is_suppressing():
                self.bursts_dropped += 1
                logger.debug("Dropping %d signal(s) (first: %s) during self-trigger cooldown",
                             burst, source)
                self.phase = SchedulerState.IDLE
                continue
            if self.state.reconciling:
                # another pass holds the flag; the poll picks this up later
                self.bursts_missed += 1
                self.phase = SchedulerState.IDLE
                continue

            self.phase = SchedulerState.RECONCILING
            try:
                await self.reconciler.run_pass()
            finally:
                self.phase = SchedulerState.IDLE

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval_seconds)
            if self.state.reconciling or self.state.is_suppressing():
                continue
            self.signal(POLL_SIGNAL)
