"""
Send Scheduler: per-universe throttling and keep-alive refresh.

Each universe is sent at most once per 25 ms cooldown window. Requests that
arrive while a universe is cooling down are coalesced into one send when the
window expires, and every coalesced caller gets that send's result. Once a
universe has been sent, a refresh timer keeps re-sending the full 512-slot
frame so receivers do not fall back to their failsafe state.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, Optional, Protocol
import structlog

from artnet_dmx.core.exceptions import ClosedError
from artnet_dmx.dmx.packets import build_artdmx_packet
from artnet_dmx.dmx.transport import DatagramTransport, Destination
from artnet_dmx.dmx.universe import UniverseStore, validate_universe

logger = structlog.get_logger()

THROTTLE_MS = 25
DEFAULT_REFRESH_INTERVAL_MS = 4000


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timers(Protocol):
    """Source of one-shot and recurring timers."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class RepeatingTimer(threading.Thread):
    """Daemon thread calling ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "ArtNet-Refresh"):
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Art-Net refresh tick failed")

    def cancel(self) -> None:
        self._stopped.set()


class ThreadingTimers:
    """Timers backed by ``threading.Timer`` and ``RepeatingTimer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        timer = RepeatingTimer(interval, callback)
        timer.start()
        return timer


@dataclass
class ThrottleState:
    """Cooldown and refresh bookkeeping for one universe."""

    universe: int
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    cooling: bool = False
    delayed: bool = False
    delayed_full: bool = False
    pending: Optional[Future] = None
    cooldown: Optional[TimerHandle] = None
    refresh: Optional[TimerHandle] = None
    frames_sent: int = 0
    coalesced: int = 0


def _chain(source: Future, target: Future) -> None:
    def _copy(done: Future) -> None:
        if target.done():
            return
        if done.cancelled():
            target.cancel()
            return
        error = done.exception()
        if error is not None:
            target.set_exception(error)
        else:
            target.set_result(done.result())

    source.add_done_callback(_copy)


class SendScheduler:
    """
    Decides when each universe's channel state goes on the wire.

    State transitions for a universe happen under that universe's own lock,
    so universes never contend with each other. The datagram itself is handed
    to the transport after that lock is released, under one re-entrant send lock,
    which close() waits on so no datagram leaves after it returns. Timers
    call back in from their own threads.
    """

    def __init__(
        self,
        store: UniverseStore,
        transport: DatagramTransport,
        destination: Destination,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        send_all_always: bool = False,
        timers: Optional[Timers] = None,
    ):
        self.store = store
        self.transport = transport
        self.destination = destination
        self.refresh_interval = refresh_interval_ms / 1000.0
        self.throttle = THROTTLE_MS / 1000.0
        self.send_all_always = send_all_always
        self._timers: Timers = timers or ThreadingTimers()

        self._states: Dict[int, ThrottleState] = {}
        self._lock = threading.Lock()
        self._send_lock = threading.RLock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _state(self, universe: int) -> ThrottleState:
        state = self._states.get(universe)
        if state is None:
            with self._lock:
                if self._closed:
                    raise ClosedError("send")
                state = self._states.setdefault(universe, ThrottleState(universe))
        return state

    def request_send(self, universe: int, full: bool = False) -> Future:
        """
        Send a universe now, or fold the request into the send that follows
        the current cooldown window.

        Returns a Future resolving to the number of bytes sent.
        """
        universe = validate_universe(universe)
        if self._closed:
            raise ClosedError("send")
        state = self._state(universe)

        with state.lock:
            if self._closed:
                raise ClosedError("send")

            if state.refresh is None:
                state.refresh = self._timers.call_every(
                    self.refresh_interval, partial(self._refresh, universe)
                )
                logger.debug(
                    "Art-Net refresh started",
                    universe=universe,
                    interval_ms=int(self.refresh_interval * 1000),
                )

            if state.cooling:
                state.delayed = True
                state.delayed_full = state.delayed_full or full
                state.coalesced += 1
                if state.pending is None:
                    state.pending = Future()
                return state.pending

            packet = self._start_window(state, full)

        return self._transmit(state, packet)

    def _start_window(self, state: ThrottleState, full: bool) -> bytes:
        # Caller holds state.lock.
        state.cooling = True
        state.cooldown = self._timers.call_later(
            self.throttle, partial(self._cooldown_expired, state.universe)
        )
        full = full or self.send_all_always
        data = self.store.drain(state.universe, full)
        return build_artdmx_packet(state.universe, data)

    def _transmit(self, state: ThrottleState, packet: bytes) -> Future:
        # Called without state.lock so error listeners may re-enter the scheduler.
        with self._send_lock:
            if self._closed:
                future: Future = Future()
                future.cancel()
                return future
            state.frames_sent += 1
            host, port = self.destination.address
            return self.transport.send(packet, host, port)

    def _cooldown_expired(self, universe: int) -> None:
        state = self._states.get(universe)
        if state is None or self._closed:
            return

        with state.lock:
            if self._closed:
                return
            state.cooldown = None
            state.cooling = False
            if not state.delayed:
                return
            full = state.delayed_full
            pending = state.pending
            state.delayed = False
            state.delayed_full = False
            state.pending = None
            packet = self._start_window(state, full)

        result = self._transmit(state, packet)
        if pending is not None:
            _chain(result, pending)

    def _refresh(self, universe: int) -> None:
        if self._closed:
            return
        try:
            self.request_send(universe, full=True)
        except ClosedError:
            return

    def close(self) -> None:
        """Cancel every cooldown and refresh timer. Terminal."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            states = list(self._states.values())

        for state in states:
            with state.lock:
                if state.cooldown is not None:
                    state.cooldown.cancel()
                    state.cooldown = None
                if state.refresh is not None:
                    state.refresh.cancel()
                    state.refresh = None
                if state.pending is not None:
                    state.pending.cancel()
                    state.pending = None
                state.cooling = False
                state.delayed = False

        # Wait out a send already handed to the transport.
        with self._send_lock:
            pass

        logger.debug("Art-Net scheduler closed", universes=len(states))

    def get_stats(self) -> dict:
        states = list(self._states.values())
        return {
            "universes": sorted(s.universe for s in states),
            "frames_sent": sum(s.frames_sent for s in states),
            "coalesced": sum(s.coalesced for s in states),
        }
