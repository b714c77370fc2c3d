from __future__ import annotations

import time
from concurrent.futures import Future
from typing import Callable, Optional

import pytest

from artnet_dmx.core.config import ArtNetConfig
from artnet_dmx.core.exceptions import TransportError
from artnet_dmx.dmx.controller import ArtNetController


class ManualTimer:
    def __init__(self, due: float, callback: Callable[[], None], interval: Optional[float] = None):
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Timer source driven by advance() instead of wall-clock time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + interval, callback, interval)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.active if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            if timer.interval is None:
                timer.fired = True
            else:
                timer.due += timer.interval
            timer.callback()
        self.now = target


class FakeTransport:
    """Records datagrams instead of sending them."""

    def __init__(self, clock: Optional[ManualTimers] = None) -> None:
        self.clock = clock
        self.sent: list[tuple[bytes, str, int]] = []
        self.sent_at: list[float] = []
        self.closed = False
        self.fail = False
        self._error_listeners: list = []

    def add_error_listener(self, listener) -> None:
        self._error_listeners.append(listener)

    def send(self, buffer: bytes, host: str, port: int) -> Future:
        future: Future = Future()
        if self.fail:
            error = TransportError("network unreachable", (host, port))
            future.set_exception(error)
            for listener in self._error_listeners:
                listener(error)
            return future
        self.sent.append((bytes(buffer), host, port))
        self.sent_at.append(self.clock.now if self.clock else time.monotonic())
        future.set_result(len(buffer))
        return future

    def close(self) -> None:
        self.closed = True

    @property
    def packets(self) -> list[bytes]:
        return [packet for packet, _, _ in self.sent]


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def transport(timers: ManualTimers) -> FakeTransport:
    return FakeTransport(clock=timers)


@pytest.fixture
def wall_clock_transport() -> FakeTransport:
    """FakeTransport stamping sends with time.monotonic(), for real timer threads."""
    return FakeTransport()


@pytest.fixture
def make_controller(timers: ManualTimers, transport: FakeTransport):
    created: list[ArtNetController] = []

    def _make(**config) -> ArtNetController:
        config.setdefault("host", "10.0.0.5")
        controller = ArtNetController(ArtNetConfig(**config), transport=transport, timers=timers)
        created.append(controller)
        return controller

    yield _make
    for controller in created:
        controller.close()


@pytest.fixture
def controller(make_controller) -> ArtNetController:
    return make_controller()
