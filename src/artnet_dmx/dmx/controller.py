"""
Art-Net Controller: public entry point for sending DMX and triggers.

Wires the universe store, send scheduler, packet encoders and UDP transport
together behind one object with explicit, normalized operations.
"""

from __future__ import annotations

from concurrent.futures import Future
from numbers import Integral
from typing import Callable, Optional, Sequence
import structlog

from artnet_dmx.core.config import ArtNetConfig
from artnet_dmx.core.exceptions import ClosedError, ValidationError
from artnet_dmx.dmx.packets import build_trigger_packet
from artnet_dmx.dmx.scheduler import SendScheduler, Timers
from artnet_dmx.dmx.transport import (
    DatagramTransport,
    Destination,
    ErrorListener,
    UdpTransport,
    interface_networks,
)
from artnet_dmx.dmx.universe import DMX_CHANNEL_COUNT, UniverseStore, validate_universe

logger = structlog.get_logger()

CompletionCallback = Callable[[Future], None]


def _check_field(name: str, value: int, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ValidationError(name, value, "must be an integer")
    if not 0 <= value <= maximum:
        raise ValidationError(name, value, f"must be 0-{maximum}")
    return int(value)


class ArtNetController:
    """
    Sends DMX channel state and triggers to Art-Net nodes.

    Channel writes are throttled and coalesced per universe; every universe
    that has been sent is refreshed with a full frame at the configured
    interval. Triggers are never throttled.

    A transport can be injected; by default a UDP socket is opened and, when
    the destination is a broadcast address, bound for broadcast. Listeners
    passed as ``error_listeners`` are registered before the socket opens, so
    they also hear about a failed bind.
    """

    def __init__(
        self,
        config: Optional[ArtNetConfig] = None,
        transport: Optional[DatagramTransport] = None,
        timers: Optional[Timers] = None,
        error_listeners: Sequence[ErrorListener] = (),
    ):
        self.config = config or ArtNetConfig()
        self._error_listeners: list[ErrorListener] = list(error_listeners)
        self._triggers_sent = 0
        self._errors = 0
        self._closed = False

        networks = list(self.config.broadcast_networks)
        networks.extend(interface_networks(self.config.bind_interface))
        self.destination = Destination(self.config.host, self.config.port, networks)

        if transport is None:
            udp = UdpTransport(
                broadcast=self.destination.is_broadcast,
                bind_interface=self.config.bind_interface,
                bind_port=self.config.port,
            )
            udp.add_error_listener(self._on_transport_error)
            udp.open()
            transport = udp
        elif hasattr(transport, "add_error_listener"):
            transport.add_error_listener(self._on_transport_error)
        self.transport = transport

        self.store = UniverseStore()
        self.scheduler = SendScheduler(
            self.store,
            self.transport,
            self.destination,
            refresh_interval_ms=self.config.refresh_interval_ms,
            send_all_always=self.config.send_all_always,
            timers=timers,
        )

        logger.info(
            "Art-Net controller started",
            host=self.destination.host,
            port=self.destination.port,
            broadcast=self.destination.is_broadcast,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise ClosedError(operation)

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register a callback for transport errors (bind and send failures)."""
        self._error_listeners.append(listener)

    def _on_transport_error(self, error) -> None:
        self._errors += 1
        for listener in list(self._error_listeners):
            listener(error)

    # -------------------------------------------------------------------------
    # Channel data
    # -------------------------------------------------------------------------

    def set_channels(
        self,
        universe: int,
        start_channel: int,
        values: Sequence[object],
        on_complete: Optional[CompletionCallback] = None,
    ) -> bool:
        """
        Write channel values and schedule a send when anything changed.

        ``on_complete`` receives the send Future; when nothing changed it
        receives an already resolved Future holding None.
        """
        self._ensure_open("set channels")
        changed = self.store.set_channels(universe, start_channel, values)
        if changed:
            future = self.send(universe)
        else:
            future = Future()
            future.set_result(None)
        if on_complete is not None:
            future.add_done_callback(on_complete)
        return changed

    def set_channel(self, universe: int, channel: int, value: int) -> bool:
        return self.set_channels(universe, channel, [value])

    def send(self, universe: int, full: bool = False) -> Future:
        """Request a send of a universe; ``full`` forces all 512 channels."""
        self._ensure_open("send")
        return self.scheduler.request_send(universe, full=full)

    def blackout(self, universe: int) -> Future:
        """Zero every channel of a universe and send the full frame."""
        self._ensure_open("blackout")
        self.store.clear(universe)
        return self.send(universe, full=True)

    def get_channels(self, universe: int) -> bytes:
        return self.store.snapshot(validate_universe(universe), DMX_CHANNEL_COUNT)

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def send_trigger(self, oem: int, key: int, subkey: int) -> Future:
        """Send one ArtTrigger packet immediately, bypassing the scheduler."""
        self._ensure_open("send trigger")
        oem = _check_field("oem", oem, 0xFFFF)
        key = _check_field("key", key, 0xFF)
        subkey = _check_field("subkey", subkey, 0xFF)

        packet = build_trigger_packet(oem, key, subkey)
        host, port = self.destination.address
        self._triggers_sent += 1
        logger.debug("Sending Art-Net trigger", oem=hex(oem), key=key, subkey=subkey)
        return self.transport.send(packet, host, port)

    # -------------------------------------------------------------------------
    # Destination
    # -------------------------------------------------------------------------

    def set_host(self, host: str) -> None:
        self._ensure_open("set host")
        self.destination.set_host(host)
        if self.destination.is_broadcast and isinstance(self.transport, UdpTransport):
            self.transport.bind_port = self.destination.port
            self.transport.enable_broadcast()
        logger.info("Art-Net destination host changed", host=self.destination.host)

    def set_port(self, port: int) -> None:
        self._ensure_open("set port")
        self.destination.set_port(port)
        logger.info("Art-Net destination port changed", port=self.destination.port)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Stop all timers and release the socket."""
        if self._closed:
            return
        self._closed = True
        self.scheduler.close()
        self.transport.close()

        stats = self.get_stats()
        logger.info(
            "Art-Net controller closed",
            frames_sent=stats["frames_sent"],
            triggers_sent=stats["triggers_sent"],
            errors=stats["errors"],
        )

    def __enter__(self) -> "ArtNetController":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get_stats(self) -> dict:
        """Get transmission statistics."""
        stats = self.scheduler.get_stats()
        stats.update(
            {
                "closed": self._closed,
                "triggers_sent": self._triggers_sent,
                "errors": self._errors,
            }
        )
        return stats
