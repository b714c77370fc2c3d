"""
UDP transport and destination handling for Art-Net output.

The transport only knows how to push a datagram to an address; the
destination tracks where datagrams go and enforces the rule that the port
is fixed while sending to the limited broadcast address.
"""

from __future__ import annotations

import ipaddress
import socket
import threading
from concurrent.futures import Future
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

import structlog

from artnet_dmx.core.config import LIMITED_BROADCAST
from artnet_dmx.core.exceptions import ConfigurationError, TransportError, ValidationError
from artnet_dmx.dmx.packets import ARTNET_PORT

logger = structlog.get_logger()

ErrorListener = Callable[[TransportError], None]


def interface_networks(bind_interface: Optional[str]) -> List[ipaddress.IPv4Network]:
    """Return the network of a ``bind_interface`` given in CIDR form."""
    if not bind_interface or "/" not in bind_interface:
        return []
    return [ipaddress.IPv4Interface(bind_interface).network]


def interface_address(bind_interface: Optional[str]) -> str:
    if not bind_interface:
        return ""
    return bind_interface.split("/", 1)[0]


def is_broadcast_address(host: str, networks: Iterable = ()) -> bool:
    """
    True for the limited broadcast address or the directed broadcast
    address of any of ``networks``.

    Hostnames are never treated as broadcast.
    """
    try:
        address = ipaddress.IPv4Address(host)
    except ValueError:
        return False
    if address == ipaddress.IPv4Address(LIMITED_BROADCAST):
        return True
    for network in networks:
        if not isinstance(network, ipaddress.IPv4Network):
            network = ipaddress.IPv4Network(network, strict=False)
        if network.prefixlen < 31 and address == network.broadcast_address:
            return True
    return False


class Destination:
    """Where Art-Net datagrams are sent."""

    def __init__(
        self,
        host: str = LIMITED_BROADCAST,
        port: int = ARTNET_PORT,
        networks: Iterable = (),
    ):
        self.networks = [
            n if isinstance(n, ipaddress.IPv4Network) else ipaddress.IPv4Network(n, strict=False)
            for n in networks
        ]
        self._address: Tuple[str, int] = (self._check_host(host), self._check_port(port))

    @staticmethod
    def _check_host(host: str) -> str:
        if not isinstance(host, str) or not host.strip():
            raise ValidationError("host", host, "must be a non-empty string")
        return host.strip()

    @staticmethod
    def _check_port(port: int) -> int:
        if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
            raise ValidationError("port", port, "must be 1-65535")
        return port

    @property
    def host(self) -> str:
        return self._address[0]

    @property
    def port(self) -> int:
        return self._address[1]

    @property
    def address(self) -> Tuple[str, int]:
        return self._address

    @property
    def is_broadcast(self) -> bool:
        return is_broadcast_address(self.host, self.networks)

    def set_host(self, host: str) -> None:
        self._address = (self._check_host(host), self.port)

    def set_port(self, port: int) -> None:
        if self.host == LIMITED_BROADCAST:
            raise ConfigurationError(
                "port",
                f"can't change port when using broadcast address {LIMITED_BROADCAST}",
            )
        self._address = (self.host, self._check_port(port))


class DatagramTransport(Protocol):
    """Capability to send one datagram without waiting on delivery."""

    def send(self, buffer: bytes, host: str, port: int) -> "Future[int]":
        ...

    def close(self) -> None:
        ...


class UdpTransport:
    """
    UDP socket sender.

    Every send returns a Future resolving to the byte count. Socket errors
    are logged, set on the Future and passed to the error listeners; they
    never propagate to the caller of send().
    """

    def __init__(
        self,
        broadcast: bool = False,
        bind_interface: Optional[str] = None,
        bind_port: int = ARTNET_PORT,
    ):
        self.broadcast = broadcast
        self.bind_interface = bind_interface
        self.bind_port = bind_port
        self._socket: Optional[socket.socket] = None
        self._bound = False
        self._lock = threading.Lock()
        self._error_listeners: List[ErrorListener] = []

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    def _emit_error(self, error: TransportError) -> None:
        for listener in list(self._error_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Art-Net error listener failed")

    def open(self) -> None:
        if self._socket is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket = sock
        if self.broadcast:
            self.enable_broadcast()

    def enable_broadcast(self) -> None:
        """Allow broadcast sends and bind to the configured interface."""
        self.broadcast = True
        if self._socket is None:
            return
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        if self._bound:
            return
        address = (interface_address(self.bind_interface), self.bind_port)
        try:
            self._socket.bind(address)
        except OSError as e:
            # Sending still works from an ephemeral port.
            error = TransportError(f"bind failed: {e}", address)
            logger.warning("Art-Net socket bind failed", address=address, error=str(e))
            self._emit_error(error)
        else:
            self._bound = True
            logger.debug("Art-Net socket bound for broadcast", address=address)

    def close(self) -> None:
        with self._lock:
            if self._socket is not None:
                self._socket.close()
                self._socket = None
                self._bound = False

    def send(self, buffer: bytes, host: str, port: int) -> "Future[int]":
        future: Future[int] = Future()
        destination = (host, port)
        with self._lock:
            sock = self._socket
            try:
                if sock is None:
                    raise OSError("socket is not open")
                sent = sock.sendto(buffer, destination)
            except OSError as e:
                error = TransportError(str(e), destination)
                logger.error("Art-Net send failed", host=host, port=port, error=str(e))
                future.set_exception(error)
            else:
                future.set_result(sent)
        if future.exception() is not None:
            self._emit_error(future.exception())
        return future
