"""Art-Net DMX sending: channel store, scheduler, encoders and transport."""

from artnet_dmx.dmx.controller import ArtNetController
from artnet_dmx.dmx.packets import ARTNET_PORT, build_artdmx_packet, build_trigger_packet
from artnet_dmx.dmx.scheduler import SendScheduler, THROTTLE_MS
from artnet_dmx.dmx.transport import Destination, UdpTransport, is_broadcast_address
from artnet_dmx.dmx.universe import (
    DMX_CHANNEL_COUNT,
    DMX_CHANNEL_MAX,
    DMX_CHANNEL_MIN,
    UniverseStore,
    create_universe_buffer,
    is_valid_dmx_channel,
    padded_length,
)

__all__ = [
    "ArtNetController",
    "ARTNET_PORT",
    "build_artdmx_packet",
    "build_trigger_packet",
    "SendScheduler",
    "THROTTLE_MS",
    "Destination",
    "UdpTransport",
    "is_broadcast_address",
    "DMX_CHANNEL_COUNT",
    "DMX_CHANNEL_MIN",
    "DMX_CHANNEL_MAX",
    "UniverseStore",
    "create_universe_buffer",
    "is_valid_dmx_channel",
    "padded_length",
]
