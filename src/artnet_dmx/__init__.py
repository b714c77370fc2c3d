"""
artnet-dmx: Art-Net DMX512 sender

Keeps per-universe DMX channel state and sends it to Art-Net nodes over
UDP, throttling bursts of changes and refreshing every active universe
so receivers never time out.
"""

__version__ = "0.1.0"

from artnet_dmx.core.config import ArtNetConfig, Settings
from artnet_dmx.dmx.controller import ArtNetController

__all__ = [
    "ArtNetController",
    "ArtNetConfig",
    "Settings",
    "__version__",
]
