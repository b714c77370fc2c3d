"""Core configuration and error types for artnet-dmx."""

from artnet_dmx.core.config import ArtNetConfig, Settings
from artnet_dmx.core.exceptions import (
    ArtNetError,
    ClosedError,
    ConfigurationError,
    TransportError,
    ValidationError,
)

__all__ = [
    "ArtNetConfig",
    "Settings",
    "ArtNetError",
    "ClosedError",
    "ConfigurationError",
    "TransportError",
    "ValidationError",
]
