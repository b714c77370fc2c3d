"""
Custom Exceptions for artnet-dmx.

Provides a hierarchy of exceptions for the sender components,
separating caller mistakes from configuration and network failures.
"""

from __future__ import annotations

from typing import Optional


class ArtNetError(Exception):
    """Base exception for all artnet-dmx errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ArtNetError):
    """Invalid or disallowed configuration change."""

    def __init__(self, setting: str, reason: str):
        super().__init__(f"Configuration error for '{setting}': {reason}")
        self.setting = setting
        self.reason = reason


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(ArtNetError):
    """Socket bind or send failure."""

    def __init__(self, reason: str, destination: Optional[tuple] = None):
        where = f" to {destination[0]}:{destination[1]}" if destination else ""
        super().__init__(f"Art-Net transport error{where}: {reason}", recoverable=True)
        self.reason = reason
        self.destination = destination


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(ArtNetError):
    """Malformed universe, channel, value or trigger input."""

    def __init__(self, field: str, value: object, reason: str):
        super().__init__(f"Invalid {field} {value!r}: {reason}")
        self.field = field
        self.value = value


class ClosedError(ArtNetError):
    """Operation attempted on a closed controller."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot {operation}: Art-Net controller is closed",
            recoverable=False,
        )
        self.operation = operation
