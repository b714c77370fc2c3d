"""
Per-universe DMX channel state with change tracking.

Each universe owns a 512-slot channel buffer and a watermark: the highest
1-based channel changed since the last transmission. The scheduler drains
the watermark when it sends.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from numbers import Integral, Real
from typing import Dict, Optional, Sequence

from artnet_dmx.core.exceptions import ValidationError

DMX_CHANNEL_COUNT = 512
DMX_CHANNEL_MIN = 1
DMX_CHANNEL_MAX = DMX_CHANNEL_COUNT
DMX_VALUE_MIN = 0
DMX_VALUE_MAX = 255
ARTNET_UNIVERSE_MAX = 0x7FFF  # 15-bit Net:SubNet:Universe
MIN_SLOT_COUNT = 2


def create_universe_buffer() -> bytearray:
    """Create a zeroed 512-channel buffer (no start code)."""
    return bytearray(DMX_CHANNEL_COUNT)


def is_valid_dmx_channel(channel: int) -> bool:
    """Return True when a channel index is a valid 1-based DMX slot."""
    return DMX_CHANNEL_MIN <= channel <= DMX_CHANNEL_MAX


def padded_length(length: int) -> int:
    """Round a slot count up to even, at least 2 and at most 512."""
    length = max(MIN_SLOT_COUNT, min(DMX_CHANNEL_COUNT, int(length)))
    if length % 2:
        length += 1
    return length


def validate_universe(universe: int) -> int:
    if isinstance(universe, bool) or not isinstance(universe, Integral):
        raise ValidationError("universe", universe, "must be an integer")
    if not 0 <= universe <= ARTNET_UNIVERSE_MAX:
        raise ValidationError("universe", universe, f"must be 0-{ARTNET_UNIVERSE_MAX}")
    return int(universe)


def coerce_channel_value(value: object) -> Optional[int]:
    """
    Normalize one entry of a channel write.

    Returns None for entries that mean "leave this slot alone": None itself,
    non-numeric objects and non-finite floats. Real numbers must be whole and
    within 0-255.
    """
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return None
    if isinstance(value, Integral):
        number = int(value)
    else:
        as_float = float(value)
        if not math.isfinite(as_float):
            return None
        if not as_float.is_integer():
            raise ValidationError("channel value", value, "must be a whole number")
        number = int(as_float)
    if not DMX_VALUE_MIN <= number <= DMX_VALUE_MAX:
        raise ValidationError("channel value", value, "must be 0-255")
    return number


@dataclass
class UniverseRecord:
    """Channel buffer and dirty watermark for one universe."""

    universe: int
    channels: bytearray = field(default_factory=create_universe_buffer)
    watermark: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class UniverseStore:
    """
    Owns the channel state of every universe touched so far.

    Universes are created lazily on first access and live until the store
    is discarded. Each record has its own lock; only record creation goes
    through the store-wide lock.
    """

    def __init__(self) -> None:
        self._records: Dict[int, UniverseRecord] = {}
        self._lock = threading.Lock()

    def record(self, universe: int) -> UniverseRecord:
        universe = validate_universe(universe)
        record = self._records.get(universe)
        if record is None:
            with self._lock:
                record = self._records.setdefault(universe, UniverseRecord(universe))
        return record

    @property
    def universes(self) -> list[int]:
        return sorted(self._records)

    def set_channels(
        self,
        universe: int,
        start_channel: int,
        values: Sequence[object],
    ) -> bool:
        """
        Write consecutive channel values starting at a 1-based channel.

        Entries that coerce to None are skipped. The whole write is validated
        before any slot changes, so a rejected call leaves the universe as it
        was. Returns True when at least one stored value changed.
        """
        if isinstance(start_channel, bool) or not isinstance(start_channel, Integral):
            raise ValidationError("start channel", start_channel, "must be an integer")
        if not is_valid_dmx_channel(start_channel):
            raise ValidationError(
                "start channel", start_channel, f"must be {DMX_CHANNEL_MIN}-{DMX_CHANNEL_MAX}"
            )
        end_channel = start_channel + len(values) - 1
        if end_channel > DMX_CHANNEL_MAX:
            raise ValidationError(
                "channel range",
                (start_channel, end_channel),
                f"values extend beyond channel {DMX_CHANNEL_MAX}",
            )
        coerced = [coerce_channel_value(value) for value in values]

        record = self.record(universe)
        changed = False
        with record.lock:
            for offset, value in enumerate(coerced):
                if value is None:
                    continue
                index = start_channel - 1 + offset
                if record.channels[index] != value:
                    record.channels[index] = value
                    record.watermark = max(record.watermark, index + 1)
                    changed = True
        return changed

    def snapshot(self, universe: int, length: int = DMX_CHANNEL_COUNT) -> bytes:
        """Copy the first ``length`` slots, padded to an even count of at least 2."""
        record = self.record(universe)
        with record.lock:
            return bytes(record.channels[:padded_length(length)])

    def watermark(self, universe: int) -> int:
        return self.record(universe).watermark

    def clear_watermark(self, universe: int) -> None:
        record = self.record(universe)
        with record.lock:
            record.watermark = 0

    def drain(self, universe: int, full: bool) -> bytes:
        """Snapshot the slots due for transmission and reset the watermark."""
        record = self.record(universe)
        with record.lock:
            length = DMX_CHANNEL_COUNT if full else record.watermark
            data = bytes(record.channels[:padded_length(length)])
            record.watermark = 0
        return data

    def clear(self, universe: int) -> bool:
        """Zero every channel of a universe. Returns True when anything changed."""
        return self.set_channels(universe, DMX_CHANNEL_MIN, [0] * DMX_CHANNEL_COUNT)
