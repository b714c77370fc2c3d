"""
Call-shape adapters over ArtNetController.

The controller takes explicit arguments only. These helpers accept the
shorter positional forms scripts like to use and turn them into controller
calls, including spreading long value lists over consecutive universes.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import List, Optional, Sequence, Tuple

from artnet_dmx.core.exceptions import ValidationError
from artnet_dmx.dmx.controller import ArtNetController, CompletionCallback
from artnet_dmx.dmx.packets import OEM_TRIGGER_BROADCAST
from artnet_dmx.dmx.universe import DMX_CHANNEL_COUNT, DMX_CHANNEL_MIN

DEFAULT_TRIGGER_KEY = 255


def _as_values(value: object) -> List[object]:
    if isinstance(value, (list, tuple, bytes, bytearray)):
        return list(value)
    return [value]


def chunk_values(
    values: Sequence[object],
    start_channel: int = DMX_CHANNEL_MIN,
) -> List[Tuple[int, int, List[object]]]:
    """
    Split a value list into per-universe writes.

    The first chunk fills ``start_channel``..512 of the first universe; each
    following chunk starts at channel 1 of the next universe. Returns
    ``(universe_offset, start_channel, values)`` tuples.
    """
    if not DMX_CHANNEL_MIN <= start_channel <= DMX_CHANNEL_COUNT:
        raise ValidationError("start channel", start_channel, "must be 1-512")

    chunks = []
    values = list(values)
    offset = 0
    channel = start_channel
    while values or not chunks:
        room = DMX_CHANNEL_COUNT - channel + 1
        chunks.append((offset, channel, values[:room]))
        values = values[room:]
        offset += 1
        channel = DMX_CHANNEL_MIN
    return chunks


def set_values(
    controller: ArtNetController,
    *args: object,
    on_complete: Optional[CompletionCallback] = None,
) -> bool:
    """
    Write values using one of the short call forms::

        set_values(ctl, value)
        set_values(ctl, channel, value)
        set_values(ctl, universe, channel, value)

    ``value`` may be a single value or a list. A list longer than one
    universe, given without a universe, is spread over universes 0, 1, ...
    ``on_complete`` is attached to the first universe's send only.
    Returns True when any channel changed.
    """
    universe: Optional[int] = None
    channel = DMX_CHANNEL_MIN
    if len(args) == 3:
        universe, channel, value = args
    elif len(args) == 2:
        channel, value = args
    elif len(args) == 1:
        (value,) = args
    else:
        raise ValidationError(
            "arguments",
            args,
            "expected (value), (channel, value) or (universe, channel, value)",
        )

    values = _as_values(value)
    if universe is None and isinstance(channel, int) and channel - 1 + len(values) > DMX_CHANNEL_COUNT:
        changed = False
        for offset, start, chunk in chunk_values(values, channel):
            callback = on_complete if offset == 0 else None
            changed = controller.set_channels(offset, start, chunk, on_complete=callback) or changed
        return changed

    return controller.set_channels(universe or 0, channel, values, on_complete=on_complete)


def trigger(controller: ArtNetController, *args: Optional[int]) -> Future:
    """
    Send a trigger using one of the short call forms::

        trigger(ctl, key)
        trigger(ctl, subkey, key)
        trigger(ctl, oem, subkey, key)

    OEM defaults to 0xFFFF, which most devices treat as a trigger broadcast.
    A key of None becomes 255.
    """
    oem: Optional[int] = None
    subkey: Optional[int] = 0
    if len(args) == 3:
        oem, subkey, key = args
    elif len(args) == 2:
        subkey, key = args
    elif len(args) == 1:
        (key,) = args
    else:
        raise ValidationError(
            "arguments",
            args,
            "expected (key), (subkey, key) or (oem, subkey, key)",
        )

    return controller.send_trigger(
        OEM_TRIGGER_BROADCAST if oem is None else oem,
        DEFAULT_TRIGGER_KEY if key is None else key,
        0 if subkey is None else subkey,
    )
