from __future__ import annotations

import pytest

from artnet_dmx.core.exceptions import ValidationError
from artnet_dmx.dmx.adapters import chunk_values, set_values, trigger


def test_set_values_single_value_targets_channel_one(controller) -> None:
    assert set_values(controller, 200) is True

    assert controller.get_channels(0)[0] == 200


def test_set_values_channel_and_list(controller) -> None:
    set_values(controller, 10, [1, 2, 3])

    assert controller.get_channels(0)[9:12] == bytes([1, 2, 3])


def test_set_values_universe_channel_value(controller) -> None:
    set_values(controller, 3, 5, 7)

    assert controller.get_channels(3)[4] == 7
    assert controller.get_channels(0)[4] == 0


def test_set_values_spreads_long_lists_over_universes(controller, transport) -> None:
    values = [v % 256 for v in range(600)]

    assert set_values(controller, values) is True

    assert controller.get_channels(0) == bytes(values[:512])
    assert controller.get_channels(1)[:88] == bytes(values[512:])
    assert sorted({p[14] for p in transport.packets}) == [0, 1]


def test_set_values_on_complete_fires_once(controller) -> None:
    calls = []

    set_values(controller, [1] * 1024, on_complete=calls.append)

    assert len(calls) == 1


def test_set_values_with_universe_does_not_spread(controller) -> None:
    with pytest.raises(ValidationError):
        set_values(controller, 0, 1, [1] * 513)


def test_set_values_requires_arguments(controller) -> None:
    with pytest.raises(ValidationError):
        set_values(controller)


def test_chunk_values_fills_whole_universes() -> None:
    chunks = chunk_values(list(range(1030)))

    assert [(offset, start, len(chunk)) for offset, start, chunk in chunks] == [
        (0, 1, 512),
        (1, 1, 512),
        (2, 1, 6),
    ]


def test_chunk_values_respects_start_channel() -> None:
    chunks = chunk_values(list(range(10)), start_channel=510)

    assert chunks == [(0, 510, [0, 1, 2]), (1, 1, [3, 4, 5, 6, 7, 8, 9])]


def test_trigger_key_only_uses_broadcast_oem(controller, transport) -> None:
    trigger(controller, 7)

    assert transport.packets[0][14:18] == bytes([0xFF, 0xFF, 7, 0])


def test_trigger_subkey_and_key(controller, transport) -> None:
    trigger(controller, 2, 7)

    assert transport.packets[0][14:18] == bytes([0xFF, 0xFF, 7, 2])


def test_trigger_full_form(controller, transport) -> None:
    trigger(controller, 0x1234, 2, 7)

    assert transport.packets[0][14:18] == bytes([0x12, 0x34, 7, 2])


def test_trigger_missing_key_defaults_to_255(controller, transport) -> None:
    trigger(controller, None)

    assert transport.packets[0][16] == 255


def test_trigger_requires_arguments(controller) -> None:
    with pytest.raises(ValidationError):
        trigger(controller)
