from artnet_dmx.dmx.packets import (
    ARTNET_HEADER_SIZE,
    build_artdmx_packet,
    build_trigger_packet,
)


def test_build_artdmx_packet_layout() -> None:
    data = bytes([7] * 512)
    packet = build_artdmx_packet(universe=0x0123, dmx_data=data)

    assert packet[:8] == b"Art-Net\x00"
    assert packet[8:10] == b"\x00\x50"  # OpOutput / ArtDMX
    assert packet[10:12] == b"\x00\x0e"  # Protocol version 14
    assert packet[12:14] == b"\x00\x00"  # sequence, physical
    assert packet[14:16] == b"\x23\x01"  # SubUni, Net
    assert packet[16:18] == b"\x02\x00"  # 512 slots
    assert packet[-512:] == data


def test_artdmx_odd_length_is_padded_to_even() -> None:
    packet = build_artdmx_packet(universe=1, dmx_data=bytes([10, 20, 30]), length=3)

    assert len(packet) == 18 + 4
    assert packet[14] == 1  # SubUni
    assert packet[15] == 0  # Net
    assert packet[16] == 0  # LengthHi
    assert packet[17] == 4  # LengthLo
    assert packet[18:] == bytes([10, 20, 30, 0])


def test_artdmx_length_never_below_two() -> None:
    packet = build_artdmx_packet(universe=0, dmx_data=b"", length=0)

    assert len(packet) == ARTNET_HEADER_SIZE + 2
    assert packet[16:18] == b"\x00\x02"


def test_artdmx_length_takes_prefix_of_data() -> None:
    data = bytes(range(100))
    packet = build_artdmx_packet(universe=0, dmx_data=data, length=10)

    assert packet[18:] == data[:10]


def test_artdmx_universe_is_masked_to_15_bits() -> None:
    packet = build_artdmx_packet(universe=0x8001, dmx_data=bytes(2))

    assert packet[14:16] == b"\x01\x00"


def test_artdmx_high_universe_split() -> None:
    packet = build_artdmx_packet(universe=0x7FFF, dmx_data=bytes(2))

    assert packet[14] == 0xFF
    assert packet[15] == 0x7F


def test_build_trigger_packet_layout() -> None:
    packet = build_trigger_packet(oem=0x1234, key=7, subkey=2)

    assert len(packet) == 18 + 512
    assert packet[:8] == b"Art-Net\x00"
    assert packet[8:10] == b"\x00\x99"
    assert packet[10:12] == b"\x00\x0e"
    assert packet[12:14] == b"\x00\x00"
    assert packet[14:18] == bytes([0x12, 0x34, 7, 2])
    assert packet[18:] == bytes(512)


def test_trigger_fields_wrap_instead_of_raising() -> None:
    packet = build_trigger_packet(oem=0x1FFFF, key=0x107, subkey=-1)

    assert packet[14:16] == b"\xff\xff"
    assert packet[16] == 7
    assert packet[17] == 0xFF
