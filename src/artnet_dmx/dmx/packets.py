"""Art-Net packet encoders."""

from __future__ import annotations

import struct

from artnet_dmx.dmx.universe import padded_length

ARTNET_PORT = 6454
ARTNET_HEADER = b"Art-Net\x00"
ARTNET_OPCODE_DMX = 0x5000
ARTNET_OPCODE_TRIGGER = 0x9900
ARTNET_PROTOCOL_VERSION = 14
ARTNET_HEADER_SIZE = 18
TRIGGER_PAYLOAD_SIZE = 512
OEM_TRIGGER_BROADCAST = 0xFFFF


def _preamble(opcode: int) -> bytearray:
    packet = bytearray()
    packet.extend(ARTNET_HEADER)
    packet.extend(struct.pack("<H", opcode))
    packet.extend(struct.pack(">H", ARTNET_PROTOCOL_VERSION))
    # Sequence and physical are not used by this sender.
    packet.extend(b"\x00\x00")
    return packet


def build_artdmx_packet(
    universe: int,
    dmx_data: bytes,
    length: int | None = None,
) -> bytes:
    """
    Build an ArtDMX packet.

    Carries the first ``length`` channel bytes of ``dmx_data`` (all of it when
    ``length`` is omitted). The slot count is forced even and at least 2, short
    data is zero padded.
    """
    if length is None:
        length = len(dmx_data)
    length = padded_length(length)
    payload = bytes(dmx_data[:length]).ljust(length, b"\x00")

    packet = _preamble(ARTNET_OPCODE_DMX)
    # SubUni then Net: low byte first.
    packet.extend(struct.pack("<H", universe & 0x7FFF))
    # Length is big-endian per Art-Net spec.
    packet.extend(struct.pack(">H", length))
    packet.extend(payload)
    return bytes(packet)


def build_trigger_packet(oem: int, key: int, subkey: int) -> bytes:
    """
    Build an ArtTrigger packet.

    The 512-byte payload is manufacturer specific and is sent zero filled.
    """
    packet = _preamble(ARTNET_OPCODE_TRIGGER)
    packet.extend(struct.pack(">H", oem & 0xFFFF))
    packet.extend(bytes([key & 0xFF, subkey & 0xFF]))
    packet.extend(bytes(TRIGGER_PAYLOAD_SIZE))
    return bytes(packet)
