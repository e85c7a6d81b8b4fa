"""
HDHomeRun wire format.

Every packet, UDP or TCP, is framed as:

    +--------+--------+-----------------+---------+
    | type   | length | payload (TLVs)  | crc32   |
    | u16 BE | u16 BE | `length` bytes  | u32 LE  |
    +--------+--------+-----------------+---------+

The CRC is the standard Ethernet CRC-32 of header + payload. Each TLV is
a one-byte tag, a 7-bit varlen length (one byte up to 127, two bytes
above) and the value.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass, field
from typing import Optional

from ..discovery_protocol import DiscoveredTuner

HDHOMERUN_DISCOVER_UDP_PORT = 65001
HDHOMERUN_CONTROL_TCP_PORT = 65001

HEADER_SIZE = 4
CRC_SIZE = 4
MAX_PAYLOAD = 0xFFFF

# Packet types
TYPE_DISCOVER_REQ = 0x0002
TYPE_DISCOVER_RPY = 0x0003
TYPE_GETSET_REQ = 0x0004
TYPE_GETSET_RPY = 0x0005

# Tags
TAG_DEVICE_TYPE = 0x01
TAG_DEVICE_ID = 0x02
TAG_GETSET_NAME = 0x03
TAG_GETSET_VALUE = 0x04
TAG_ERROR_MESSAGE = 0x05
TAG_TUNER_COUNT = 0x10


class PacketError(ValueError):
    """Malformed, truncated or corrupted packet."""


class ControlError(RuntimeError):
    """The device answered a get/set request with an error message."""


@dataclass
class Packet:
    type: int
    tags: list[tuple[int, bytes]] = field(default_factory=list)

    def get(self, tag: int) -> Optional[bytes]:
        for t, value in self.tags:
            if t == tag:
                return value
        return None

    def get_u32(self, tag: int) -> Optional[int]:
        value = self.get(tag)
        if value is None or len(value) != 4:
            return None
        return struct.unpack(">I", value)[0]

    def get_string(self, tag: int) -> Optional[str]:
        value = self.get(tag)
        if value is None:
            return None
        return value.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


def encode_varlen(length: int) -> bytes:
    if length < 0 or length > 0x7FFF:
        raise PacketError(f"TLV length out of range: {length}")
    if length <= 127:
        return bytes([length])
    return bytes([(length & 0x7F) | 0x80, length >> 7])


def _decode_varlen(payload: bytes, pos: int) -> tuple[int, int]:
    if pos >= len(payload):
        raise PacketError("truncated TLV length")
    length = payload[pos]
    pos += 1
    if length & 0x80:
        if pos >= len(payload):
            raise PacketError("truncated TLV length")
        length = (length & 0x7F) | (payload[pos] << 7)
        pos += 1
    return length, pos


def encode_packet(packet_type: int, tags: list[tuple[int, bytes]]) -> bytes:
    payload = b"".join(bytes([tag]) + encode_varlen(len(value)) + value for tag, value in tags)
    if len(payload) > MAX_PAYLOAD:
        raise PacketError("payload too large")
    frame = struct.pack(">HH", packet_type, len(payload)) + payload
    return frame + struct.pack("<I", zlib.crc32(frame) & 0xFFFFFFFF)


def frame_length(header: bytes) -> int:
    """Total frame size announced by a 4-byte header (for stream reads)."""
    if len(header) < HEADER_SIZE:
        raise PacketError("truncated header")
    _, length = struct.unpack(">HH", header[:HEADER_SIZE])
    return HEADER_SIZE + length + CRC_SIZE


def decode_packet(data: bytes) -> Packet:
    if len(data) < HEADER_SIZE + CRC_SIZE:
        raise PacketError(f"packet too short ({len(data)} bytes)")

    packet_type, length = struct.unpack(">HH", data[:HEADER_SIZE])
    end = HEADER_SIZE + length
    if len(data) < end + CRC_SIZE:
        raise PacketError(f"packet truncated: expected {end + CRC_SIZE} bytes, got {len(data)}")

    (crc,) = struct.unpack("<I", data[end:end + CRC_SIZE])
    if crc != zlib.crc32(data[:end]) & 0xFFFFFFFF:
        raise PacketError("CRC mismatch")

    payload = data[HEADER_SIZE:end]
    tags: list[tuple[int, bytes]] = []
    pos = 0
    while pos < len(payload):
        tag = payload[pos]
        length, pos = _decode_varlen(payload, pos + 1)
        if pos + length > len(payload):
            raise PacketError(f"tag 0x{tag:02X} overruns payload")
        tags.append((tag, payload[pos:pos + length]))
        pos += length

    return Packet(packet_type, tags)


# ----------------------------------------------------------------------
# Discovery

def discover_request(device_type: int, device_id: int) -> bytes:
    return encode_packet(TYPE_DISCOVER_REQ, [
        (TAG_DEVICE_TYPE, struct.pack(">I", device_type)),
        (TAG_DEVICE_ID, struct.pack(">I", device_id)),
    ])


def _legacy_tuner_count(device_id: int) -> int:
    # Old firmware omits TAG_TUNER_COUNT; the product line is in the top bits.
    return 1 if (device_id >> 20) == 0x102 else 2


def parse_discover_reply(packet: Packet, ip_addr: int) -> DiscoveredTuner:
    if packet.type != TYPE_DISCOVER_RPY:
        raise PacketError(f"not a discover reply (type 0x{packet.type:04X})")

    device_type = packet.get_u32(TAG_DEVICE_TYPE)
    device_id = packet.get_u32(TAG_DEVICE_ID)
    if device_type is None or device_id is None:
        raise PacketError("discover reply without device type/id")

    tuner_count_raw = packet.get(TAG_TUNER_COUNT)
    if tuner_count_raw:
        tuner_count = tuner_count_raw[0]
    else:
        tuner_count = _legacy_tuner_count(device_id)

    return DiscoveredTuner(
        device_id=device_id,
        ip_addr=ip_addr,
        device_type=device_type,
        tuner_count=tuner_count,
    )


# ----------------------------------------------------------------------
# Control (get/set)

def getset_request(name: str, value: Optional[str] = None) -> bytes:
    tags = [(TAG_GETSET_NAME, name.encode("utf-8") + b"\x00")]
    if value is not None:
        tags.append((TAG_GETSET_VALUE, value.encode("utf-8") + b"\x00"))
    return encode_packet(TYPE_GETSET_REQ, tags)


def parse_getset_reply(packet: Packet) -> str:
    if packet.type != TYPE_GETSET_RPY:
        raise PacketError(f"not a get/set reply (type 0x{packet.type:04X})")

    error = packet.get_string(TAG_ERROR_MESSAGE)
    if error is not None:
        raise ControlError(error)

    value = packet.get_string(TAG_GETSET_VALUE)
    if value is None:
        raise PacketError("get/set reply without value")
    return value
