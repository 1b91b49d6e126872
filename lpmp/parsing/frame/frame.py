"""
Wire frame validation and header parsing.

A frame on the wire is laid out as::

    [sensor id: 6] [header: 1] [payload ...] [checksum: 2, big-endian]

The header byte packs the parameter count (bits 7-4), the fragmentation
indicator (bit 3) and the packet type (bits 2-0). When the fragmentation
indicator is set, the payload starts with a three byte fragment sub-header
(business sequence, fragment sequence, flag byte) followed by a slice of the
SDU being transferred.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable

from lpmp.core.binary import crc16_ccitt, get_bit, get_bits, sensor_id_hex
from lpmp.errors import ChecksumError, LengthError

ChecksumFunc = Callable[[bytes], bytes]

SENSOR_ID_LEN = 6
HEADER_LEN = 1
CHECKSUM_LEN = 2
MIN_FRAME_LEN = SENSOR_ID_LEN + HEADER_LEN + CHECKSUM_LEN
FRAGMENT_HEADER_LEN = 3


class PacketType(enum.IntEnum):
    MONITORING = 0
    MONITORING_RESPONSE = 1
    ALARM = 2
    ALARM_RESPONSE = 3
    CONTROL = 4
    CONTROL_RESPONSE = 5
    FRAGMENT_ACK = 6
    RESERVED = 7


BUSINESS_PACKET_TYPES = frozenset({PacketType.MONITORING, PacketType.ALARM})


class FragmentPosition(enum.Flag):
    """Where a fragment sits inside its SDU. Middle fragments carry no bit."""
    MIDDLE = 0
    FIRST = enum.auto()
    LAST = enum.auto()

    @classmethod
    def from_flag_byte(cls, value: int) -> "FragmentPosition":
        bits = value & 0x03
        if bits == 0b00:
            return cls.FIRST
        if bits == 0b11:
            return cls.LAST
        return cls.MIDDLE

    @property
    def is_first(self) -> bool:
        return bool(self & FragmentPosition.FIRST)

    @property
    def is_last(self) -> bool:
        return bool(self & FragmentPosition.LAST)


def validate_frame(frame: bytes, checksum: ChecksumFunc = crc16_ccitt) -> bytes:
    """
    Check a frame's length and trailing checksum.

    Args:
        frame: The complete frame including the 2-byte checksum.
        checksum: Function producing the 2-byte big-endian checksum of a body.

    Returns:
        The frame body with the checksum stripped.

    Raises:
        LengthError: The frame is shorter than ``MIN_FRAME_LEN``.
        ChecksumError: The trailing checksum does not match.
    """
    frame = bytes(frame)
    if len(frame) < MIN_FRAME_LEN:
        raise LengthError(f"frame is {len(frame)} bytes, need at least {MIN_FRAME_LEN}")
    body, trailer = frame[:-CHECKSUM_LEN], frame[-CHECKSUM_LEN:]
    expected = checksum(body)
    if trailer != expected:
        raise ChecksumError(f"checksum mismatch: got {trailer.hex()}, expected {expected.hex()}")
    return body


def seal_frame(body: bytes, checksum: ChecksumFunc = crc16_ccitt) -> bytes:
    """Append the checksum of ``body`` to it."""
    body = bytes(body)
    return body + checksum(body)


@dataclass(frozen=True)
class SensorFrameHeader:
    param_count: int
    fragment_indicator: bool
    packet_type: int

    @classmethod
    def from_byte(cls, value: int) -> "SensorFrameHeader":
        return cls(
            param_count=get_bits(value, 4, 4),
            fragment_indicator=get_bit(value, 3),
            packet_type=get_bits(value, 0, 3),
        )

    def to_byte(self) -> int:
        if not 0 <= self.param_count <= 0x0F:
            raise ValueError("param_count must fit in 4 bits")
        if not 0 <= self.packet_type <= 0x07:
            raise ValueError("packet_type must fit in 3 bits")
        return (self.param_count << 4) | (int(self.fragment_indicator) << 3) | self.packet_type

    @property
    def is_business(self) -> bool:
        return self.packet_type in BUSINESS_PACKET_TYPES


@dataclass(frozen=True)
class SensorFrame:
    sensor_id: str
    header: SensorFrameHeader
    payload: bytes
    body: bytes

    @classmethod
    def parse(cls, raw: bytes, checksum: ChecksumFunc = crc16_ccitt) -> "SensorFrame":
        body = validate_frame(raw, checksum)
        return cls.from_body(body)

    @classmethod
    def from_body(cls, body: bytes) -> "SensorFrame":
        if len(body) < SENSOR_ID_LEN + HEADER_LEN:
            raise LengthError("frame body too short to carry a sensor id and header")
        return cls(
            sensor_id=sensor_id_hex(body[:SENSOR_ID_LEN]),
            header=SensorFrameHeader.from_byte(body[SENSOR_ID_LEN]),
            payload=body[SENSOR_ID_LEN + HEADER_LEN:],
            body=body,
        )

    @property
    def payload_offset(self) -> int:
        return SENSOR_ID_LEN + HEADER_LEN

    @property
    def is_fragment(self) -> bool:
        return self.header.fragment_indicator


@dataclass(frozen=True)
class FragmentRecord:
    sensor_id: str
    business_seq: int
    fragment_seq: int
    position: FragmentPosition
    payload: bytes

    @classmethod
    def from_frame(cls, frame: SensorFrame) -> "FragmentRecord":
        data = frame.payload
        if len(data) < FRAGMENT_HEADER_LEN:
            raise LengthError(
                f"fragment from {frame.sensor_id} carries {len(data)} bytes, "
                f"need a {FRAGMENT_HEADER_LEN}-byte fragment header"
            )
        return cls(
            sensor_id=frame.sensor_id,
            business_seq=data[0] & 0x3F,
            fragment_seq=data[1] & 0x7F,
            position=FragmentPosition.from_flag_byte(data[2]),
            payload=bytes(data[FRAGMENT_HEADER_LEN:]),
        )

    def as_dict(self) -> dict:
        return {
            "sensor_id": self.sensor_id,
            "business_seq": self.business_seq,
            "fragment_seq": self.fragment_seq,
            "first": self.position.is_first,
            "last": self.position.is_last,
            "payload": self.payload.hex(),
        }
