"""Tests for frame validation, header and fragment sub-header parsing."""
import pytest

from lpmp.core.binary import crc16_ccitt
from lpmp.errors import ChecksumError, LengthError
from lpmp.parsing.frame import (
    MIN_FRAME_LEN,
    FragmentPosition,
    FragmentRecord,
    PacketType,
    SensorFrame,
    SensorFrameHeader,
    seal_frame,
    validate_frame,
)

SENSOR = bytes.fromhex("238A08262319")


def _frame(header: int, payload: bytes = b"") -> bytes:
    return seal_frame(SENSOR + bytes([header]) + payload)


def test_validate_minimal_frame():
    frame = _frame(0x00)
    assert len(frame) == MIN_FRAME_LEN
    assert validate_frame(frame) == frame[:-2]


def test_validate_too_short():
    with pytest.raises(LengthError):
        validate_frame(_frame(0x00)[:-1])


def test_validate_bad_checksum():
    frame = bytearray(_frame(0x10, b"\x02\x8c\x00\x00\xc0\x3f"))
    frame[-1] ^= 0x01
    with pytest.raises(ChecksumError):
        validate_frame(bytes(frame))


def test_every_single_bit_flip_is_detected():
    frame = _frame(0x20, bytes(range(12)))
    validate_frame(frame)
    for index in range(len(frame)):
        for bit in range(8):
            corrupted = bytearray(frame)
            corrupted[index] ^= 1 << bit
            with pytest.raises(ChecksumError):
                validate_frame(bytes(corrupted))


def test_pluggable_checksum():
    def xor16(data: bytes) -> bytes:
        acc = 0
        for b in data:
            acc ^= b
        return bytes([0, acc])

    frame = seal_frame(SENSOR + b"\x00", xor16)
    assert validate_frame(frame, xor16) == SENSOR + b"\x00"
    with pytest.raises(ChecksumError):
        validate_frame(frame)


def test_seal_uses_crc16_by_default():
    body = SENSOR + b"\x00"
    assert seal_frame(body)[-2:] == crc16_ccitt(body)


def test_header_from_byte():
    header = SensorFrameHeader.from_byte(0b0011_1010)
    assert header.param_count == 3
    assert header.fragment_indicator is True
    assert header.packet_type == PacketType.ALARM
    assert header.is_business


def test_header_to_byte():
    header = SensorFrameHeader(param_count=15, fragment_indicator=False, packet_type=PacketType.CONTROL)
    assert header.to_byte() == 0xF4
    assert not header.is_business


def test_sensor_frame_parse():
    frame = SensorFrame.parse(_frame(0x10, b"\xaa\xbb"))
    assert frame.sensor_id == "238A08262319"
    assert frame.header.param_count == 1
    assert frame.payload == b"\xaa\xbb"
    assert frame.payload_offset == 7
    assert not frame.is_fragment


@pytest.mark.parametrize(
    "flag, expected",
    [
        (0b00, FragmentPosition.FIRST),
        (0b01, FragmentPosition.MIDDLE),
        (0b10, FragmentPosition.MIDDLE),
        (0b11, FragmentPosition.LAST),
        (0xFC, FragmentPosition.FIRST),
    ],
)
def test_fragment_position_from_flag_byte(flag, expected):
    assert FragmentPosition.from_flag_byte(flag) == expected


def test_fragment_position_first_and_last():
    both = FragmentPosition.FIRST | FragmentPosition.LAST
    assert both.is_first and both.is_last
    assert not FragmentPosition.MIDDLE.is_first
    assert not FragmentPosition.MIDDLE.is_last


def test_fragment_record_from_frame():
    frame = SensorFrame.parse(_frame(0x08, bytes([0xC5, 0x83, 0x03]) + b"data"))
    record = FragmentRecord.from_frame(frame)
    assert record.sensor_id == "238A08262319"
    assert record.business_seq == 0x05
    assert record.fragment_seq == 0x03
    assert record.position == FragmentPosition.LAST
    assert record.payload == b"data"


def test_fragment_record_too_short():
    frame = SensorFrame.parse(_frame(0x08, b"\x01\x02"))
    with pytest.raises(LengthError):
        FragmentRecord.from_frame(frame)
