from __future__ import annotations

from typing import Iterable


CRC16_POLY = 0x1021
CRC16_INIT = 0x1D0F


def crc16_ccitt(data: bytes) -> bytes:
    crc = CRC16_INIT
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = (crc << 1) ^ CRC16_POLY
            else:
                crc <<= 1
    return (crc & 0xFFFF).to_bytes(2, byteorder="big")


def get_bit(byte_value: int, bit_index: int) -> bool:
    if bit_index < 0 or bit_index > 7:
        raise ValueError("bit_index must be between 0 and 7")
    return bool(byte_value & (1 << bit_index))


def get_bits(value: int, shift: int, width: int) -> int:
    return (value >> shift) & ((1 << width) - 1)


def uint_be(data: Iterable[int] | bytes) -> int:
    return int.from_bytes(bytes(data), byteorder="big")


def sensor_id_hex(raw: bytes) -> str:
    return bytes(raw).hex().upper()


def sensor_id_bytes(sensor_id: str | bytes, size: int = 6) -> bytes:
    if isinstance(sensor_id, (bytes, bytearray)):
        raw = bytes(sensor_id)
    else:
        try:
            raw = bytes.fromhex(sensor_id.strip())
        except ValueError as exc:
            raise ValueError(f"sensor id {sensor_id!r} is not hex") from exc
    if len(raw) != size:
        raise ValueError(f"sensor id must be {size} bytes, got {len(raw)}")
    return raw
