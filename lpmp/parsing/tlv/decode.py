"""
TLV codec for business message parameter lists.

Each parameter starts with a 2-byte big-endian field header. Bits 15-2 hold
the 14-bit type code and bits 1-0 the length flag, which says where the
value's length comes from:

    0 -> the value is 4 bytes
    1 -> the next byte is the length
    2 -> the next 2 bytes (big-endian) are the length
    3 -> the next 3 bytes (big-endian) are the length
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from lpmp.core.binary import uint_be
from lpmp.errors import BoundsError

FIELD_HEADER_LEN = 2
FIXED_VALUE_LEN = 4

# Number of explicit length bytes that follow the field header, per flag.
LENGTH_FLAG_BYTES: dict[int, int] = {0: 0, 1: 1, 2: 2, 3: 3}


@dataclass(frozen=True)
class ParameterField:
    """
    One parameter slice from a parameter list.

    Attributes:
        header: The raw 16-bit field header.
        data: The value bytes, exactly as long as the resolved length.
        offset: Index of the field header inside the walked region.
    """
    header: int
    data: bytes
    offset: int

    @property
    def type_code(self) -> int:
        return self.header >> 2

    @property
    def length_flag(self) -> int:
        return self.header & 0x03


def split_field_header(header: int) -> tuple[int, int]:
    return header >> 2, header & 0x03


def pack_field_header(type_code: int, length_flag: int) -> int:
    if not 0 <= type_code < (1 << 14):
        raise ValueError("type_code must fit in 14 bits")
    if length_flag not in LENGTH_FLAG_BYTES:
        raise ValueError("length_flag must be between 0 and 3")
    return (type_code << 2) | length_flag


def read_value_length(data: bytes, idx: int, length_flag: int, end: int) -> tuple[int, int]:
    """
    Resolve a value length from its length flag.

    Args:
        data: The region being walked.
        idx: Index just past the field header.
        length_flag: The 2-bit length flag.
        end: Index one past the last byte that may be read.

    Returns:
        ``(length, idx)`` where ``idx`` points past any explicit length bytes.

    Raises:
        BoundsError: The explicit length bytes run past ``end``.
    """
    width = LENGTH_FLAG_BYTES[length_flag]
    if width == 0:
        return FIXED_VALUE_LEN, idx
    if idx + width > end:
        raise BoundsError(f"length field at offset {idx} needs {width} bytes, {end - idx} left")
    return uint_be(data[idx: idx + width]), idx + width


def iter_parameter_fields(data: bytes, count: int, start: int = 0, end: int | None = None) -> Iterator[ParameterField]:
    """
    Walk ``count`` parameter fields of ``data[start:end]``.

    Fields are yielded as they are read, so a caller that stops on
    ``BoundsError`` keeps everything yielded before it.

    Raises:
        BoundsError: A field header, length field or value would be read
            past ``end``. The walk stops there.
    """
    data = bytes(data)
    end = len(data) if end is None else min(end, len(data))
    idx = start
    for _ in range(count):
        if idx + FIELD_HEADER_LEN > end:
            raise BoundsError(f"field header at offset {idx} runs past end of region ({end})")
        header = uint_be(data[idx: idx + FIELD_HEADER_LEN])
        offset = idx
        idx += FIELD_HEADER_LEN
        length, idx = read_value_length(data, idx, header & 0x03, end)
        if idx + length > end:
            raise BoundsError(
                f"value of type 0x{header >> 2:04X} at offset {idx} declares {length} bytes, {end - idx} left"
            )
        yield ParameterField(header=header, data=data[idx: idx + length], offset=offset)
        idx += length


def encode_parameter_fields(fields: Iterable[tuple[int, bytes]]) -> bytes:
    """
    Encode ``(type_code, value)`` pairs as a business parameter list.

    4-byte values use the fixed-length flag; others get the narrowest
    explicit length field that fits.
    """
    buf = bytearray()
    for type_code, value in fields:
        value = bytes(value)
        if len(value) == FIXED_VALUE_LEN:
            flag = 0
        elif len(value) <= 0xFF:
            flag = 1
        elif len(value) <= 0xFFFF:
            flag = 2
        elif len(value) <= 0xFFFFFF:
            flag = 3
        else:
            raise ValueError("value too long for a 24-bit length field")
        buf.extend(pack_field_header(type_code, flag).to_bytes(2, "big"))
        width = LENGTH_FLAG_BYTES[flag]
        if width:
            buf.extend(len(value).to_bytes(width, "big"))
        buf.extend(value)
    return bytes(buf)
