"""
Parameter registry for business message parameters.

Every parameter in a business message is identified by a 14-bit type code.
The upper 3 bits are the feature bits and the lower 11 bits the code bits;
together they select a descriptor that knows the parameter's name, unit,
fixed byte length and how to turn its bytes into a ``ParamValue``.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterator, Mapping, Optional

from lpmp.core.binary import get_bits
from lpmp.errors import TypeMismatchError, UnknownParameterError
from lpmp.parsing.params.values import ParamValue, ValueKind

TYPE_CODE_BITS = 14
TYPE_CODE_MASK = (1 << TYPE_CODE_BITS) - 1

DecodeFunc = Callable[[bytes], ParamValue]


def _require_length(data: bytes, expected: int) -> None:
    if len(data) != expected:
        raise TypeMismatchError(f"expected {expected} bytes, got {len(data)}")


def decode_float32(data: bytes) -> ParamValue:
    _require_length(data, 4)
    return ParamValue.float32(struct.unpack("<f", data)[0])


def decode_uint32(data: bytes) -> ParamValue:
    _require_length(data, 4)
    return ParamValue.uint32(int.from_bytes(data, "little"))


def decode_uint16(data: bytes) -> ParamValue:
    _require_length(data, 2)
    return ParamValue.uint16(int.from_bytes(data, "little"))


def decode_uint16_as_float(data: bytes) -> ParamValue:
    _require_length(data, 2)
    return ParamValue.float32(float(int.from_bytes(data, "little")))


def decode_uint8(data: bytes) -> ParamValue:
    _require_length(data, 1)
    return ParamValue.uint8(data[0])


def decode_status(data: bytes) -> ParamValue:
    _require_length(data, 1)
    return ParamValue.status(data[0])


@dataclass(frozen=True)
class ParamKey:
    feature_bits: int
    code_bits: int

    def __post_init__(self) -> None:
        if not 0 <= self.feature_bits <= 0x07:
            raise ValueError("feature_bits must fit in 3 bits")
        if not 0 <= self.code_bits <= 0x7FF:
            raise ValueError("code_bits must fit in 11 bits")

    @classmethod
    def from_type_code(cls, type_code: int) -> "ParamKey":
        type_code &= TYPE_CODE_MASK
        return cls(feature_bits=get_bits(type_code, 11, 3), code_bits=get_bits(type_code, 0, 11))

    @classmethod
    def from_field_header(cls, header: int) -> "ParamKey":
        return cls.from_type_code(header >> 2)

    @property
    def type_code(self) -> int:
        return (self.feature_bits << 11) | self.code_bits

    def __str__(self) -> str:
        return f"{self.feature_bits:03b}/{self.code_bits:011b}"


@dataclass(frozen=True)
class ParamDescriptor:
    name: str
    unit: str
    byte_length: int
    kind: ValueKind
    decoder: DecodeFunc

    def decode(self, data: bytes) -> ParamValue:
        """
        Decode a raw value slice.

        Raises:
            TypeMismatchError: ``data`` is not exactly ``byte_length`` bytes.
        """
        data = bytes(data)
        _require_length(data, self.byte_length)
        return self.decoder(data)


def _entry(feature: int, code: int, name: str, unit: str, length: int, kind: ValueKind, decoder: DecodeFunc):
    return ParamKey(feature, code), ParamDescriptor(name, unit, length, kind, decoder)


DEFAULT_PARAMS: Mapping[ParamKey, ParamDescriptor] = MappingProxyType(dict([
    _entry(0b000, 0b00000000001, "length", "m", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000000010, "battery-remaining", "%", 2, ValueKind.UINT16, decode_uint16),
    _entry(0b000, 0b00000000011, "voltage", "V", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000000100, "state", "status", 1, ValueKind.STATUS, decode_status),
    _entry(0b000, 0b00000000101, "ambient-temperature", "℃", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000000110, "amount-of-substance", "mol", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000000111, "luminous-intensity", "cd", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000001000, "temperature", "℃", 4, ValueKind.FLOAT32, decode_float32),
    _entry(0b000, 0b00000001001, "humidity", "%RH", 2, ValueKind.FLOAT32, decode_uint16_as_float),
    _entry(0b000, 0b00000111000, "heartbeat", "", 1, ValueKind.UINT8, decode_uint8),
    _entry(0b000, 0b00000111001, "battery-level", "%", 1, ValueKind.UINT8, decode_uint8),
    _entry(0b000, 0b00010100011, "water-level", "m", 4, ValueKind.FLOAT32, decode_float32),
]))


class ParameterRegistry:
    """
    Read-only lookup table from ``ParamKey`` to ``ParamDescriptor``.

    Instances are immutable after construction and safe to share between
    threads. Names must be unique so the frame encoder can look parameters
    up by name.
    """

    def __init__(self, entries: Optional[Mapping[ParamKey, ParamDescriptor]] = None) -> None:
        table = dict(DEFAULT_PARAMS if entries is None else entries)
        by_name: dict[str, ParamKey] = {}
        for key, descriptor in table.items():
            if descriptor.name in by_name:
                raise ValueError(f"duplicate parameter name {descriptor.name!r}")
            by_name[descriptor.name] = key
        self._table: Mapping[ParamKey, ParamDescriptor] = MappingProxyType(table)
        self._by_name: Mapping[str, ParamKey] = MappingProxyType(by_name)

    def lookup(self, type_code: int) -> Optional[ParamDescriptor]:
        """Return the descriptor for a 14-bit type code, or ``None``."""
        return self._table.get(ParamKey.from_type_code(type_code))

    def lookup_field_header(self, header: int) -> Optional[ParamDescriptor]:
        """Return the descriptor for a raw 16-bit parameter field header, or ``None``."""
        return self._table.get(ParamKey.from_field_header(header))

    def by_name(self, name: str) -> tuple[ParamKey, ParamDescriptor]:
        key = self._by_name.get(name)
        if key is None:
            raise UnknownParameterError(f"unknown parameter: {name}")
        return key, self._table[key]

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def __contains__(self, key: object) -> bool:
        return key in self._table

    def __iter__(self) -> Iterator[ParamKey]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)
