"""
Parameter registry and typed value decoding.

Parameters are keyed by the feature and code bits of their 14-bit type code.
Each descriptor decodes a fixed-length little-endian slice into a
``ParamValue``.
"""
from lpmp.parsing.params.registry import (
    DEFAULT_PARAMS,
    ParamDescriptor,
    ParameterRegistry,
    ParamKey,
    decode_float32,
    decode_status,
    decode_uint8,
    decode_uint16,
    decode_uint16_as_float,
    decode_uint32,
)
from lpmp.parsing.params.values import DeviceStatus, ParamValue, ValueKind

__all__ = [
    "DEFAULT_PARAMS",
    "DeviceStatus",
    "ParamDescriptor",
    "ParameterRegistry",
    "ParamKey",
    "ParamValue",
    "ValueKind",
    "decode_float32",
    "decode_status",
    "decode_uint8",
    "decode_uint16",
    "decode_uint16_as_float",
    "decode_uint32",
]
