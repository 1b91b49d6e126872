"""
Control frame builder for the general parameter query/set message.

Constructs complete frames with the structure:
``[sensor id: 6] [header] [ctrl byte] [parameter list] [CRC16]``

The header carries the parameter count, a clear fragmentation indicator and
the control packet type. The control byte packs a 7-bit control type and the
request/set flag. The parameter list is only present when setting: each entry
is a little-endian field header followed by the value's fixed-length data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from lpmp.core.binary import crc16_ccitt, sensor_id_bytes
from lpmp.errors import LengthError, TypeMismatchError
from lpmp.parsing.frame import PacketType, SensorFrameHeader, seal_frame
from lpmp.parsing.frame.frame import ChecksumFunc
from lpmp.parsing.params import ParameterRegistry
from lpmp.parsing.tlv import pack_field_header

# Control types (7 bits).
CTRL_TYPE_GENERAL_PARAMS = 0x03

# Request/set flag.
REQUEST_QUERY = 0
REQUEST_SET = 1

# Parameter count sent when querying every general parameter.
QUERY_ALL_COUNT = 0x0F

# The parameter count field is 4 bits wide.
MAX_BATCH_PARAMS = 15

# In control frames the length flag states the fixed value length itself.
CONTROL_LENGTH_FLAGS: dict[int, int] = {4: 0, 1: 1, 2: 2, 3: 3}


def build_ctrl_byte(ctrl_type: int, request_set: int) -> int:
    if not 0 <= ctrl_type <= 0x7F:
        raise ValueError("ctrl_type must fit in 7 bits")
    return ((ctrl_type & 0x7F) << 1) | (request_set & 0x01)


def build_general_param_frame(
    sensor_id: str | bytes,
    request_set: int,
    params: Optional[Mapping[str, bytes]] = None,
    registry: Optional[ParameterRegistry] = None,
    ctrl_type: int = CTRL_TYPE_GENERAL_PARAMS,
    checksum: ChecksumFunc = crc16_ccitt,
) -> bytes:
    """
    Build a general parameter query/set frame.

    Args:
        sensor_id: The 6-byte sensor id, as bytes or a hex string.
        request_set: ``REQUEST_QUERY`` to query every parameter (``params``
            is ignored), ``REQUEST_SET`` to send the given parameters.
        params: Parameter name -> raw value bytes, in sending order.
        registry: Registry used to resolve names; the default table if omitted.
        ctrl_type: The 7-bit control type.
        checksum: Checksum used to seal the frame; must match the receiver's.

    Returns:
        The complete frame, checksum included.

    Raises:
        ValueError: Bad sensor id, or a parameter count of 0 or above
            ``MAX_BATCH_PARAMS`` when setting.
        UnknownParameterError: A name is not in the registry.
        TypeMismatchError: A value's length differs from its descriptor's.
    """
    raw_id = sensor_id_bytes(sensor_id)
    if registry is None:
        registry = ParameterRegistry()

    parameter_list = b""
    if request_set == REQUEST_QUERY:
        count = QUERY_ALL_COUNT
    elif request_set == REQUEST_SET:
        params = params or {}
        count = len(params)
        if count == 0 or count > MAX_BATCH_PARAMS:
            raise ValueError(f"parameter count must be 1-{MAX_BATCH_PARAMS}, got {count}")
        buf = bytearray()
        for name, value in params.items():
            key, descriptor = registry.by_name(name)
            value = bytes(value)
            if len(value) != descriptor.byte_length:
                raise TypeMismatchError(
                    f"parameter {name!r} needs {descriptor.byte_length} bytes, got {len(value)}"
                )
            flag = CONTROL_LENGTH_FLAGS.get(descriptor.byte_length)
            if flag is None:
                raise TypeMismatchError(f"parameter {name!r} has no fixed-length control encoding")
            buf.extend(pack_field_header(key.type_code, flag).to_bytes(2, "little"))
            buf.extend(value)
        parameter_list = bytes(buf)
    else:
        raise ValueError("request_set must be 0 (query) or 1 (set)")

    header = SensorFrameHeader(param_count=count, fragment_indicator=False, packet_type=PacketType.CONTROL)
    body = raw_id + bytes([header.to_byte(), build_ctrl_byte(ctrl_type, request_set)]) + parameter_list
    return seal_frame(body, checksum)


def build_query_frame(sensor_id: str | bytes, checksum: ChecksumFunc = crc16_ccitt) -> bytes:
    """Build a frame querying every general parameter of a sensor."""
    return build_general_param_frame(sensor_id, REQUEST_QUERY, checksum=checksum)


def build_set_frame(
    sensor_id: str | bytes,
    params: Mapping[str, bytes],
    registry: Optional[ParameterRegistry] = None,
    checksum: ChecksumFunc = crc16_ccitt,
) -> bytes:
    """Build a frame setting the given parameters on a sensor."""
    return build_general_param_frame(sensor_id, REQUEST_SET, params, registry, checksum=checksum)


@dataclass(frozen=True)
class ControlContent:
    """
    The control sub-layer of an inbound control report.

    Attributes:
        ctrl_type: The 7-bit control type.
        checksum: Checksum used to seal the frame; must match the receiver's.
        request_set: The request/set flag bit.
        type_codes: The big-endian type codes listed after the control byte,
            at most as many as the header's parameter count.
    """
    ctrl_type: int
    request_set: bool
    type_codes: list[int] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: bytes, param_count: int) -> "ControlContent":
        if len(payload) < 1:
            raise LengthError("control payload is empty")
        head = payload[0]
        available = (len(payload) - 1) // 2
        count = min(available, param_count)
        codes = [int.from_bytes(payload[1 + i * 2: 3 + i * 2], "big") for i in range(count)]
        return cls(ctrl_type=head >> 1, request_set=bool(head & 0x01), type_codes=codes)
