"""
Decoder for unfragmented business payloads (monitoring and alarm messages).

The payload after the header byte is a self-describing parameter list. The
decoder walks it field by field and turns every field it recognises into a
``Reading``. One bad parameter never costs its siblings: unknown type codes
and length mismatches skip only that parameter. A field that runs past the
end of the frame stops the walk, but readings produced before it are kept.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from lpmp.errors import BoundsError, TypeMismatchError, UnknownParameterError
from lpmp.parsing.frame import SensorFrame, SensorFrameHeader
from lpmp.parsing.params import ParameterRegistry, ParamKey, ParamValue
from lpmp.parsing.tlv import iter_parameter_fields
from lpmp.runtime.logging import DecodeStats, log_event

logger = logging.getLogger(__name__)


class Reading(NamedTuple):
    device_name: str
    parameter: str
    value: ParamValue


@dataclass
class DecodeResult:
    """
    Outcome of decoding one business frame.

    Attributes:
        sensor_id: Uppercase hex sensor id from the frame.
        device_name: Logical device name the sensor id resolved to.
        header: The parsed frame header.
        readings: Readings in the order their parameters appeared.
        warnings: Parameters skipped because their type code is unknown.
        errors: Parameters that failed to decode, and the bounds failure
            that stopped the walk, if any.
        complete: ``True`` when every declared parameter was walked.
        ignored: ``True`` when the packet type is not business data.
    """
    sensor_id: str
    device_name: str
    header: SensorFrameHeader
    readings: list[Reading] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    complete: bool = True
    ignored: bool = False


class BusinessDecoder:
    def __init__(
        self,
        registry: ParameterRegistry,
        stats: Optional[DecodeStats] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.stats = stats or DecodeStats()
        self.log = log or logger

    def decode(self, frame: SensorFrame, device_name: str) -> DecodeResult:
        header = frame.header
        result = DecodeResult(sensor_id=frame.sensor_id, device_name=device_name, header=header)
        if not header.is_business:
            result.ignored = True
            log_event(self.log, logging.DEBUG, "frame_ignored_packet_type", {
                "sensor_id": frame.sensor_id,
                "packet_type": header.packet_type,
            })
            return result

        walked = 0
        try:
            for param in iter_parameter_fields(frame.body, header.param_count, start=frame.payload_offset):
                walked += 1
                descriptor = self.registry.lookup(param.type_code)
                if descriptor is None:
                    exc = UnknownParameterError(
                        f"no parameter registered for type 0x{param.type_code:04X} "
                        f"({ParamKey.from_type_code(param.type_code)})"
                    )
                    self.stats.record_error(exc)
                    result.warnings.append(str(exc))
                    log_event(self.log, logging.WARNING, "parameter_unknown", {
                        "sensor_id": frame.sensor_id,
                        "type_code": param.type_code,
                        "data": param.data,
                    })
                    continue
                try:
                    value = descriptor.decode(param.data)
                except TypeMismatchError as exc:
                    self.stats.record_error(exc)
                    result.errors.append(f"{descriptor.name}: {exc}")
                    log_event(self.log, logging.WARNING, "parameter_decode_failed", {
                        "sensor_id": frame.sensor_id,
                        "parameter": descriptor.name,
                        "error": str(exc),
                        "data": param.data,
                    })
                    continue
                result.readings.append(Reading(device_name, descriptor.name, value))
                log_event(self.log, logging.DEBUG, "parameter_decoded", {
                    "device": device_name,
                    "parameter": descriptor.name,
                    "value": str(value),
                    "unit": descriptor.unit,
                })
        except BoundsError as exc:
            self.stats.record_error(exc)
            result.complete = False
            result.errors.append(str(exc))
            log_event(self.log, logging.WARNING, "frame_truncated", {
                "sensor_id": frame.sensor_id,
                "declared": header.param_count,
                "walked": walked,
                "error": str(exc),
            })

        self.stats.incr("readings", len(result.readings))
        return result
