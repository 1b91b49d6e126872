"""
The decoding pipeline behind a single object.

``TelemetryDecoder`` owns every piece of mutable decoding state (the
per-sensor reassembly table, the statistics, the logger) together with the
read-only parameter registry and the sensor directory, so several decoders
can live side by side. ``feed`` accepts raw frame bytes and returns the
readings they produce. It never raises a ``DecodeError``: rejected frames
and skipped parameters are logged and counted instead.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from lpmp.core.binary import crc16_ccitt, sensor_id_bytes
from lpmp.devices import SensorDirectory
from lpmp.errors import DecodeError
from lpmp.parsing.business import BusinessDecoder, DecodeResult, Reading
from lpmp.parsing.frame import FragmentRecord, SensorFrame
from lpmp.parsing.frame.frame import ChecksumFunc
from lpmp.parsing.params import ParameterRegistry
from lpmp.reassembly import AssembledUnit, FragmentReassembler, TimerFactory
from lpmp.runtime.config import DecoderSettings, get_settings
from lpmp.runtime.logging import DecodeStats, create_logger, log_event


class SensorResolver(Protocol):
    def resolve(self, sensor_id: str) -> str: ...


class TelemetryDecoder:
    def __init__(
        self,
        resolver: Optional[SensorResolver] = None,
        registry: Optional[ParameterRegistry] = None,
        settings: Optional[DecoderSettings] = None,
        checksum: ChecksumFunc = crc16_ccitt,
        timer_factory: Optional[TimerFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if resolver is None:
            resolver = SensorDirectory.from_map(self.settings.sensor_map, self.settings.sensor_devices)
        self.resolver = resolver
        self.registry = registry if registry is not None else ParameterRegistry()
        self.checksum = checksum
        self.stats = DecodeStats()
        self.logger = logger or create_logger(self.settings.logger_name, self.settings.log_ring_size)
        self.reassembler = FragmentReassembler(
            timeout=self.settings.reassembly_timeout,
            timer_factory=timer_factory,
            stats=self.stats,
            log=self.logger,
        )
        self.business = BusinessDecoder(self.registry, stats=self.stats, log=self.logger)
        self.last_result: Optional[DecodeResult] = None

    def feed(self, raw: bytes) -> list[Reading]:
        """Validate, reassemble if fragmented, and decode one raw frame."""
        self.stats.incr("frames")
        try:
            frame = SensorFrame.parse(raw, self.checksum)
            if not frame.is_fragment:
                return self._decode(frame)
            if not self.settings.reassemble_fragments:
                self.stats.incr("fragments.dropped.disabled")
                log_event(self.logger, logging.INFO, "fragment_skipped", {"sensor_id": frame.sensor_id})
                return []
            record = FragmentRecord.from_frame(frame)
        except DecodeError as exc:
            self._reject(exc, raw)
            return []
        return self.feed_fragment(record)

    def feed_fragment(self, record: FragmentRecord) -> list[Reading]:
        """Feed an already-decoded fragment record to the reassembler."""
        unit = self.reassembler.process(record)
        if unit is None:
            return []
        return self.feed_unit(unit)

    def feed_unit(self, unit: AssembledUnit) -> list[Reading]:
        """Decode a reassembled SDU. It carries its own header and checksum."""
        self.stats.incr("units")
        try:
            raw = sensor_id_bytes(unit.sensor_id) + unit.payload
            frame = SensorFrame.parse(raw, self.checksum)
        except DecodeError as exc:
            self._reject(exc, unit.payload, stage="sdu")
            return []
        return self._decode(frame)

    def _decode(self, frame: SensorFrame) -> list[Reading]:
        try:
            device_name = self.resolver.resolve(frame.sensor_id)
        except DecodeError as exc:
            self._reject(exc, frame.body)
            return []
        result = self.business.decode(frame, device_name)
        self.last_result = result
        if result.ignored:
            self.stats.incr("frames.ignored")
        else:
            self.stats.incr("frames.decoded")
        if not result.complete:
            self.stats.incr("frames.partial")
        return list(result.readings)

    def _reject(self, exc: DecodeError, raw: bytes, stage: str = "frame") -> None:
        self.stats.incr("frames.rejected")
        self.stats.record_error(exc)
        log_event(self.logger, logging.WARNING, f"{stage}_rejected", {
            "error": type(exc).__name__,
            "message": str(exc),
            "raw": bytes(raw),
        })

    def close(self) -> None:
        self.reassembler.close()
