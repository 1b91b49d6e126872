"""End-to-end tests for TelemetryDecoder.feed (validation, reassembly, decoding)."""
import struct

from lpmp.decoder import TelemetryDecoder
from lpmp.devices import SensorDirectory
from lpmp.parsing.frame import seal_frame
from lpmp.parsing.params import ParamValue
from lpmp.parsing.tlv import encode_parameter_fields
from lpmp.runtime.config import DecoderSettings
from lpmp.runtime.logging import create_logger, ring_events

SENSOR_HEX = "238A08262319"
SENSOR = bytes.fromhex(SENSOR_HEX)
WATER_LEVEL = 0b000_00010100011
VOLTAGE = 0x03


class FakeTimer:
    def __init__(self, interval, callback):
        self.callback = callback
        self.cancelled = False

    def start(self):
        pass

    def cancel(self):
        self.cancelled = True


def _decoder(**settings) -> tuple[TelemetryDecoder, list]:
    timers = []

    def factory(interval, callback):
        timer = FakeTimer(interval, callback)
        timers.append(timer)
        return timer

    decoder = TelemetryDecoder(
        resolver=SensorDirectory({SENSOR_HEX: "WaterLevelSensor01"}),
        settings=DecoderSettings(**settings),
        timer_factory=factory,
        logger=create_logger(f"test-decoder-{id(timers)}", 100),
    )
    return decoder, timers


def _business_frame(params: list[tuple[int, bytes]], sensor: bytes = SENSOR) -> bytes:
    header = (len(params) << 4) | 0x00
    return seal_frame(sensor + bytes([header]) + encode_parameter_fields(params))


def _sdu(params: list[tuple[int, bytes]], sensor: bytes = SENSOR) -> bytes:
    """The SDU a sensor splits into fragments: everything after the sensor id."""
    return _business_frame(params, sensor)[6:]


def _fragment(business_seq: int, seq: int, flag: int, chunk: bytes, sensor: bytes = SENSOR) -> bytes:
    return seal_frame(sensor + bytes([0x08, business_seq, seq, flag]) + chunk)


def test_unfragmented_frame():
    decoder, _ = _decoder()
    readings = decoder.feed(_business_frame([(WATER_LEVEL, struct.pack("<f", 1.5))]))
    assert readings == [("WaterLevelSensor01", "water-level", ParamValue.float32(1.5))]
    assert decoder.stats.get("frames.decoded") == 1
    assert decoder.last_result.complete


def test_empty_nine_byte_frame():
    decoder, _ = _decoder()
    frame = seal_frame(SENSOR + b"\x00")
    assert len(frame) == 9
    assert decoder.feed(frame) == []
    assert decoder.stats.get("frames.decoded") == 1
    assert decoder.stats.get("frames.rejected") == 0


def test_short_frame_rejected_and_stream_continues():
    decoder, _ = _decoder()
    assert decoder.feed(bytes(8)) == []
    assert decoder.stats.get("error.LengthError") == 1
    readings = decoder.feed(_business_frame([(VOLTAGE, struct.pack("<f", 3.5))]))
    assert [r.parameter for r in readings] == ["voltage"]


def test_checksum_error_rejected():
    decoder, _ = _decoder()
    frame = bytearray(_business_frame([(VOLTAGE, struct.pack("<f", 3.5))]))
    frame[8] ^= 0x40
    assert decoder.feed(bytes(frame)) == []
    assert decoder.stats.get("error.ChecksumError") == 1


def test_unknown_sensor_discarded():
    decoder, _ = _decoder()
    frame = _business_frame([(VOLTAGE, struct.pack("<f", 3.5))], sensor=bytes(6))
    assert decoder.feed(frame) == []
    assert decoder.stats.get("error.UnknownSensorError") == 1
    events = [e["event"] for e in ring_events(decoder.logger)]
    assert "frame_rejected" in events


def test_unknown_parameter_skipped_end_to_end():
    decoder, _ = _decoder()
    frame = _business_frame([(0x1234, b"\x00\x00\x00\x00"), (WATER_LEVEL, struct.pack("<f", 0.5))])
    readings = decoder.feed(frame)
    assert [r.parameter for r in readings] == ["water-level"]


def test_fragmented_sdu_reassembled_out_of_order():
    decoder, timers = _decoder()
    sdu = _sdu([(WATER_LEVEL, struct.pack("<f", 1.5)), (VOLTAGE, struct.pack("<f", 3.25))])
    chunks = [sdu[0:4], sdu[4:8], sdu[8:12], sdu[12:]]
    assert decoder.feed(_fragment(7, 0, 0b00, chunks[0])) == []
    assert decoder.feed(_fragment(7, 3, 0b11, chunks[3])) == []
    assert decoder.feed(_fragment(7, 2, 0b10, chunks[2])) == []
    readings = decoder.feed(_fragment(7, 1, 0b10, chunks[1]))
    assert [(r.parameter, r.value.value) for r in readings] == [("water-level", 1.5), ("voltage", 3.25)]
    assert decoder.stats.get("units") == 1
    assert timers[0].cancelled
    assert len(decoder.reassembler) == 0


def test_corrupted_sdu_rejected():
    decoder, _ = _decoder()
    sdu = bytearray(_sdu([(WATER_LEVEL, struct.pack("<f", 1.5))]))
    sdu[-1] ^= 0xFF
    decoder.feed(_fragment(1, 0, 0b00, bytes(sdu[:5])))
    assert decoder.feed(_fragment(1, 1, 0b11, bytes(sdu[5:]))) == []
    assert decoder.stats.get("error.ChecksumError") == 1


def test_fragment_without_sub_header_rejected():
    decoder, _ = _decoder()
    assert decoder.feed(seal_frame(SENSOR + bytes([0x08, 0x01]))) == []
    assert decoder.stats.get("error.LengthError") == 1


def test_reassembly_can_be_disabled():
    decoder, timers = _decoder(reassemble_fragments=False)
    sdu = _sdu([(WATER_LEVEL, struct.pack("<f", 1.5))])
    assert decoder.feed(_fragment(1, 0, 0b00, sdu[:5])) == []
    assert decoder.feed(_fragment(1, 1, 0b11, sdu[5:])) == []
    assert timers == []
    assert decoder.stats.get("fragments.dropped.disabled") == 2


def test_timeout_then_new_unit():
    decoder, timers = _decoder()
    sdu = _sdu([(WATER_LEVEL, struct.pack("<f", 4.0))])
    decoder.feed(_fragment(1, 0, 0b00, sdu[:5]))
    timers[0].callback()
    assert len(decoder.reassembler) == 0
    assert decoder.feed(_fragment(1, 1, 0b11, sdu[5:])) == []
    decoder.feed(_fragment(2, 0, 0b00, sdu[:5]))
    readings = decoder.feed(_fragment(2, 1, 0b11, sdu[5:]))
    assert [r.value.value for r in readings] == [4.0]


def test_two_decoders_do_not_share_state():
    first, _ = _decoder()
    second, _ = _decoder()
    sdu = _sdu([(WATER_LEVEL, struct.pack("<f", 1.0))])
    first.feed(_fragment(1, 0, 0b00, sdu[:5]))
    assert len(first.reassembler) == 1
    assert len(second.reassembler) == 0
    assert second.feed(_fragment(1, 1, 0b11, sdu[5:])) == []


def test_close_clears_reassembly():
    decoder, timers = _decoder()
    decoder.feed(_fragment(1, 0, 0b00, b"abc"))
    decoder.close()
    assert len(decoder.reassembler) == 0
    assert timers[0].cancelled


def test_empty_resolver_is_not_replaced_by_packaged_map():
    decoder = TelemetryDecoder(
        resolver=SensorDirectory({}),
        settings=DecoderSettings(),
        logger=create_logger("test-decoder-empty-directory", 100),
    )
    assert decoder.feed(_business_frame([(WATER_LEVEL, struct.pack("<f", 1.5))])) == []
    assert decoder.stats.get("error.UnknownSensorError") == 1
