"""Tests for the asyncio line -> decode -> readings pipeline."""
import asyncio
import struct

from lpmp.decoder import TelemetryDecoder
from lpmp.devices import SensorDirectory
from lpmp.parsing.frame import seal_frame
from lpmp.parsing.tlv import encode_parameter_fields
from lpmp.runtime.config import DecoderSettings
from lpmp.runtime.jobs import JobManager, TelemetryPipeline
from lpmp.runtime.logging import create_logger, ring_events

SENSOR_HEX = "238A08262319"
SENSOR = bytes.fromhex(SENSOR_HEX)
WATER_LEVEL = 0b000_00010100011


def _decoder(queue_max_size: int = 100) -> TelemetryDecoder:
    return TelemetryDecoder(
        resolver=SensorDirectory({SENSOR_HEX: "WaterLevelSensor01"}),
        settings=DecoderSettings(queue_max_size=queue_max_size),
        logger=create_logger(f"test-pipeline-{queue_max_size}", 100),
    )


def _frame(level: float) -> bytes:
    params = encode_parameter_fields([(WATER_LEVEL, struct.pack("<f", level))])
    return seal_frame(SENSOR + b"\x10" + params)


def _drx(frame: bytes) -> str:
    return f"+DRX:{SENSOR_HEX},{len(frame)},{frame.hex().upper()}\r\n"


def test_pipeline_decodes_drx_lines():
    lines = [
        "AT+DRX\r\n",
        _drx(_frame(1.0)),
        "OK\r\n",
        "+DRX:238A08262319,3,ZZZ\r\n",
        _drx(bytes(8)),
        _drx(_frame(2.5)),
    ]

    async def run():
        pipeline = TelemetryPipeline(_decoder())
        pipeline.start(lines)
        return pipeline, await pipeline.collect()

    pipeline, readings = asyncio.run(run())
    assert [(r.device_name, r.value.value) for r in readings] == [
        ("WaterLevelSensor01", 1.0),
        ("WaterLevelSensor01", 2.5),
    ]
    assert pipeline.decoder.stats.get("error.LengthError") == 1
    events = [e["event"] for e in ring_events(pipeline.decoder.logger)]
    assert "drx_line_invalid" in events


def test_pipeline_accepts_async_line_source():
    async def source():
        for level in (0.5, 0.75):
            yield _drx(_frame(level))
            await asyncio.sleep(0)

    async def run():
        pipeline = TelemetryPipeline(_decoder())
        pipeline.start(source())
        return await pipeline.collect()

    assert [r.value.value for r in asyncio.run(run())] == [0.5, 0.75]


def test_pipeline_backpressure_with_small_queues():
    frames = [_frame(float(i)) for i in range(20)]

    async def run():
        pipeline = TelemetryPipeline(_decoder(queue_max_size=1))
        pipeline.start_frames(frames)
        return await pipeline.collect()

    readings = asyncio.run(run())
    assert [r.value.value for r in readings] == [float(i) for i in range(20)]


def test_pipeline_stop_cancels_jobs():
    async def endless():
        while True:
            await asyncio.sleep(0.01)
            yield "noise\r\n"

    async def run():
        pipeline = TelemetryPipeline(_decoder())
        pipeline.start(endless())
        await asyncio.sleep(0.05)
        await pipeline.stop()
        return pipeline

    pipeline = asyncio.run(run())
    assert pipeline.jobs.tasks == []


def test_job_manager_stop():
    async def run():
        jobs = JobManager()
        jobs.start(asyncio.sleep(10), name="sleeper")
        await jobs.stop()
        return jobs

    assert asyncio.run(run()).tasks == []


class _DictResolver:
    def __init__(self, devices):
        self.devices = devices

    def resolve(self, sensor_id):
        return self.devices[sensor_id]


def test_pipeline_survives_unexpected_decoder_error():
    good = _frame(4.0)
    unmapped = seal_frame(bytes(6) + b"\x10" + encode_parameter_fields([(WATER_LEVEL, struct.pack("<f", 1.0))]))
    decoder = TelemetryDecoder(
        resolver=_DictResolver({SENSOR_HEX: "WaterLevelSensor01"}),
        settings=DecoderSettings(),
        logger=create_logger("test-pipeline-resolver-error", 100),
    )

    async def run():
        pipeline = TelemetryPipeline(decoder)
        pipeline.start_frames([unmapped, good])
        return await asyncio.wait_for(pipeline.collect(), 2.0)

    readings = asyncio.run(run())
    assert [(r.device_name, r.value.value) for r in readings] == [("WaterLevelSensor01", 4.0)]
    assert decoder.stats.get("frames.failed") == 1
    assert decoder.stats.get("error.KeyError") == 1
    events = [e["event"] for e in ring_events(decoder.logger)]
    assert "frame_failed" in events
