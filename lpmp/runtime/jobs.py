import asyncio
import logging
from typing import AsyncIterable, Iterable, List, Optional, Union

from lpmp.decoder import TelemetryDecoder
from lpmp.parsing.business import Reading
from lpmp.runtime.config import DecoderSettings
from lpmp.runtime.logging import log_event
from lpmp.transports.drx import parse_drx_line

LineSource = Union[AsyncIterable[str], Iterable[str]]

# Marks the end of a stage's output.
_EOF = object()


class JobManager:
    def __init__(self):
        self.tasks: List[asyncio.Task] = []

    def start(self, coro, name: str):
        task = asyncio.create_task(coro, name=name)
        self.tasks.append(task)
        return task

    async def join(self):
        await asyncio.gather(*self.tasks)
        self.tasks.clear()

    async def stop(self):
        for task in self.tasks:
            task.cancel()
        for task in self.tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks.clear()


async def _iterate(lines: LineSource):
    if hasattr(lines, "__aiter__"):
        async for line in lines:
            yield line
    else:
        for line in lines:
            yield line


async def line_reader_job(lines: LineSource, out_q: asyncio.Queue, settings: DecoderSettings, logger: logging.Logger):
    """Turn DRX lines into raw frames. Blocks on a full queue instead of dropping."""
    try:
        async for line in _iterate(lines):
            if not line.strip().startswith(settings.drx_prefix):
                continue
            try:
                frame = parse_drx_line(line, settings.drx_prefix)
            except ValueError as exc:
                log_event(logger, logging.WARNING, "drx_line_invalid", {"line": line.strip(), "error": str(exc)})
                continue
            await out_q.put(frame)
    except Exception as exc:
        log_event(logger, logging.ERROR, "line_source_failed", {"error": str(exc)})
        await out_q.put(_EOF)
        raise
    await out_q.put(_EOF)


async def decode_job(decoder: TelemetryDecoder, in_q: asyncio.Queue, out_q: asyncio.Queue):
    """Reassemble and decode raw frames; the only owner of the reassembly table."""
    while True:
        frame = await in_q.get()
        try:
            if frame is _EOF:
                await out_q.put(_EOF)
                return
            try:
                readings = decoder.feed(frame)
            except Exception as exc:
                decoder.stats.incr("frames.failed")
                decoder.stats.record_error(exc)
                log_event(decoder.logger, logging.ERROR, "frame_failed", {
                    "error": type(exc).__name__,
                    "message": str(exc),
                    "raw": frame,
                })
                continue
            for reading in readings:
                await out_q.put(reading)
        finally:
            in_q.task_done()


class TelemetryPipeline:
    """
    Line stage -> decode stage -> readings queue, joined by bounded queues.

    Usage::

        pipeline = TelemetryPipeline(decoder)
        pipeline.start(lines)
        async for reading in pipeline.readings():
            store(reading)
    """

    def __init__(self, decoder: TelemetryDecoder, settings: Optional[DecoderSettings] = None):
        self.decoder = decoder
        self.settings = settings or decoder.settings
        self.frames: asyncio.Queue = asyncio.Queue(maxsize=self.settings.queue_max_size)
        self.output: asyncio.Queue = asyncio.Queue(maxsize=self.settings.queue_max_size)
        self.jobs = JobManager()

    def start(self, lines: LineSource) -> None:
        self.jobs.start(line_reader_job(lines, self.frames, self.settings, self.decoder.logger), name="lpmp-lines")
        self.jobs.start(decode_job(self.decoder, self.frames, self.output), name="lpmp-decode")

    def start_frames(self, frames: Iterable[bytes]) -> None:
        """Start only the decode stage, fed from already-decoded raw frames."""

        async def feed():
            for frame in frames:
                await self.frames.put(bytes(frame))
            await self.frames.put(_EOF)

        self.jobs.start(feed(), name="lpmp-frames")
        self.jobs.start(decode_job(self.decoder, self.frames, self.output), name="lpmp-decode")

    async def readings(self):
        while True:
            item = await self.output.get()
            if item is _EOF:
                return
            yield item

    async def join(self) -> None:
        await self.jobs.join()

    async def collect(self) -> List[Reading]:
        results = [reading async for reading in self.readings()]
        await self.join()
        return results

    async def stop(self) -> None:
        await self.jobs.stop()
        self.decoder.close()
