"""
Per-sensor reassembly of fragmented SDUs.

Each sensor has at most one SDU in flight. Its fragments are appended in
fragment sequence order; fragments that arrive ahead of the next expected
sequence number wait in ``pending`` until the gap is filled. Every cache owns
one single-shot timer armed when the first fragment arrives. A cache ends in
exactly one way: it completes, a new first fragment replaces it, or its timer
fires. Whichever happens first cancels the timer under the table lock before
the cache is removed, and the timer callback only removes the cache it was
armed for.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from lpmp.parsing.frame import FragmentRecord
from lpmp.runtime.logging import DecodeStats, log_event

logger = logging.getLogger(__name__)

DEFAULT_REASSEMBLY_TIMEOUT = 20.0


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def thread_timer(interval: float, callback: Callable[[], None]) -> TimerHandle:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


@dataclass(eq=False)
class FragmentCache:
    sensor_id: str
    business_seq: int
    expected_next: int
    final_seq: Optional[int] = None
    buffer: bytearray = field(default_factory=bytearray)
    pending: dict[int, bytes] = field(default_factory=dict)
    timer: Optional[TimerHandle] = None
    fragments: int = 0

    def append(self, data: bytes) -> None:
        self.buffer.extend(data)
        self.expected_next += 1
        self.fragments += 1

    def drain_pending(self) -> None:
        while self.expected_next in self.pending:
            self.append(self.pending.pop(self.expected_next))

    @property
    def complete(self) -> bool:
        return self.final_seq is not None and self.expected_next > self.final_seq

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


@dataclass(frozen=True)
class AssembledUnit:
    sensor_id: str
    business_seq: int
    payload: bytes
    fragments: int


class FragmentReassembler:
    """
    Reassembles fragment records into complete SDU payloads.

    ``process`` is meant to be called from a single decoding stage, so the
    fragments of one sensor are handled in arrival order. Timer callbacks run
    on their own threads; the table lock makes each lookup/mutate/remove
    sequence atomic against them.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REASSEMBLY_TIMEOUT,
        timer_factory: Optional[TimerFactory] = None,
        stats: Optional[DecodeStats] = None,
        log: Optional[logging.Logger] = None,
        on_expired: Optional[Callable[[FragmentCache], None]] = None,
    ) -> None:
        self.timeout = timeout
        self.timer_factory = timer_factory or thread_timer
        self.stats = stats or DecodeStats()
        self.log = log or logger
        self.on_expired = on_expired
        self._caches: dict[str, FragmentCache] = {}
        self._lock = threading.Lock()

    def process(self, fragment: FragmentRecord) -> Optional[AssembledUnit]:
        """
        Feed one fragment.

        Returns:
            The assembled unit when this fragment completes its SDU,
            otherwise ``None``.
        """
        self.stats.incr("fragments")
        position = fragment.position
        with self._lock:
            cache = self._caches.get(fragment.sensor_id)

            if position.is_first:
                if cache is not None:
                    reason = "restart" if cache.business_seq == fragment.business_seq else "superseded"
                    self._discard(cache, reason)
                return self._start(fragment)

            if cache is None:
                self._drop(fragment, "orphan")
                return None

            if cache.business_seq != fragment.business_seq:
                self._drop(fragment, "foreign_business_seq")
                return None

            if fragment.fragment_seq < cache.expected_next:
                self._drop(fragment, "duplicate")
                return None

            if fragment.fragment_seq > cache.expected_next:
                cache.pending[fragment.fragment_seq] = fragment.payload
                if position.is_last:
                    cache.final_seq = fragment.fragment_seq
                log_event(self.log, logging.DEBUG, "fragment_buffered", {
                    **fragment.as_dict(),
                    "expected": cache.expected_next,
                })
                return None

            cache.append(fragment.payload)
            if position.is_last:
                cache.final_seq = fragment.fragment_seq
            cache.drain_pending()
            if cache.complete:
                return self._finalize(cache)
            return None

    def _start(self, fragment: FragmentRecord) -> Optional[AssembledUnit]:
        cache = FragmentCache(
            sensor_id=fragment.sensor_id,
            business_seq=fragment.business_seq,
            expected_next=fragment.fragment_seq,
        )
        cache.append(fragment.payload)
        if fragment.position.is_last:
            cache.final_seq = fragment.fragment_seq
            self._caches[fragment.sensor_id] = cache
            return self._finalize(cache)
        cache.timer = self.timer_factory(self.timeout, lambda: self._expire(cache))
        self._caches[fragment.sensor_id] = cache
        cache.timer.start()
        log_event(self.log, logging.DEBUG, "reassembly_started", {
            "sensor_id": fragment.sensor_id,
            "business_seq": fragment.business_seq,
            "fragment_seq": fragment.fragment_seq,
        })
        return None

    def _remove(self, cache: FragmentCache) -> None:
        cache.cancel_timer()
        if self._caches.get(cache.sensor_id) is cache:
            del self._caches[cache.sensor_id]

    def _discard(self, cache: FragmentCache, reason: str) -> None:
        self._remove(cache)
        self.stats.incr(f"reassembly.{reason}")
        log_event(self.log, logging.INFO, "reassembly_discarded", {
            "sensor_id": cache.sensor_id,
            "business_seq": cache.business_seq,
            "reason": reason,
            "buffered": len(cache.buffer),
            "pending": sorted(cache.pending),
        })

    def _finalize(self, cache: FragmentCache) -> AssembledUnit:
        self._remove(cache)
        self.stats.incr("reassembly.completed")
        log_event(self.log, logging.INFO, "reassembly_completed", {
            "sensor_id": cache.sensor_id,
            "business_seq": cache.business_seq,
            "fragments": cache.fragments,
            "size": len(cache.buffer),
        })
        return AssembledUnit(
            sensor_id=cache.sensor_id,
            business_seq=cache.business_seq,
            payload=bytes(cache.buffer),
            fragments=cache.fragments,
        )

    def _drop(self, fragment: FragmentRecord, reason: str) -> None:
        self.stats.incr(f"fragments.dropped.{reason}")
        log_event(self.log, logging.INFO, "fragment_dropped", {**fragment.as_dict(), "reason": reason})

    def _expire(self, cache: FragmentCache) -> None:
        with self._lock:
            if self._caches.get(cache.sensor_id) is not cache:
                return
            del self._caches[cache.sensor_id]
            cache.timer = None
        self.stats.incr("reassembly.expired")
        log_event(self.log, logging.WARNING, "reassembly_timeout", {
            "sensor_id": cache.sensor_id,
            "business_seq": cache.business_seq,
            "expected": cache.expected_next,
            "final_seq": cache.final_seq,
            "pending": sorted(cache.pending),
        })
        if self.on_expired is not None:
            self.on_expired(cache)

    def cache_for(self, sensor_id: str) -> Optional[FragmentCache]:
        with self._lock:
            return self._caches.get(sensor_id)

    def in_flight(self) -> list[str]:
        with self._lock:
            return sorted(self._caches)

    def close(self) -> None:
        """Cancel every outstanding timer and forget all partial SDUs."""
        with self._lock:
            for cache in self._caches.values():
                cache.cancel_timer()
            self._caches.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._caches)
