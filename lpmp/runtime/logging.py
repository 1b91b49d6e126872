import logging
import threading
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional

MAX_BYTES_SHOWN = 64


class RingBufferHandler(logging.Handler):
    def __init__(self, max_entries: int = 200):
        super().__init__()
        self.max_entries = max_entries
        self._events: Deque[Dict] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        event = {
            "event": record.getMessage(),
            "level": record.levelname,
            "ts": record.created,
            "details": getattr(record, "details", {}),
        }
        with self._lock:
            self._events.append(event)

    def get_events(self) -> List[Dict]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


def create_logger(name: str, ring_size: int) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.INFO)
    handler = RingBufferHandler(max_entries=ring_size)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def ring_events(logger: logging.Logger) -> List[Dict]:
    for handler in logger.handlers:
        if isinstance(handler, RingBufferHandler):
            return handler.get_events()
    return []


def printable(details: Optional[dict]) -> dict:
    """Render bytes values as (truncated) hex so log details stay readable."""
    if not details:
        return {}
    cleaned: Dict[str, Any] = {}
    for key, value in details.items():
        if isinstance(value, (bytes, bytearray)):
            text = bytes(value[:MAX_BYTES_SHOWN]).hex()
            if len(value) > MAX_BYTES_SHOWN:
                text += "..."
            cleaned[key] = text
        else:
            cleaned[key] = value
    return cleaned


def log_event(logger: logging.Logger, level: int, event: str, details: Optional[dict] = None) -> None:
    logger.log(level, event, extra={"details": printable(details)})


class DecodeStats:
    """Thread-safe counters for frames, fragments, readings and errors."""

    def __init__(self) -> None:
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def record_error(self, exc: BaseException) -> None:
        self.incr(f"error.{type(exc).__name__}")

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
