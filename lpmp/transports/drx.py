"""
Parser for the radio module's ``+DRX`` receive lines.

Every packet the module receives is printed as a text line::

    +DRX:<device id>,<length>,<hex payload>

Only the hex payload matters to the decoder; everything else on the serial
line (command echoes, ``OK``, status chatter) is skipped.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional

DRX_PREFIX = "+DRX:"


def parse_drx_line(line: str, prefix: str = DRX_PREFIX) -> bytes:
    """
    Decode one DRX line into the raw frame bytes it carries.

    Raises:
        ValueError: The line is not a DRX line, has the wrong number of
            fields or carries a payload that is not valid hex.
    """
    line = line.strip()
    if not line.startswith(prefix):
        raise ValueError(f"not a DRX line: {line!r}")
    parts = line.split(",", 2)
    if len(parts) != 3:
        raise ValueError(f"DRX line needs 3 fields: {line!r}")
    payload = parts[2].strip()
    if len(payload) % 2:
        raise ValueError(f"DRX payload has odd length: {payload!r}")
    try:
        return bytes.fromhex(payload)
    except ValueError as exc:
        raise ValueError(f"DRX payload is not hex: {payload!r}") from exc


def try_parse_drx_line(line: str, prefix: str = DRX_PREFIX) -> Optional[bytes]:
    if not line.strip().startswith(prefix):
        return None
    try:
        return parse_drx_line(line, prefix)
    except ValueError:
        return None


def iter_drx_frames(lines: Iterable[str], prefix: str = DRX_PREFIX) -> Iterator[bytes]:
    for line in lines:
        frame = try_parse_drx_line(line, prefix)
        if frame is not None:
            yield frame
