"""Tests for DRX line parsing."""
import pytest

from lpmp.transports import iter_drx_frames, parse_drx_line, try_parse_drx_line


def test_parse_drx_line():
    assert parse_drx_line("+DRX:238A08262319,3,111111") == bytes([0x11, 0x11, 0x11])


def test_parse_drx_line_strips_line_endings():
    assert parse_drx_line("+DRX:238A08262319,2,abCD\r\n") == bytes([0xAB, 0xCD])


@pytest.mark.parametrize(
    "line",
    [
        "OK",
        "+DRX:238A08262319",
        "+DRX:238A08262319,3,11111",
        "+DRX:238A08262319,3,GG1111",
    ],
)
def test_parse_drx_line_rejects(line):
    with pytest.raises(ValueError):
        parse_drx_line(line)


def test_try_parse_drx_line():
    assert try_parse_drx_line("OK") is None
    assert try_parse_drx_line("+DRX:1,1,0") is None
    assert try_parse_drx_line("+DRX:1,1,0A") == b"\x0a"


def test_iter_drx_frames_skips_noise():
    lines = ["AT+DRX", "+DRX:1,1,01", "ERROR", "+DRX:1,1,zz", "+DRX:1,2,0203"]
    assert list(iter_drx_frames(lines)) == [b"\x01", b"\x02\x03"]


def test_custom_prefix():
    assert parse_drx_line("+RX:1,1,ff", prefix="+RX:") == b"\xff"
