from lpmp.transports.drx import DRX_PREFIX, iter_drx_frames, parse_drx_line, try_parse_drx_line

__all__ = ["DRX_PREFIX", "iter_drx_frames", "parse_drx_line", "try_parse_drx_line"]
