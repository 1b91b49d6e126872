from lpmp.runtime.config import DecoderSettings, get_settings
from lpmp.runtime.logging import DecodeStats, RingBufferHandler, create_logger

__all__ = ["DecoderSettings", "get_settings", "DecodeStats", "RingBufferHandler", "create_logger"]
