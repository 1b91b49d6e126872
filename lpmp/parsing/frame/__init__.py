from lpmp.parsing.frame.frame import (
    BUSINESS_PACKET_TYPES,
    CHECKSUM_LEN,
    FRAGMENT_HEADER_LEN,
    HEADER_LEN,
    MIN_FRAME_LEN,
    SENSOR_ID_LEN,
    FragmentPosition,
    FragmentRecord,
    PacketType,
    SensorFrame,
    SensorFrameHeader,
    seal_frame,
    validate_frame,
)

__all__ = [
    "BUSINESS_PACKET_TYPES",
    "CHECKSUM_LEN",
    "FRAGMENT_HEADER_LEN",
    "HEADER_LEN",
    "MIN_FRAME_LEN",
    "SENSOR_ID_LEN",
    "FragmentPosition",
    "FragmentRecord",
    "PacketType",
    "SensorFrame",
    "SensorFrameHeader",
    "seal_frame",
    "validate_frame",
]
