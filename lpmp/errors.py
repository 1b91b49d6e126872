"""
Exception hierarchy for frame decoding.

Every error is recoverable at the scope it is raised in: parameter errors
skip a single parameter, frame errors discard a single frame. The
``TelemetryDecoder`` facade catches ``DecodeError`` and turns it into log
events and counters, so none of these stop ingestion.
"""


class DecodeError(ValueError):
    """Base class for everything the decoding pipeline can reject."""


class LengthError(DecodeError):
    """A frame or field is shorter than its structure requires."""


class ChecksumError(DecodeError):
    """The trailing checksum does not match the frame body."""


class BoundsError(DecodeError):
    """A declared field length runs past the end of the frame region."""


class TypeMismatchError(DecodeError):
    """A value's byte count disagrees with its parameter descriptor."""


class UnknownParameterError(DecodeError):
    """A type code or parameter name has no registry entry."""


class UnknownSensorError(DecodeError):
    """A sensor id cannot be resolved to a logical device name."""


__all__ = [
    "DecodeError",
    "LengthError",
    "ChecksumError",
    "BoundsError",
    "TypeMismatchError",
    "UnknownParameterError",
    "UnknownSensorError",
]
