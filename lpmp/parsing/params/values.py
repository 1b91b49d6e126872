from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union


class ValueKind(str, enum.Enum):
    FLOAT32 = "float32"
    UINT32 = "uint32"
    UINT16 = "uint16"
    UINT8 = "uint8"
    STATUS = "status"


class DeviceStatus(enum.IntEnum):
    OTHER = 0
    NORMAL = 1
    ABNORMAL = 2


STATUS_LABELS: dict[int, str] = {
    DeviceStatus.OTHER: "other",
    DeviceStatus.NORMAL: "normal",
    DeviceStatus.ABNORMAL: "abnormal",
}
UNKNOWN_STATUS = "unknown"

_INT_RANGES: dict[ValueKind, int] = {
    ValueKind.UINT32: 0xFFFFFFFF,
    ValueKind.UINT16: 0xFFFF,
    ValueKind.UINT8: 0xFF,
    ValueKind.STATUS: 0xFF,
}


@dataclass(frozen=True)
class ParamValue:
    """
    A decoded parameter value tagged with its kind.

    The set of kinds is closed (see ``ValueKind``), so consumers can handle
    every case explicitly. Status values also carry a human-readable label.

    Attributes:
        kind: Which of the fixed value kinds this is.
        value: ``float`` for ``FLOAT32``, ``int`` for every other kind.
        label: Status label for ``STATUS`` values, otherwise ``None``.
    """
    kind: ValueKind
    value: Union[float, int]
    label: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is ValueKind.FLOAT32:
            if not isinstance(self.value, float):
                raise TypeError("float32 values must be floats")
            return
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"{self.kind.value} values must be integers")
        if not 0 <= self.value <= _INT_RANGES[self.kind]:
            raise ValueError(f"{self.value} out of range for {self.kind.value}")

    @classmethod
    def float32(cls, value: float) -> "ParamValue":
        return cls(ValueKind.FLOAT32, float(value))

    @classmethod
    def uint32(cls, value: int) -> "ParamValue":
        return cls(ValueKind.UINT32, value)

    @classmethod
    def uint16(cls, value: int) -> "ParamValue":
        return cls(ValueKind.UINT16, value)

    @classmethod
    def uint8(cls, value: int) -> "ParamValue":
        return cls(ValueKind.UINT8, value)

    @classmethod
    def status(cls, code: int) -> "ParamValue":
        return cls(ValueKind.STATUS, code, STATUS_LABELS.get(code, UNKNOWN_STATUS))

    def as_dict(self) -> dict:
        data = {"kind": self.kind.value, "value": self.value}
        if self.label is not None:
            data["label"] = self.label
        return data

    def __str__(self) -> str:
        if self.kind is ValueKind.STATUS:
            return f"{self.value} ({self.label})"
        return str(self.value)
