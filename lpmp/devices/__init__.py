from __future__ import annotations

import json
from importlib import resources
from typing import Dict, List, Mapping, Optional

from lpmp.errors import UnknownSensorError


class SensorMapNotFoundError(FileNotFoundError):
    pass


def _normalize_map_name(name: str) -> str:
    if not name or not name.strip():
        raise ValueError("load_sensor_map(name) requires a non-empty name.")
    name = name.strip()
    if name.lower().endswith(".json"):
        name = name[:-5]
    return name


def _normalize_sensor_id(sensor_id: str) -> str:
    return sensor_id.strip().upper()


def get_sensor_maps() -> List[str]:
    base = resources.files("lpmp.devices")
    names: List[str] = []
    for entry in base.iterdir():
        if entry.is_file() and entry.name.lower().endswith(".json"):
            names.append(entry.name[:-5])
    return sorted(set(names))


def load_sensor_map(name: str = "default") -> Dict[str, str]:
    name = _normalize_map_name(name)
    filename = "sensors.json" if name == "default" else f"{name}.json"
    res = resources.files("lpmp.devices").joinpath(filename)
    if not res.is_file():
        raise SensorMapNotFoundError(
            f"Sensor map '{name}' not found. Available: {get_sensor_maps()}"
        )
    with res.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        return {}
    return {_normalize_sensor_id(str(k)): str(v) for k, v in data.items()}


class SensorDirectory:
    """Resolves uppercase hex sensor ids to logical device names."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        self._devices: Dict[str, str] = {
            _normalize_sensor_id(k): v for k, v in (mapping or {}).items()
        }

    @classmethod
    def from_map(cls, name: str = "default", extra: Optional[Mapping[str, str]] = None) -> "SensorDirectory":
        mapping = load_sensor_map(name)
        mapping.update({_normalize_sensor_id(k): v for k, v in (extra or {}).items()})
        return cls(mapping)

    def resolve(self, sensor_id: str) -> str:
        name = self._devices.get(_normalize_sensor_id(sensor_id))
        if name is None:
            raise UnknownSensorError(f"sensor {sensor_id} is not mapped to a device")
        return name

    def register(self, sensor_id: str, device_name: str) -> None:
        self._devices[_normalize_sensor_id(sensor_id)] = device_name

    def sensors_for(self, device_name: str) -> List[str]:
        return sorted(k for k, v in self._devices.items() if v == device_name)

    def __contains__(self, sensor_id: object) -> bool:
        return isinstance(sensor_id, str) and _normalize_sensor_id(sensor_id) in self._devices

    def __len__(self) -> int:
        return len(self._devices)
