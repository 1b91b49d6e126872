from lpmp.decoder import TelemetryDecoder
from lpmp.devices import SensorDirectory
from lpmp.parsing.business import DecodeResult, Reading
from lpmp.parsing.params import ParameterRegistry, ParamValue, ValueKind
from lpmp.runtime import DecoderSettings
from lpmp.runtime.jobs import TelemetryPipeline
from importlib.metadata import PackageNotFoundError, version

__all__ = [
    "TelemetryDecoder",
    "TelemetryPipeline",
    "SensorDirectory",
    "DecodeResult",
    "Reading",
    "ParameterRegistry",
    "ParamValue",
    "ValueKind",
    "DecoderSettings",
]

try:
    __version__ = version("lpmp")
except PackageNotFoundError:
    __version__ = "0.0.0"
