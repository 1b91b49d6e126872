from functools import lru_cache
from typing import Dict

from pydantic import Field
from pydantic_settings import SettingsConfigDict, BaseSettings


class DecoderSettings(BaseSettings):
    reassembly_timeout: float = Field(20.0, gt=0, validation_alias="REASSEMBLY_TIMEOUT")
    reassemble_fragments: bool = Field(True, validation_alias="REASSEMBLE_FRAGMENTS")

    queue_max_size: int = Field(100, gt=0, validation_alias="QUEUE_MAX_SIZE")
    log_ring_size: int = Field(200, gt=0, validation_alias="LOG_RING_SIZE")
    logger_name: str = Field("lpmp", validation_alias="LOGGER_NAME")

    sensor_map: str = Field("default", validation_alias="SENSOR_MAP")
    # Extra sensor id -> device name entries, merged over the packaged map.
    sensor_devices: Dict[str, str] = Field(default_factory=dict, validation_alias="SENSOR_DEVICES")

    drx_prefix: str = Field("+DRX:", validation_alias="DRX_PREFIX")
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", populate_by_name=True, extra="ignore")


@lru_cache
def get_settings() -> DecoderSettings:
    return DecoderSettings()
