"""Configuration structs for the Wadokei clock."""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ._types import DialMode

LOGGER = logging.getLogger(__name__)

# 寛政暦: the sun sits 7°21′40″ below the horizon at 暁六つ and 暮六つ.
KANSEI_TWILIGHT_ALTITUDE_DEG = -7.361

CONFIG_ENV_VAR = "WADOKEI_CONFIG"


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or validated."""


def check_timezone(value: str) -> str:
    """Return *value* if it names an IANA time zone, else raise ``ValueError``."""

    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {value}") from exc
    return value


class TwilightSettings(BaseModel):
    """Parameters of the 暁六つ/暮六つ search."""

    model_config = ConfigDict(frozen=True)

    target_altitude_deg: float = Field(
        KANSEI_TWILIGHT_ALTITUDE_DEG,
        ge=-18.0,
        le=0.0,
        description="Solar altitude defining the corrected day boundary",
    )
    search_window_minutes: int = Field(60, gt=0, le=240)
    sample_step_minutes: int = Field(1, gt=0, le=60)

    @property
    def target_altitude_rad(self) -> float:
        return math.radians(self.target_altitude_deg)


class WadokeiConfig(BaseModel):
    """Every option the clock recognises, with its default."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    lat: float = Field(35.6812, ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(139.7671, ge=-180.0, le=180.0, description="Longitude in degrees")
    timezone: str = Field("Asia/Tokyo", description="IANA time zone of the clock")
    elevation_m: float = Field(0.0, ge=-500.0, description="Observer elevation in meters")
    dial_mode: DialMode = Field(DialMode.noon_up, alias="dialMode")
    hand_plugin: str = Field("default", alias="handPlugin")
    backplane_plugin: str = Field("default", alias="backplanePlugin")
    twilight: TwilightSettings = Field(default_factory=TwilightSettings)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        return check_timezone(value)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_config(path: Optional[Union[str, Path]] = None) -> WadokeiConfig:
    """Load a :class:`WadokeiConfig` from *path*, ``$WADOKEI_CONFIG`` or defaults."""

    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return WadokeiConfig()

    config_path = Path(path).expanduser()
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {config_path}: {exc}") from exc

    try:
        config = WadokeiConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

    LOGGER.info(
        json.dumps(
            {
                "event": "config_loaded",
                "path": str(config_path),
                "dial_mode": config.dial_mode.value,
                "timezone": config.timezone,
            },
            ensure_ascii=False,
        )
    )
    return config
