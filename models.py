"""Pydantic models for API requests and responses."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wadokei import ClockReading, DialMode
from wadokei.config import check_timezone
from wadokei.formatting import format_datetime, info_panel_text


class WadokeiQueryParams(BaseModel):
    """Validated query parameters for the ``/wadokei`` endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(..., ge=-180.0, le=180.0, description="Longitude in degrees")
    tz: str = Field("Asia/Tokyo", description="IANA time zone of the clock face")
    dial_mode: DialMode = Field(DialMode.noon_up, description="午上 or 子上")
    at: Optional[datetime] = Field(
        None, description="Instant to read (ISO-8601); defaults to the current time"
    )
    elev_m: float = Field(0.0, ge=-500.0, description="Observer elevation in meters")

    @field_validator("tz")
    def validate_tz(cls, value: str) -> str:
        return check_timezone(value)

    @field_validator("at")
    def validate_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            raise ValueError("at must include a UTC offset")
        return value


class KokuPayload(BaseModel):
    zodiac: str
    numeral: str
    label: str
    is_day: bool
    fraction: float = Field(..., ge=0.0, le=1.0)


class SekkiPayload(BaseModel):
    index: int = Field(..., ge=1, le=24)
    name: str
    start: datetime
    end: datetime


class WadokeiResponse(BaseModel):
    """Dial state for one instant."""

    ok: bool = True
    status: str = Field("ok", description="Computation status")
    day: date = Field(..., description="Local calendar date of the solar day")
    now: str = Field(..., description="Local date and time of the reading")
    latitude: float
    longitude: float
    timezone: str
    dial_mode: DialMode
    sunrise: datetime
    sunset: datetime
    dawn_twilight: datetime = Field(..., description="暁六つ")
    dusk_twilight: datetime = Field(..., description="暮六つ")
    corrected_noon: datetime
    sector_angles: Dict[str, float] = Field(..., description="Zodiac center angles in radians")
    tick_angles: List[float] = Field(..., description="13 sector boundary angles in radians")
    tick_shift: float = Field(..., description="Corrected noon minus civil noon, in radians")
    hand_angle: float
    koku: KokuPayload
    sekki: SekkiPayload
    info_panel: str
    source: Literal["CSPICE-DE"] = Field("CSPICE-DE", description="Ephemeris source identifier")

    @classmethod
    def from_reading(
        cls, reading: ClockReading, lat: float, lon: float, timezone: str
    ) -> "WadokeiResponse":
        solar_day = reading.solar_day
        tz = reading.now.tzinfo
        return cls(
            day=solar_day.date,
            now=format_datetime(reading.now),
            latitude=lat,
            longitude=lon,
            timezone=timezone,
            dial_mode=reading.dial_mode,
            sunrise=solar_day.sunrise.astimezone(tz),
            sunset=solar_day.sunset.astimezone(tz),
            dawn_twilight=solar_day.dawn_twilight.astimezone(tz),
            dusk_twilight=solar_day.dusk_twilight.astimezone(tz),
            corrected_noon=solar_day.corrected_noon.astimezone(tz),
            sector_angles=dict(reading.allocation.sector_angles),
            tick_angles=list(reading.allocation.tick_angles),
            tick_shift=reading.tick_shift,
            hand_angle=reading.hand_angle,
            koku=KokuPayload(
                zodiac=reading.koku.zodiac,
                numeral=reading.koku.numeral,
                label=reading.koku.label,
                is_day=reading.koku.is_day,
                fraction=reading.koku.fraction,
            ),
            sekki=SekkiPayload(
                index=reading.term.index,
                name=reading.term.name,
                start=reading.term.start,
                end=reading.term.end,
            ),
            info_panel=info_panel_text(reading.term, solar_day, tz),
        )


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris_loaded: bool
    files: List[str]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str
