"""Frozen dataclasses for the structured values exchanged by the core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DialMode(str, Enum):
    """Which zodiac sign sits at the top of the dial."""

    noon_up = "午上"
    midnight_up = "子上"


@dataclass(frozen=True)
class SunTimes:
    """Sunrise and sunset for one local calendar day."""

    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    status: str = "ok"


@dataclass(frozen=True)
class SolarDay:
    """Astronomical boundaries of one local calendar day at one location."""

    date: date
    sunrise: datetime
    sunset: datetime
    dawn_twilight: datetime
    dusk_twilight: datetime
    day_length: timedelta
    night_length: timedelta
    true_noon: datetime
    corrected_noon: datetime
    dawn_correction: timedelta = timedelta(0)
    dusk_correction: timedelta = timedelta(0)


@dataclass(frozen=True)
class SectorAllocation:
    sector_angles: Dict[str, float]
    tick_angles: Tuple[float, ...]
    theta_day: float


@dataclass(frozen=True)
class SolarTerm:
    index: int
    name: str
    month: int
    day: int


@dataclass(frozen=True)
class CurrentTerm:
    """The solar term interval containing a query instant."""

    index: int
    name: str
    start: datetime
    end: datetime

    def remaining(self, now: datetime) -> timedelta:
        """Time left until the next term begins."""
        return self.end - now


@dataclass(frozen=True)
class KokuReading:
    zodiac: str
    numeral: str
    label: str
    is_day: bool
    fraction: float


@dataclass(frozen=True)
class DialMark:
    kind: str
    label: str
    angle: float


@dataclass(frozen=True)
class BackplaneLayout:
    marks: Tuple[DialMark, ...]
    day_arc: Tuple[float, float]
    night_arc: Tuple[float, float]


@dataclass(frozen=True)
class HandPose:
    angle: float
    length_ratio: float = 1.0


@dataclass(frozen=True)
class ClockReading:
    """Everything a renderer needs to draw the dial for one tick."""

    now: datetime
    solar_day: SolarDay
    dial_mode: DialMode
    allocation: SectorAllocation
    tick_shift: float
    hand_angle: float
    koku: KokuReading
    term: CurrentTerm
    backplane: Any = None
    hand: Any = None
