"""Unequal-hour (不定時法) dial engine."""

from ._types import ClockReading, CurrentTerm, DialMode, KokuReading, SectorAllocation, SolarDay, SunTimes
from .astro import SpiceSunProvider, load_ephemeris
from .clock import WadokeiClock
from .config import TwilightSettings, WadokeiConfig, load_config
from .errors import DegenerateDayLength, NoTwilightFound, ProviderUnavailable, WadokeiError
from .sectors import allocate
from .sekki import SolarTermClassifier
from .solar_day import SolarDayCache
from .twilight import TwilightLocator

__all__ = [
    "ClockReading",
    "CurrentTerm",
    "DegenerateDayLength",
    "DialMode",
    "KokuReading",
    "NoTwilightFound",
    "ProviderUnavailable",
    "SectorAllocation",
    "SolarDay",
    "SolarDayCache",
    "SolarTermClassifier",
    "SpiceSunProvider",
    "SunTimes",
    "TwilightLocator",
    "TwilightSettings",
    "WadokeiClock",
    "WadokeiConfig",
    "WadokeiError",
    "allocate",
    "load_config",
    "load_ephemeris",
]
