"""Once-per-day computation of the sun's boundaries."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from threading import Lock
from typing import Optional, Tuple

from ._types import SolarDay
from .errors import DegenerateDayLength, NoTwilightFound
from .provider import SunEventProvider
from .sectors import FULL_DAY
from .twilight import TwilightLocator

LOGGER = logging.getLogger(__name__)


def local_day_start(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def compute_solar_day(
    day: date,
    lat: float,
    lon: float,
    tz: tzinfo,
    provider: SunEventProvider,
    locator: TwilightLocator,
) -> SolarDay:
    """Derive the :class:`SolarDay` of the local calendar *day*.

    Raises
    ------
    ProviderUnavailable
        Propagated from the provider's sunrise/sunset query.
    DegenerateDayLength
        If the sun does not both rise and set on *day*.
    """

    times = provider.get_sun_times(local_day_start(day, tz), lat, lon)
    if times.sunrise is None or times.sunset is None:
        raise DegenerateDayLength(
            f"No sunrise/sunset on {day.isoformat()} at ({lat}, {lon}): {times.status}"
        )
    sunrise, sunset = times.sunrise, times.sunset
    day_length = sunset - sunrise
    if day_length <= timedelta(0) or day_length >= FULL_DAY:
        raise DegenerateDayLength(f"Day length out of range on {day.isoformat()}: {day_length}")

    try:
        dawn = locator.dawn(sunrise, lat, lon)
    except NoTwilightFound as exc:
        LOGGER.warning(json.dumps({"event": "twilight_fallback", "edge": "dawn", "error": str(exc)}))
        dawn = sunrise
    try:
        dusk = locator.dusk(sunset, lat, lon)
    except NoTwilightFound as exc:
        LOGGER.warning(json.dumps({"event": "twilight_fallback", "edge": "dusk", "error": str(exc)}))
        dusk = sunset

    return SolarDay(
        date=day,
        sunrise=sunrise,
        sunset=sunset,
        dawn_twilight=dawn,
        dusk_twilight=dusk,
        day_length=day_length,
        night_length=FULL_DAY - day_length,
        true_noon=sunrise + day_length / 2,
        corrected_noon=dawn + (dusk - dawn) / 2,
        dawn_correction=sunrise - dawn,
        dusk_correction=dusk - sunset,
    )


class SolarDayCache:
    """Holds the :class:`SolarDay` of the current local date.

    The astronomical work runs at most once per local calendar day; every other
    call returns the cached value unchanged. One cache serves one location; a lock
    held across the lookup and the recomputation lets request threads share it.
    """

    def __init__(
        self,
        provider: SunEventProvider,
        tz: tzinfo,
        locator: Optional[TwilightLocator] = None,
    ) -> None:
        self.provider = provider
        self.tz = tz
        self.locator = locator or TwilightLocator(provider)
        self._key: Optional[Tuple[date, float, float]] = None
        self._value: Optional[SolarDay] = None
        self._lock = Lock()

    @property
    def current(self) -> Optional[SolarDay]:
        return self._value

    def get(self, now: datetime, lat: float, lon: float) -> SolarDay:
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        day = now.astimezone(self.tz).date()
        key = (day, lat, lon)
        with self._lock:
            if self._value is not None and self._key == key:
                return self._value

            solar_day = compute_solar_day(day, lat, lon, self.tz, self.provider, self.locator)
            self._key = key
            self._value = solar_day
        LOGGER.info(
            json.dumps(
                {
                    "event": "solar_day_computed",
                    "date": day.isoformat(),
                    "lat": lat,
                    "lon": lon,
                    "sunrise": solar_day.sunrise.isoformat(),
                    "sunset": solar_day.sunset.isoformat(),
                    "dawn_twilight": solar_day.dawn_twilight.isoformat(),
                    "dusk_twilight": solar_day.dusk_twilight.isoformat(),
                }
            )
        )
        return solar_day
