from __future__ import annotations

import math
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import erfa
import numpy as np
import pytest
import spiceypy as spice

from wadokei import astro
from wadokei._types import SunTimes
from wadokei.config import KANSEI_TWILIGHT_ALTITUDE_DEG
from wadokei.errors import ProviderUnavailable

AU_KM = 149597870.700
STEP_HOURS = 6
TOKYO = ZoneInfo("Asia/Tokyo")

# Radians per minute of solar altitude change near the horizon in the fake sky.
FAKE_ALTITUDE_RATE = math.radians(0.2)


def _datetime_to_tt(dt: datetime) -> tuple[float, float]:
    utc1, utc2 = erfa.dtf2d(
        "UTC",
        dt.year,
        dt.month,
        dt.day,
        dt.hour,
        dt.minute,
        dt.second + dt.microsecond / 1_000_000,
    )
    tai1, tai2 = erfa.utctai(utc1, utc2)
    return erfa.taitt(tai1, tai2)


def _datetime_to_et(dt: datetime) -> float:
    tt1, tt2 = _datetime_to_tt(dt)
    return (tt1 - erfa.DJ00) * erfa.DAYSEC + tt2 * erfa.DAYSEC


def _sun_and_earth_states(dt: datetime) -> tuple[np.ndarray, np.ndarray]:
    tt1, tt2 = _datetime_to_tt(dt)
    pvh, pvb = erfa.epv00(tt1, tt2)
    sun_state = np.concatenate(
        [-np.array(pvh[0]) * AU_KM, -np.array(pvh[1]) * (AU_KM / erfa.DAYSEC)]
    )
    earth_state = np.concatenate(
        [np.array(pvb[0]) * AU_KM, np.array(pvb[1]) * (AU_KM / erfa.DAYSEC)]
    )
    return sun_state, earth_state


def _generate_test_kernel(output: Path) -> None:
    """Write a one-year SPK of the Sun and Earth computed with ERFA's EPV00."""

    if output.exists():
        return
    start = datetime(2025, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 1, tzinfo=timezone.utc)
    step = timedelta(hours=STEP_HOURS)
    sun_states: list[np.ndarray] = []
    earth_states: list[np.ndarray] = []
    ets: list[float] = []
    current = start
    while current <= end:
        sun_state, earth_state = _sun_and_earth_states(current)
        sun_states.append(sun_state)
        earth_states.append(earth_state)
        ets.append(_datetime_to_et(current))
        current += step
    step_seconds = ets[1] - ets[0]
    handle = spice.spkopn(str(output), "SUNTEST", 0)
    try:
        for body, center, name, states in (
            (10, 399, "SUNTEST", sun_states),
            (399, 0, "EARTHTEST", earth_states),
        ):
            spice.spkw08(
                handle,
                body,
                center,
                "J2000",
                ets[0],
                ets[-1],
                name,
                7,
                len(ets),
                np.array(states, dtype=float),
                ets[0],
                step_seconds,
            )
    finally:
        spice.spkcls(handle)


@pytest.fixture(scope="session")
def kernel_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    directory = tmp_path_factory.mktemp("kernels")
    _generate_test_kernel(directory / "sun_2025.bsp")
    return directory


@pytest.fixture(scope="session")
def ephemeris(kernel_dir: Path) -> Iterable[list[str]]:
    astro.unload_ephemeris()
    yield astro.load_ephemeris(str(kernel_dir))
    astro.unload_ephemeris()


class FakeSunProvider:
    """Deterministic sky: fixed sunrise/sunset, linear altitude near the horizon.

    The sun reaches the Kansei twilight altitude ``dawn_lead`` before sunrise and
    ``dusk_lag`` after sunset. ``unavailable`` decides which altitude samples fail.
    """

    def __init__(
        self,
        tz=TOKYO,
        sunrise: time = time(6, 0),
        sunset: time = time(18, 0),
        dawn_lead: timedelta = timedelta(minutes=30),
        dusk_lag: timedelta = timedelta(minutes=30),
        unavailable: Optional[Callable[[datetime], bool]] = None,
        polar: Optional[str] = None,
    ) -> None:
        self.tz = tz
        self.sunrise = sunrise
        self.sunset = sunset
        self.dawn_lead = dawn_lead
        self.dusk_lag = dusk_lag
        self.unavailable = unavailable or (lambda instant: False)
        self.polar = polar
        self.sun_time_calls: list[datetime] = []
        self.altitude_calls = 0

    def _events(self, day: date) -> tuple[datetime, datetime]:
        return (
            datetime.combine(day, self.sunrise, tzinfo=self.tz),
            datetime.combine(day, self.sunset, tzinfo=self.tz),
        )

    def get_sun_times(self, day_start: datetime, lat: float, lon: float) -> SunTimes:
        self.sun_time_calls.append(day_start)
        if self.polar:
            return SunTimes(sunrise=None, sunset=None, status=self.polar)
        sunrise, sunset = self._events(day_start.astimezone(self.tz).date())
        return SunTimes(sunrise=sunrise, sunset=sunset)

    def get_solar_altitude(self, instant: datetime, lat: float, lon: float) -> float:
        self.altitude_calls += 1
        if self.unavailable(instant):
            raise ProviderUnavailable(f"no data for {instant.isoformat()}")
        local = instant.astimezone(self.tz)
        sunrise, sunset = self._events(local.date())
        target = math.radians(KANSEI_TWILIGHT_ALTITUDE_DEG)
        noon = sunrise + (sunset - sunrise) / 2
        if local <= noon:
            minutes = (local - (sunrise - self.dawn_lead)) / timedelta(minutes=1)
            return target + FAKE_ALTITUDE_RATE * minutes
        minutes = (local - (sunset + self.dusk_lag)) / timedelta(minutes=1)
        return target - FAKE_ALTITUDE_RATE * minutes


@pytest.fixture
def fake_provider() -> FakeSunProvider:
    return FakeSunProvider()
