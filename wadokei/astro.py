"""Sunrise, sunset and solar altitude from JPL ephemerides."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from threading import Lock
from typing import List, Optional, Tuple

import erfa
import numpy as np
import spiceypy as spice
from spiceypy.utils.exceptions import SpiceyError

from ._types import SunTimes
from .errors import ProviderUnavailable

__all__ = ["load_ephemeris", "loaded_kernels", "SpiceSunProvider", "SUNRISE_ALTITUDE_DEG"]

LOGGER = logging.getLogger(__name__)

# Upper limb on the horizon with standard refraction.
SUNRISE_ALTITUDE_DEG = -0.833

EARTH_EQUATORIAL_RADIUS_KM = 6378.137  # WGS84 equatorial radius in kilometers.
EARTH_EQUATORIAL_RADIUS_M = EARTH_EQUATORIAL_RADIUS_KM * 1000.0
EARTH_FLATTENING = 1.0 / 298.257223563  # WGS84 flattening.

_LOADED_FILES: Optional[List[str]] = None
_LOAD_LOCK = Lock()


class EphemerisError(ProviderUnavailable):
    """Raised when ephemeris loading or computation fails."""


@dataclass(frozen=True)
class _TimeScales:
    """Container for time-scale representations of a UTC instant."""

    utc: Tuple[float, float]
    ut1: Tuple[float, float]
    tt: Tuple[float, float]
    et: float


def load_ephemeris(bsp_dir: str) -> List[str]:
    """Load all SPK kernels from *bsp_dir* using :mod:`spiceypy`.

    Parameters
    ----------
    bsp_dir:
        Directory containing one or more ``.bsp`` files.

    Returns
    -------
    list[str]
        Sorted list of loaded kernel file names.

    Raises
    ------
    EphemerisError
        If the directory is missing or contains no ``.bsp`` files.
    """

    global _LOADED_FILES

    if _LOADED_FILES is not None:
        return _LOADED_FILES

    path = Path(bsp_dir).expanduser()
    if not path.is_dir():
        raise EphemerisError(f"Ephemeris directory not found: {path}")

    with _LOAD_LOCK:
        if _LOADED_FILES is not None:
            return _LOADED_FILES

        bsp_files = sorted(
            file for file in path.iterdir() if file.is_file() and file.suffix.lower() == ".bsp"
        )
        if not bsp_files:
            raise EphemerisError(f"No .bsp ephemeris files found in directory: {path}")

        loaded: List[str] = []
        try:
            for bsp_file in bsp_files:
                spice.furnsh(str(bsp_file))
                loaded.append(bsp_file.name)
        except SpiceyError as exc:
            spice.kclear()
            raise EphemerisError(f"Failed to load ephemeris file '{bsp_file}': {exc}") from exc

        _LOADED_FILES = loaded
        LOGGER.info(json.dumps({"event": "ephemeris_loaded", "files": loaded}))
        return loaded


def loaded_kernels() -> List[str]:
    return list(_LOADED_FILES or [])


def unload_ephemeris() -> None:
    """Forget every loaded kernel."""

    global _LOADED_FILES

    with _LOAD_LOCK:
        spice.kclear()
        _LOADED_FILES = None


def _datetime_to_timescales(dt: datetime) -> _TimeScales:
    """Convert a timezone-aware datetime into multiple time scales."""

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    dt_utc = dt.astimezone(UTC)
    utc1, utc2 = erfa.dtf2d(
        "UTC",
        dt_utc.year,
        dt_utc.month,
        dt_utc.day,
        dt_utc.hour,
        dt_utc.minute,
        dt_utc.second + dt_utc.microsecond / 1_000_000,
    )
    tai1, tai2 = erfa.utctai(utc1, utc2)
    tt1, tt2 = erfa.taitt(tai1, tai2)
    ut11, ut12 = erfa.utcut1(utc1, utc2, 0.0)
    et = (tt1 - erfa.DJ00) * erfa.DAYSEC + tt2 * erfa.DAYSEC
    return _TimeScales(utc=(utc1, utc2), ut1=(ut11, ut12), tt=(tt1, tt2), et=et)


def _site_vector(lat_rad: float, lon_rad: float, elev_m: float) -> np.ndarray:
    """Return the geocentric position vector for the observer in ITRF (km)."""

    altitude_km = elev_m / 1000.0
    return np.array(
        spice.georec(lon_rad, lat_rad, altitude_km, EARTH_EQUATORIAL_RADIUS_KM, EARTH_FLATTENING),
        dtype=float,
    )


def _horizon_dip_degrees(elev_m: float) -> float:
    """Approximate depression of the horizon due to observer height."""

    if elev_m <= 0:
        return 0.0
    # Small-angle approximation valid for h << R.
    return math.degrees(math.sqrt(2.0 * elev_m / EARTH_EQUATORIAL_RADIUS_M))


def _sun_altitude_degrees(dt: datetime, site_vector: np.ndarray, site_up: np.ndarray) -> float:
    """Apparent altitude of the sun in degrees above the geometric horizon."""

    times = _datetime_to_timescales(dt)
    try:
        sun_vector, _ = spice.spkpos("SUN", times.et, "J2000", "LT+S", "EARTH")
    except SpiceyError as exc:
        raise ProviderUnavailable(f"No solar ephemeris for {dt.isoformat()}: {exc}") from exc
    rotation = np.array(erfa.c2t06a(*times.tt, *times.ut1, 0.0, 0.0), dtype=float)
    sun_itrf = rotation @ np.array(sun_vector, dtype=float)
    topocentric = sun_itrf - site_vector
    norm = np.linalg.norm(topocentric)
    if norm == 0:
        raise EphemerisError("Degenerate topocentric vector encountered")
    return math.degrees(math.asin(float(np.clip(np.dot(topocentric / norm, site_up), -1.0, 1.0))))


class SpiceSunProvider:
    """:class:`~wadokei.provider.SunEventProvider` backed by loaded SPK kernels."""

    def __init__(self, elev_m: float = 0.0, scan_step: timedelta = timedelta(minutes=5)) -> None:
        self.elev_m = elev_m
        self.scan_step = scan_step

    def _site(self, lat: float, lon: float) -> Tuple[np.ndarray, np.ndarray]:
        if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
            raise ProviderUnavailable(f"Invalid coordinates: ({lat}, {lon})")
        site_vector = _site_vector(math.radians(lat), math.radians(lon), self.elev_m)
        return site_vector, site_vector / np.linalg.norm(site_vector)

    def _require_kernels(self) -> None:
        if _LOADED_FILES is None:
            raise EphemerisError("Ephemeris kernels have not been loaded")

    def get_solar_altitude(self, instant: datetime, lat: float, lon: float) -> float:
        self._require_kernels()
        site_vector, site_up = self._site(lat, lon)
        return math.radians(_sun_altitude_degrees(instant, site_vector, site_up))

    def _refine_crossing(
        self,
        start_dt: datetime,
        end_dt: datetime,
        site_vector: np.ndarray,
        site_up: np.ndarray,
        threshold: float,
        max_iterations: int = 24,
    ) -> datetime:
        """Refine the crossing between *start_dt* and *end_dt* via binary search."""

        value_start = _sun_altitude_degrees(start_dt, site_vector, site_up) - threshold
        value_end = _sun_altitude_degrees(end_dt, site_vector, site_up) - threshold
        if value_start == 0:
            return start_dt
        if value_end == 0:
            return end_dt
        low_dt, low_val = start_dt, value_start
        high_dt = end_dt
        for _ in range(max_iterations):
            mid_dt = low_dt + (high_dt - low_dt) / 2
            mid_val = _sun_altitude_degrees(mid_dt, site_vector, site_up) - threshold
            if abs(mid_val) < 1e-4 or (high_dt - low_dt) <= timedelta(seconds=1):
                return mid_dt
            if low_val * mid_val <= 0:
                high_dt = mid_dt
            else:
                low_dt, low_val = mid_dt, mid_val
        return low_dt + (high_dt - low_dt) / 2

    def get_sun_times(self, day_start: datetime, lat: float, lon: float) -> SunTimes:
        """Sunrise and sunset within the 24 hours following *day_start*.

        Returns ``None`` instants with status ``polar_day``/``polar_night`` when the
        sun stays above or below the horizon all day.
        """

        self._require_kernels()
        if day_start.tzinfo is None:
            raise ValueError("day_start must be timezone-aware")
        site_vector, site_up = self._site(lat, lon)
        threshold = SUNRISE_ALTITUDE_DEG - _horizon_dip_degrees(self.elev_m)

        window_end = day_start + timedelta(days=1)
        samples: List[float] = []
        times: List[datetime] = []
        current = day_start
        while current <= window_end:
            samples.append(_sun_altitude_degrees(current, site_vector, site_up) - threshold)
            times.append(current)
            current += self.scan_step

        sunrise: Optional[datetime] = None
        sunset: Optional[datetime] = None
        for idx in range(1, len(times)):
            prev_val, curr_val = samples[idx - 1], samples[idx]
            if sunrise is None and prev_val < 0 <= curr_val:
                sunrise = self._refine_crossing(
                    times[idx - 1], times[idx], site_vector, site_up, threshold
                )
            if sunset is None and prev_val >= 0 > curr_val:
                sunset = self._refine_crossing(
                    times[idx - 1], times[idx], site_vector, site_up, threshold
                )

        if sunrise is not None and sunset is not None and sunrise < sunset:
            status = "ok"
        elif max(samples) < 0:
            status = "polar_night"
        elif min(samples) > 0:
            status = "polar_day"
        else:
            status = "indeterminate"

        LOGGER.debug(
            json.dumps(
                {
                    "event": "sun_times",
                    "day_start": day_start.isoformat(),
                    "lat": lat,
                    "lon": lon,
                    "status": status,
                }
            )
        )
        return SunTimes(sunrise=sunrise, sunset=sunset, status=status)
