"""Interface the core needs from an astronomical ephemeris."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ._types import SunTimes


class SunEventProvider(Protocol):
    """Sunrise/sunset and solar altitude source.

    ``lat``/``lon`` are degrees (east-positive longitude). Implementations raise
    :class:`~wadokei.errors.ProviderUnavailable` when they cannot answer.
    """

    def get_sun_times(self, day_start: datetime, lat: float, lon: float) -> SunTimes:
        """Return sunrise and sunset within the local day beginning at *day_start*."""
        ...

    def get_solar_altitude(self, instant: datetime, lat: float, lon: float) -> float:
        """Return the apparent solar altitude at *instant* in radians."""
        ...
