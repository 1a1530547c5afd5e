"""Search for the 暁六つ/暮六つ instants around sunrise and sunset."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Optional

from .config import TwilightSettings
from .errors import NoTwilightFound, ProviderUnavailable
from .provider import SunEventProvider

LOGGER = logging.getLogger(__name__)


class TwilightLocator:
    """Bounded scan for the instant at which the sun reaches a fixed altitude.

    This is not a root finder: altitude is sampled at a fixed step between two
    instants and the sample closest to the target wins. The solar altitude is
    assumed monotonic across the window, which holds near sunrise and sunset
    outside polar latitudes.
    """

    def __init__(
        self,
        provider: SunEventProvider,
        settings: Optional[TwilightSettings] = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or TwilightSettings()

    @property
    def step(self) -> timedelta:
        return timedelta(minutes=self.settings.sample_step_minutes)

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.settings.search_window_minutes)

    def locate(
        self,
        reference: datetime,
        search_window_end: datetime,
        target_altitude: float,
        lat: float,
        lon: float,
    ) -> datetime:
        """Return the sampled instant whose altitude is closest to *target_altitude*.

        Both ends of the window are sampled. Ties go to the earliest sample.

        Raises
        ------
        NoTwilightFound
            If the provider was unavailable for every sample.
        """

        start, end = sorted((reference, search_window_end))
        best: Optional[datetime] = None
        best_diff = float("inf")
        skipped = 0

        current = start
        while current <= end:
            try:
                altitude = self.provider.get_solar_altitude(current, lat, lon)
            except ProviderUnavailable:
                skipped += 1
            else:
                diff = abs(altitude - target_altitude)
                if diff < best_diff:
                    best_diff = diff
                    best = current
            current += self.step

        if best is None:
            raise NoTwilightFound(
                f"No altitude samples between {start.isoformat()} and {end.isoformat()}"
            )
        if skipped:
            LOGGER.warning(
                json.dumps(
                    {
                        "event": "twilight_samples_skipped",
                        "start": start.isoformat(),
                        "end": end.isoformat(),
                        "skipped": skipped,
                    }
                )
            )
        return best

    def dawn(self, sunrise: datetime, lat: float, lon: float) -> datetime:
        """暁六つ: the crossing within the hour before *sunrise*."""
        return self.locate(
            sunrise - self.window, sunrise, self.settings.target_altitude_rad, lat, lon
        )

    def dusk(self, sunset: datetime, lat: float, lon: float) -> datetime:
        """暮六つ: the crossing within the hour after *sunset*."""
        return self.locate(
            sunset, sunset + self.window, self.settings.target_altitude_rad, lat, lon
        )
