"""The explicit clock context tying configuration, astronomy and plugins together."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from ._types import ClockReading
from .config import WadokeiConfig
from .dial import civil_noon, hand_angle, orient_allocation, read_koku, tick_shift
from .plugins import BACKPLANE, HAND, PluginRegistry
from .provider import SunEventProvider
from .sectors import allocate
from .sekki import SolarTermClassifier
from .solar_day import SolarDayCache
from .twilight import TwilightLocator

LOGGER = logging.getLogger(__name__)


class WadokeiClock:
    """One clock at one location.

    Built once from a :class:`WadokeiConfig`; :meth:`reading` is then called on every
    tick. Only the owned :class:`SolarDayCache` carries state between ticks.
    """

    def __init__(
        self,
        config: WadokeiConfig,
        provider: SunEventProvider,
        registry: Optional[PluginRegistry] = None,
    ) -> None:
        self.config = config
        self.tz = config.tzinfo
        self.provider = provider
        self.cache = SolarDayCache(provider, self.tz, TwilightLocator(provider, config.twilight))
        self.classifier = SolarTermClassifier(self.tz)

        registry = registry or PluginRegistry()
        self.plugin_results = (
            registry.resolve_or_default(BACKPLANE, config.backplane_plugin),
            registry.resolve_or_default(HAND, config.hand_plugin),
        )
        self._backplane = self.plugin_results[0].plugin
        self._hand = self.plugin_results[1].plugin
        for result in self.plugin_results:
            if not result.ok:
                LOGGER.warning(
                    json.dumps(
                        {
                            "event": "plugin_fallback",
                            "capability": result.capability,
                            "error": result.error,
                        }
                    )
                )

    def reading(self, now: datetime) -> ClockReading:
        """Compute the dial state at *now*.

        Raises
        ------
        ProviderUnavailable
            If the ephemeris cannot answer for this day and place.
        DegenerateDayLength
            If the sun does not rise and set on this day.
        """

        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")
        local_now = now.astimezone(self.tz)
        mode = self.config.dial_mode

        solar_day = self.cache.get(local_now, self.config.lat, self.config.lon)
        allocation = orient_allocation(
            allocate(
                solar_day.day_length,
                solar_day.night_length,
                solar_day.dawn_twilight,
                solar_day.dusk_twilight,
            ),
            mode,
        )
        noon = civil_noon(solar_day.date, self.tz)
        shift = tick_shift(solar_day.corrected_noon, noon)
        angle = hand_angle(local_now, noon, shift, mode)

        return ClockReading(
            now=local_now,
            solar_day=solar_day,
            dial_mode=mode,
            allocation=allocation,
            tick_shift=shift,
            hand_angle=angle,
            koku=read_koku(angle, allocation),
            term=self.classifier.classify(local_now),
            backplane=self._backplane(allocation),
            hand=self._hand(angle),
        )
