"""Zodiac sector angles of the unequal-hour dial.

All angles are radians in the dial frame: 0 is 午 (noon) and angles increase
counter-clockwise. Day and night are each cut into six equal-angle koku anchored at
午, 子, 卯 and 酉; the remaining signs trisect the arcs between those anchors.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Dict, Tuple

from ._types import SectorAllocation
from .errors import DegenerateDayLength

TWO_PI = 2.0 * math.pi
FULL_DAY = timedelta(hours=24)

ZODIAC = ("子", "丑", "寅", "卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥")

# Dial order starting from the dawn sign; tick i opens the sector of TICK_ORDER[i].
TICK_ORDER = ("卯", "辰", "巳", "午", "未", "申", "酉", "戌", "亥", "子", "丑", "寅")
DAY_SIGNS = frozenset(TICK_ORDER[:6])

# (arc start, arc end, first inner sign, second inner sign)
_TRISECTIONS = (
    ("卯", "午", "辰", "巳"),
    ("午", "酉", "未", "申"),
    ("酉", "子", "戌", "亥"),
    ("子", "卯", "丑", "寅"),
)


def normalize_angle(angle: float) -> float:
    """Reduce *angle* to the half-open range [0, 2π)."""
    reduced = angle % TWO_PI
    # -1e-17 % 2π rounds to exactly 2π.
    if reduced >= TWO_PI:
        return 0.0
    return reduced


def arc_width(start: float, end: float) -> float:
    """Counter-clockwise width of the arc from *start* to *end*."""
    return (end - start + TWO_PI) % TWO_PI


def circular_midpoint(start: float, end: float) -> float:
    """Midpoint of the counter-clockwise arc from *start* to *end*."""
    return normalize_angle(start + arc_width(start, end) / 2.0)


def theta_day(dawn: datetime, dusk: datetime) -> float:
    """Angular width of the corrected day (暁六つ → 暮六つ)."""
    return (dusk - dawn) / FULL_DAY * TWO_PI


def _check_lengths(day_length: timedelta, night_length: timedelta) -> None:
    if day_length + night_length != FULL_DAY:
        raise DegenerateDayLength(
            f"Day and night lengths must sum to 24h, got {day_length} + {night_length}"
        )
    if day_length <= timedelta(0) or day_length >= FULL_DAY:
        raise DegenerateDayLength(f"Day length out of range: {day_length}")


def sector_angles(theta: float) -> Dict[str, float]:
    """Center angle of each zodiac sign for a corrected day of width *theta*."""

    if not 0.0 < theta < TWO_PI:
        raise DegenerateDayLength(f"Corrected day angle out of range: {theta!r}")

    angle: Dict[str, float] = {
        "午": 0.0,
        "子": math.pi,
        "卯": normalize_angle(-theta / 2.0),
        "酉": normalize_angle(theta / 2.0),
    }
    for start, end, first, second in _TRISECTIONS:
        width = arc_width(angle[start], angle[end])
        angle[first] = normalize_angle(angle[start] + width / 3.0)
        angle[second] = normalize_angle(angle[start] + 2.0 * width / 3.0)

    return {sign: angle[sign] for sign in ZODIAC}


def tick_angles(angles: Dict[str, float]) -> Tuple[float, ...]:
    """Sector boundaries in :data:`TICK_ORDER`, closed by ``ticks[0] + 2π``."""

    ticks = []
    for position, sign in enumerate(TICK_ORDER):
        predecessor = TICK_ORDER[position - 1]
        ticks.append(circular_midpoint(angles[predecessor], angles[sign]))
    ticks.append(ticks[0] + TWO_PI)
    return tuple(ticks)


def allocate(
    day_length: timedelta,
    night_length: timedelta,
    dawn_corrected: datetime,
    dusk_corrected: datetime,
) -> SectorAllocation:
    """Assign every zodiac sign its center angle and derive the tick ring.

    Raises
    ------
    DegenerateDayLength
        If the lengths do not describe a day with both a sunrise and a sunset.
    """

    _check_lengths(day_length, night_length)
    theta = theta_day(dawn_corrected, dusk_corrected)
    angles = sector_angles(theta)
    return SectorAllocation(
        sector_angles=angles,
        tick_angles=tick_angles(angles),
        theta_day=theta,
    )
