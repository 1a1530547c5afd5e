"""Dial orientation, the clock-phase correction and reading the hand."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, Sequence, Tuple

from ._types import DialMode, KokuReading, SectorAllocation
from .sectors import DAY_SIGNS, TICK_ORDER, TWO_PI, normalize_angle

MS_PER_DAY = 86_400_000
RADIANS_PER_MS = TWO_PI / MS_PER_DAY

# Koku counts, read from 卯 onwards; the same six numerals serve day and night.
KOKU_NUMERALS = ("六", "五", "四", "九", "八", "七") * 2

_SPECIAL_LABELS = {"卯": "明け六つ", "酉": "暮れ六つ"}


def rotation(mode: DialMode) -> float:
    """Global dial rotation for *mode*: π puts 子 at the top."""
    return math.pi if DialMode(mode) is DialMode.midnight_up else 0.0


def orient(
    sector_angles: Dict[str, float],
    tick_angles: Sequence[float],
    mode: DialMode,
) -> Tuple[Dict[str, float], Tuple[float, ...]]:
    """Rotate sector centers and ticks for *mode*.

    The closing tick is rebuilt from the rotated first tick so that
    ``ticks[-1] == ticks[0] + 2π`` still holds.
    """

    shift = rotation(mode)
    rotated = {sign: normalize_angle(angle + shift) for sign, angle in sector_angles.items()}
    ring = [normalize_angle(angle + shift) for angle in tick_angles[:-1]]
    ring.append(ring[0] + TWO_PI)
    return rotated, tuple(ring)


def orient_allocation(allocation: SectorAllocation, mode: DialMode) -> SectorAllocation:
    angles, ticks = orient(allocation.sector_angles, allocation.tick_angles, mode)
    return SectorAllocation(
        sector_angles=angles, tick_angles=ticks, theta_day=allocation.theta_day
    )


def civil_noon(day: date, tz: tzinfo) -> datetime:
    """12:00 on the clock face of *day* in *tz*."""
    return datetime.combine(day, time(12, 0), tzinfo=tz)


def tick_shift(corrected_noon: datetime, noon: datetime) -> float:
    """Offset of the corrected noon from civil noon, as a hand angle."""
    delta_ms = (corrected_noon - noon) / timedelta(milliseconds=1)
    return delta_ms * RADIANS_PER_MS


def hand_angle(
    now: datetime,
    noon: datetime,
    shift: float,
    mode: DialMode = DialMode.noon_up,
) -> float:
    """Angle of the time-of-day hand in the dial frame.

    The hand points at 午 at corrected noon, so the clock-phase correction is
    removed from the civil time angle rather than applied to the dial.

    The shift is subtracted on purpose. Adding it, as a naive phase offset would,
    puts 午 under the hand at civil noon minus the drift, twice the drift away
    from corrected noon.
    """

    elapsed_ms = (now - noon) / timedelta(milliseconds=1)
    return normalize_angle(elapsed_ms * RADIANS_PER_MS - shift + rotation(mode))


def _unwrap(ticks: Sequence[float]) -> list:
    ring = [ticks[0]]
    for angle in ticks[1:-1]:
        while angle < ring[-1]:
            angle += TWO_PI
        ring.append(angle)
    ring.append(ring[0] + TWO_PI)
    return ring


def read_koku(angle: float, allocation: SectorAllocation) -> KokuReading:
    """Which koku the hand at *angle* lies in, and how far through it."""

    ring = _unwrap(allocation.tick_angles)
    position = normalize_angle(angle)
    if position < ring[0]:
        position += TWO_PI

    index = len(TICK_ORDER) - 1
    for i in range(len(TICK_ORDER)):
        if ring[i] <= position < ring[i + 1]:
            index = i
            break

    sign = TICK_ORDER[index]
    numeral = KOKU_NUMERALS[index]
    width = ring[index + 1] - ring[index]
    fraction = (position - ring[index]) / width if width > 0 else 0.0
    return KokuReading(
        zodiac=sign,
        numeral=numeral,
        label=_SPECIAL_LABELS.get(sign, f"{numeral}つ"),
        is_day=sign in DAY_SIGNS,
        fraction=min(max(fraction, 0.0), 1.0),
    )
