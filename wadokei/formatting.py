"""Text shown beside the dial."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from ._types import CurrentTerm, SolarDay

WEEKDAY_NAMES = ("月", "火", "水", "木", "金", "土", "日")


def _local(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    return dt.astimezone(tz) if tz is not None else dt


def format_time(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    return _local(dt, tz).strftime("%H:%M")


def format_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """``2025/03/20 (木) 12:00:00`` in 24-hour time."""
    local = _local(dt, tz)
    return f"{local:%Y/%m/%d} ({WEEKDAY_NAMES[local.weekday()]}) {local:%H:%M:%S}"


def info_panel_text(term: CurrentTerm, solar_day: SolarDay, tz: Optional[tzinfo] = None) -> str:
    return "\n".join(
        (
            f"第{term.index}節 {term.name}",
            f"日の出: {format_time(solar_day.sunrise, tz)}",
            f"日の入り: {format_time(solar_day.sunset, tz)}",
        )
    )
