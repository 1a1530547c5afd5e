"""二十四節気 classification from fixed nominal calendar dates.

The nominal dates approximate the 15° steps of solar ecliptic longitude; they are
not computed astronomically. A year table for ``Y`` places 小寒 and 大寒 in January
of ``Y + 1`` so that the table runs from 立春 to the following 大寒. Instants between
1 January and 立春 are reported as 大寒 of their own year's table.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, time, tzinfo
from datetime import date as date_cls
from typing import List, Optional, Tuple

from ._types import CurrentTerm, SolarTerm

LOGGER = logging.getLogger(__name__)

SOLAR_TERMS: Tuple[SolarTerm, ...] = (
    SolarTerm(1, "立春", 2, 4),
    SolarTerm(2, "雨水", 2, 19),
    SolarTerm(3, "啓蟄", 3, 6),
    SolarTerm(4, "春分", 3, 20),
    SolarTerm(5, "清明", 4, 5),
    SolarTerm(6, "穀雨", 4, 20),
    SolarTerm(7, "立夏", 5, 5),
    SolarTerm(8, "小満", 5, 21),
    SolarTerm(9, "芒種", 6, 6),
    SolarTerm(10, "夏至", 6, 21),
    SolarTerm(11, "小暑", 7, 7),
    SolarTerm(12, "大暑", 7, 23),
    SolarTerm(13, "立秋", 8, 8),
    SolarTerm(14, "処暑", 8, 23),
    SolarTerm(15, "白露", 9, 8),
    SolarTerm(16, "秋分", 9, 23),
    SolarTerm(17, "寒露", 10, 8),
    SolarTerm(18, "霜降", 10, 23),
    SolarTerm(19, "立冬", 11, 7),
    SolarTerm(20, "小雪", 11, 22),
    SolarTerm(21, "大雪", 12, 7),
    SolarTerm(22, "冬至", 12, 22),
    SolarTerm(23, "小寒", 1, 6),
    SolarTerm(24, "大寒", 1, 20),
)

# Terms from this index on belong to January of the following civil year.
NEXT_YEAR_FROM_INDEX = 23

TableEntry = Tuple[SolarTerm, datetime]


class SolarTermClassifier:
    """Find the active solar term for an instant in a given time zone."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz

    def _localize(self, instant: datetime) -> datetime:
        if self.tz is None:
            return instant
        if instant.tzinfo is None:
            raise ValueError("instant must be timezone-aware")
        return instant.astimezone(self.tz)

    def _start_of(self, year: int, month: int, day: int, zone: Optional[tzinfo]) -> datetime:
        return datetime.combine(date_cls(year, month, day), time.min, tzinfo=zone)

    def year_table(self, year: int, zone: Optional[tzinfo] = None) -> List[TableEntry]:
        """Every term of the *year* table at local midnight, sorted by instant."""

        zone = zone if zone is not None else self.tz
        table = []
        for term in SOLAR_TERMS:
            term_year = year + 1 if term.index >= NEXT_YEAR_FROM_INDEX else year
            table.append((term, self._start_of(term_year, term.month, term.day, zone)))
        table.sort(key=lambda entry: entry[1])
        return table

    def classify(self, instant: datetime) -> CurrentTerm:
        """Return the term interval ``[start, end)`` containing *instant*.

        Only the table of the instant's own year is consulted. Instants before its
        立春 match no interval and fall back to the table's last entry (大寒), whose
        interval is reported from that entry to the table's first 立春.
        """

        local = self._localize(instant)
        zone = local.tzinfo
        table = self.year_table(local.year, zone)
        following = self.year_table(local.year + 1, zone)

        for i, (term, start) in enumerate(table):
            if i + 1 < len(table):
                end = table[i + 1][1]
            else:
                end = following[(i + 1) % len(following)][1]
            if start <= local < end:
                return CurrentTerm(index=term.index, name=term.name, start=start, end=end)

        last_term, last_start = table[-1]
        # Every instant from 1 Jan to 立春 lands here.
        LOGGER.debug(
            json.dumps(
                {"event": "sekki_fallback", "instant": local.isoformat()},
                ensure_ascii=False,
            )
        )
        return CurrentTerm(
            index=last_term.index, name=last_term.name, start=last_start, end=table[0][1]
        )

    def next_term(self, current: CurrentTerm) -> CurrentTerm:
        """The term that begins when *current* ends."""
        return self.classify(current.end)


def classify(instant: datetime, tz: Optional[tzinfo] = None) -> CurrentTerm:
    """Classify *instant* with a one-off :class:`SolarTermClassifier`."""
    return SolarTermClassifier(tz).classify(instant)
