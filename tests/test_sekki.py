from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import TOKYO
from wadokei.sekki import SOLAR_TERMS, SolarTermClassifier, classify


@pytest.fixture
def classifier() -> SolarTermClassifier:
    return SolarTermClassifier(TOKYO)


def _at(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=TOKYO)


def test_table_has_twenty_four_unique_terms():
    assert [term.index for term in SOLAR_TERMS] == list(range(1, 25))
    assert len({term.name for term in SOLAR_TERMS}) == 24


def test_year_table_places_january_terms_in_following_year(classifier):
    table = classifier.year_table(2024)
    assert [entry[1] for entry in table] == sorted(entry[1] for entry in table)
    assert table[0][0].name == "立春"
    assert table[0][1] == datetime(2024, 2, 4, tzinfo=TOKYO)
    assert [(term.index, start.date()) for term, start in table[-2:]] == [
        (23, date(2025, 1, 6)),
        (24, date(2025, 1, 20)),
    ]


def test_vernal_equinox(classifier):
    term = classifier.classify(_at(2024, 3, 20))
    assert (term.index, term.name) == (4, "春分")
    assert term.start == datetime(2024, 3, 20, tzinfo=TOKYO)
    assert term.end == datetime(2024, 4, 5, tzinfo=TOKYO)


def test_new_year_falls_back_to_last_entry_of_own_table(classifier):
    term = classifier.classify(_at(2024, 1, 1, 0, 0))
    assert (term.index, term.name) == (24, "大寒")
    assert term.start == datetime(2025, 1, 20, tzinfo=TOKYO)
    assert term.end == datetime(2024, 2, 4, tzinfo=TOKYO)
    assert term.remaining(_at(2024, 1, 1, 0, 0)) == timedelta(days=34)


@pytest.mark.parametrize("month, day", [(1, 1), (1, 6), (1, 10), (1, 20), (2, 3)])
def test_january_before_risshun_is_daikan(classifier, month, day):
    term = classifier.classify(_at(2024, month, day))
    assert (term.index, term.name) == (24, "大寒")
    assert term.end == datetime(2024, 2, 4, tzinfo=TOKYO)


def test_day_before_risshun(classifier):
    term = classifier.classify(_at(2024, 2, 3, 23, 59))
    assert term.index == 24
    assert classifier.next_term(term).name == "立春"


def test_term_start_is_inclusive(classifier):
    term = classifier.classify(datetime(2024, 2, 4, tzinfo=TOKYO))
    assert (term.index, term.name) == (1, "立春")


@pytest.mark.parametrize("day", [22, 25, 31])
def test_late_december_ends_in_january(classifier, day):
    term = classifier.classify(_at(2024, 12, day))
    assert (term.index, term.name) == (22, "冬至")
    assert term.start == datetime(2024, 12, 22, tzinfo=TOKYO)
    assert term.end == datetime(2025, 1, 6, tzinfo=TOKYO)


def test_terms_tile_risshun_to_year_end(classifier):
    previous = None
    current = _at(2024, 2, 4)
    while current.year == 2024:
        term = classifier.classify(current)
        assert 1 <= term.index <= 22
        assert term.start <= current < term.end
        if previous is not None and previous.index != term.index:
            assert previous.end == term.start
            assert term.index == previous.index + 1
        previous = term
        current += timedelta(days=1)
    assert previous.index == 22


def test_every_instant_has_one_term(classifier):
    current = _at(2024, 1, 1)
    while current.year == 2024:
        term = classifier.classify(current)
        assert 1 <= term.index <= 24
        if current < _at(2024, 2, 4, 0, 0):
            assert term.index == 24
        current += timedelta(hours=13)


def test_instant_is_read_in_classifier_time_zone(classifier):
    # 2024-03-19 16:00 UTC is already 3/20 in Tokyo.
    instant = datetime(2024, 3, 19, 16, 0, tzinfo=timezone.utc)
    assert classifier.classify(instant).name == "春分"
    assert SolarTermClassifier(timezone.utc).classify(instant).name == "啓蟄"


def test_naive_instant_requires_zone_free_classifier():
    with pytest.raises(ValueError):
        SolarTermClassifier(TOKYO).classify(datetime(2024, 3, 20))
    assert classify(datetime(2024, 3, 20, 9)).name == "春分"


def test_next_term_and_remaining(classifier):
    now = _at(2024, 6, 1)
    term = classifier.classify(now)
    assert term.name == "小満"
    assert term.remaining(now) == datetime(2024, 6, 6, tzinfo=TOKYO) - now
    following = classifier.next_term(term)
    assert (following.index, following.name) == (9, "芒種")
    assert following.start == term.end
