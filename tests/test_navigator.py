from __future__ import annotations

from datetime import date

import pytest

from taskbook.domain.filters import DueOn
from taskbook.services.navigator import CalendarMonth, DateNavigator, days_in_month


class CountingStore:
    def __init__(self, days=()) -> None:
        self.days = set(days)
        self.calls: list[date] = []

    def count_matching(self, predicate) -> int:
        (clause,) = predicate.clauses
        assert isinstance(clause, DueOn)
        self.calls.append(clause.day)
        return 1 if clause.day in self.days else 0


def test_empty_store_gives_up_after_a_year():
    store = CountingStore()
    navigator = DateNavigator(store.count_matching)

    assert navigator.find_adjacent_date(date(2024, 3, 1), 1) is None
    assert len(store.calls) == 365
    assert store.calls[0] == date(2024, 3, 2)
    assert store.calls[-1] == date(2025, 3, 1)


def test_finds_nearest_day_in_each_direction():
    store = CountingStore({date(2024, 2, 20), date(2024, 3, 10), date(2024, 3, 20)})
    navigator = DateNavigator(store.count_matching)

    assert navigator.find_adjacent_date(date(2024, 3, 1), 1) == date(2024, 3, 10)
    assert navigator.find_adjacent_date(date(2024, 3, 1), -1) == date(2024, 2, 20)


def test_start_day_itself_is_skipped():
    store = CountingStore({date(2024, 3, 1)})
    navigator = DateNavigator(store.count_matching, limit=10)

    assert navigator.find_adjacent_date(date(2024, 3, 1), 1) is None


def test_direction_must_be_unit():
    navigator = DateNavigator(CountingStore().count_matching)

    with pytest.raises(ValueError):
        navigator.find_adjacent_date(date(2024, 3, 1), 2)


def test_calendar_month_grid_starts_on_sunday():
    month = CalendarMonth(2024, 3)
    grid = month.grid()

    assert month.title == "March 2024"
    assert month.first_weekday_offset == 5
    assert len(grid) == 6 and all(len(week) == 7 for week in grid)
    assert grid[0][:5] == [None] * 5
    assert grid[0][5] == date(2024, 3, 1)
    assert grid[4][6] == date(2024, 3, 30)
    assert grid[5][0] == date(2024, 3, 31)


def test_calendar_month_bounds():
    month = CalendarMonth.containing(date(2024, 2, 14))

    assert month.first_day == date(2024, 2, 1)
    assert month.last_day == date(2024, 2, 29)
    assert month.title == "February 2024"


def test_days_in_month_handles_year_end():
    assert days_in_month(2023, 12) == 31
    assert days_in_month(2023, 2) == 28
