from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from taskbook.domain.enums import StatusFilter, ViewMode
from taskbook.domain.filters import Predicate, build_predicate
from taskbook.services.sorting import MONTH_NAMES

logger = logging.getLogger(__name__)

SEARCH_LIMIT_DAYS = 365
GRID_ROWS = 6
GRID_COLUMNS = 7
WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class DateNavigator:
    """Finds the nearest day with at least one task, one day at a time.

    The scan stops after SEARCH_LIMIT_DAYS candidates so an empty store
    still terminates; None means nothing was found in range.
    """

    def __init__(
        self,
        count_matching: Callable[[Predicate], int],
        limit: int = SEARCH_LIMIT_DAYS,
    ) -> None:
        self._count_matching = count_matching
        self._limit = limit

    def find_adjacent_date(self, from_date: date, direction: int) -> Optional[date]:
        if direction not in (-1, 1):
            raise ValueError(f"direction must be -1 or 1, got {direction}")

        for step in range(1, self._limit + 1):
            candidate = from_date + timedelta(days=direction * step)
            predicate = build_predicate(ViewMode.BY_DATE, candidate, StatusFilter.ALL, "")
            if self._count_matching(predicate) > 0:
                logger.debug("Found tasks on %s after %d step(s)", candidate, step)
                return candidate

        logger.debug("No day with tasks within %d days of %s", self._limit, from_date)
        return None


@dataclass(frozen=True)
class CalendarMonth:
    year: int
    month: int

    @classmethod
    def containing(cls, day: date) -> CalendarMonth:
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days_in_month(self) -> int:
        return days_in_month(self.year, self.month)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    @property
    def first_weekday_offset(self) -> int:
        # Columns start on Sunday; date.weekday() starts on Monday.
        return (self.first_day.weekday() + 1) % 7

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year:04d}"

    def grid(self) -> list[list[Optional[date]]]:
        cells: list[Optional[date]] = [None] * self.first_weekday_offset
        cells.extend(
            self.first_day + timedelta(days=offset) for offset in range(self.days_in_month)
        )
        cells.extend([None] * (GRID_ROWS * GRID_COLUMNS - len(cells)))
        return [cells[row * GRID_COLUMNS:(row + 1) * GRID_COLUMNS] for row in range(GRID_ROWS)]


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
