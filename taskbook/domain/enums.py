from __future__ import annotations

from enum import IntEnum, StrEnum


class ViewMode(StrEnum):
    BY_DATE = "by_date"
    ALL = "all"
    CALENDAR = "calendar"


class StatusFilter(StrEnum):
    ALL = "all"
    DONE = "done"
    UNDONE = "undone"


class SortKey(IntEnum):
    TITLE = 0
    DESCRIPTION = 1
    DUE_DATE = 2
    PROJECT = 3
    CONTEXT = 4
    CREATED = 5
    STATUS = 6

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", " ")

    def next(self) -> SortKey:
        return SortKey((self + 1) % len(SortKey))


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> SortOrder:
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class GroupKey(IntEnum):
    NONE = 0
    PROJECT = 1
    CONTEXT = 2
    DAILY = 3
    WEEKLY = 4
    MONTHLY = 5
    YEARLY = 6

    @property
    def label(self) -> str:
        return self.name.lower()

    def next(self) -> GroupKey:
        return GroupKey((self + 1) % len(GroupKey))


class OrderHint(StrEnum):
    DUE_DATE_DESC = "due_date_desc"
    DUE_DATE_ASC = "due_date_asc"


class ExportType(StrEnum):
    JSON = "json"
    TXT = "txt"
    CSV = "csv"
    ICS = "ics"


class InputMode(StrEnum):
    NORMAL = "normal"
    ADD = "add"
    EDIT = "edit"
    DELETE_CONFIRM = "delete_confirm"
    SEARCH = "search"
    HELP = "help"
