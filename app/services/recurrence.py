"""
Recurrence calculations for tasks in recurring lists.

Pure functions only: no database access, no clock reads. Everything takes the
reference day as an argument so callers (reminders, read paths, scheduler)
decide what "today" means.

Day-of-week numbering follows the stored task field: 0 = Sunday .. 6 = Saturday.
"""

from datetime import date, timedelta
from typing import Any, Iterable, List, Optional

from app.models.todo_list import ListType
from app.utils.time import as_date

SUNDAY = 0
MONDAY = 1

DEFAULT_REMINDER_DAYS = (1,)

# Cron triggers for resetting each recurring list type (local time)
RESET_CRON = {
    ListType.DAILY: "0 0 * * *",
    ListType.WEEKLY: "0 0 * * 1",
    ListType.MONTHLY: "0 0 1 * *",
    ListType.YEARLY: "0 0 1 1 *",
}


def day_of_week(day: date) -> int:
    """Weekday of `day` with Sunday as 0."""
    return (day.weekday() + 1) % 7


def coerce_list_type(list_type: Any) -> Optional[ListType]:
    if list_type is None or isinstance(list_type, ListType):
        return list_type
    try:
        return ListType(str(list_type).upper())
    except ValueError:
        return None


def next_weekday(reference: date, target_dow: int) -> date:
    """Next occurrence of `target_dow` after `reference`; never `reference` itself."""
    days_until = (target_dow - day_of_week(reference) + 7) % 7
    return reference + timedelta(days=days_until or 7)


def first_of_next_month(reference: date) -> date:
    if reference.month == 12:
        return date(reference.year + 1, 1, 1)
    return date(reference.year, reference.month + 1, 1)


def first_of_next_year(reference: date) -> date:
    return date(reference.year + 1, 1, 1)


def due_date_for(task: Any, list_type: Any, reference_date: date) -> Optional[date]:
    """
    Compute the next due date of a task relative to `reference_date`.

    Precedence:
    1. explicit task.due_date
    2. task.specific_day_of_week (next occurrence, today excluded)
    3. the list type: WEEKLY -> next Sunday, MONTHLY -> 1st of next month,
       YEARLY -> Jan 1 of next year

    Returns None for DAILY lists (every day is due) and for lists without
    recurrence (CUSTOM, FINISHED) when the task has no date of its own.
    """
    reference = as_date(reference_date)

    explicit = as_date(getattr(task, "due_date", None))
    if explicit is not None:
        return explicit

    specific_dow = getattr(task, "specific_day_of_week", None)
    if specific_dow is not None:
        return next_weekday(reference, int(specific_dow))

    kind = coerce_list_type(list_type)
    if kind is ListType.WEEKLY:
        return next_weekday(reference, SUNDAY)
    if kind is ListType.MONTHLY:
        return first_of_next_month(reference)
    if kind is ListType.YEARLY:
        return first_of_next_year(reference)
    return None


def is_default_due_day(list_type: Any, day: date) -> bool:
    """Default due day of a recurring list for tasks with no date of their own."""
    kind = coerce_list_type(list_type)
    if kind is ListType.DAILY:
        return True
    if kind is ListType.WEEKLY:
        return day_of_week(day) == SUNDAY
    if kind is ListType.MONTHLY:
        return day.day == 1
    if kind is ListType.YEARLY:
        return day.month == 1 and day.day == 1
    return False


def is_due_on(task: Any, list_type: Any, day: date) -> bool:
    """Whether the task shows up as due on `day`."""
    day = as_date(day)

    explicit = as_date(getattr(task, "due_date", None))
    if explicit is not None:
        return explicit == day

    specific_dow = getattr(task, "specific_day_of_week", None)
    if specific_dow is not None:
        return day_of_week(day) == int(specific_dow)

    return is_default_due_day(list_type, day)


def is_reset_point(list_type: Any, day: date) -> bool:
    """Whether completed tasks of this list type revert to active at the start of `day`."""
    kind = coerce_list_type(list_type)
    day = as_date(day)
    if kind is ListType.DAILY:
        return True
    if kind is ListType.WEEKLY:
        return day_of_week(day) == MONDAY
    if kind is ListType.MONTHLY:
        return day.day == 1
    if kind is ListType.YEARLY:
        return day.month == 1 and day.day == 1
    return False


def normalize_reminder_days(raw: Any) -> List[int]:
    """
    Convert the stored reminder offsets into a non-empty ordered list.

    Accepts the legacy bare integer, a list of ints, or nothing at all.
    Negative and non-integer entries are dropped; duplicates keep their first
    position. Falls back to [1] when nothing usable remains.
    """
    if raw is None:
        return list(DEFAULT_REMINDER_DAYS)

    if isinstance(raw, bool):
        values: Iterable[Any] = []
    elif isinstance(raw, (int, str)):
        values = [raw]
    elif isinstance(raw, (list, tuple)):
        values = raw
    else:
        values = []

    result: List[int] = []
    for value in values:
        if isinstance(value, bool):
            continue
        try:
            days = int(value)
        except (TypeError, ValueError):
            continue
        if days < 0 or days in result:
            continue
        result.append(days)

    return result or list(DEFAULT_REMINDER_DAYS)
