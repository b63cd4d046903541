from datetime import date
from types import SimpleNamespace

import pytest

from app.models.todo_list import ListType
from app.services.recurrence import (
    coerce_list_type,
    day_of_week,
    due_date_for,
    is_due_on,
    is_reset_point,
    normalize_reminder_days,
)

pytestmark = pytest.mark.unit

# 2024-01-01 is a Monday, 2024-01-07 a Sunday
MONDAY = date(2024, 1, 1)
SUNDAY = date(2024, 1, 7)


def make_task(due_date=None, specific_day_of_week=None, reminder_days_before=None):
    return SimpleNamespace(
        due_date=due_date,
        specific_day_of_week=specific_day_of_week,
        reminder_days_before=reminder_days_before,
    )


def test_day_of_week_counts_from_sunday():
    assert day_of_week(SUNDAY) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2024, 1, 6)) == 6


def test_explicit_due_date_wins_over_everything():
    task = make_task(due_date=date(2024, 3, 5), specific_day_of_week=2)
    for list_type in ListType:
        assert due_date_for(task, list_type, MONDAY) == date(2024, 3, 5)


def test_specific_weekday_is_next_occurrence_excluding_today():
    assert due_date_for(make_task(specific_day_of_week=3), ListType.WEEKLY, MONDAY) == date(2024, 1, 3)
    assert due_date_for(make_task(specific_day_of_week=1), ListType.WEEKLY, MONDAY) == date(2024, 1, 8)
    assert due_date_for(make_task(specific_day_of_week=0), ListType.CUSTOM, MONDAY) == SUNDAY


def test_weekly_default_is_next_sunday():
    assert due_date_for(make_task(), ListType.WEEKLY, MONDAY) == SUNDAY
    assert due_date_for(make_task(), ListType.WEEKLY, SUNDAY) == date(2024, 1, 14)


def test_monthly_default_is_first_of_next_month():
    assert due_date_for(make_task(), ListType.MONTHLY, date(2024, 1, 15)) == date(2024, 2, 1)
    assert due_date_for(make_task(), ListType.MONTHLY, date(2024, 2, 1)) == date(2024, 3, 1)
    assert due_date_for(make_task(), ListType.MONTHLY, date(2024, 12, 31)) == date(2025, 1, 1)


def test_yearly_default_is_next_new_year():
    assert due_date_for(make_task(), ListType.YEARLY, date(2024, 6, 1)) == date(2025, 1, 1)
    assert due_date_for(make_task(), ListType.YEARLY, date(2024, 1, 1)) == date(2025, 1, 1)


def test_no_due_date_without_recurrence_or_for_daily():
    for list_type in (ListType.DAILY, ListType.CUSTOM, ListType.FINISHED):
        assert due_date_for(make_task(), list_type, MONDAY) is None


def test_due_date_accepts_list_type_names():
    assert coerce_list_type("weekly") is ListType.WEEKLY
    assert coerce_list_type("unknown") is None
    assert due_date_for(make_task(), "MONTHLY", date(2024, 1, 15)) == date(2024, 2, 1)


def test_is_due_on_follows_the_same_precedence():
    assert is_due_on(make_task(due_date=date(2024, 1, 3)), ListType.DAILY, date(2024, 1, 3))
    assert not is_due_on(make_task(due_date=date(2024, 1, 3)), ListType.DAILY, date(2024, 1, 4))

    wednesday_task = make_task(specific_day_of_week=3)
    assert is_due_on(wednesday_task, ListType.WEEKLY, date(2024, 1, 3))
    assert not is_due_on(wednesday_task, ListType.WEEKLY, SUNDAY)

    assert is_due_on(make_task(), ListType.DAILY, date(2024, 5, 17))
    assert is_due_on(make_task(), ListType.WEEKLY, SUNDAY)
    assert not is_due_on(make_task(), ListType.WEEKLY, MONDAY)
    assert is_due_on(make_task(), ListType.MONTHLY, date(2024, 7, 1))
    assert is_due_on(make_task(), ListType.YEARLY, date(2025, 1, 1))
    assert not is_due_on(make_task(), ListType.CUSTOM, MONDAY)


def test_reset_points():
    assert is_reset_point(ListType.DAILY, date(2024, 5, 17))
    assert is_reset_point(ListType.WEEKLY, MONDAY)
    assert not is_reset_point(ListType.WEEKLY, SUNDAY)
    assert is_reset_point(ListType.MONTHLY, date(2024, 8, 1))
    assert not is_reset_point(ListType.MONTHLY, date(2024, 8, 2))
    assert is_reset_point(ListType.YEARLY, date(2025, 1, 1))
    assert not is_reset_point(ListType.YEARLY, date(2025, 2, 1))
    assert not is_reset_point(ListType.CUSTOM, MONDAY)
    assert not is_reset_point(ListType.FINISHED, MONDAY)


def test_normalize_reminder_days():
    assert normalize_reminder_days(None) == [1]
    assert normalize_reminder_days([]) == [1]
    assert normalize_reminder_days(3) == [3]
    assert normalize_reminder_days([7, 1, 0]) == [7, 1, 0]
    assert normalize_reminder_days([2, 2, -1, "x", None, 5]) == [2, 5]
    assert normalize_reminder_days(True) == [1]
    assert normalize_reminder_days([-3]) == [1]
    assert normalize_reminder_days({"days": 2}) == [1]


def test_weekly_due_date_from_a_sunday_is_seven_days_later():
    for sunday in (SUNDAY, date(2024, 3, 31), date(2024, 12, 29)):
        assert (due_date_for(make_task(), ListType.WEEKLY, sunday) - sunday).days == 7
