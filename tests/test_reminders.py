import asyncio
import uuid
from datetime import date
from types import SimpleNamespace

import pytest

from app.errors import InvalidStateError
from app.models.todo_list import ListType
from app.services.reminder_service import (
    ReminderService,
    build_notifications,
    build_notifications_for_range,
    format_reminder_message,
)
from conftest import add_list, add_task, add_user, create_test_db, share_list, utc

TODAY = date(2024, 12, 20)


def make_task(description="Pay rent", due_date=None, specific_day_of_week=None, reminder_days_before=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        description=description,
        due_date=due_date,
        specific_day_of_week=specific_day_of_week,
        reminder_days_before=reminder_days_before,
    )


def make_list(list_type=ListType.CUSTOM, name="Home"):
    return SimpleNamespace(type=list_type, name=name)


@pytest.mark.unit
def test_notifications_fire_on_each_offset_day_only():
    task = make_task(due_date=date(2024, 12, 31), reminder_days_before=[7, 1])
    pairs = [(task, make_list())]

    week_before = build_notifications(pairs, date(2024, 12, 24), today=TODAY)
    assert len(week_before) == 1
    assert week_before[0].reminder_days_before == 7
    assert week_before[0].due_date == date(2024, 12, 31)

    day_before = build_notifications(pairs, date(2024, 12, 30), today=TODAY)
    assert len(day_before) == 1
    assert day_before[0].reminder_days_before == 1

    assert build_notifications(pairs, date(2024, 12, 25), today=TODAY) == []


@pytest.mark.unit
def test_range_keeps_one_notification_per_task_at_earliest_day():
    task = make_task(due_date=date(2024, 12, 31), reminder_days_before=[7, 1])
    other = make_task(description="Water plants", due_date=date(2024, 12, 28), reminder_days_before=[2])
    pairs = [(task, make_list()), (other, make_list(name="Garden"))]

    reminders = build_notifications_for_range(pairs, date(2024, 12, 24), date(2024, 12, 30), today=TODAY)

    assert [item.task_id for item in reminders] == [task.id, other.id]
    assert reminders[0].reminder_date == date(2024, 12, 24)
    assert reminders[0].reminder_days_before == 7
    assert reminders[1].reminder_date == date(2024, 12, 26)


@pytest.mark.unit
def test_legacy_scalar_and_missing_offsets():
    scalar = make_task(due_date=date(2024, 12, 31), reminder_days_before=3)
    missing = make_task(description="Call mom", due_date=date(2024, 12, 29))
    pairs = [(scalar, make_list()), (missing, make_list())]

    reminders = build_notifications(pairs, date(2024, 12, 28), today=TODAY)

    assert sorted(item.reminder_days_before for item in reminders) == [1, 3]


@pytest.mark.unit
def test_recurring_defaults_and_daily_tasks():
    weekly = make_task(description="Review week", reminder_days_before=[1])
    daily = make_task(description="Stretch", reminder_days_before=[0, 1])
    custom_without_date = make_task(description="Someday")
    pairs = [
        (weekly, make_list(ListType.WEEKLY, "Weekly")),
        (daily, make_list(ListType.DAILY, "Daily")),
        (custom_without_date, make_list()),
    ]

    # 2024-12-21 is a Saturday: the weekly default due day is Sunday the 22nd
    reminders = build_notifications(pairs, date(2024, 12, 21), today=TODAY)

    by_task = {item.task_id: item for item in reminders}
    assert set(by_task) == {weekly.id, daily.id}
    assert by_task[weekly.id].due_date == date(2024, 12, 22)
    assert by_task[daily.id].reminder_days_before == 0
    assert by_task[daily.id].list_type == "DAILY"


@pytest.mark.unit
def test_message_counts_days_from_today():
    assert format_reminder_message("Pay rent", "Home", TODAY, TODAY) == '"Pay rent" from Home is due today!'
    assert format_reminder_message("Pay rent", "Home", date(2024, 12, 21), TODAY) == '"Pay rent" from Home is due tomorrow.'
    assert format_reminder_message("Pay rent", "Home", date(2024, 12, 23), TODAY) == '"Pay rent" from Home is due in 3 days.'
    assert format_reminder_message("Pay rent", "Home", date(2024, 12, 1), TODAY) == 'Reminder: "Pay rent" from Home'
    assert format_reminder_message("Pay rent", "Home", None, TODAY) == 'Reminder: "Pay rent" from Home'


@pytest.mark.unit
def test_notification_title_and_camel_case_payload():
    task = make_task(due_date=date(2024, 12, 21))
    reminders = build_notifications([(task, make_list())], date(2024, 12, 20), today=TODAY)

    payload = reminders[0].model_dump(mode="json", by_alias=True)
    assert payload["title"] == "Reminder: Pay rent"
    assert payload["message"] == '"Pay rent" from Home is due tomorrow.'
    assert payload["taskId"] == str(task.id)
    assert payload["reminderDaysBefore"] == 1
    assert payload["listName"] == "Home"


def test_reminder_service_covers_owned_and_shared_open_tasks():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            owner = await add_user(db, email="owner@example.com")
            friend = await add_user(db, email="friend@example.com")
            home = await add_list(db, owner, name="Home")
            await share_list(db, home, friend)
            open_task = await add_task(db, home, "Pay rent", due_date=date(2024, 12, 21))
            await add_task(db, home, "Done already", completed=True, due_date=date(2024, 12, 21))
            await add_task(db, home, "Trashed", due_date=date(2024, 12, 21), deleted_at=utc(2024, 12, 1))
            trashed_list = await add_list(db, owner, name="Old", deleted_at=utc(2024, 12, 1))
            await add_task(db, trashed_list, "In trashed list", due_date=date(2024, 12, 21))
            await db.commit()
            owner_id, friend_id, open_id = owner.id, friend.id, open_task.id

        async with maker() as db:
            service = ReminderService(db, today_provider=lambda: TODAY)
            for_owner = await service.for_date(owner_id, date(2024, 12, 20))
            for_friend = await service.for_today(friend_id)

        await engine.dispose()
        return for_owner, for_friend, open_id

    for_owner, for_friend, open_id = asyncio.run(main())

    assert open_id in {item.task_id for item in for_owner}
    assert {item.task_description for item in for_owner} == {"Pay rent"}
    assert {item.task_id for item in for_friend} == {item.task_id for item in for_owner}


def test_reminder_range_is_validated():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            service = ReminderService(db, today_provider=lambda: TODAY)
            user_id = uuid.uuid4()
            with pytest.raises(InvalidStateError):
                await service.for_range(user_id, date(2024, 12, 10), date(2024, 12, 1))
            with pytest.raises(InvalidStateError):
                await service.for_range(user_id, date(2024, 1, 1), date(2024, 6, 1))
            assert await service.for_range(user_id, date(2024, 12, 1), date(2024, 12, 7)) == []
        await engine.dispose()

    asyncio.run(main())
