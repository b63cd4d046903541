import asyncio
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.errors import NotFoundError
from app.models import ListShare, Step, Task, TodoList
from app.services.trash_service import TrashService
from conftest import add_list, add_steps, add_task, add_user, create_test_db, share_list, utc

NOW = utc(2024, 6, 1, 3, 30)


async def count(db, model, *conditions):
    query = select(func.count()).select_from(model)
    if conditions:
        query = query.where(*conditions)
    return (await db.execute(query)).scalar_one()


def test_purge_removes_lists_past_retention_with_everything_in_them():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            owner = await add_user(db, email="owner@example.com", retention_days=30)
            friend = await add_user(db, email="friend@example.com")
            expired = await add_list(db, owner, name="Expired", deleted_at=NOW - timedelta(days=31))
            recent = await add_list(db, owner, name="Recent", deleted_at=NOW - timedelta(days=29))
            await share_list(db, expired, friend)
            expired_task = await add_task(db, expired, "Inside expired")
            await add_steps(db, expired_task, True, False)
            recent_task = await add_task(db, recent, "Inside recent")
            await add_steps(db, recent_task, False)
            await db.commit()
            ids = (expired.id, recent.id, expired_task.id, recent_task.id)

        async with maker() as db:
            result = await TrashService(db).purge_trash(NOW)
            await db.commit()

        async with maker() as db:
            counts = {
                "expired_list": await count(db, TodoList, TodoList.id == ids[0]),
                "recent_list": await count(db, TodoList, TodoList.id == ids[1]),
                "expired_task": await count(db, Task, Task.id == ids[2]),
                "recent_task": await count(db, Task, Task.id == ids[3]),
                "expired_steps": await count(db, Step, Step.task_id == ids[2]),
                "recent_steps": await count(db, Step, Step.task_id == ids[3]),
                "shares": await count(db, ListShare),
            }
        await engine.dispose()
        return result, counts

    result, counts = asyncio.run(main())

    assert result.lists == 1
    assert result.users == 1
    assert counts == {
        "expired_list": 0,
        "recent_list": 1,
        "expired_task": 0,
        "recent_task": 1,
        "expired_steps": 0,
        "recent_steps": 1,
        "shares": 0,
    }


def test_purge_removes_trashed_tasks_in_visible_lists_per_user_retention():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            strict = await add_user(db, email="strict@example.com", retention_days=7)
            relaxed = await add_user(db, email="relaxed@example.com", retention_days=60)
            strict_list = await add_list(db, strict)
            relaxed_list = await add_list(db, relaxed)
            strict_task = await add_task(db, strict_list, "Gone", deleted_at=NOW - timedelta(days=10))
            await add_steps(db, strict_task, True)
            kept_for_strict = await add_task(db, strict_list, "Fresh", deleted_at=NOW - timedelta(days=2))
            relaxed_task = await add_task(db, relaxed_list, "Kept", deleted_at=NOW - timedelta(days=10))
            active = await add_task(db, strict_list, "Active")
            await db.commit()
            ids = (strict.id, strict_task.id, kept_for_strict.id, relaxed_task.id, active.id)

        async with maker() as db:
            result = await TrashService(db).purge_trash(NOW)
            await db.commit()

        async with maker() as db:
            remaining = set((await db.execute(select(Task.id))).scalars().all())
            steps = await count(db, Step)
        await engine.dispose()
        return result, remaining, steps, ids

    result, remaining, steps, ids = asyncio.run(main())
    strict_id, strict_task_id, kept_id, relaxed_id, active_id = ids

    assert result.tasks == 1
    assert result.lists == 0
    assert result.per_user == {strict_id: {"tasks": 1, "lists": 0}}
    assert remaining == {kept_id, relaxed_id, active_id}
    assert steps == 0


def test_purge_is_idempotent_and_respects_batch_limit():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            owner = await add_user(db)
            for days in (40, 50, 60):
                await add_list(db, owner, name=f"Old {days}", deleted_at=NOW - timedelta(days=days))
            await db.commit()

        runs = []
        for _ in range(3):
            async with maker() as db:
                runs.append((await TrashService(db, list_batch_size=2).purge_trash(NOW)).lists)
                await db.commit()
        await engine.dispose()
        return runs

    assert asyncio.run(main()) == [2, 1, 0]


def test_list_trash_reports_purge_dates():
    async def main():
        engine, maker = await create_test_db()
        async with maker() as db:
            owner = await add_user(db, retention_days=14)
            home = await add_list(db, owner, name="Home")
            await add_list(db, owner, name="Old", deleted_at=utc(2024, 5, 1))
            await add_task(db, home, "Oops", deleted_at=utc(2024, 5, 20))
            await add_task(db, home, "Visible")
            await db.commit()
            owner_id = owner.id

        async with maker() as db:
            trash = await TrashService(db).list_trash(owner_id)
            with pytest.raises(NotFoundError):
                await TrashService(db).list_trash(uuid.uuid4())
        await engine.dispose()
        return trash

    trash = asyncio.run(main())

    assert trash.retention_days == 14
    assert [item.name for item in trash.lists] == ["Old"]
    assert [item.name for item in trash.tasks] == ["Oops"]
    assert trash.lists[0].kind == "list"
    assert (trash.lists[0].purge_at - trash.lists[0].deleted_at).days == 14
    assert trash.tasks[0].purge_at.date().isoformat() == "2024-06-03"
