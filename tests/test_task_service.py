"""Test task store service and repository."""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from conftest import OTHER_USER_ID, USER_ID
from core.errors import PersistenceFailure
from core.realtime.change_feed import ChangeEvent
from verticals.board.service import TaskService


def new_task(**overrides):
    data = {
        "title": "Write launch post",
        "description": "",
        "status": "todo",
        "priority": "medium",
        "category": "Marketing",
        "due_date": None,
        "position": 0,
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_create_and_list(service):
    created = await service.create_task(USER_ID, new_task(due_date=date(2026, 11, 2)))

    assert created["user_id"] == USER_ID
    assert created["due_date"] == "2026-11-02"
    assert created["created_at"] is not None

    tasks = await service.list_tasks(USER_ID)
    assert [t["id"] for t in tasks] == [created["id"]]


@pytest.mark.asyncio
async def test_owner_cannot_be_overridden(service):
    created = await service.create_task(USER_ID, new_task(user_id=OTHER_USER_ID))
    assert created["user_id"] == USER_ID
    assert await service.list_tasks(OTHER_USER_ID) == []


@pytest.mark.asyncio
async def test_list_ordered_by_position_then_creation(service):
    first = await service.create_task(USER_ID, new_task(title="first"))
    second = await service.create_task(USER_ID, new_task(title="second"))
    top = await service.create_task(USER_ID, new_task(title="top", position=-1))

    titles = [t["title"] for t in await service.list_tasks(USER_ID)]
    assert titles == [top["title"], first["title"], second["title"]]


@pytest.mark.asyncio
async def test_update_and_move(service):
    task = await service.create_task(USER_ID, new_task())

    updated = await service.update_task(USER_ID, task["id"], {"title": "Renamed", "priority": "high"})
    assert updated["title"] == "Renamed"
    assert updated["priority"] == "high"

    moved = await service.move_task(USER_ID, task["id"], "in_progress")
    assert moved["status"] == "in_progress"
    assert moved["title"] == "Renamed"


@pytest.mark.asyncio
async def test_update_cannot_change_owner(service):
    task = await service.create_task(USER_ID, new_task())
    updated = await service.update_task(USER_ID, task["id"], {"user_id": OTHER_USER_ID})
    assert updated["user_id"] == USER_ID


@pytest.mark.asyncio
async def test_other_users_tasks_are_invisible(service):
    task = await service.create_task(USER_ID, new_task())

    assert await service.list_tasks(OTHER_USER_ID) == []
    assert await service.update_task(OTHER_USER_ID, task["id"], {"title": "x"}) is None
    assert await service.move_task(OTHER_USER_ID, task["id"], "in_progress") is None
    assert await service.delete_task(OTHER_USER_ID, task["id"]) is False
    assert len(await service.list_tasks(USER_ID)) == 1


@pytest.mark.asyncio
async def test_delete(service):
    task = await service.create_task(USER_ID, new_task())
    assert await service.delete_task(USER_ID, task["id"]) is True
    assert await service.delete_task(USER_ID, task["id"]) is False
    assert await service.list_tasks(USER_ID) == []


@pytest.mark.asyncio
async def test_unknown_or_invalid_ids(service):
    assert await service.update_task(USER_ID, "not-a-uuid", {"title": "x"}) is None
    assert await service.delete_task(USER_ID, "00000000-0000-0000-0000-000000000000") is False


@pytest.mark.asyncio
async def test_writes_publish_changes(service, feed):
    async with feed.subscribe(USER_ID) as subscription:
        task = await service.create_task(USER_ID, new_task())
        await service.move_task(USER_ID, task["id"], "in_progress")
        await service.delete_task(USER_ID, task["id"])

        events = [(await subscription.next(timeout=0.5)).event for _ in range(3)]
        assert events == [ChangeEvent.INSERT, ChangeEvent.UPDATE, ChangeEvent.DELETE]


@pytest.mark.asyncio
async def test_database_error_becomes_persistence_failure(feed):
    from contextlib import asynccontextmanager

    @asynccontextmanager
    async def broken_session():
        raise OperationalError("INSERT INTO tasks", {}, Exception("database is locked"))
        yield  # pragma: no cover

    service = TaskService(broken_session, feed)
    with pytest.raises(PersistenceFailure, match="Failed to create task"):
        await service.create_task(USER_ID, new_task())
    with pytest.raises(PersistenceFailure, match="Failed to load tasks"):
        await service.list_tasks(USER_ID)
