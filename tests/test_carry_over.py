# tests/test_carry_over.py

from __future__ import annotations

import pytest

from hesab.tasks.carry_over import build_daily_clone, carry_over_daily, carry_over_monthly
from hesab.tasks.task_models import DailyTask, MonthlyTask, TaskStatus

from .fakes import FakeTaskGateway


def _daily(name: str, date: str, status: TaskStatus = TaskStatus.NOT_DONE, **kw) -> DailyTask:
    return DailyTask(id=f"id-{name}", name=name, date=date, status=status, **kw)


@pytest.mark.asyncio
async def test_stale_daily_task_is_cloned_to_next_day() -> None:
    gateway = FakeTaskGateway()
    source = _daily("Pay rent", "2024-01-15", notes="landlord")

    report = await carry_over_daily([source], "2024-01-16", gateway, "u1")

    assert len(gateway.created) == 1
    clone = gateway.created[0]
    assert clone.id is None
    assert clone.name == "Pay rent"
    assert clone.notes == "landlord"
    assert clone.date == "2024-01-16"
    assert clone.status is TaskStatus.NOT_DONE
    assert clone.carried_over is True
    assert clone.original_date == "2024-01-15"
    assert clone.first_carry_date == "2024-01-15"

    assert report.ok
    assert report.created[0].new_id == "new-1"
    assert report.created[0].source is source


@pytest.mark.asyncio
async def test_source_task_is_left_untouched() -> None:
    gateway = FakeTaskGateway()
    source = _daily("Pay rent", "2024-01-15")

    await carry_over_daily([source], "2024-01-16", gateway, "u1")

    assert source.date == "2024-01-15"
    assert source.carried_over is False
    assert gateway.updated == []
    assert gateway.deleted == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [TaskStatus.DONE, TaskStatus.SKIPPED])
async def test_finished_tasks_are_never_carried(status: TaskStatus) -> None:
    gateway = FakeTaskGateway()
    tasks = [_daily("a", "2023-06-01", status), _daily("b", "2024-01-15", status)]

    report = await carry_over_daily(tasks, "2024-01-16", gateway, "u1")

    assert gateway.created == []
    assert report.stale == 0


@pytest.mark.asyncio
async def test_current_and_future_tasks_are_ignored() -> None:
    gateway = FakeTaskGateway()
    tasks = [_daily("today", "2024-01-16"), _daily("tomorrow", "2024-01-17")]

    await carry_over_daily(tasks, "2024-01-16", gateway, "u1")

    assert gateway.created == []


@pytest.mark.asyncio
async def test_first_carry_date_survives_repeated_carries() -> None:
    gateway = FakeTaskGateway()
    already_carried = _daily(
        "Call bank",
        "2024-01-15",
        carried_over=True,
        original_date="2024-01-14",
        first_carry_date="2024-01-10",
    )

    await carry_over_daily([already_carried], "2024-01-16", gateway, "u1")

    clone = gateway.created[0]
    assert clone.first_carry_date == "2024-01-10"
    assert clone.original_date == "2024-01-15"


@pytest.mark.asyncio
async def test_long_stale_task_advances_one_day_per_pass() -> None:
    gateway = FakeTaskGateway()
    source = _daily("Water plants", "2024-01-09")

    await carry_over_daily([source], "2024-01-16", gateway, "u1")

    assert [t.date for t in gateway.created] == ["2024-01-10"]
    assert gateway.created[0].first_carry_date == "2024-01-09"


@pytest.mark.asyncio
async def test_one_failing_create_does_not_abort_the_batch() -> None:
    gateway = FakeTaskGateway(fail_names={"broken"})
    tasks = [_daily("first", "2024-01-15"), _daily("broken", "2024-01-15"), _daily("last", "2024-01-15")]

    report = await carry_over_daily(tasks, "2024-01-16", gateway, "u1")

    assert [t.name for t in gateway.created] == ["first", "last"]
    assert len(report.failed) == 1
    assert report.failed[0][0].name == "broken"
    assert not report.ok


@pytest.mark.asyncio
async def test_stale_monthly_task_rolls_over_year_end() -> None:
    gateway = FakeTaskGateway()
    source = MonthlyTask(id="m1", name="Insurance", month="2023-12")

    await carry_over_monthly([source], "2024-01", gateway, "u1")

    clone = gateway.created[0]
    assert clone.month == "2024-01"
    assert clone.original_month == "2023-12"
    assert clone.carried_over is True
    assert clone.status is TaskStatus.NOT_DONE
    assert clone.first_carry_date == "2023-12"


@pytest.mark.asyncio
async def test_done_monthly_task_is_not_carried() -> None:
    gateway = FakeTaskGateway()
    source = MonthlyTask(id="m1", name="Insurance", month="2023-11", status=TaskStatus.DONE)

    await carry_over_monthly([source], "2024-01", gateway, "u1")

    assert gateway.created == []


def test_build_daily_clone_guards_against_future_dates() -> None:
    task = _daily("x", "2024-01-15")
    assert build_daily_clone(task, "2024-01-15") is None
    assert build_daily_clone(task, "2024-01-14") is None
    clone = build_daily_clone(task, "2024-01-16")
    assert clone is not None and clone.date == "2024-01-16"
