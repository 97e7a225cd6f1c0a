# src/hesab/tasks/carry_over.py

"""
Carry-over of unfinished daily and monthly tasks.

A pass looks at every NOT_DONE task whose period is before the current one and
creates a clone one period later. Tasks stale by several periods advance by a
single period per pass; later passes (next start, next midnight, next return
to the app) walk them forward until they reach the present.

The source task is never modified. A pass does not check for clones that
already exist, so the caller must run it at most once per observed period
change (see rollover.RolloverScheduler).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..core.clock import next_day, next_month
from ..core.ports import TaskGateway
from .task_models import DailyTask, MonthlyTask, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T", DailyTask, MonthlyTask)


@dataclass(slots=True)
class CarriedTask(Generic[T]):
    source: T
    clone: T
    new_id: str


@dataclass(slots=True)
class CarryOverReport(Generic[T]):
    created: list[CarriedTask[T]] = field(default_factory=list)
    failed: list[tuple[T, Exception]] = field(default_factory=list)
    stale: int = 0
    skipped_future: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


def build_daily_clone(task: DailyTask, today_key: str) -> DailyTask | None:
    """The next-day clone of `task`, or None if it must not be carried on `today_key`."""
    if task.status != TaskStatus.NOT_DONE or not task.date < today_key:
        return None

    candidate = next_day(task.date)
    if candidate > today_key:
        return None

    return DailyTask(
        id=None,
        name=task.name,
        date=candidate,
        status=TaskStatus.NOT_DONE,
        notes=task.notes,
        carried_over=True,
        original_date=task.date,
        first_carry_date=task.first_carry_date or task.date,
    )


def build_monthly_clone(task: MonthlyTask, current_month: str) -> MonthlyTask | None:
    if task.status != TaskStatus.NOT_DONE or not task.month < current_month:
        return None

    candidate = next_month(task.month)
    if candidate > current_month:
        return None

    return MonthlyTask(
        id=None,
        name=task.name,
        month=candidate,
        status=TaskStatus.NOT_DONE,
        notes=task.notes,
        carried_over=True,
        original_month=task.month,
        first_carry_date=task.first_carry_date or task.month,
    )


async def carry_over_daily(
        tasks: Iterable[DailyTask],
        today_key: str,
        gateway: TaskGateway,
        user_id: str,
) -> CarryOverReport[DailyTask]:
    """Create next-day clones for stale NOT_DONE daily tasks."""
    report: CarryOverReport[DailyTask] = CarryOverReport()
    stale = [t for t in tasks if t.status == TaskStatus.NOT_DONE and t.date < today_key]
    report.stale = len(stale)

    for task in stale:
        try:
            clone = build_daily_clone(task, today_key)
        except ValueError as e:
            logger.warning("Cannot carry task_id=%s: %s", task.id, e)
            report.failed.append((task, e))
            continue
        if clone is None:
            report.skipped_future += 1
            continue

        try:
            new_id = await gateway.create(user_id, clone)
        except Exception as e:
            logger.exception("Daily carry-over failed task_id=%s date=%s", task.id, task.date)
            report.failed.append((task, e))
            continue

        report.created.append(CarriedTask(source=task, clone=clone, new_id=new_id))
        logger.info("Carried daily task %r from %s to %s", task.name, task.date, clone.date)

    if stale:
        logger.info(
            "Daily carry-over on %s: stale=%d created=%d failed=%d",
            today_key,
            report.stale,
            len(report.created),
            len(report.failed),
        )
    return report


async def carry_over_monthly(
        tasks: Iterable[MonthlyTask],
        current_month: str,
        gateway: TaskGateway,
        user_id: str,
) -> CarryOverReport[MonthlyTask]:
    """Create next-month clones for stale NOT_DONE monthly tasks."""
    report: CarryOverReport[MonthlyTask] = CarryOverReport()
    stale = [t for t in tasks if t.status == TaskStatus.NOT_DONE and t.month < current_month]
    report.stale = len(stale)

    for task in stale:
        try:
            clone = build_monthly_clone(task, current_month)
        except ValueError as e:
            logger.warning("Cannot carry task_id=%s: %s", task.id, e)
            report.failed.append((task, e))
            continue
        if clone is None:
            report.skipped_future += 1
            continue

        try:
            new_id = await gateway.create(user_id, clone)
        except Exception as e:
            logger.exception("Monthly carry-over failed task_id=%s month=%s", task.id, task.month)
            report.failed.append((task, e))
            continue

        report.created.append(CarriedTask(source=task, clone=clone, new_id=new_id))
        logger.info("Carried monthly task %r from %s to %s", task.name, task.month, clone.month)

    if stale:
        logger.info(
            "Monthly carry-over on %s: stale=%d created=%d failed=%d",
            current_month,
            report.stale,
            len(report.created),
            len(report.failed),
        )
    return report
