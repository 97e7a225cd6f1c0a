# src/hesab/tasks/task_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from ..core.clock import today
from .task_models import DailyTask, MonthlyTask, YearlyTask

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TasksSnapshot:
    daily_tasks: tuple[DailyTask, ...] = ()
    monthly_tasks: tuple[MonthlyTask, ...] = ()
    yearly_tasks: tuple[YearlyTask, ...] = ()
    current_daily_date: str = ""


TasksListener = Callable[[TasksSnapshot], None]


@dataclass(slots=True)
class _TasksState:
    daily_tasks: list[DailyTask] = field(default_factory=list)
    monthly_tasks: list[MonthlyTask] = field(default_factory=list)
    yearly_tasks: list[YearlyTask] = field(default_factory=list)
    current_daily_date: str = ""


class TasksStore:
    """
    In-memory reactive collection of the user's tasks.

    Mutations go through set/add/update/remove; every mutation publishes an
    immutable TasksSnapshot to subscribers. The store is filled by live
    queries and read by the carry-over engine; it never writes to the
    document store itself.
    """

    def __init__(self, *, current_daily_date: str | None = None) -> None:
        self._lock = threading.RLock()
        self._initial_date = current_daily_date
        self._state = _TasksState(current_daily_date=current_daily_date or today())
        self._listeners: list[TasksListener] = []

    # ---- reading ----

    def snapshot(self) -> TasksSnapshot:
        with self._lock:
            s = self._state
            return TasksSnapshot(
                daily_tasks=tuple(s.daily_tasks),
                monthly_tasks=tuple(s.monthly_tasks),
                yearly_tasks=tuple(s.yearly_tasks),
                current_daily_date=s.current_daily_date,
            )

    @property
    def daily_tasks(self) -> list[DailyTask]:
        with self._lock:
            return list(self._state.daily_tasks)

    @property
    def monthly_tasks(self) -> list[MonthlyTask]:
        with self._lock:
            return list(self._state.monthly_tasks)

    @property
    def yearly_tasks(self) -> list[YearlyTask]:
        with self._lock:
            return list(self._state.yearly_tasks)

    @property
    def current_daily_date(self) -> str:
        with self._lock:
            return self._state.current_daily_date

    def subscribe(self, listener: TasksListener) -> Callable[[], None]:
        """Register a listener; it immediately receives the current snapshot."""
        with self._lock:
            self._listeners.append(listener)
        self._call(listener, self.snapshot())

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ---- daily ----

    def set_daily_tasks(self, tasks: list[DailyTask]) -> None:
        with self._lock:
            self._state.daily_tasks = list(tasks)
        self._publish()

    def add_daily_task(self, task: DailyTask) -> None:
        with self._lock:
            self._state.daily_tasks.append(task)
        self._publish()

    def update_daily_task(self, task_id: str, **updates: Any) -> None:
        with self._lock:
            self._state.daily_tasks = _updated(self._state.daily_tasks, task_id, updates)
        self._publish()

    def remove_daily_task(self, task_id: str) -> None:
        with self._lock:
            self._state.daily_tasks = [t for t in self._state.daily_tasks if t.id != task_id]
        self._publish()

    # ---- monthly ----

    def set_monthly_tasks(self, tasks: list[MonthlyTask]) -> None:
        with self._lock:
            self._state.monthly_tasks = list(tasks)
        self._publish()

    def add_monthly_task(self, task: MonthlyTask) -> None:
        with self._lock:
            self._state.monthly_tasks.append(task)
        self._publish()

    def update_monthly_task(self, task_id: str, **updates: Any) -> None:
        with self._lock:
            self._state.monthly_tasks = _updated(self._state.monthly_tasks, task_id, updates)
        self._publish()

    def remove_monthly_task(self, task_id: str) -> None:
        with self._lock:
            self._state.monthly_tasks = [t for t in self._state.monthly_tasks if t.id != task_id]
        self._publish()

    # ---- yearly ----

    def set_yearly_tasks(self, tasks: list[YearlyTask]) -> None:
        with self._lock:
            self._state.yearly_tasks = list(tasks)
        self._publish()

    def add_yearly_task(self, task: YearlyTask) -> None:
        with self._lock:
            self._state.yearly_tasks.append(task)
        self._publish()

    def update_yearly_task(self, task_id: str, **updates: Any) -> None:
        with self._lock:
            self._state.yearly_tasks = _updated(self._state.yearly_tasks, task_id, updates)
        self._publish()

    def remove_yearly_task(self, task_id: str) -> None:
        with self._lock:
            self._state.yearly_tasks = [t for t in self._state.yearly_tasks if t.id != task_id]
        self._publish()

    # ---- misc ----

    def set_current_daily_date(self, day: str) -> None:
        with self._lock:
            self._state.current_daily_date = day
        self._publish()

    def reset(self) -> None:
        with self._lock:
            self._state = _TasksState(current_daily_date=self._initial_date or today())
        self._publish()

    def _publish(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            return
        snap = self.snapshot()
        for listener in listeners:
            self._call(listener, snap)

    @staticmethod
    def _call(listener: TasksListener, snap: TasksSnapshot) -> None:
        try:
            listener(snap)
        except Exception:
            logger.exception("TasksStore listener failed")


def _updated(tasks: list, task_id: str, updates: dict[str, Any]) -> list:
    updates = {k: v for k, v in updates.items() if k != "id"}
    return [replace(t, **updates) if t.id == task_id else t for t in tasks]
