# src/hesab/sync/listeners.py

from __future__ import annotations

import logging
from typing import Any

from ..core.ports import SnapshotCallback, SubscriptionSource, Unsubscribe
from ..tasks.task_gateway import (
    daily_tasks_collection,
    monthly_tasks_collection,
    user_collection,
    yearly_tasks_collection,
)

logger = logging.getLogger(__name__)


def debts_collection(user_id: str) -> str:
    return user_collection(user_id, "debts")


def categories_collection(user_id: str) -> str:
    return user_collection(user_id, "categories")


def calendar_events_collection(user_id: str) -> str:
    return user_collection(user_id, "calendarEvents")


def recurring_expenses_collection(user_id: str) -> str:
    return user_collection(user_id, "recurringExpenses")


def monthly_data_collection(user_id: str) -> str:
    return user_collection(user_id, "monthlyData")


def expenses_collection(user_id: str, month_id: str) -> str:
    return f"{monthly_data_collection(user_id)}/{month_id}/expenses"


def recurring_statuses_collection(user_id: str, month_id: str) -> str:
    return f"{monthly_data_collection(user_id)}/{month_id}/recurringExpenseStatuses"


class ListenerManager:
    """
    Tracks live-query handles so they can be detached as a group.

    Handles are kept in two partitions:
    - global: not tied to the viewed month (debts, categories, tasks, ...)
    - month: tied to the viewed month (expenses, recurring statuses, ...)

    Month navigation:
      detach_month_listeners()
      mark_month_listeners_start()
      attach_expenses_listener(...), attach_monthly_tasks_listener(...), ...

    Logout: detach_all().
    """

    def __init__(self, source: SubscriptionSource) -> None:
        self._source = source
        self._global: list[Unsubscribe] = []
        self._month: list[Unsubscribe] = []
        self._month_open = False

    # ---- introspection ----

    @property
    def handles(self) -> list[Unsubscribe]:
        return [*self._global, *self._month]

    @property
    def month_listeners_start(self) -> int:
        """Index in `handles` where month handles begin, or -1 if no month partition is open."""
        return len(self._global) if self._month_open else -1

    def active_listener_count(self) -> int:
        return len(self._global) + len(self._month)

    def global_listener_count(self) -> int:
        return len(self._global)

    def month_listener_count(self) -> int:
        return len(self._month)

    # ---- partitions ----

    def mark_month_listeners_start(self) -> None:
        """Handles attached from now on belong to the viewed month."""
        if self._month:
            logger.warning(
                "mark_month_listeners_start called with %d month listeners still attached; "
                "they stay tracked until detach_month_listeners()",
                len(self._month),
            )
        self._month_open = True

    def detach_month_listeners(self) -> int:
        """Dispose month handles only. Returns how many were disposed."""
        handles, self._month = self._month, []
        self._month_open = False
        n = self._dispose(handles)
        if n:
            logger.debug("Detached %d month listeners (%d global remain)", n, len(self._global))
        return n

    def detach_all(self) -> int:
        handles = [*self._global, *self._month]
        self._global, self._month = [], []
        self._month_open = False
        n = self._dispose(handles)
        logger.debug("Detached all listeners (%d)", n)
        return n

    @staticmethod
    def _dispose(handles: list[Unsubscribe]) -> int:
        for unsubscribe in handles:
            try:
                unsubscribe()
            except Exception:
                logger.exception("Listener disposer failed")
        return len(handles)

    def attach(
            self,
            collection: str,
            callback: SnapshotCallback,
            filters: dict[str, Any] | None = None,
    ) -> Unsubscribe:
        """Subscribe and track the handle in the open partition."""
        unsubscribe = self._source.subscribe(collection, filters, callback)
        if self._month_open:
            self._month.append(unsubscribe)
        else:
            self._global.append(unsubscribe)
        return unsubscribe

    # ---- global collections ----

    def attach_debts_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(debts_collection(user_id), callback)

    def attach_categories_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(categories_collection(user_id), callback)

    def attach_calendar_events_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(calendar_events_collection(user_id), callback)

    def attach_recurring_expenses_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(recurring_expenses_collection(user_id), callback)

    def attach_monthly_data_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(monthly_data_collection(user_id), callback)

    def attach_daily_tasks_listener(
            self,
            user_id: str,
            callback: SnapshotCallback,
            date: str | None = None,
    ) -> Unsubscribe:
        filters = {"date": date} if date is not None else None
        return self.attach(daily_tasks_collection(user_id), callback, filters)

    def attach_yearly_tasks_listener(
            self,
            user_id: str,
            callback: SnapshotCallback,
            year: int | None = None,
    ) -> Unsubscribe:
        filters = {"year": year} if year is not None else None
        return self.attach(yearly_tasks_collection(user_id), callback, filters)

    def attach_all_monthly_tasks_listener(self, user_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(monthly_tasks_collection(user_id), callback)

    # ---- month-scoped collections ----

    def attach_expenses_listener(self, user_id: str, month_id: str, callback: SnapshotCallback) -> Unsubscribe:
        return self.attach(expenses_collection(user_id, month_id), callback)

    def attach_monthly_tasks_listener(
            self,
            user_id: str,
            month_id: str,
            callback: SnapshotCallback,
    ) -> Unsubscribe:
        return self.attach(monthly_tasks_collection(user_id), callback, {"month": month_id})

    def attach_recurring_statuses_listener(
            self,
            user_id: str,
            month_id: str,
            callback: SnapshotCallback,
    ) -> Unsubscribe:
        return self.attach(recurring_statuses_collection(user_id, month_id), callback)
