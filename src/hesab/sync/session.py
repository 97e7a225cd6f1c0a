# src/hesab/sync/session.py

"""
Session wiring between live queries and the in-memory stores.

- start_session: attach global listeners, then open the selected month
- select_month:  swap month-scoped listeners, keep global ones
- end_session:   detach everything and clear stores (logout)
"""

from __future__ import annotations

import logging

from ..core.clock import parse_month
from ..core.ports import Snapshot, SnapshotCallback
from ..core.state import AppState
from ..tasks.rollover import RolloverOutcome
from ..tasks.task_models import DailyTask, MonthlyTask, YearlyTask

logger = logging.getLogger(__name__)


def _into_collections(state: AppState, name: str) -> SnapshotCallback:
    def on_snapshot(snapshot: Snapshot) -> None:
        state.collections[name] = snapshot

    return on_snapshot


def _into_month_view(state: AppState, name: str, month_id: str) -> SnapshotCallback:
    def on_snapshot(snapshot: Snapshot) -> None:
        if state.selected_month_id != month_id:
            return
        state.month_view[name] = snapshot

    return on_snapshot


def start_session(state: AppState) -> None:
    uid = state.user_id
    listeners = state.listeners

    with state.lock:
        listeners.attach_debts_listener(uid, _into_collections(state, "debts"))
        listeners.attach_categories_listener(uid, _into_collections(state, "categories"))
        listeners.attach_calendar_events_listener(uid, _into_collections(state, "calendarEvents"))
        listeners.attach_recurring_expenses_listener(uid, _into_collections(state, "recurringExpenses"))
        listeners.attach_monthly_data_listener(uid, _into_collections(state, "monthlyData"))

        listeners.attach_daily_tasks_listener(
            uid,
            lambda snap: state.tasks.set_daily_tasks([DailyTask.from_doc(i, d) for i, d in snap]),
        )
        listeners.attach_all_monthly_tasks_listener(
            uid,
            lambda snap: state.tasks.set_monthly_tasks([MonthlyTask.from_doc(i, d) for i, d in snap]),
        )
        listeners.attach_yearly_tasks_listener(
            uid,
            lambda snap: state.tasks.set_yearly_tasks([YearlyTask.from_doc(i, d) for i, d in snap]),
        )

        select_month(state, state.selected_month_id)

    logger.info(
        "Session started user=%s month=%s listeners=%d",
        uid,
        state.selected_month_id,
        listeners.active_listener_count(),
    )


def select_month(state: AppState, month_id: str) -> int:
    """
    Point month-scoped listeners at `month_id`.

    Returns the number of month listeners that were detached.
    """
    parse_month(month_id)
    uid = state.user_id
    listeners = state.listeners

    with state.lock:
        detached = listeners.detach_month_listeners()
        state.month_view.clear()
        state.selected_month_id = month_id

        listeners.mark_month_listeners_start()
        listeners.attach_expenses_listener(uid, month_id, _into_month_view(state, "expenses", month_id))
        listeners.attach_monthly_tasks_listener(uid, month_id, _into_month_view(state, "monthlyTasks", month_id))
        listeners.attach_recurring_statuses_listener(
            uid, month_id, _into_month_view(state, "recurringExpenseStatuses", month_id)
        )

    logger.debug("Selected month %s (detached %d month listeners)", month_id, detached)
    return detached


def end_session(state: AppState) -> None:
    with state.lock:
        n = state.listeners.detach_all()
        state.tasks.reset()
        state.collections.clear()
        state.month_view.clear()
    logger.info("Session ended user=%s (detached %d listeners)", state.user_id, n)


def follow_rollover(state: AppState, outcome: RolloverOutcome) -> None:
    """
    Keep the views on "today" across a rollover.

    If the user was looking at the current day/month when it ended, move the
    view to the new one; a view parked on some other period stays put.
    """
    with state.lock:
        if outcome.new_day is not None and state.tasks.current_daily_date == outcome.previous.last_day:
            state.tasks.set_current_daily_date(outcome.new_day)

        if outcome.new_month is None:
            return
        previous_month = state.current_month_id
        state.current_month_id = outcome.new_month
        if state.selected_month_id == previous_month:
            select_month(state, outcome.new_month)
