# src/hesab/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.clock import next_month, parse_day, parse_month
from ..core.state import AppState
from ..sync.session import select_month
from ..tasks.task_models import AnyTask, DailyTask, MonthlyTask, TaskStatus, TaskTier, YearlyTask
from .runtime import make_rollover_callback, run_on_loop

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /today, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

_STATUS_MARK = {
    TaskStatus.NOT_DONE: "[ ]",
    TaskStatus.DONE: "[x]",
    TaskStatus.SKIPPED: "[-]",
}


def _short(task_id: str | None) -> str:
    return (task_id or "")[:8]


def _format_task(task: AnyTask) -> str:
    line = f"{_STATUS_MARK[task.status]} {_short(task.id)} {task.name}"
    since = getattr(task, "first_carry_date", None)
    if getattr(task, "carried_over", False) and since:
        line += f" (carried since {since})"
    if task.notes:
        line += f" - {task.notes}"
    return line


def _find_task(state: AppState, prefix: str) -> tuple[TaskTier, AnyTask] | str:
    """Resolve a task by id prefix across all tiers; returns an error message on failure."""
    snap = state.tasks.snapshot()
    matches: list[tuple[TaskTier, AnyTask]] = []
    for tier, tasks in (
        (TaskTier.DAILY, snap.daily_tasks),
        (TaskTier.MONTHLY, snap.monthly_tasks),
        (TaskTier.YEARLY, snap.yearly_tasks),
    ):
        matches.extend((tier, t) for t in tasks if t.id and t.id.startswith(prefix))

    if not matches:
        return f"No task with id {prefix}."
    if len(matches) > 1:
        return f"Id {prefix} is ambiguous ({len(matches)} tasks). Use more characters."
    return matches[0]


def _gateway(state: AppState, tier: TaskTier):
    return {
        TaskTier.DAILY: state.gateways.daily,
        TaskTier.MONTHLY: state.gateways.monthly,
        TaskTier.YEARLY: state.gateways.yearly,
    }[tier]


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    snap = state.tasks.snapshot()
    open_daily = sum(1 for t in snap.daily_tasks if t.status == TaskStatus.NOT_DONE)
    return (
        "Status:\n"
        f"  User: {state.user_id}\n"
        f"  Day: {snap.current_daily_date}\n"
        f"  Month: {state.selected_month_id} (current {state.current_month_id})\n"
        f"  Daily tasks: {len(snap.daily_tasks)} ({open_daily} open)\n"
        f"  Monthly tasks: {len(snap.monthly_tasks)}\n"
        f"  Yearly tasks: {len(snap.yearly_tasks)}\n"
        f"  Listeners: {state.listeners.active_listener_count()}"
    )


def cmd_today(state: AppState, args: list[str]) -> str:
    """
    /today             -> tasks of the selected day
    /today 2024-01-15  -> select that day and list its tasks
    """
    if args:
        try:
            parse_day(args[0])
        except ValueError:
            return "Usage: /today [YYYY-MM-DD]"
        state.tasks.set_current_daily_date(args[0])

    day = state.tasks.current_daily_date
    tasks = [t for t in state.tasks.daily_tasks if t.date == day]
    if not tasks:
        return f"No tasks for {day}."
    lines = [f"Tasks for {day}:"]
    lines.extend(f"  {_format_task(t)}" for t in tasks)
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    name = " ".join(args).strip()
    if not name:
        return "Usage: /add <task name>"
    task = DailyTask(id=None, name=name, date=state.tasks.current_daily_date)
    task_id = run_on_loop(state, state.gateways.daily.create(state.user_id, task))
    return f"Added daily task {_short(task_id)} for {task.date}."


def cmd_add_monthly(state: AppState, args: list[str]) -> str:
    name = " ".join(args).strip()
    if not name:
        return "Usage: /addm <task name>"
    task = MonthlyTask(id=None, name=name, month=state.selected_month_id)
    task_id = run_on_loop(state, state.gateways.monthly.create(state.user_id, task))
    return f"Added monthly task {_short(task_id)} for {task.month}."


def cmd_add_yearly(state: AppState, args: list[str]) -> str:
    name = " ".join(args).strip()
    if not name:
        return "Usage: /addy <task name>"
    year, _ = parse_month(state.selected_month_id)
    task = YearlyTask(id=None, name=name, year=year)
    task_id = run_on_loop(state, state.gateways.yearly.create(state.user_id, task))
    return f"Added yearly task {_short(task_id)} for {year}."


def _set_status(state: AppState, args: list[str], status: TaskStatus) -> str:
    if not args:
        return f"Usage: /{'done' if status == TaskStatus.DONE else 'skip'} <task id>"
    found = _find_task(state, args[0])
    if isinstance(found, str):
        return found
    tier, task = found
    run_on_loop(state, _gateway(state, tier).update(state.user_id, task.id or "", {"status": status}))
    return f"{task.name}: {status.name}"


def cmd_done(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.DONE)


def cmd_skip(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.SKIPPED)


def cmd_undo(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /undo <task id>"
    return _set_status(state, args, TaskStatus.NOT_DONE)


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <task id>"
    found = _find_task(state, args[0])
    if isinstance(found, str):
        return found
    tier, task = found
    run_on_loop(state, _gateway(state, tier).delete(state.user_id, task.id or ""))
    return f"Deleted {task.name}."


def cmd_month(state: AppState, args: list[str]) -> str:
    """
    /month            -> monthly tasks of the selected month
    /month 2024-03    -> switch to that month
    /month next|prev  -> step through months
    """
    if args:
        target = args[0].lower()
        if target == "next":
            target = next_month(state.selected_month_id)
        elif target == "prev":
            year, mon = parse_month(state.selected_month_id)
            target = f"{year - 1:04d}-12" if mon == 1 else f"{year:04d}-{mon - 1:02d}"
        try:
            select_month(state, target)
        except ValueError:
            return "Usage: /month [YYYY-MM|next|prev]"

    month = state.selected_month_id
    docs = state.month_view.get("monthlyTasks", [])
    tasks = [MonthlyTask.from_doc(i, d) for i, d in docs]
    if not tasks:
        return f"Month {month}: no monthly tasks."
    lines = [f"Month {month}:"]
    lines.extend(f"  {_format_task(t)}" for t in tasks)
    return "\n".join(lines)


def cmd_rollover(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("[ROLLOVER] Checking for a new day/month...")
    outcome = run_on_loop(
        state,
        state.scheduler.run_rollover_check(make_rollover_callback(state), reason="command"),
    )
    if outcome is None:
        return "A rollover check is already running."
    if not outcome.changed:
        return f"Nothing to carry over (checked {outcome.checkpoint.last_day})."

    created = 0
    for report in (outcome.daily_report, outcome.monthly_report):
        if report is not None:
            created += len(report.created)
    return (
        f"Rollover done: day={outcome.checkpoint.last_day} month={outcome.checkpoint.last_month}, "
        f"{created} task(s) carried over."
    )


def cmd_listeners(state: AppState, args: list[str]) -> str:
    lm = state.listeners
    return (
        f"Listeners: {lm.active_listener_count()} active "
        f"({lm.global_listener_count()} global, {lm.month_listener_count()} for {state.selected_month_id})"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show session status.")
registry.register("today", cmd_today, help_text="List daily tasks: /today [YYYY-MM-DD].")
registry.register("add", cmd_add, help_text="Add a daily task for the selected day.")
registry.register("addm", cmd_add_monthly, help_text="Add a monthly task for the selected month.")
registry.register("addy", cmd_add_yearly, help_text="Add a yearly task for the selected year.")
registry.register("done", cmd_done, help_text="Mark a task done: /done <id>.")
registry.register("skip", cmd_skip, help_text="Mark a task skipped: /skip <id>.")
registry.register("undo", cmd_undo, help_text="Mark a task not done again: /undo <id>.")
registry.register("del", cmd_delete, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("month", cmd_month, help_text="Show or switch month: /month [YYYY-MM|next|prev].")
registry.register("rollover", cmd_rollover, help_text="Run the day/month carry-over check now.")
registry.register("listeners", cmd_listeners, help_text="Show live listener counts.")
