# src/hesab/tasks/rollover.py

"""
Rollover scheduler.

Three triggers drive the same checkpointed carry-over pass:
- application start,
- a timer armed for the next local midnight, re-armed after every firing,
- the app becoming visible again (timers may not fire while suspended).

Each pass:
- reads the checkpoint (last processed day/month), storing today/this month
  for any track that has none yet,
- runs daily carry-over if today differs from the checkpoint day,
- runs monthly carry-over if this month differs from the checkpoint month,
- persists the tracks that advanced,
- calls on_rollover if anything advanced.

Only one pass runs at a time. A trigger that arrives while a pass is in
flight is dropped: the running pass already covers the same period change,
and a second one would read the same stale checkpoint and clone every stale
task twice.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from ..core.clock import Clock, seconds_until_midnight, this_month, today
from ..core.ports import CheckpointStore, TaskGateway
from ..core.visibility import VisibilityState
from .carry_over import CarryOverReport, carry_over_daily, carry_over_monthly
from .checkpoint import RolloverCheckpoint, load_checkpoint, save_checkpoint
from .task_store import TasksStore

logger = logging.getLogger(__name__)

DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class RolloverOutcome:
    checkpoint: RolloverCheckpoint
    previous: RolloverCheckpoint
    new_day: str | None = None
    new_month: str | None = None
    daily_report: CarryOverReport | None = None
    monthly_report: CarryOverReport | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return self.new_day is not None or self.new_month is not None


RolloverCallback = Callable[[RolloverOutcome], Any]


class MidnightRolloverHandle:
    """
    Disposer for the midnight timers.

    Calling the handle (or cancel()) stops both the one-shot midnight timer and
    the re-arming midnight timer. Passes that already started run to completion.
    """

    def __init__(self) -> None:
        self._timeout: asyncio.TimerHandle | None = None
        self._interval: asyncio.Task[None] | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def armed(self) -> bool:
        return not self._cancelled and (self._timeout is not None or self._interval is not None)

    def cancel(self) -> None:
        self._cancelled = True
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None
        if self._interval is not None:
            self._interval.cancel()
            self._interval = None

    __call__ = cancel


class RolloverScheduler:
    def __init__(
            self,
            *,
            user_id: str,
            tasks_store: TasksStore,
            daily_gateway: TaskGateway,
            monthly_gateway: TaskGateway,
            checkpoints: CheckpointStore,
            clock: Clock = datetime.now,
            interval_seconds: float = DAY_SECONDS,
    ) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self._user_id = user_id
        self._tasks = tasks_store
        self._daily = daily_gateway
        self._monthly = monthly_gateway
        self._checkpoints = checkpoints
        self._clock = clock
        self._interval = max(0.01, float(interval_seconds))

        self._in_flight = False
        self._running: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    # ---- period checks ----

    async def check_for_new_day(self, last_check_day: str) -> str | None:
        """Run daily carry-over if the day changed; returns the new day or None."""
        new_day, _ = await self._check_day(last_check_day)
        return new_day

    async def check_for_new_month(self, last_check_month: str) -> str | None:
        new_month, _ = await self._check_month(last_check_month)
        return new_month

    async def _check_day(self, last_check_day: str) -> tuple[str | None, CarryOverReport | None]:
        current = today(self._clock())
        if current == last_check_day:
            return None, None
        logger.info("New day detected: %s (last check: %s)", current, last_check_day)
        report = await carry_over_daily(self._tasks.daily_tasks, current, self._daily, self._user_id)
        return current, report

    async def _check_month(self, last_check_month: str) -> tuple[str | None, CarryOverReport | None]:
        current = this_month(self._clock())
        if current == last_check_month:
            return None, None
        logger.info("New month detected: %s (last check: %s)", current, last_check_month)
        report = await carry_over_monthly(self._tasks.monthly_tasks, current, self._monthly, self._user_id)
        return current, report

    async def check_rollover(self, checkpoint: RolloverCheckpoint) -> RolloverOutcome:
        """
        Advance an explicit checkpoint. Nothing is persisted here.

        A track whose carry-over blows up keeps its old value, so the next
        trigger retries it.
        """
        errors: list[str] = []
        new_day = new_month = None
        daily_report = monthly_report = None

        try:
            new_day, daily_report = await self._check_day(checkpoint.last_day)
        except Exception as e:
            logger.exception("Daily rollover check failed (last=%s)", checkpoint.last_day)
            errors.append(f"day: {e}")

        try:
            new_month, monthly_report = await self._check_month(checkpoint.last_month)
        except Exception as e:
            logger.exception("Monthly rollover check failed (last=%s)", checkpoint.last_month)
            errors.append(f"month: {e}")

        updated = checkpoint
        if new_day is not None:
            updated = replace(updated, last_day=new_day)
        if new_month is not None:
            updated = replace(updated, last_month=new_month)

        return RolloverOutcome(
            checkpoint=updated,
            previous=checkpoint,
            new_day=new_day,
            new_month=new_month,
            daily_report=daily_report,
            monthly_report=monthly_report,
            errors=tuple(errors),
        )

    # ---- guarded pass ----

    async def run_rollover_check(
            self,
            on_rollover: RolloverCallback | None = None,
            *,
            reason: str = "manual",
    ) -> RolloverOutcome | None:
        """
        Read checkpoint -> check -> persist -> callback.

        Returns None when another pass is already in flight.
        """
        if self._in_flight:
            logger.debug("Rollover check (%s) skipped: another pass is in flight", reason)
            return None
        self._in_flight = True

        try:
            checkpoint = load_checkpoint(self._checkpoints, self._clock, persist_defaults=True)
            outcome = await self.check_rollover(checkpoint)

            if outcome.changed:
                try:
                    save_checkpoint(
                        self._checkpoints,
                        outcome.checkpoint,
                        day_changed=outcome.new_day is not None,
                        month_changed=outcome.new_month is not None,
                    )
                except Exception:
                    logger.exception("Failed to persist rollover checkpoint %s", outcome.checkpoint)

                logger.info(
                    "Rollover (%s): day=%s month=%s",
                    reason,
                    outcome.checkpoint.last_day,
                    outcome.checkpoint.last_month,
                )
                if on_rollover is not None:
                    await _invoke(on_rollover, outcome)
            else:
                logger.debug("Rollover check (%s): no change", reason)

            return outcome
        finally:
            self._in_flight = False

    # ---- triggers ----

    async def on_start(self, on_rollover: RolloverCallback | None = None) -> RolloverOutcome | None:
        return await self.run_rollover_check(on_rollover, reason="start")

    async def handle_visibility_change(
            self,
            state: VisibilityState | str,
            on_rollover: RolloverCallback | None = None,
    ) -> RolloverOutcome | None:
        """Catch-up path for timers that did not fire while the app was in the background."""
        if VisibilityState(state) != VisibilityState.VISIBLE:
            return None
        return await self.run_rollover_check(on_rollover, reason="visible")

    def schedule_midnight_rollover(self, on_rollover: RolloverCallback | None = None) -> MidnightRolloverHandle:
        """
        Arm the midnight timer on the running loop.

        To stop it, call the returned handle.
        """
        loop = asyncio.get_running_loop()
        handle = MidnightRolloverHandle()
        delay = seconds_until_midnight(self._clock())

        def fire() -> None:
            handle._timeout = None
            if handle.cancelled:
                return
            self.spawn(self.run_rollover_check(on_rollover, reason="midnight"))
            handle._interval = loop.create_task(self._repeat(on_rollover))

        handle._timeout = loop.call_later(delay, fire)
        logger.info("Midnight rollover armed in %.0fs", delay)
        return handle

    def _next_delay(self) -> float:
        """Until the next local midnight, at most interval_seconds."""
        return max(0.01, min(self._interval, seconds_until_midnight(self._clock())))

    async def _repeat(self, on_rollover: RolloverCallback | None) -> None:
        # Re-armed from the wall clock each time; a timer that fired early or
        # a 23/25h DST day only shifts the next firing.
        while True:
            await asyncio.sleep(self._next_delay())
            self.spawn(self.run_rollover_check(on_rollover, reason="interval"))

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        """Run a pass as a task on the current loop; wait_idle() waits for it."""
        task = asyncio.get_running_loop().create_task(coro)
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def wait_idle(self) -> None:
        """Wait for passes started through spawn()."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)


async def _invoke(callback: RolloverCallback, outcome: RolloverOutcome) -> None:
    try:
        result = callback(outcome)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("on_rollover callback failed")
