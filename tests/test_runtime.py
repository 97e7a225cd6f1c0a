# tests/test_runtime.py

from __future__ import annotations

import asyncio

import pytest

from hesab.cli.runtime import run_rollover_service, start_rollover_in_background
from hesab.core.state import AppState
from hesab.core.visibility import VisibilitySignal, VisibilityState
from hesab.sync.session import start_session
from hesab.tasks.checkpoint import LAST_DAY_KEY, LAST_MONTH_KEY, MemoryCheckpointStore
from hesab.tasks.rollover import RolloverScheduler
from hesab.tasks.task_models import DailyTask

from .fakes import FakeTaskGateway


def test_visibility_notifies_on_transitions_only() -> None:
    signal = VisibilitySignal()
    seen: list[VisibilityState] = []
    unsubscribe = signal.subscribe(seen.append)

    assert signal.set_state(VisibilityState.VISIBLE) is False
    assert signal.set_state(VisibilityState.HIDDEN) is True
    assert signal.set_state(VisibilityState.VISIBLE) is True
    unsubscribe()
    signal.set_state(VisibilityState.HIDDEN)

    assert seen == [VisibilityState.HIDDEN, VisibilityState.VISIBLE]


@pytest.mark.asyncio
async def test_service_runs_start_pass_and_visibility_catch_up(
    state: AppState, checkpoints: MemoryCheckpointStore, clock
) -> None:
    start_session(state)
    await state.gateways.daily.create("u1", DailyTask(id=None, name="Call the bank", date="2024-01-16"))
    checkpoints.values[LAST_DAY_KEY] = "2024-01-16"
    checkpoints.values[LAST_MONTH_KEY] = "2024-01"

    stop = asyncio.Event()
    service = asyncio.create_task(run_rollover_service(state, stop))
    await asyncio.sleep(0.05)
    assert checkpoints.values[LAST_DAY_KEY] == "2024-01-16"

    clock.set(clock().replace(day=17, hour=7))
    state.visibility.set_state(VisibilityState.HIDDEN)
    state.visibility.set_state(VisibilityState.VISIBLE)
    await asyncio.sleep(0.05)

    stop.set()
    await asyncio.wait_for(service, timeout=2.0)

    assert checkpoints.values[LAST_DAY_KEY] == "2024-01-17"
    assert [t.date for t in state.tasks.daily_tasks] == ["2024-01-16", "2024-01-17"]
    assert state.tasks.current_daily_date == "2024-01-17"


def test_background_runner_respects_disabled_setting(state: AppState) -> None:
    assert state.settings.rollover_enabled is False
    assert start_rollover_in_background(state) is None


@pytest.mark.asyncio
async def test_shutdown_waits_for_visibility_pass(
    state: AppState, checkpoints: MemoryCheckpointStore, clock
) -> None:
    daily = FakeTaskGateway(yield_each=True)
    state.scheduler = RolloverScheduler(
        user_id="u1",
        tasks_store=state.tasks,
        daily_gateway=daily,
        monthly_gateway=FakeTaskGateway(),
        checkpoints=checkpoints,
        clock=clock,
    )
    state.tasks.set_daily_tasks(
        [
            DailyTask(id="t1", name="Pay rent", date="2024-01-16"),
            DailyTask(id="t2", name="Call the bank", date="2024-01-16"),
        ]
    )
    checkpoints.values[LAST_DAY_KEY] = "2024-01-16"
    checkpoints.values[LAST_MONTH_KEY] = "2024-01"

    stop = asyncio.Event()
    service = asyncio.create_task(run_rollover_service(state, stop))
    await asyncio.sleep(0.01)

    clock.set(clock().replace(day=17, hour=7))
    state.visibility.set_state(VisibilityState.HIDDEN)
    state.visibility.set_state(VisibilityState.VISIBLE)
    stop.set()
    await asyncio.wait_for(service, timeout=2.0)

    assert [t.name for t in daily.created] == ["Pay rent", "Call the bank"]
    assert checkpoints.values[LAST_DAY_KEY] == "2024-01-17"
