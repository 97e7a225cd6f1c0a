# src/hesab/cli/runtime.py

"""
Background event loop for the rollover scheduler.

The console REPL blocks on input(), so the scheduler lives on its own asyncio
loop in a daemon thread. The console talks to it through run_on_loop() and
the VisibilitySignal.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.state import AppState
from ..core.visibility import VisibilityState
from ..sync.session import follow_rollover
from ..tasks.rollover import RolloverOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_on_loop(state: AppState, coro: Coroutine[Any, Any, T], timeout: float = 30.0) -> T:
    """
    Run a coroutine to completion from synchronous code.

    Uses the background loop when it is running, so gateway writes and
    rollover passes share one loop; falls back to asyncio.run otherwise.
    """
    loop = state.loop
    if loop is not None and loop.is_running():
        return asyncio.run_coroutine_threadsafe(coro, loop).result(timeout=timeout)
    return asyncio.run(coro)


def make_rollover_callback(state: AppState):
    def on_rollover(outcome: RolloverOutcome) -> None:
        follow_rollover(state, outcome)

    return on_rollover


async def run_rollover_service(state: AppState, stop_event: asyncio.Event) -> None:
    """
    Application-start check, midnight timer and visibility catch-up until stop_event is set.
    """
    scheduler = state.scheduler
    loop = asyncio.get_running_loop()
    on_rollover = make_rollover_callback(state)

    await scheduler.on_start(on_rollover)
    dispose_timer = scheduler.schedule_midnight_rollover(on_rollover)

    def on_visibility(vs: VisibilityState) -> None:
        # Called from whichever thread flipped the signal.
        loop.call_soon_threadsafe(scheduler.spawn, scheduler.handle_visibility_change(vs, on_rollover))

    unsubscribe = state.visibility.subscribe(on_visibility)
    logger.info("Rollover service running for user=%s", state.user_id)
    try:
        await stop_event.wait()
    finally:
        unsubscribe()
        dispose_timer()
        await scheduler.wait_idle()
        logger.info("Rollover service stopped.")


@dataclass
class RolloverBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal rollover stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_rollover_in_background(state: AppState) -> RolloverBackgroundRunner | None:
    """Start the rollover service in a background thread with its own event loop."""
    if not getattr(state.settings, "rollover_enabled", True):
        logger.info("Rollover disabled, not starting.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        state.loop = loop
        loop.call_soon(ready.set)

        try:
            loop.run_until_complete(run_rollover_service(state, stop_event))
        except Exception:
            logger.exception("Rollover service crashed.")
        finally:
            state.loop = None
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="hesab-rollover", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Rollover thread did not initialize properly.")
        return None

    logger.info("Rollover background thread started.")
    return RolloverBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
