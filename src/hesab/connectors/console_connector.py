# src/hesab/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..core.visibility import VisibilityState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


class _IdleWatch:
    """
    Console stand-in for page visibility.

    A prompt left unanswered for `idle_seconds` counts as the app going to the
    background; the next line typed brings it back to the foreground.
    """

    def __init__(self, state: AppState, idle_seconds: float) -> None:
        self._state = state
        self._idle_seconds = max(1.0, float(idle_seconds))
        self._timer: threading.Timer | None = None

    def arm(self) -> None:
        self.disarm()
        self._timer = threading.Timer(self._idle_seconds, self._state.visibility.set_state, (VisibilityState.HIDDEN,))
        self._timer.daemon = True
        self._timer.start()

    def disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def activity(self) -> None:
        self.disarm()
        self._state.visibility.set_state(VisibilityState.VISIBLE)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (user=%s).", state.user_id)
    _print_ts("[CONSOLE] Use /help for commands, /today for today's tasks. Use /exit to quit.\n")

    idle = _IdleWatch(state, getattr(state.settings, "idle_visibility_seconds", 300.0))

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    try:
        while True:
            idle.arm()
            try:
                user_input = input(">>> ").strip()
                _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            idle.activity()

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                cmd_response = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                cmd_response = "Internal error while handling a command."

            if cmd_response is None:
                cmd_response = "Commands start with '/'. Use /help to list them."
            print(f"[{_ts_local()}] {cmd_response}")
    finally:
        idle.disarm()

    logger.info("Console connector finished.")
