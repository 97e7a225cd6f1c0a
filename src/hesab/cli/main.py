# src/hesab/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, opens the live-query session, then runs:
- the rollover service in a background thread (optional),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..cli.runtime import RolloverBackgroundRunner, start_rollover_in_background
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..sync.session import end_session, start_session

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        end_session(state)
    except Exception:
        logger.exception("Failed to end session.")

    try:
        state.documents.close()
    except Exception:
        logger.debug("Document store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/hesab")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "hesab"))

    state = create_initial_state(settings=settings)
    start_session(state)

    runner: RolloverBackgroundRunner | None = start_rollover_in_background(state)

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running rollover service only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
