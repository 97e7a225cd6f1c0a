# src/hesab/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the document store, task gateways, listener manager, checkpoint store
  and rollover scheduler into AppState.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..config import get_settings
from ..core.clock import Clock, this_month, today
from ..core.ports import CheckpointStore
from ..core.state import AppState
from ..core.visibility import VisibilitySignal
from ..storage.document_store import DocumentStore
from ..sync.listeners import ListenerManager
from ..tasks.checkpoint import JsonCheckpointStore
from ..tasks.rollover import RolloverScheduler
from ..tasks.task_gateway import TaskGateways
from ..tasks.task_store import TasksStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.checkpoint_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    checkpoints: CheckpointStore | None = None,
    clock: Clock = datetime.now,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    user_id = str(getattr(settings, "user_id", "") or "local")
    now = clock()

    documents = DocumentStore(settings.db_path)
    tasks = TasksStore(current_daily_date=today(now))
    gateways = TaskGateways.for_store(documents)
    if checkpoints is None:
        checkpoints = JsonCheckpointStore(settings.checkpoint_path)

    scheduler = RolloverScheduler(
        user_id=user_id,
        tasks_store=tasks,
        daily_gateway=gateways.daily,
        monthly_gateway=gateways.monthly,
        checkpoints=checkpoints,
        clock=clock,
        interval_seconds=float(getattr(settings, "rollover_interval_seconds", 86400.0)),
    )

    month = this_month(now)
    state = AppState(
        settings=settings,
        user_id=user_id,
        documents=documents,
        tasks=tasks,
        gateways=gateways,
        listeners=ListenerManager(documents),
        checkpoints=checkpoints,
        visibility=VisibilitySignal(),
        scheduler=scheduler,
        current_month_id=month,
        selected_month_id=month,
    )
    logger.debug("AppState created user=%s month=%s", user_id, month)
    return state
