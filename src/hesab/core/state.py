# src/hesab/core/state.py

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from typing import Any

from ..core.ports import CheckpointStore, Snapshot
from ..core.visibility import VisibilitySignal
from ..storage.document_store import DocumentStore
from ..sync.listeners import ListenerManager
from ..tasks.rollover import RolloverScheduler
from ..tasks.task_gateway import TaskGateways
from ..tasks.task_store import TasksStore


@dataclass
class AppState:
    # Settings object (real Settings or a test SimpleNamespace).
    settings: Any

    user_id: str
    documents: DocumentStore
    tasks: TasksStore
    gateways: TaskGateways
    listeners: ListenerManager
    checkpoints: CheckpointStore
    visibility: VisibilitySignal
    scheduler: RolloverScheduler

    # Month the calendar is in vs month the user is looking at.
    current_month_id: str
    selected_month_id: str

    # Latest snapshots of non-task collections, keyed by collection name.
    collections: dict[str, Snapshot] = field(default_factory=dict)
    month_view: dict[str, Snapshot] = field(default_factory=dict)

    lock: threading.RLock = field(default_factory=threading.RLock)

    # Event loop hosting the scheduler (set by the background runner).
    loop: asyncio.AbstractEventLoop | None = None
