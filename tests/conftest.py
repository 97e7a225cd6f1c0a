# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from hesab.cli.bootstrap import create_initial_state
from hesab.core.state import AppState
from hesab.tasks.checkpoint import MemoryCheckpointStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="hesab-test",
        user_id="u1",
        data_dir=tmp_path,
        db_path=tmp_path / "hesab.sqlite3",
        checkpoint_path=tmp_path / "checkpoint.json",
        rollover_enabled=False,
        rollover_interval_seconds=86400.0,
        idle_visibility_seconds=300.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 16, 9, 30))


@pytest.fixture()
def checkpoints() -> MemoryCheckpointStore:
    return MemoryCheckpointStore()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, checkpoints: MemoryCheckpointStore) -> AppState:
    """
    AppState wired with a real SQLite document store and a frozen clock.

    NOTE: the document store is real because live-query delivery is part of
    what the session tests exercise.
    """
    return create_initial_state(settings=settings, checkpoints=checkpoints, clock=clock)
