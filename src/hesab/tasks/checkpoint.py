# src/hesab/tasks/checkpoint.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from ..core.clock import Clock, this_month, today
from ..core.ports import CheckpointStore

logger = logging.getLogger(__name__)

LAST_DAY_KEY = "lastCarryOverDate"
LAST_MONTH_KEY = "lastCarryOverMonth"


@dataclass(frozen=True, slots=True)
class RolloverCheckpoint:
    """Last calendar day/month for which a carry-over pass was run."""

    last_day: str
    last_month: str

    @classmethod
    def current(cls, clock: Clock | None = None) -> RolloverCheckpoint:
        now = clock() if clock is not None else None
        return cls(last_day=today(now), last_month=this_month(now))


def load_checkpoint(
    store: CheckpointStore,
    clock: Clock | None = None,
    *,
    persist_defaults: bool = False,
) -> RolloverCheckpoint:
    """
    Read the checkpoint, falling back to "today"/"this month".

    A missing or unreadable value means "nothing to catch up on", so the pass
    that follows does no carry-over instead of re-running an old one.

    With persist_defaults, fallback values are written back so later reads
    start from the day the checkpoint was first missing.
    """
    fallback = RolloverCheckpoint.current(clock)
    try:
        last_day = store.get(LAST_DAY_KEY)
        last_month = store.get(LAST_MONTH_KEY)
    except Exception:
        logger.warning("Checkpoint read failed; using %s / %s", fallback.last_day, fallback.last_month, exc_info=True)
        last_day = last_month = None

    checkpoint = RolloverCheckpoint(
        last_day=last_day or fallback.last_day,
        last_month=last_month or fallback.last_month,
    )

    if persist_defaults and not (last_day and last_month):
        try:
            save_checkpoint(store, checkpoint, day_changed=not last_day, month_changed=not last_month)
        except Exception:
            logger.exception("Failed to initialize rollover checkpoint %s", checkpoint)
        else:
            logger.info("Rollover checkpoint initialized at %s / %s", checkpoint.last_day, checkpoint.last_month)
    return checkpoint


def save_checkpoint(
    store: CheckpointStore,
    checkpoint: RolloverCheckpoint,
    *,
    day_changed: bool = True,
    month_changed: bool = True,
) -> None:
    if day_changed:
        store.set(LAST_DAY_KEY, checkpoint.last_day)
    if month_changed:
        store.set(LAST_MONTH_KEY, checkpoint.last_month)


class MemoryCheckpointStore:
    """Process-local checkpoint storage (tests, ephemeral sessions)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonCheckpointStore:
    """
    Durable checkpoint storage in a small JSON file.

    Writes go to a temp file and are moved into place with os.replace, so a
    crash never leaves a half-written checkpoint behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text("utf-8"))
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read()
            except Exception:
                logger.warning("Checkpoint file unreadable, rewriting %s", self._path, exc_info=True)
                data = {}
            data[key] = value

            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(Exception):
                os.chmod(self._path, 0o600)
        logger.debug("Checkpoint %s=%s saved to %s", key, value, self._path)
