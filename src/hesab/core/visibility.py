# src/hesab/core/visibility.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import StrEnum

logger = logging.getLogger(__name__)


class VisibilityState(StrEnum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


VisibilityListener = Callable[[VisibilityState], None]


class VisibilitySignal:
    """
    Foreground/background signal for the running app.

    Listeners are notified only on transitions (hidden -> visible and back).
    """

    def __init__(self, initial: VisibilityState = VisibilityState.VISIBLE) -> None:
        self._state = initial
        self._listeners: list[VisibilityListener] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> VisibilityState:
        return self._state

    def subscribe(self, listener: VisibilityListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set_state(self, new_state: VisibilityState) -> bool:
        """Returns True if the state changed (and listeners were notified)."""
        with self._lock:
            if new_state == self._state:
                return False
            self._state = new_state
            listeners = list(self._listeners)

        logger.debug("Visibility -> %s", new_state.value)
        for listener in listeners:
            try:
                listener(new_state)
            except Exception:
                logger.exception("Visibility listener failed state=%s", new_state.value)
        return True
