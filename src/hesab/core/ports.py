# src/hesab/core/ports.py

"""
Ports (interfaces) used by the core.

The carry-over engine, rollover scheduler and listener manager depend on
Protocols instead of concrete implementations, so the document store and the
checkpoint storage stay swappable and tests can use in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Awaitable, Protocol

Document = tuple[str, dict[str, Any]]
# (document id, document fields) as delivered in a snapshot.

Snapshot = list[Document]
SnapshotCallback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class TaskGateway(Protocol):
    """
    Remote write port for one task tier.

    create() returns the id assigned by the store. Any call may raise; callers
    decide whether to continue.
    """

    def create(self, user_id: str, task: Any) -> Awaitable[str]: ...

    def update(self, user_id: str, task_id: str, fields: dict[str, Any]) -> Awaitable[None]: ...

    def delete(self, user_id: str, task_id: str) -> Awaitable[None]: ...


class SubscriptionSource(Protocol):
    """Opens a live query on a collection; the returned callable detaches it."""

    def subscribe(
            self,
            collection: str,
            filters: dict[str, Any] | None,
            on_snapshot: SnapshotCallback,
    ) -> Unsubscribe: ...


class CheckpointStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
