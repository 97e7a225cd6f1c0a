# src/hesab/tasks/task_gateway.py

"""
Task write gateways, one per tier, backed by the document store.

Collection layout (per user):
- users/<uid>/dailyTasks
- users/<uid>/monthlyTasks
- users/<uid>/yearlyTasks
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from ..storage.document_store import DocumentStore
from .task_models import AnyTask, DailyTask, MonthlyTask, TaskStatus, YearlyTask

logger = logging.getLogger(__name__)


def user_collection(user_id: str, name: str) -> str:
    if not user_id:
        raise ValueError("user_id is required")
    return f"users/{user_id}/{name}"


def daily_tasks_collection(user_id: str) -> str:
    return user_collection(user_id, "dailyTasks")


def monthly_tasks_collection(user_id: str) -> str:
    return user_collection(user_id, "monthlyTasks")


def yearly_tasks_collection(user_id: str) -> str:
    return user_collection(user_id, "yearlyTasks")


class _DocumentTaskGateway:
    task_type: type = DailyTask
    collection_name: str = ""

    def __init__(self, documents: DocumentStore) -> None:
        self._documents = documents

    def _collection(self, user_id: str) -> str:
        return user_collection(user_id, self.collection_name)

    async def create(self, user_id: str, task: AnyTask) -> str:
        if not isinstance(task, self.task_type):
            raise TypeError(f"expected {self.task_type.__name__}, got {type(task).__name__}")
        task.validate()

        data = task.to_doc()
        data["createdAt"] = time.time()
        task_id = self._documents.add_document(self._collection(user_id), data)
        logger.debug("%s created id=%s", self.task_type.__name__, task_id)
        return task_id

    async def update(self, user_id: str, task_id: str, fields: dict[str, Any]) -> None:
        clean = dict(fields)
        clean.pop("id", None)
        clean.pop("createdAt", None)
        status = clean.get("status")
        if isinstance(status, TaskStatus):
            clean["status"] = status.value
        if not clean:
            return
        self._documents.update_document(self._collection(user_id), task_id, clean)

    async def delete(self, user_id: str, task_id: str) -> None:
        self._documents.delete_document(self._collection(user_id), task_id)


class DailyTaskGateway(_DocumentTaskGateway):
    task_type = DailyTask
    collection_name = "dailyTasks"


class MonthlyTaskGateway(_DocumentTaskGateway):
    task_type = MonthlyTask
    collection_name = "monthlyTasks"


class YearlyTaskGateway(_DocumentTaskGateway):
    task_type = YearlyTask
    collection_name = "yearlyTasks"


@dataclass(slots=True)
class TaskGateways:
    daily: DailyTaskGateway
    monthly: MonthlyTaskGateway
    yearly: YearlyTaskGateway

    @classmethod
    def for_store(cls, documents: DocumentStore) -> TaskGateways:
        return cls(
            daily=DailyTaskGateway(documents),
            monthly=MonthlyTaskGateway(documents),
            yearly=YearlyTaskGateway(documents),
        )
