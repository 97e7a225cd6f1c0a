# src/hesab/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ..core.clock import parse_day, parse_month


class TaskStatus(StrEnum):
    """
    Task completion status.

    Notes:
    - Documents written by the old web client store Russian labels; from_db
      maps them onto the same members.
    """

    NOT_DONE = "not_done"
    DONE = "done"
    SKIPPED = "skipped"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.NOT_DONE
        legacy = _LEGACY_STATUS.get(raw)
        if legacy is not None:
            return legacy
        try:
            return cls(raw)
        except ValueError:
            pass
        try:
            return cls[str(raw).upper()]
        except KeyError:
            return cls.NOT_DONE


_LEGACY_STATUS = {
    "Не выполнено": TaskStatus.NOT_DONE,
    "Выполнено": TaskStatus.DONE,
    "Пропущено": TaskStatus.SKIPPED,
}


class TaskTier(StrEnum):
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _require_name(name: str) -> str:
    if not name or not str(name).strip():
        raise ValueError("task name is required")
    return str(name).strip()


def _optional(data: dict[str, Any], key: str) -> str | None:
    v = data.get(key)
    return str(v) if v not in (None, "") else None


@dataclass(slots=True)
class DailyTask:
    id: str | None
    name: str
    date: str
    status: TaskStatus = TaskStatus.NOT_DONE
    notes: str | None = None

    carried_over: bool = False
    original_date: str | None = None
    first_carry_date: str | None = None

    created_at: float | None = None

    @property
    def key(self) -> str:
        return self.date

    def validate(self) -> None:
        _require_name(self.name)
        parse_day(self.date)

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "name": self.name,
            "date": self.date,
            "status": self.status.value,
        }
        if self.notes is not None:
            doc["notes"] = self.notes
        if self.carried_over:
            doc["carriedOver"] = True
        if self.original_date is not None:
            doc["originalDate"] = self.original_date
        if self.first_carry_date is not None:
            doc["first_carry_date"] = self.first_carry_date
        if self.created_at is not None:
            doc["createdAt"] = self.created_at
        return doc

    @classmethod
    def from_doc(cls, doc_id: str | None, data: dict[str, Any]) -> DailyTask:
        return cls(
            id=doc_id,
            name=str(data.get("name") or ""),
            date=str(data.get("date") or ""),
            status=TaskStatus.from_db(data.get("status")),
            notes=_optional(data, "notes"),
            carried_over=bool(data.get("carriedOver", False)),
            original_date=_optional(data, "originalDate"),
            first_carry_date=_optional(data, "first_carry_date"),
            created_at=_float_or_none(data.get("createdAt")),
        )


@dataclass(slots=True)
class MonthlyTask:
    id: str | None
    name: str
    month: str
    status: TaskStatus = TaskStatus.NOT_DONE
    notes: str | None = None

    carried_over: bool = False
    original_month: str | None = None
    first_carry_date: str | None = None

    created_at: float | None = None

    @property
    def key(self) -> str:
        return self.month

    def validate(self) -> None:
        _require_name(self.name)
        parse_month(self.month)

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "name": self.name,
            "month": self.month,
            "status": self.status.value,
        }
        if self.notes is not None:
            doc["notes"] = self.notes
        if self.carried_over:
            doc["carriedOver"] = True
        if self.original_month is not None:
            doc["originalMonth"] = self.original_month
        if self.first_carry_date is not None:
            doc["first_carry_date"] = self.first_carry_date
        if self.created_at is not None:
            doc["createdAt"] = self.created_at
        return doc

    @classmethod
    def from_doc(cls, doc_id: str | None, data: dict[str, Any]) -> MonthlyTask:
        return cls(
            id=doc_id,
            name=str(data.get("name") or ""),
            month=str(data.get("month") or ""),
            status=TaskStatus.from_db(data.get("status")),
            notes=_optional(data, "notes"),
            carried_over=bool(data.get("carriedOver", False)),
            original_month=_optional(data, "originalMonth"),
            first_carry_date=_optional(data, "first_carry_date"),
            created_at=_float_or_none(data.get("createdAt")),
        )


@dataclass(slots=True)
class YearlyTask:
    id: str | None
    name: str
    year: int
    status: TaskStatus = TaskStatus.NOT_DONE
    notes: str | None = None
    created_at: float | None = None

    @property
    def key(self) -> int:
        return self.year

    def validate(self) -> None:
        _require_name(self.name)
        if not isinstance(self.year, int) or not 1 <= self.year <= 9999:
            raise ValueError(f"invalid year: {self.year!r}")

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "name": self.name,
            "year": self.year,
            "status": self.status.value,
        }
        if self.notes is not None:
            doc["notes"] = self.notes
        if self.created_at is not None:
            doc["createdAt"] = self.created_at
        return doc

    @classmethod
    def from_doc(cls, doc_id: str | None, data: dict[str, Any]) -> YearlyTask:
        try:
            year = int(data.get("year") or 0)
        except (TypeError, ValueError):
            year = 0
        return cls(
            id=doc_id,
            name=str(data.get("name") or ""),
            year=year,
            status=TaskStatus.from_db(data.get("status")),
            notes=_optional(data, "notes"),
            created_at=_float_or_none(data.get("createdAt")),
        )


AnyTask = DailyTask | MonthlyTask | YearlyTask


def _float_or_none(v: Any) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None
