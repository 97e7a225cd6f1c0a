# tests/test_task_models.py

from __future__ import annotations

import pytest

from hesab.tasks.task_models import DailyTask, MonthlyTask, TaskStatus, YearlyTask


def test_status_from_db_accepts_values_names_and_legacy_labels() -> None:
    assert TaskStatus.from_db("done") is TaskStatus.DONE
    assert TaskStatus.from_db("SKIPPED") is TaskStatus.SKIPPED
    assert TaskStatus.from_db("Выполнено") is TaskStatus.DONE
    assert TaskStatus.from_db("Пропущено") is TaskStatus.SKIPPED
    assert TaskStatus.from_db("Не выполнено") is TaskStatus.NOT_DONE
    assert TaskStatus.from_db(None) is TaskStatus.NOT_DONE
    assert TaskStatus.from_db("weird") is TaskStatus.NOT_DONE


def test_daily_task_document_fields() -> None:
    task = DailyTask(
        id="abc",
        name="Pay rent",
        date="2024-01-16",
        carried_over=True,
        original_date="2024-01-15",
        first_carry_date="2024-01-14",
    )
    doc = task.to_doc()
    assert "id" not in doc
    assert doc == {
        "name": "Pay rent",
        "date": "2024-01-16",
        "status": "not_done",
        "carriedOver": True,
        "originalDate": "2024-01-15",
        "first_carry_date": "2024-01-14",
    }

    back = DailyTask.from_doc("abc", doc)
    assert back == task


def test_plain_task_omits_carry_fields() -> None:
    doc = MonthlyTask(id=None, name="Budget review", month="2024-01").to_doc()
    assert "carriedOver" not in doc
    assert "originalMonth" not in doc
    assert "first_carry_date" not in doc


def test_from_doc_reads_legacy_documents() -> None:
    task = MonthlyTask.from_doc("m1", {"name": "Taxes", "month": "2023-12", "status": "Не выполнено"})
    assert task.status is TaskStatus.NOT_DONE
    assert task.carried_over is False
    assert task.original_month is None


def test_validation() -> None:
    with pytest.raises(ValueError):
        DailyTask(id=None, name="  ", date="2024-01-01").validate()
    with pytest.raises(ValueError):
        DailyTask(id=None, name="x", date="2024-1-1").validate()
    with pytest.raises(ValueError):
        MonthlyTask(id=None, name="x", month="2024-13").validate()
    with pytest.raises(ValueError):
        YearlyTask(id=None, name="x", year=0).validate()
    YearlyTask(id=None, name="x", year=2024).validate()
