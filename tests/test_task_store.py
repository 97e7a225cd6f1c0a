# tests/test_task_store.py

from __future__ import annotations

from hesab.tasks.task_models import DailyTask, MonthlyTask, TaskStatus, YearlyTask
from hesab.tasks.task_store import TasksStore


def test_daily_set_add_update_remove() -> None:
    store = TasksStore(current_daily_date="2024-01-16")
    store.set_daily_tasks([DailyTask(id="a", name="A", date="2024-01-16")])
    store.add_daily_task(DailyTask(id="b", name="B", date="2024-01-16"))

    store.update_daily_task("a", status=TaskStatus.DONE, notes="paid")
    store.remove_daily_task("b")

    tasks = store.daily_tasks
    assert [t.id for t in tasks] == ["a"]
    assert tasks[0].status is TaskStatus.DONE
    assert tasks[0].notes == "paid"


def test_update_never_changes_id() -> None:
    store = TasksStore(current_daily_date="2024-01-16")
    store.set_yearly_tasks([YearlyTask(id="y", name="Travel", year=2024)])
    store.update_yearly_task("y", id="other", name="Travel more")
    assert [(t.id, t.name) for t in store.yearly_tasks] == [("y", "Travel more")]


def test_subscribers_get_snapshots() -> None:
    store = TasksStore(current_daily_date="2024-01-16")
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.add_monthly_task(MonthlyTask(id="m", name="Rent", month="2024-01"))
    store.set_current_daily_date("2024-01-17")
    unsubscribe()
    store.remove_monthly_task("m")

    assert len(seen) == 3
    assert seen[0].monthly_tasks == ()
    assert [t.id for t in seen[1].monthly_tasks] == ["m"]
    assert seen[2].current_daily_date == "2024-01-17"


def test_failing_subscriber_is_isolated() -> None:
    store = TasksStore(current_daily_date="2024-01-16")
    seen = []

    def boom(snapshot) -> None:
        raise RuntimeError("view crashed")

    store.subscribe(boom)
    store.subscribe(seen.append)
    store.add_daily_task(DailyTask(id="a", name="A", date="2024-01-16"))

    assert len(seen) == 2


def test_reset_clears_everything() -> None:
    store = TasksStore(current_daily_date="2024-01-16")
    store.add_daily_task(DailyTask(id="a", name="A", date="2024-01-16"))
    store.set_current_daily_date("2024-02-01")

    store.reset()

    snap = store.snapshot()
    assert snap.daily_tasks == ()
    assert snap.current_daily_date == "2024-01-16"
