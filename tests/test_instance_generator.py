# tests/test_instance_generator.py

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session, col, select

from taskhub.models import (
    RecurrenceFrequency,
    Task,
    TaskAssignment,
    TaskEvent,
    TaskEventType,
    TaskStatus,
    TaskUnit,
)
from taskhub.services.instance_generator import InstanceGenerator
from taskhub.services.task_store import TaskStore
from taskhub.services.template_store import TemplateStore
from taskhub.utils.metrics import metrics_collector

from .factories import TODAY


def _add_template(
    engine: Engine,
    users: Dict[str, str],
    assignees: Optional[List[str]] = None,
    **overrides,
) -> str:
    values = {
        "title": "Check the pressure gauge",
        "description": "Boiler room",
        "created_by": users["alice"],
        "frequency": RecurrenceFrequency.DAILY,
        "interval": 1,
        "start_date": TODAY,
        "unit": TaskUnit.LITERS,
        "target_quantity": 5.0,
        "is_active": True,
    }
    values.update(overrides)
    with Session(engine) as session:
        store = TemplateStore(session)
        template = store.create(values)
        if assignees:
            store.replace_assignees(template.id, assignees)
        session.commit()
        return template.id


def _tasks(engine: Engine, template_id: str) -> List[Task]:
    with Session(engine) as session:
        return list(
            session.exec(
                select(Task)
                .where(Task.recurring_template_id == template_id)
                .order_by(col(Task.occurrence_date))
            ).all()
        )


def test_generated_occurrences_copy_template_fields(engine, users) -> None:
    template_id = _add_template(engine, users)

    with Session(engine, expire_on_commit=False) as session:
        created = InstanceGenerator(session).generate_instances(template_id, 3)
        session.commit()

    assert [t.occurrence_date for t in created] == [TODAY + timedelta(days=i) for i in range(3)]
    for task in created:
        assert task.id is not None
        assert task.title == "Check the pressure gauge"
        assert task.description == "Boiler room"
        assert task.status == TaskStatus.PENDING
        assert task.current_quantity == 0
        assert task.unit == TaskUnit.LITERS
        assert task.target_quantity == 5.0
        assert task.scheduled_date == task.occurrence_date
        assert task.deadline == datetime.combine(task.occurrence_date, time(23, 59, 59, 999000))
        assert task.created_by == users["alice"]

    assert metrics_collector.get_metrics()["counters"]["occurrences_generated_total"] == 3


def test_every_assignee_gets_every_occurrence(engine, users) -> None:
    template_id = _add_template(engine, users, assignees=[users["bob"], users["carol"]])

    with Session(engine) as session:
        created = InstanceGenerator(session).generate_instances(template_id, 3)
        task_ids = [task.id for task in created]
        session.commit()

    with Session(engine) as session:
        pairs = session.exec(
            select(TaskAssignment.task_id, TaskAssignment.user_id)
            .where(col(TaskAssignment.task_id).in_(task_ids))
        ).all()

    assert len(pairs) == 6
    assert set(pairs) == {
        (task_id, user_id) for task_id in task_ids for user_id in (users["bob"], users["carol"])
    }


def test_each_occurrence_gets_a_generation_event(engine, users) -> None:
    template_id = _add_template(engine, users)

    with Session(engine) as session:
        InstanceGenerator(session).generate_instances(template_id, 2)
        session.commit()

    with Session(engine) as session:
        events = session.exec(select(TaskEvent).order_by(col(TaskEvent.id))).all()

    assert [e.type for e in events] == [TaskEventType.RECURRING_INSTANCE_GENERATED] * 2
    assert events[0].message == f"Generated instance for {TODAY.isoformat()}"
    assert all(e.actor_id == users["alice"] for e in events)


def test_inactive_or_missing_template_generates_nothing(engine, users) -> None:
    template_id = _add_template(engine, users, is_active=False)

    with Session(engine) as session:
        generator = InstanceGenerator(session)
        assert generator.generate_instances(template_id, 5) == []
        assert generator.generate_instances("no-such-template", 5) == []
        session.commit()

    assert _tasks(engine, template_id) == []


def test_generation_skips_existing_dates(engine, users) -> None:
    template_id = _add_template(engine, users)

    with Session(engine) as session:
        InstanceGenerator(session).generate_instances(template_id, 3)
        session.commit()
    with Session(engine, expire_on_commit=False) as session:
        more = InstanceGenerator(session).generate_instances(template_id, 2)
        session.commit()

    assert [t.occurrence_date for t in more] == [TODAY + timedelta(days=3), TODAY + timedelta(days=4)]
    assert len(_tasks(engine, template_id)) == 5


def test_buffer_top_up_is_idempotent(engine, users) -> None:
    template_id = _add_template(engine, users)

    for _ in range(2):
        with Session(engine) as session:
            InstanceGenerator(session).ensure_instance_buffer(template_id, TODAY, 12)
            session.commit()

    tasks = _tasks(engine, template_id)
    dates = [t.occurrence_date for t in tasks]
    assert len(tasks) == 12
    assert len(set(dates)) == 12
    assert metrics_collector.get_metrics()["counters"]["buffer_topups_total"] == 1


def test_buffer_top_up_fills_only_the_shortfall(engine, users) -> None:
    template_id = _add_template(engine, users)

    with Session(engine) as session:
        InstanceGenerator(session).generate_instances(template_id, 4)
        session.commit()
    with Session(engine, expire_on_commit=False) as session:
        added = InstanceGenerator(session).ensure_instance_buffer(template_id, TODAY + timedelta(days=2), 5)
        session.commit()

    # TODAY+2 and TODAY+3 already count toward the buffer
    assert [t.occurrence_date for t in added] == [TODAY + timedelta(days=d) for d in (4, 5, 6)]


def test_buffer_top_up_does_not_backfill_past_days(engine, users) -> None:
    template_id = _add_template(engine, users, start_date=TODAY - timedelta(days=30))

    with Session(engine) as session:
        InstanceGenerator(session).ensure_instance_buffer(template_id, TODAY, 3)
        session.commit()

    assert [t.occurrence_date for t in _tasks(engine, template_id)] == [
        TODAY,
        TODAY + timedelta(days=1),
        TODAY + timedelta(days=2),
    ]


def test_regeneration_keeps_started_and_past_work(engine, users) -> None:
    template_id = _add_template(engine, users, start_date=TODAY - timedelta(days=3))

    with Session(engine) as session:
        InstanceGenerator(session).generate_instances(template_id, 8)
        session.commit()

    tasks = {t.occurrence_date: t for t in _tasks(engine, template_id)}
    started_day = TODAY + timedelta(days=1)
    logged_day = TODAY + timedelta(days=2)
    with Session(engine) as session:
        started = session.get(Task, tasks[started_day].id)
        started.status = TaskStatus.IN_PROGRESS
        started.current_quantity = 2
        logged = session.get(Task, tasks[logged_day].id)
        logged.current_quantity = 1
        session.add_all([started, logged])
        session.commit()

    with Session(engine) as session:
        before = session.get(Task, tasks[started_day].id).model_dump()

    # Switch to every other day
    with Session(engine, expire_on_commit=False) as session:
        TemplateStore(session).update(template_id, {"interval": 2})
        regenerated = InstanceGenerator(session).regenerate_future_instances(template_id, TODAY, 4)
        session.commit()

    after_tasks = {t.occurrence_date: t for t in _tasks(engine, template_id)}
    with Session(engine) as session:
        after = session.get(Task, tasks[started_day].id).model_dump()

    assert after == before
    assert after_tasks[logged_day].id == tasks[logged_day].id
    for offset in (1, 2, 3):
        past_day = TODAY - timedelta(days=offset)
        assert after_tasks[past_day].id == tasks[past_day].id
    # Untouched days under the old rule were pruned; TODAY+3 fits the new rule again
    assert TODAY not in after_tasks
    assert TODAY + timedelta(days=4) not in after_tasks
    assert [t.occurrence_date for t in regenerated] == [TODAY + timedelta(days=d) for d in (3, 5, 7, 9)]
    assert sorted(d for d in after_tasks if d > logged_day) == [
        TODAY + timedelta(days=d) for d in (3, 5, 7, 9)
    ]
    assert metrics_collector.get_metrics()["counters"]["occurrences_pruned_total"] == 3


def test_insert_occurrences_tolerates_taken_slots(engine, users) -> None:
    template_id = _add_template(engine, users)
    taken_day = TODAY + timedelta(days=1)

    with Session(engine) as session:
        generator = InstanceGenerator(session)
        template = generator.templates.get(template_id)
        rows = [generator._occurrence_row(template, TODAY + timedelta(days=d)) for d in range(3)]

    # Another worker claims one slot first
    with Session(engine) as session:
        session.add(Task(**rows[1]))
        session.commit()

    with Session(engine, expire_on_commit=False) as session:
        inserted = TaskStore(session).insert_occurrences(template_id, rows)
        session.commit()

    assert [t.occurrence_date for t in inserted] == [TODAY, TODAY + timedelta(days=2)]
    dates = [t.occurrence_date for t in _tasks(engine, template_id)]
    assert dates.count(taken_day) == 1
    assert len(dates) == 3


def test_insert_occurrences_all_taken_returns_empty(engine, users) -> None:
    template_id = _add_template(engine, users)

    with Session(engine) as session:
        InstanceGenerator(session).generate_instances(template_id, 2)
        session.commit()

    with Session(engine) as session:
        generator = InstanceGenerator(session)
        template = generator.templates.get(template_id)
        rows = [generator._occurrence_row(template, TODAY), generator._occurrence_row(template, TODAY + timedelta(days=1))]
        assert TaskStore(session).insert_occurrences(template_id, rows) == []
        session.commit()

    assert len(_tasks(engine, template_id)) == 2


@pytest.mark.parametrize("status", [TaskStatus.DONE, TaskStatus.REJECTED])
def test_finished_future_occurrences_survive_regeneration(engine, users, status) -> None:
    template_id = _add_template(engine, users)

    with Session(engine) as session:
        created = InstanceGenerator(session).generate_instances(template_id, 3)
        finished_id = created[2].id
        finished = session.get(Task, finished_id)
        finished.status = status
        session.add(finished)
        session.commit()

    with Session(engine) as session:
        InstanceGenerator(session).regenerate_future_instances(template_id, TODAY, 3)
        session.commit()

    with Session(engine) as session:
        assert session.get(Task, finished_id).status == status
