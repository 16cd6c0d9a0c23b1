"""Audit trail recording for tasks."""
from sqlmodel import Session, col, select
from typing import List, Optional

from taskhub.models.enums import TaskEventType
from taskhub.models.task import Task, TaskEvent


class TaskEventService:
    """Append-only audit sink; events are written in the caller's transaction."""

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        task_id: int,
        actor_id: Optional[str],
        event_type: TaskEventType,
        message: Optional[str] = None,
        assignment_id: Optional[int] = None,
    ) -> TaskEvent:
        event = TaskEvent(
            task_id=task_id,
            actor_id=actor_id,
            type=event_type,
            message=message,
            assignment_id=assignment_id,
        )
        self.session.add(event)
        self.session.flush()
        return event

    def record_instances_generated(self, tasks: List[Task], actor_id: Optional[str]) -> List[TaskEvent]:
        """Record one RECURRING_INSTANCE_GENERATED event per new occurrence."""
        events = [
            TaskEvent(
                task_id=task.id,
                actor_id=actor_id,
                type=TaskEventType.RECURRING_INSTANCE_GENERATED,
                message=f"Generated instance for {task.occurrence_date.isoformat()}",
            )
            for task in tasks
        ]
        if events:
            self.session.add_all(events)
            self.session.flush()
        return events

    def list_for_task(self, task_id: int) -> List[TaskEvent]:
        """Get a task's events, oldest first."""
        statement = (
            select(TaskEvent)
            .where(TaskEvent.task_id == task_id)
            .order_by(col(TaskEvent.created_at), col(TaskEvent.id))
        )
        return list(self.session.exec(statement).all())
