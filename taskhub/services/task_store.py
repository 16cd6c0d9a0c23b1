"""Occurrence and assignment persistence for recurring tasks."""
from sqlmodel import Session, col, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import Any, Dict, Iterable, List, Optional, Set
from datetime import date

from taskhub.models.enums import TaskStatus
from taskhub.models.task import Task, TaskAssignment
from taskhub.utils.logger import get_logger

logger = get_logger(__name__)


class TaskStore:
    """Reads and writes task occurrences inside the caller's session."""

    def __init__(self, session: Session):
        self.session = session

    def existing_occurrence_dates(self, template_id: str) -> Set[date]:
        """Get every occurrence date already materialized for a template."""
        statement = (
            select(Task.occurrence_date)
            .where(Task.recurring_template_id == template_id)
            .where(col(Task.occurrence_date).is_not(None))
        )
        return set(self.session.exec(statement).all())

    def count_occurrences_from(self, template_id: str, today: date) -> int:
        """Count occurrences dated today or later."""
        statement = (
            select(func.count())
            .select_from(Task)
            .where(Task.recurring_template_id == template_id)
            .where(col(Task.occurrence_date) >= today)
        )
        return self.session.exec(statement).one()

    def insert_occurrences(self, template_id: str, rows: List[Dict[str, Any]]) -> List[Task]:
        """
        Batch insert occurrence rows and return the inserted tasks.

        A concurrent top-up may claim some of the same (template, date) slots
        between our read and our write. The insert runs in a savepoint; on a
        unique-key violation the taken dates are re-read, dropped, and the
        remainder is inserted once more.

        Args:
            template_id: Template the occurrences belong to
            rows: Task column values, one dict per occurrence

        Returns:
            Inserted tasks ordered by occurrence date, with ids assigned
        """
        if not rows:
            return []

        try:
            self._insert_batch(rows)
        except IntegrityError:
            taken = self.existing_occurrence_dates(template_id)
            remaining = [row for row in rows if row["occurrence_date"] not in taken]
            logger.warning(
                "Occurrence slots claimed concurrently, retrying with remainder",
                template_id=template_id,
                requested=len(rows),
                remaining=len(remaining),
            )
            if not remaining:
                return []
            self._insert_batch(remaining)
            rows = remaining

        inserted_dates = [row["occurrence_date"] for row in rows]
        statement = (
            select(Task)
            .where(Task.recurring_template_id == template_id)
            .where(col(Task.occurrence_date).in_(inserted_dates))
            .order_by(col(Task.occurrence_date))
        )
        return list(self.session.exec(statement).all())

    def _insert_batch(self, rows: List[Dict[str, Any]]) -> None:
        with self.session.begin_nested():
            self.session.add_all([Task(**row) for row in rows])

    def insert_assignments(self, task_ids: Iterable[int], user_ids: Iterable[str]) -> List[TaskAssignment]:
        """Assign every user to every task (full cross product)."""
        user_ids = list(user_ids)
        assignments = [
            TaskAssignment(task_id=task_id, user_id=user_id)
            for task_id in task_ids
            for user_id in user_ids
        ]
        if assignments:
            self.session.add_all(assignments)
            self.session.flush()
        return assignments

    def delete_untouched_from(self, template_id: str, today: date) -> int:
        """
        Delete occurrences nobody has started yet, dated today or later.

        Untouched means PENDING with no logged quantity. Anything in
        progress, finished or in the past is left alone.

        Returns:
            Number of deleted occurrences
        """
        statement = (
            select(Task)
            .where(Task.recurring_template_id == template_id)
            .where(col(Task.occurrence_date) >= today)
            .where(Task.status == TaskStatus.PENDING)
            .where(Task.current_quantity == 0)
        )
        untouched = self.session.exec(statement).all()
        for task in untouched:
            self.session.delete(task)
        self.session.flush()
        return len(untouched)

    def first_occurrence(self, template_id: str) -> Optional[Task]:
        """Get the earliest occurrence of a template, if any."""
        statement = (
            select(Task)
            .where(Task.recurring_template_id == template_id)
            .order_by(col(Task.occurrence_date), col(Task.id))
        )
        return self.session.exec(statement).first()

    def list_for_template(self, template_id: str) -> List[Task]:
        """Get all occurrences of a template with assignments and assignees loaded."""
        statement = (
            select(Task)
            .where(Task.recurring_template_id == template_id)
            .options(selectinload(Task.assignments).selectinload(TaskAssignment.user))
            .order_by(col(Task.occurrence_date))
        )
        return list(self.session.exec(statement).all())
