"""
Recurring instance generation.

Turns a template's recurrence rule into concrete task occurrences, keeps a
rolling buffer of future occurrences, and regenerates untouched future
occurrences after a rule change. Every method works inside the session it
was constructed with; committing is the caller's job.
"""

from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from sqlmodel import Session

from taskhub.config import RECURRING_BUFFER_SIZE
from taskhub.models.enums import TaskStatus
from taskhub.models.recurring_template import RecurringTaskTemplate
from taskhub.models.task import Task
from taskhub.services.recurrence_calculator import RecurrenceRule, calculate_occurrences
from taskhub.services.task_event_service import TaskEventService
from taskhub.services.task_store import TaskStore
from taskhub.services.template_store import TemplateStore
from taskhub.utils.logger import get_logger
from taskhub.utils.metrics import metrics_collector

logger = get_logger(__name__)

# Occurrences are due by the very end of their calendar day
DEADLINE_TIME = time(23, 59, 59, 999000)


class InstanceGenerator:
    """Produce, top up and regenerate task occurrences for templates."""

    def __init__(self, session: Session):
        self.session = session
        self.templates = TemplateStore(session)
        self.tasks = TaskStore(session)
        self.events = TaskEventService(session)

    def generate_instances(
        self,
        template_id: str,
        count: int = RECURRING_BUFFER_SIZE,
        not_before: Optional[date] = None,
    ) -> List[Task]:
        """
        Materialize up to `count` new occurrences of a template.

        Args:
            template_id: Template to generate for
            count: Number of new occurrences wanted
            not_before: Do not produce occurrences dated before this day

        Returns:
            The newly created tasks; empty when the template is missing,
            inactive, or its rule yields no further dates
        """
        template = self.templates.get(template_id)
        if template is None or not template.is_active:
            return []

        existing_dates = self.tasks.existing_occurrence_dates(template_id)
        occurrences = calculate_occurrences(
            RecurrenceRule.from_template(template),
            count,
            existing_dates,
            not_before=not_before,
        )
        if not occurrences:
            return []

        rows = [self._occurrence_row(template, occurrence) for occurrence in occurrences]
        created = self.tasks.insert_occurrences(template_id, rows)
        if not created:
            return []

        assignee_ids = self.templates.get_assignee_ids(template_id)
        self.tasks.insert_assignments([task.id for task in created], assignee_ids)
        self.events.record_instances_generated(created, template.created_by)

        metrics_collector.occurrences_generated(len(created))
        logger.bind(template_id=template_id).info(
            "Generated occurrences",
            count=len(created),
            first=created[0].occurrence_date,
            last=created[-1].occurrence_date,
            assignees=len(assignee_ids),
        )
        return created

    def ensure_instance_buffer(
        self,
        template_id: str,
        today: date,
        min_buffer: int = RECURRING_BUFFER_SIZE,
    ) -> List[Task]:
        """
        Top up a template so at least `min_buffer` occurrences are dated today or later.

        Safe to call repeatedly: a second call finds the buffer full and does nothing.
        """
        template = self.templates.get(template_id)
        if template is None or not template.is_active:
            return []

        upcoming = self.tasks.count_occurrences_from(template_id, today)
        if upcoming >= min_buffer:
            return []

        created = self.generate_instances(template_id, min_buffer - upcoming, not_before=today)
        if created:
            metrics_collector.buffer_topped_up()
        return created

    def regenerate_future_instances(
        self,
        template_id: str,
        today: date,
        count: int = RECURRING_BUFFER_SIZE,
    ) -> List[Task]:
        """
        Replace untouched future occurrences after a recurrence change.

        Only PENDING occurrences with no logged quantity, dated today or
        later, are deleted. Work already started, finished, or in the past
        stays exactly as it is.
        """
        pruned = self.tasks.delete_untouched_from(template_id, today)
        metrics_collector.occurrences_pruned(pruned)
        logger.bind(template_id=template_id).info("Pruned untouched future occurrences", count=pruned, today=today)

        return self.generate_instances(template_id, count, not_before=today)

    @staticmethod
    def _occurrence_row(template: RecurringTaskTemplate, occurrence: date) -> Dict[str, Any]:
        return {
            "title": template.title,
            "description": template.description or "",
            "priority": template.priority,
            "status": TaskStatus.PENDING,
            "deadline": datetime.combine(occurrence, DEADLINE_TIME),
            "scheduled_date": occurrence,
            "occurrence_date": occurrence,
            "unit": template.unit,
            "goal_type": template.goal_type,
            "target_quantity": template.target_quantity,
            "current_quantity": 0,
            "created_by": template.created_by,
            "recurring_template_id": template.id,
        }
