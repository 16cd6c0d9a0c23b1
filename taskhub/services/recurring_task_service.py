"""
Recurring Template Service.

Public entry point for recurring task templates: the HTTP layer and the
sweep worker call these methods. Each mutation runs as one transaction
covering the template write, occurrence generation and audit events.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session

from taskhub.config import RECURRING_BUFFER_SIZE
from taskhub.db.unit_of_work import unit_of_work
from taskhub.models.enums import TaskEventType
from taskhub.models.recurring_template import RecurringTaskTemplate
from taskhub.models.task import Task
from taskhub.schemas.template import RECURRENCE_FIELDS, TemplateCreate, TemplateUpdate
from taskhub.services.exceptions import NotFoundError, ValidationError
from taskhub.services.instance_generator import InstanceGenerator
from taskhub.services.recurrence_validator import RecurrenceValidator
from taskhub.services.task_event_service import TaskEventService
from taskhub.services.task_store import TaskStore
from taskhub.services.template_store import TemplateStore
from taskhub.utils.clock import Clock, make_clock
from taskhub.utils.logger import get_logger
from taskhub.utils.metrics import metrics_collector

logger = get_logger(__name__)


class RecurringTemplateService:
    """Create, change and keep recurring templates topped up with occurrences."""

    def __init__(
        self,
        bind: Optional[Engine] = None,
        clock: Optional[Clock] = None,
        buffer_size: int = RECURRING_BUFFER_SIZE,
    ):
        """
        Initialize the service.

        Args:
            bind: Engine for transactions opened by this service
            clock: Source of "today"; defaults to today in APP_TIMEZONE
            buffer_size: Future occurrences kept per active template
        """
        if bind is None:
            from taskhub.db.config import engine as bind
        self.bind = bind
        self.clock = clock or make_clock()
        self.buffer_size = buffer_size

    def _unit_of_work(self, session: Optional[Session] = None):
        return unit_of_work(self.bind, session)

    # ---- template lifecycle ----

    def create_template(
        self,
        data: TemplateCreate,
        assignee_ids: Optional[List[str]] = None,
        session: Optional[Session] = None,
    ) -> RecurringTaskTemplate:
        """
        Create a template, attach its default assignees and generate the first occurrences.

        Raises:
            ValidationError: If the template data is incoherent, or the creator
                or any assignee id does not belong to an existing user
        """
        values = data.model_dump()
        self._validate(values)

        with self._unit_of_work(session) as uow:
            templates = TemplateStore(uow)
            self._check_users(templates, [data.created_by], "creator")
            if assignee_ids:
                self._check_users(templates, assignee_ids, "assignee")

            template = templates.create({**values, "is_active": True})
            if assignee_ids:
                templates.replace_assignees(template.id, assignee_ids)

            InstanceGenerator(uow).generate_instances(template.id, self.buffer_size)
            self._record_template_event(
                uow,
                template,
                TaskEventType.RECURRING_TEMPLATE_CREATED,
                f"Created recurring template: {template.title}",
            )

            logger.info("Created recurring template", template_id=template.id, frequency=template.frequency)
            return templates.get_with_relations(template.id)

    def update_template(
        self,
        template_id: str,
        updates: TemplateUpdate,
        assignee_ids: Optional[List[str]] = None,
        session: Optional[Session] = None,
    ) -> RecurringTaskTemplate:
        """
        Apply a partial update; regenerate future occurrences if the recurrence changed.

        Passing assignee_ids (even an empty list) replaces the default assignee set.

        Raises:
            NotFoundError: If the template does not exist
            ValidationError: If the merged template is incoherent or an assignee is unknown
        """
        changes = updates.model_dump(exclude_unset=True)

        with self._unit_of_work(session) as uow:
            templates = TemplateStore(uow)
            template = templates.get_or_raise(template_id)

            merged = {**template.model_dump(), **changes}
            self._validate(merged)
            if assignee_ids:
                self._check_users(templates, assignee_ids, "assignee")

            recurrence_changed = any(
                field in changes and changes[field] != getattr(template, field)
                for field in RECURRENCE_FIELDS
            )

            template = templates.update(template_id, changes)
            if assignee_ids is not None:
                templates.replace_assignees(template_id, assignee_ids)

            if recurrence_changed:
                InstanceGenerator(uow).regenerate_future_instances(
                    template_id, self.clock(), self.buffer_size
                )

            self._record_template_event(
                uow,
                template,
                TaskEventType.RECURRING_TEMPLATE_UPDATED,
                f"Updated recurring template: {template.title}",
            )

            logger.info(
                "Updated recurring template",
                template_id=template_id,
                fields=sorted(changes),
                regenerated=recurrence_changed,
            )
            return templates.get_with_relations(template_id)

    def set_default_assignees(
        self,
        template_id: str,
        user_ids: List[str],
        session: Optional[Session] = None,
    ) -> None:
        """
        Replace a template's default assignees.

        Only occurrences generated afterwards pick up the new set.

        Raises:
            NotFoundError: If the template does not exist
            ValidationError: If any user id is unknown
        """
        with self._unit_of_work(session) as uow:
            templates = TemplateStore(uow)
            templates.get_or_raise(template_id)
            self._check_users(templates, user_ids, "assignee")
            templates.replace_assignees(template_id, user_ids)

    def deactivate_template(self, template_id: str, session: Optional[Session] = None) -> RecurringTaskTemplate:
        """Stop generating occurrences for a template; existing ones are kept."""
        with self._unit_of_work(session) as uow:
            templates = TemplateStore(uow)
            template = templates.update(template_id, {"is_active": False})
            self._record_template_event(
                uow,
                template,
                TaskEventType.RECURRING_TEMPLATE_DEACTIVATED,
                f"Deactivated recurring template: {template.title}",
            )
            logger.info("Deactivated recurring template", template_id=template_id)
            return templates.get_with_relations(template_id)

    def reactivate_template(self, template_id: str, session: Optional[Session] = None) -> RecurringTaskTemplate:
        """Resume generation from today; the dormant period is not backfilled."""
        with self._unit_of_work(session) as uow:
            templates = TemplateStore(uow)
            templates.update(template_id, {"is_active": True})
            InstanceGenerator(uow).ensure_instance_buffer(template_id, self.clock(), self.buffer_size)
            logger.info("Reactivated recurring template", template_id=template_id)
            return templates.get_with_relations(template_id)

    def delete_template(self, template_id: str, session: Optional[Session] = None) -> None:
        """Delete a template together with all its occurrences and assignees."""
        with self._unit_of_work(session) as uow:
            TemplateStore(uow).delete(template_id)
            logger.info("Deleted recurring template", template_id=template_id)

    # ---- reads ----

    def get_template_by_id(self, template_id: str) -> Optional[RecurringTaskTemplate]:
        with self._unit_of_work() as uow:
            return TemplateStore(uow).get_with_relations(template_id)

    def get_all_templates(self) -> List[RecurringTaskTemplate]:
        with self._unit_of_work() as uow:
            return TemplateStore(uow).list_all()

    def get_active_templates(self) -> List[RecurringTaskTemplate]:
        with self._unit_of_work() as uow:
            return TemplateStore(uow).list_active()

    def get_template_instances(self, template_id: str) -> List[Task]:
        """Get a template's occurrences ordered by date, with their assignments."""
        with self._unit_of_work() as uow:
            return TaskStore(uow).list_for_template(template_id)

    # ---- generation ----

    def generate_instances(
        self,
        template_id: str,
        count: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> List[Task]:
        with self._unit_of_work(session) as uow:
            return InstanceGenerator(uow).generate_instances(
                template_id, self.buffer_size if count is None else count
            )

    def ensure_instance_buffer(
        self,
        template_id: str,
        min_buffer: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> List[Task]:
        """Keep at least min_buffer occurrences dated today or later."""
        with self._unit_of_work(session) as uow:
            return InstanceGenerator(uow).ensure_instance_buffer(
                template_id, self.clock(), self.buffer_size if min_buffer is None else min_buffer
            )

    def regenerate_future_instances(self, template_id: str, session: Optional[Session] = None) -> List[Task]:
        with self._unit_of_work(session) as uow:
            return InstanceGenerator(uow).regenerate_future_instances(
                template_id, self.clock(), self.buffer_size
            )

    @metrics_collector.time_operation("ensure_all_templates_seconds")
    def ensure_all_templates_have_instances(self) -> Dict[str, int]:
        """
        Top up every active template, one transaction per template.

        A failure on one template is logged and counted; the sweep moves on
        to the next template.

        Returns:
            Dict with the number of templates visited and how many failed
        """
        with self._unit_of_work() as uow:
            template_ids = TemplateStore(uow).list_active_ids()

        failed = 0
        for template_id in template_ids:
            try:
                self.ensure_instance_buffer(template_id, self.buffer_size)
            except Exception:
                failed += 1
                metrics_collector.sweep_failure()
                logger.exception("Failed to top up recurring template", template_id=template_id)

        logger.info("Recurring template sweep finished", templates=len(template_ids), failed=failed)
        return {"templates": len(template_ids), "failed": failed}

    # ---- helpers ----

    @staticmethod
    def _validate(values: Dict[str, Any]) -> None:
        result = RecurrenceValidator.validate_template_data(values)
        if not result["valid"]:
            raise ValidationError(result["errors"])
        for warning in result["warnings"]:
            logger.warning("Recurring template warning", detail=warning)

    @staticmethod
    def _check_users(templates: TemplateStore, user_ids: List[str], role: str) -> None:
        missing = templates.missing_user_ids(user_ids)
        if missing:
            raise ValidationError(
                [f"Invalid {role} user IDs: {', '.join(missing)}. These users do not exist."]
            )

    @staticmethod
    def _record_template_event(
        session: Session,
        template: RecurringTaskTemplate,
        event_type: TaskEventType,
        message: str,
    ) -> None:
        # Events hang off a task, so a template without occurrences has nowhere to log
        first_task = TaskStore(session).first_occurrence(template.id)
        if first_task is not None:
            TaskEventService(session).record(first_task.id, template.created_by, event_type, message)
