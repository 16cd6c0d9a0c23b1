"""Template persistence for recurring tasks."""
from sqlmodel import Session, select
from sqlalchemy.orm import selectinload
from typing import Any, Dict, Iterable, List, Optional

from taskhub.models.recurring_template import RecurringTaskTemplate, RecurringTaskTemplateAssignee
from taskhub.models.user import User
from taskhub.services.exceptions import NotFoundError
from taskhub.utils.clock import utcnow


def _with_relations(statement):
    return statement.options(
        selectinload(RecurringTaskTemplate.creator),
        selectinload(RecurringTaskTemplate.default_assignees).selectinload(RecurringTaskTemplateAssignee.user),
    ).execution_options(populate_existing=True)


class TemplateStore:
    """Reads and writes templates and their default assignees inside the caller's session."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, data: Dict[str, Any]) -> RecurringTaskTemplate:
        """Insert a template row and flush so its id is usable."""
        template = RecurringTaskTemplate(**data)
        self.session.add(template)
        self.session.flush()
        return template

    def get(self, template_id: str) -> Optional[RecurringTaskTemplate]:
        return self.session.get(RecurringTaskTemplate, template_id)

    def get_or_raise(self, template_id: str) -> RecurringTaskTemplate:
        template = self.get(template_id)
        if template is None:
            raise NotFoundError("RecurringTaskTemplate", template_id)
        return template

    def get_with_relations(self, template_id: str) -> Optional[RecurringTaskTemplate]:
        """Get a template with its creator and default assignees loaded."""
        statement = _with_relations(
            select(RecurringTaskTemplate).where(RecurringTaskTemplate.id == template_id)
        )
        return self.session.exec(statement).first()

    def list_all(self) -> List[RecurringTaskTemplate]:
        statement = _with_relations(
            select(RecurringTaskTemplate).order_by(RecurringTaskTemplate.created_at)
        )
        return list(self.session.exec(statement).all())

    def list_active(self) -> List[RecurringTaskTemplate]:
        statement = _with_relations(
            select(RecurringTaskTemplate)
            .where(RecurringTaskTemplate.is_active == True)  # noqa: E712
            .order_by(RecurringTaskTemplate.created_at)
        )
        return list(self.session.exec(statement).all())

    def list_active_ids(self) -> List[str]:
        statement = (
            select(RecurringTaskTemplate.id)
            .where(RecurringTaskTemplate.is_active == True)  # noqa: E712
            .order_by(RecurringTaskTemplate.created_at)
        )
        return list(self.session.exec(statement).all())

    def update(self, template_id: str, updates: Dict[str, Any]) -> RecurringTaskTemplate:
        """Apply field updates to a template, raising NotFoundError if it is missing."""
        template = self.get_or_raise(template_id)
        for field, value in updates.items():
            setattr(template, field, value)
        template.updated_at = utcnow()
        self.session.add(template)
        self.session.flush()
        return template

    def delete(self, template_id: str) -> None:
        """Delete a template; the schema cascades to occurrences and assignees."""
        template = self.get_or_raise(template_id)
        self.session.delete(template)
        self.session.flush()

    def get_assignee_ids(self, template_id: str) -> List[str]:
        statement = (
            select(RecurringTaskTemplateAssignee.user_id)
            .where(RecurringTaskTemplateAssignee.template_id == template_id)
        )
        return list(self.session.exec(statement).all())

    def replace_assignees(self, template_id: str, user_ids: Iterable[str]) -> None:
        """Replace the default assignee set of a template (full replace, not merge)."""
        current = self.session.exec(
            select(RecurringTaskTemplateAssignee)
            .where(RecurringTaskTemplateAssignee.template_id == template_id)
        ).all()
        for assignee in current:
            self.session.delete(assignee)
        # Deletes must reach the database before re-inserting the same users
        self.session.flush()

        for user_id in dict.fromkeys(user_ids):
            self.session.add(RecurringTaskTemplateAssignee(template_id=template_id, user_id=user_id))
        self.session.flush()

    def missing_user_ids(self, user_ids: Iterable[str]) -> List[str]:
        """Return the ids that do not belong to an existing user, in input order."""
        wanted = list(dict.fromkeys(user_ids))
        if not wanted:
            return []
        found = set(self.session.exec(select(User.user_id).where(User.user_id.in_(wanted))).all())
        return [user_id for user_id in wanted if user_id not in found]
