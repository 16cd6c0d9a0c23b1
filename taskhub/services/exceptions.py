"""Errors raised by the recurring template services."""
from typing import List, Optional


class TaskHubError(Exception):
    """Base class for every error raised by taskhub services."""


class ValidationError(TaskHubError):
    """Template data or a recurrence rule was rejected before any write."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(TaskHubError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class TransientStoreError(TaskHubError):
    """The underlying connection or transaction failed; the caller may retry."""
