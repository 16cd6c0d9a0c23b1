"""Transactional unit of work shared by every mutating operation."""
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from taskhub.services.exceptions import TransientStoreError


@contextmanager
def unit_of_work(bind: Engine, session: Optional[Session] = None) -> Iterator[Session]:
    """
    Yield a session inside a transaction.

    When the caller already holds a session, it is reused as-is and the
    caller stays responsible for committing. Otherwise a new session is
    opened, committed on success and rolled back on any exception.

    Args:
        bind: Engine used when a new session has to be opened
        session: Ambient session of an enclosing operation, if any

    Raises:
        TransientStoreError: If the database connection or transaction fails
    """
    if session is not None:
        yield session
        return

    try:
        with Session(bind, expire_on_commit=False) as new_session:
            with new_session.begin():
                yield new_session
    except OperationalError as e:
        raise TransientStoreError(f"Database operation failed: {e.orig}") from e
