# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session

from taskhub.db.config import build_engine
from taskhub.db.init import init_db
from taskhub.models import RecurrenceFrequency, User
from taskhub.schemas.template import TemplateCreate
from taskhub.services.recurring_task_service import RecurringTemplateService
from taskhub.utils.clock import fixed_clock
from taskhub.utils.metrics import metrics_collector

from .factories import TODAY


@pytest.fixture(autouse=True)
def reset_metrics() -> Iterator[None]:
    metrics_collector.reset()
    yield


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    """
    Real SQLite database per test.

    A file database rather than :memory: so that several sessions see the
    same data, as they would against the production server.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'taskhub.sqlite3'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def users(engine: Engine) -> Dict[str, str]:
    """Three users keyed by first name; values are user ids."""
    people = {
        "alice": User(email="alice@example.com", name="Alice", position="Lead"),
        "bob": User(email="bob@example.com", name="Bob", position="Engineer"),
        "carol": User(email="carol@example.com", name="Carol", position="Engineer"),
    }
    with Session(engine) as session:
        session.add_all(people.values())
        session.commit()
        return {name: user.user_id for name, user in people.items()}


@pytest.fixture()
def service(engine: Engine) -> RecurringTemplateService:
    return RecurringTemplateService(engine, clock=fixed_clock(TODAY), buffer_size=12)


@pytest.fixture()
def make_template_data(users: Dict[str, str]) -> Callable[..., TemplateCreate]:
    """Build TemplateCreate payloads with a daily rule starting TODAY by default."""

    def factory(**overrides) -> TemplateCreate:
        values = {
            "title": "Water the plants",
            "description": "Both balconies",
            "created_by": users["alice"],
            "frequency": RecurrenceFrequency.DAILY,
            "interval": 1,
            "start_date": TODAY,
        }
        values.update(overrides)
        return TemplateCreate(**values)

    return factory
