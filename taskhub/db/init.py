"""Initialize database tables."""
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

import taskhub.models  # noqa: F401  registers every table on SQLModel.metadata
from taskhub.utils.logger import get_logger

logger = get_logger(__name__)


def init_db(bind: Optional[Engine] = None, reset: bool = False) -> None:
    """Create all tables, optionally dropping them first."""
    if bind is None:
        from taskhub.db.config import engine as bind

    if reset:
        logger.warning("Dropping all tables before recreating them", url=str(bind.url))
        SQLModel.metadata.drop_all(bind)

    SQLModel.metadata.create_all(bind)
    logger.info("Tables created", tables=sorted(SQLModel.metadata.tables))


if __name__ == "__main__":
    init_db()
