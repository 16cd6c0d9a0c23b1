"""Database configuration for the taskhub backend."""
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import create_engine

from taskhub.config import DATABASE_ECHO, DATABASE_URL


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """
    Create an engine for the given URL.

    SQLite needs two adjustments: foreign keys are off by default (so the
    template -> occurrence cascade would silently not happen), and the
    pysqlite driver's own transaction handling breaks SAVEPOINT, which the
    occurrence batch insert relies on.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True, **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    connect_args.setdefault("check_same_thread", False)
    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(DATABASE_URL, echo=DATABASE_ECHO)
