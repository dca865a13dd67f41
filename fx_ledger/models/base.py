"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from fx_ledger.config import get_settings

settings = get_settings()


def configure_sqlite(engine: Engine) -> Engine:
    """
    Make pysqlite emit its own BEGIN so savepoints work.

    The driver normally defers BEGIN until the first write,
    which breaks SAVEPOINT and lets two writers read the same
    balance. BEGIN IMMEDIATE takes the write lock up front, so
    concurrent writers queue on the busy timeout instead.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return configure_sqlite(create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        ))
    # pool_pre_ping=True tests connections before using them,
    # which handles a restarted database or a stale connection.
    return create_engine(url, pool_pre_ping=True)


# --- Engine ---
engine = build_engine(settings.DATABASE_URL)

# --- Session Factory ---
# autocommit=False: the caller decides when a unit of work is
# committed, so a ledger operation is all-or-nothing.
# autoflush=False: SQL is only sent on explicit flush/commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally guarantees the session is closed and its
    connection returned to the pool even if the request fails.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
