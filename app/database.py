# app/database.py
"""
Database engine, session factory, and table creation.
Uses SQLAlchemy with SQLite by default. The engine is built once per
application context, never at import time.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def make_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine. SQLite connections are shared across request threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,   # FastAPI threadpool workers share the pool
            "timeout": 30,                # Wait on the write lock instead of failing
        }

    engine = create_engine(
        database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
        echo=echo,                        # Set True to log all SQL queries (debug only)
    )

    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _sqlite_pragmas)

    return engine


def _sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_tables(engine: Engine):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.event import Event  # noqa

    Base.metadata.create_all(bind=engine)
