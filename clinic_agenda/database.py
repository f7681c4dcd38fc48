"""
Database connection and session management.
Provides the SQLAlchemy engine and session factory backing the local key-value store.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Create base class for declarative models
Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    SQLite URLs get `check_same_thread` disabled because FastAPI runs sync
    endpoints in a thread pool; in-memory SQLite additionally shares a single
    connection so every session sees the same database.

    Args:
        database_url: SQLAlchemy connection string

    Returns:
        Engine: Configured engine
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Create the session factory and make sure the key-value table exists.

    Args:
        engine: Engine returned by create_db_engine

    Returns:
        sessionmaker: Session factory bound to the engine
    """
    # Import models so they register on Base before create_all
    from .core import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
