"""
Module: asset_kernel.db.engine
Responsibility: Building engines, the process-wide session factory, and the
    commit-or-rollback ``session_scope``.  The single point of database
    connection configuration for the kernel.
Architecture position: Kernel > DB.  MUST NOT import from services/,
    selectors/, domain/, or outer layers (create_tables/drop_tables import
    models lazily to populate metadata).

Invariants enforced:
    - PostgreSQL is the production backend: READ COMMITTED isolation, a
      pre-pinged QueuePool, SELECT ... FOR UPDATE row locks on mutation loads.
    - SQLite is supported for local runs and tests.  pysqlite's own
      transaction handling is switched off so that SAVEPOINT works; every
      multi-asset operation relies on savepoints for all-or-nothing writes.

Failure modes:
    - RuntimeError from get_engine/get_session before init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from asset_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so that SAVEPOINT works."""

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30,
) -> Engine:
    """
    Create (but do not install) an engine for ``database_url``.

    In-memory SQLite shares one connection so every session sees the same
    database; pool settings only apply to PostgreSQL.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        options: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
        engine = create_engine(url, **options)
        enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_pre_ping=True,
        pool_recycle=1800,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(database_url: str, **options) -> Engine:
    """
    Install the process-wide engine and session factory.

    ``options`` are passed to ``build_engine``.  A second call replaces the
    first engine, disposing of its pool.
    """
    global _engine, _SessionFactory

    reset_engine()
    _engine = build_engine(database_url, **options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, **options},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on normal exit, roll back and re-raise on error.

    Usage:
        with session_scope() as session:
            LifecycleEngine(session).deploy_asset("LT-0001", "4F-12", actor="tech1")
    """
    session = get_session()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """Create all kernel tables on ``engine`` (default: the installed engine)."""
    from asset_kernel.db.base import Base
    import asset_kernel.models  # noqa: F401  (populates Base.metadata)

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop all kernel tables. For tests and throwaway databases."""
    from asset_kernel.db.base import Base
    import asset_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose of the installed engine, if any, and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
