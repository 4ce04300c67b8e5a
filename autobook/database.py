import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import (
    DATABASE_URL,
    DB_LOG_SLOW_QUERIES,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SLOW_QUERY_THRESHOLD,
    SQLITE_BUSY_TIMEOUT,
)
from .shared.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str = DATABASE_URL) -> Engine:
    """
    Build the store engine.

    PostgreSQL gets the pooled configuration; SQLite (development and tests)
    gets a busy timeout so concurrent writers queue on the database lock
    instead of failing immediately.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
            echo=False,
        )
    else:
        engine = create_engine(
            database_url,
            pool_pre_ping=True,  # Test connections before using
            pool_recycle=DB_POOL_RECYCLE,
            pool_size=DB_POOL_SIZE,
            max_overflow=DB_MAX_OVERFLOW,
            pool_timeout=DB_POOL_TIMEOUT,
            echo=False,  # Don't log all SQL (use slow query logging instead)
        )
        logger.info(
            f"📊 Connection pool: size={DB_POOL_SIZE}, max_overflow={DB_MAX_OVERFLOW}, timeout={DB_POOL_TIMEOUT}s"
        )

    if DB_LOG_SLOW_QUERIES:
        _install_slow_query_logging(engine)

    logger.info(f"✅ Database engine created ({engine.dialect.name})")
    return engine


def _install_slow_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > DB_SLOW_QUERY_THRESHOLD:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet"""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine, checkfirst=True)


def upsert_statement(db: Session, model):
    """
    Dialect-specific INSERT supporting ON CONFLICT clauses.

    Returns None when the bound dialect has no upsert support.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    return insert(model)


def get_db(request: Request) -> Iterator[Session]:
    """Request-scoped session, always closed when the request finishes"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block as one atomic transaction.

    Commits on success. Any exception rolls back everything written inside
    the block; store outages surface as TransientStoreError.
    """
    try:
        yield db
        db.commit()
    except OperationalError as e:
        db.rollback()
        logger.error(f"❌ Store unavailable, transaction rolled back: {e}")
        raise TransientStoreError() from e
    except Exception:
        db.rollback()
        raise
