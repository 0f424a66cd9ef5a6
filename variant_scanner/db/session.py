"""Database session management for Variant Family Scanner."""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from variant_scanner.core.config import get_db_path

from .models import Base

logger = logging.getLogger(__name__)

# Repository root, where alembic.ini and migrations/ live
PROJECT_DIR = Path(__file__).resolve().parent.parent.parent
ALEMBIC_INI = PROJECT_DIR / "alembic.ini"
MIGRATIONS_DIR = PROJECT_DIR / "migrations"

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """SQLite URL of the scanner database."""
    return f"sqlite:///{get_db_path()}"


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # Member rows are deleted with their run
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """Shared engine, created on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine(
            get_database_url(),
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(_engine, "connect", _enable_foreign_keys)
    return _engine


def get_session() -> Session:
    """Open a new session on the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Commit on success, roll back and re-raise on error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _alembic_config(engine: Engine) -> Config:
    cfg = Config(str(ALEMBIC_INI))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", engine.url.render_as_string(hide_password=False))
    return cfg


def _migrate(engine: Engine) -> None:
    """Bring the schema to the head revision.

    A database created by create_all() before migrations existed is stamped
    rather than upgraded.
    """
    cfg = _alembic_config(engine)
    with engine.connect() as connection:
        current = MigrationContext.configure(connection).get_current_revision()
    head = ScriptDirectory.from_config(cfg).get_current_head()

    if current == head:
        logger.debug(f"Schema at revision {head}")
        return

    existing = set(inspect(engine).get_table_names())
    if current is None and existing & set(Base.metadata.tables):
        logger.info(f"Stamping existing schema at revision {head}")
        command.stamp(cfg, "head")
        return

    logger.info(f"Migrating schema from {current or 'empty'} to {head}")
    command.upgrade(cfg, "head")


def init_database(use_migrations: bool = True) -> None:
    """Create or upgrade the schema.

    Args:
        use_migrations: Run Alembic to head. When False, or when alembic.ini
            is not shipped alongside the package, fall back to create_all().
    """
    engine = get_engine()
    if use_migrations and ALEMBIC_INI.exists():
        _migrate(engine)
        return

    if use_migrations:
        logger.warning(f"{ALEMBIC_INI} not found, creating tables directly")
    Base.metadata.create_all(engine)


def close_database() -> None:
    """Dispose of the engine so the next use reconnects."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
