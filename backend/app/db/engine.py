"""SQLAlchemy engine configuration.

SQLite is the local default; set ``DATABASE_URL`` to point at the hosted
Postgres instance in production.
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url

from backend.app.core.settings import settings

logger = logging.getLogger(__name__)


def get_resolved_db_location() -> str:
    """Return the SQLite file path, or the database URL with the password hidden."""
    if settings.is_sqlite:
        return str(Path(settings.app_db_path).resolve())
    return make_url(settings.database_url).render_as_string(hide_password=True)


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *url*; SQLite connections enforce foreign keys."""
    if url.startswith("sqlite"):
        built = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},  # required for SQLite
        )

        @event.listens_for(built, "connect")
        def _enable_foreign_keys(dbapi_conn, _record) -> None:  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return built
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.debug)

logger.info("db_initialized: location=%s", get_resolved_db_location())


class DatabaseInitError(Exception):
    """Raised when the database cannot be initialized."""


def init_db() -> None:
    """Verify the database is accessible by executing a simple query.

    Called at startup to confirm the store can be reached. Raises
    :class:`DatabaseInitError` with actionable guidance on failure.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("db_init_verified: location=%s", get_resolved_db_location())
    except Exception as exc:
        msg = (
            f"Cannot open database at '{get_resolved_db_location()}': {exc}. "
            f"Check DATABASE_URL / APP_DB_PATH and credentials."
        )
        logger.error("db_init_failed: %s", msg)
        raise DatabaseInitError(msg) from exc
