from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import app.models  # noqa: F401
from app.db.base import Base

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {
    "schools",
    "users",
    "academic_terms",
    "classes",
    "subjects",
    "timetable_periods",
    "activity_logs",
}


def missing_tables(bind: Engine) -> set[str]:
    with bind.connect() as connection:
        return REQUIRED_TABLES - set(inspect(connection).get_table_names())


def ensure_schema(bind: Engine) -> None:
    """Create any missing tables on development databases.

    Production schemas are managed by Alembic (``database/migrations``); this
    only fills gaps and never alters existing tables.
    """
    missing = missing_tables(bind)
    if not missing:
        return
    logger.warning("Creating missing tables: %s", ", ".join(sorted(missing)))
    Base.metadata.create_all(bind=bind)
