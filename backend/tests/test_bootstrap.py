from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def make_engine():
    return create_engine("sqlite+pysqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_ensure_schema_creates_missing_tables():
    engine = make_engine()
    assert bootstrap.missing_tables(engine) == bootstrap.REQUIRED_TABLES

    bootstrap.ensure_schema(engine)

    assert bootstrap.missing_tables(engine) == set()
    with engine.connect() as connection:
        columns = {column["name"] for column in inspect(connection).get_columns("timetable_periods")}
    assert {"school_id", "class_id", "teacher_id", "day_of_week", "start_time", "end_time"} <= columns
    engine.dispose()


def test_ensure_schema_skips_complete_database(monkeypatch):
    engine = make_engine()
    bootstrap.ensure_schema(engine)
    calls = []
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: calls.append(bind))

    bootstrap.ensure_schema(engine)

    assert calls == []
    engine.dispose()
