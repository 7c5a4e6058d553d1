from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.user import User


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    school_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Stage an audit record; it is committed with the caller's transaction."""
    record = ActivityLog(
        school_id=school_id if school_id is not None else (user.school_id if user is not None else None),
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
    return record


def list_activity(db: Session, *, school_id: str, entity_type: str | None = None) -> list[ActivityLog]:
    statement = select(ActivityLog).where(ActivityLog.school_id == school_id)
    if entity_type is not None:
        statement = statement.where(ActivityLog.entity_type == entity_type)
    return list(db.execute(statement.order_by(ActivityLog.created_at)).scalars())
