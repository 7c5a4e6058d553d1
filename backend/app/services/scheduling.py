"""Timetable period scheduling.

Periods are half-open ``[start_time, end_time)`` intervals on one weekday of
one academic term. Times are zero-padded ``HH:MM`` strings, so plain string
comparison orders them the same way as minutes past midnight, both in Python
and in SQL.

A new period is rejected when it overlaps an existing period of the same
teacher, or of the same class, on the same day and term of the same school.
The teacher check always runs first and the first conflict found is reported.
"""
from __future__ import annotations

import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AppError, ConflictError, InternalError, NotFoundError
from app.models.academic_term import AcademicTerm
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.timetable_period import DayOfWeek, TimetablePeriod
from app.models.user import User, UserRole
from app.schemas.timetable import PeriodCreate, PeriodSummary
from app.services.audit import log_activity

logger = logging.getLogger(__name__)

TEACHER_CONFLICT_MESSAGE = "Teacher is already booked for this time slot"
CLASS_CONFLICT_MESSAGE = "Class already has a period in this time slot"


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    return start_a < end_b and start_b < end_a


def period_conflicts(existing_start: str, existing_end: str, new_start: str, new_end: str) -> bool:
    """Three-case form of the overlap test, mirrored by ``overlap_filter``."""
    covers_start = existing_start <= new_start and existing_end > new_start
    covers_end = existing_start < new_end and existing_end >= new_end
    nested = existing_start >= new_start and existing_end <= new_end
    return covers_start or covers_end or nested


def overlap_filter(start_time: str, end_time: str):
    start_column = TimetablePeriod.start_time
    end_column = TimetablePeriod.end_time
    return or_(
        and_(start_column <= start_time, end_column > start_time),
        and_(start_column < end_time, end_column >= end_time),
        and_(start_column >= start_time, end_column <= end_time),
    )


def find_conflicting_period(
    db: Session,
    *,
    school_id: str,
    day_of_week: DayOfWeek,
    academic_term_id: str,
    start_time: str,
    end_time: str,
    teacher_id: str | None = None,
    class_id: str | None = None,
) -> TimetablePeriod | None:
    if (teacher_id is None) == (class_id is None):
        raise ValueError("Exactly one of teacher_id or class_id is required")

    statement = select(TimetablePeriod).where(
        TimetablePeriod.school_id == school_id,
        TimetablePeriod.day_of_week == day_of_week,
        TimetablePeriod.academic_term_id == academic_term_id,
        overlap_filter(start_time, end_time),
    )
    if teacher_id is not None:
        statement = statement.where(TimetablePeriod.teacher_id == teacher_id)
    else:
        statement = statement.where(TimetablePeriod.class_id == class_id)
    statement = statement.order_by(TimetablePeriod.start_time).limit(1)
    return db.execute(statement).scalars().first()


def serialize_conflict(period: TimetablePeriod) -> dict:
    return PeriodSummary.model_validate(period).model_dump(mode="json", by_alias=True)


class TimetableScheduler:
    def __init__(self, db: Session, school: School):
        self.db = db
        self.school_id = school.id

    def _get_class(self, class_id: str, *, lock: bool = False) -> SchoolClass | None:
        statement = select(SchoolClass).where(SchoolClass.id == class_id, SchoolClass.school_id == self.school_id)
        if lock:
            statement = statement.with_for_update()
        return self.db.execute(statement).scalar_one_or_none()

    def _get_teacher(self, teacher_id: str, *, lock: bool = False) -> User | None:
        statement = select(User).where(
            User.id == teacher_id,
            User.school_id == self.school_id,
            User.role == UserRole.teacher,
        )
        if lock:
            statement = statement.with_for_update()
        return self.db.execute(statement).scalar_one_or_none()

    def _check_references(self, payload: PeriodCreate) -> None:
        # Class is locked before teacher; every scheduler uses this order.
        school_class = self._get_class(payload.class_id, lock=True)
        subject = self.db.execute(
            select(Subject).where(Subject.id == payload.subject_id, Subject.school_id == self.school_id)
        ).scalar_one_or_none()
        teacher = self._get_teacher(payload.teacher_id, lock=True)
        term = self.db.execute(
            select(AcademicTerm).where(
                AcademicTerm.id == payload.academic_term_id,
                AcademicTerm.school_id == self.school_id,
            )
        ).scalar_one_or_none()

        for label, entity, entity_id in (
            ("Class", school_class, payload.class_id),
            ("Subject", subject, payload.subject_id),
            ("Teacher", teacher, payload.teacher_id),
            ("Academic term", term, payload.academic_term_id),
        ):
            if entity is None:
                raise NotFoundError(label, entity_id)

    def _find_conflict(self, payload: PeriodCreate) -> ConflictError | None:
        scope = {
            "school_id": self.school_id,
            "day_of_week": payload.day_of_week,
            "academic_term_id": payload.academic_term_id,
            "start_time": payload.start_time,
            "end_time": payload.end_time,
        }
        teacher_conflict = find_conflicting_period(self.db, teacher_id=payload.teacher_id, **scope)
        if teacher_conflict is not None:
            return ConflictError(TEACHER_CONFLICT_MESSAGE, conflict=serialize_conflict(teacher_conflict))

        class_conflict = find_conflicting_period(self.db, class_id=payload.class_id, **scope)
        if class_conflict is not None:
            return ConflictError(CLASS_CONFLICT_MESSAGE, conflict=serialize_conflict(class_conflict))
        return None

    def create_period(self, payload: PeriodCreate, *, actor: User | None = None) -> TimetablePeriod:
        try:
            self._check_references(payload)
            conflict = self._find_conflict(payload)
            if conflict is not None:
                logger.info(
                    "Rejected period for class %s teacher %s on %s %s-%s: %s",
                    payload.class_id,
                    payload.teacher_id,
                    payload.day_of_week.value,
                    payload.start_time,
                    payload.end_time,
                    conflict.message,
                )
                raise conflict

            period = TimetablePeriod(school_id=self.school_id, **payload.model_dump())
            self.db.add(period)
            self.db.flush()
            log_activity(
                self.db,
                user=actor,
                school_id=self.school_id,
                action="timetable.period_created",
                entity_type="timetable_period",
                entity_id=period.id,
                details={
                    "class_id": period.class_id,
                    "teacher_id": period.teacher_id,
                    "day_of_week": period.day_of_week.value,
                    "start_time": period.start_time,
                    "end_time": period.end_time,
                },
            )
            self.db.commit()
        except AppError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            # A concurrent request claimed the slot between our check and insert.
            self.db.rollback()
            raise self._conflict_after_race(payload) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to create timetable period for school %s", self.school_id)
            raise InternalError() from exc

        self.db.refresh(period)
        return period

    def _conflict_after_race(self, payload: PeriodCreate) -> AppError:
        conflict = self._find_conflict(payload)
        if conflict is not None:
            return conflict
        logger.error("Integrity error creating period without a detectable conflict: %s", payload)
        return InternalError()

    def list_for_class(self, class_id: str, academic_term_id: str) -> list[TimetablePeriod]:
        if self._get_class(class_id) is None:
            raise NotFoundError("Class", class_id)
        statement = select(TimetablePeriod).where(
            TimetablePeriod.school_id == self.school_id,
            TimetablePeriod.class_id == class_id,
            TimetablePeriod.academic_term_id == academic_term_id,
        )
        return self._ordered(statement)

    def list_for_teacher(self, teacher_id: str, academic_term_id: str) -> list[TimetablePeriod]:
        if self._get_teacher(teacher_id) is None:
            raise NotFoundError("Teacher", teacher_id)
        statement = select(TimetablePeriod).where(
            TimetablePeriod.school_id == self.school_id,
            TimetablePeriod.teacher_id == teacher_id,
            TimetablePeriod.academic_term_id == academic_term_id,
        )
        return self._ordered(statement)

    def _ordered(self, statement) -> list[TimetablePeriod]:
        statement = statement.order_by(TimetablePeriod.start_time, TimetablePeriod.end_time)
        return list(self.db.execute(statement).unique().scalars())

    def delete_period(self, period_id: str, *, actor: User | None = None) -> None:
        period = self.db.execute(
            select(TimetablePeriod).where(
                TimetablePeriod.id == period_id,
                TimetablePeriod.school_id == self.school_id,
            )
        ).unique().scalar_one_or_none()
        if period is None:
            raise NotFoundError("Timetable period", period_id)

        log_activity(
            self.db,
            user=actor,
            school_id=self.school_id,
            action="timetable.period_deleted",
            entity_type="timetable_period",
            entity_id=period.id,
            details={"class_id": period.class_id, "teacher_id": period.teacher_id},
        )
        self.db.delete(period)
        self.db.commit()
