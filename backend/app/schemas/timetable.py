from __future__ import annotations

import re
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.timetable_period import DayOfWeek

# Single-digit hours are accepted on input and zero-padded before storage.
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def normalize_time(value: str) -> str:
    match = TIME_PATTERN.match(value.strip())
    if match is None:
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = match.groups()
    return f"{int(hours):02d}:{minutes}"


class PeriodCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_id: str = Field(alias="classId")
    subject_id: str = Field(alias="subjectId")
    teacher_id: str = Field(alias="teacherId")
    day_of_week: DayOfWeek = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    academic_term_id: str = Field(alias="academicTermId")

    @field_validator("class_id", "subject_id", "teacher_id", "academic_term_id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError as exc:
            raise ValueError("Must be a valid UUID") from exc

    @field_validator("day_of_week", mode="before")
    @classmethod
    def normalize_day(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "PeriodCreate":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ClassRef(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    grade_level: int = Field(alias="gradeLevel")


class SubjectRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    code: str


class TeacherRef(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    full_name: str = Field(alias="fullName")


class PeriodSummary(BaseModel):
    """Flat period row, used as the ``conflict`` payload of a 409."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    class_id: str = Field(alias="classId")
    subject_id: str = Field(alias="subjectId")
    teacher_id: str = Field(alias="teacherId")
    academic_term_id: str = Field(alias="academicTermId")
    day_of_week: DayOfWeek = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")


class PeriodOut(PeriodSummary):
    school_class: ClassRef = Field(alias="class")
    subject: SubjectRef
    teacher: TeacherRef
    created_at: datetime | None = Field(default=None, alias="createdAt")
