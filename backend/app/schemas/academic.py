from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator


class AcademicTermBase(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    start_date: date
    end_date: date
    is_active: bool = False

    @model_validator(mode="after")
    def validate_date_order(self) -> "AcademicTermBase":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class AcademicTermCreate(AcademicTermBase):
    pass


class AcademicTermUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    start_date: date | None = None
    end_date: date | None = None


class AcademicTermOut(AcademicTermBase):
    id: str
    school_id: str

    model_config = {"from_attributes": True}


class SchoolClassBase(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    grade_level: int = Field(ge=1, le=12)
    teacher_id: str | None = Field(default=None, max_length=36)
    academic_term_id: str | None = Field(default=None, max_length=36)


class SchoolClassCreate(SchoolClassBase):
    pass


class SchoolClassUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    grade_level: int | None = Field(default=None, ge=1, le=12)
    teacher_id: str | None = Field(default=None, max_length=36)
    academic_term_id: str | None = Field(default=None, max_length=36)


class SchoolClassOut(SchoolClassBase):
    id: str
    school_id: str

    model_config = {"from_attributes": True}


class SubjectBase(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    code: str = Field(min_length=2, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if len(code) < 2:
            raise ValueError("Subject code must be at least 2 characters")
        return code


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=200)
    code: str | None = Field(default=None, min_length=2, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper()


class SubjectOut(SubjectBase):
    id: str
    school_id: str

    model_config = {"from_attributes": True}
