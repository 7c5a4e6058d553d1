from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_school, get_db, get_tenant_user, require_roles
from app.models.academic_term import AcademicTerm
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.timetable_period import TimetablePeriod
from app.models.user import User, UserRole
from app.schemas.academic import SchoolClassCreate, SchoolClassOut, SchoolClassUpdate
from app.services.audit import log_activity

router = APIRouter()


def _get_class(db: Session, school: School, class_id: str) -> SchoolClass:
    school_class = db.execute(
        select(SchoolClass).where(SchoolClass.id == class_id, SchoolClass.school_id == school.id)
    ).scalar_one_or_none()
    if school_class is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return school_class


def _validate_references(db: Session, school: School, data: dict) -> None:
    teacher_id = data.get("teacher_id")
    if teacher_id is not None:
        teacher = db.execute(
            select(User).where(User.id == teacher_id, User.school_id == school.id, User.role == UserRole.teacher)
        ).scalar_one_or_none()
        if teacher is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")

    term_id = data.get("academic_term_id")
    if term_id is not None:
        term = db.execute(
            select(AcademicTerm).where(AcademicTerm.id == term_id, AcademicTerm.school_id == school.id)
        ).scalar_one_or_none()
        if term is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic term not found")


@router.get("", response_model=list[SchoolClassOut])
def list_classes(
    current_user: User = Depends(get_tenant_user),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> list[SchoolClassOut]:
    statement = select(SchoolClass).where(SchoolClass.school_id == school.id).order_by(SchoolClass.name)
    return list(db.execute(statement).scalars())


@router.post("", response_model=SchoolClassOut, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: SchoolClassCreate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    data = payload.model_dump()
    _validate_references(db, school, data)
    school_class = SchoolClass(school_id=school.id, **data)
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return school_class


@router.put("/{class_id}", response_model=SchoolClassOut)
def update_class(
    class_id: str,
    payload: SchoolClassUpdate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> SchoolClassOut:
    school_class = _get_class(db, school, class_id)
    data = payload.model_dump(exclude_unset=True)
    _validate_references(db, school, data)
    for key, value in data.items():
        setattr(school_class, key, value)
    db.commit()
    db.refresh(school_class)
    return school_class


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: str,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> Response:
    school_class = _get_class(db, school, class_id)
    db.execute(
        delete(TimetablePeriod).where(
            TimetablePeriod.school_id == school.id,
            TimetablePeriod.class_id == school_class.id,
        )
    )
    log_activity(
        db,
        user=current_user,
        school_id=school.id,
        action="class.deleted",
        entity_type="class",
        entity_id=school_class.id,
        details={"name": school_class.name},
    )
    db.delete(school_class)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
