from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.api.deps import get_current_school, get_db, get_tenant_user, require_roles
from app.models.school import School
from app.models.subject import Subject
from app.models.timetable_period import TimetablePeriod
from app.models.user import User, UserRole
from app.schemas.academic import SubjectCreate, SubjectOut, SubjectUpdate

router = APIRouter()


def _code_taken(db: Session, school: School, code: str, exclude_id: str | None = None) -> bool:
    statement = select(Subject).where(Subject.school_id == school.id, Subject.code == code)
    if exclude_id is not None:
        statement = statement.where(Subject.id != exclude_id)
    return db.execute(statement).scalar_one_or_none() is not None


@router.get("", response_model=list[SubjectOut])
def list_subjects(
    current_user: User = Depends(get_tenant_user),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> list[SubjectOut]:
    statement = select(Subject).where(Subject.school_id == school.id).order_by(Subject.name)
    return list(db.execute(statement).scalars())


@router.post("", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> SubjectOut:
    if _code_taken(db, school, payload.code):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject with this code already exists")
    subject = Subject(school_id=school.id, **payload.model_dump())
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


@router.put("/{subject_id}", response_model=SubjectOut)
def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = db.execute(
        select(Subject).where(Subject.id == subject_id, Subject.school_id == school.id)
    ).scalar_one_or_none()
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "code" in data and _code_taken(db, school, data["code"], exclude_id=subject.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject with this code already exists")
    for key, value in data.items():
        setattr(subject, key, value)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subject(
    subject_id: str,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> Response:
    subject = db.execute(
        select(Subject).where(Subject.id == subject_id, Subject.school_id == school.id)
    ).scalar_one_or_none()
    if subject is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    db.execute(
        delete(TimetablePeriod).where(
            TimetablePeriod.school_id == school.id,
            TimetablePeriod.subject_id == subject.id,
        )
    )
    db.delete(subject)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
