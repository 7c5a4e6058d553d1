from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.api.deps import get_current_school, get_db, get_tenant_user, require_roles
from app.models.academic_term import AcademicTerm
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.academic import AcademicTermBase, AcademicTermCreate, AcademicTermOut, AcademicTermUpdate

router = APIRouter()


def _get_term(db: Session, school: School, term_id: str) -> AcademicTerm:
    term = db.execute(
        select(AcademicTerm).where(AcademicTerm.id == term_id, AcademicTerm.school_id == school.id)
    ).scalar_one_or_none()
    if term is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic term not found")
    return term


def _deactivate_other_terms(db: Session, school: School, keep_id: str | None = None) -> None:
    statement = update(AcademicTerm).where(AcademicTerm.school_id == school.id, AcademicTerm.is_active.is_(True))
    if keep_id is not None:
        statement = statement.where(AcademicTerm.id != keep_id)
    db.execute(statement.values(is_active=False))


@router.get("", response_model=list[AcademicTermOut])
def list_terms(
    current_user: User = Depends(get_tenant_user),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> list[AcademicTermOut]:
    statement = select(AcademicTerm).where(AcademicTerm.school_id == school.id).order_by(AcademicTerm.start_date.desc())
    return list(db.execute(statement).scalars())


@router.get("/current", response_model=AcademicTermOut)
def get_current_term(
    current_user: User = Depends(get_tenant_user),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> AcademicTermOut:
    term = db.execute(
        select(AcademicTerm).where(AcademicTerm.school_id == school.id, AcademicTerm.is_active.is_(True))
    ).scalars().first()
    if term is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active academic term")
    return term


@router.post("", response_model=AcademicTermOut, status_code=status.HTTP_201_CREATED)
def create_term(
    payload: AcademicTermCreate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> AcademicTermOut:
    if payload.is_active:
        _deactivate_other_terms(db, school)
    term = AcademicTerm(school_id=school.id, **payload.model_dump())
    db.add(term)
    db.commit()
    db.refresh(term)
    return term


@router.put("/{term_id}", response_model=AcademicTermOut)
def update_term(
    term_id: str,
    payload: AcademicTermUpdate,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> AcademicTermOut:
    term = _get_term(db, school, term_id)
    data = payload.model_dump(exclude_unset=True)
    if data:
        merged = {
            "name": data.get("name") or term.name,
            "start_date": data.get("start_date") or term.start_date,
            "end_date": data.get("end_date") or term.end_date,
            "is_active": term.is_active,
        }
        try:
            normalized = AcademicTermBase.model_validate(merged)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        term.name = normalized.name
        term.start_date = normalized.start_date
        term.end_date = normalized.end_date
    db.commit()
    db.refresh(term)
    return term


@router.patch("/{term_id}/activate", response_model=AcademicTermOut)
def activate_term(
    term_id: str,
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> AcademicTermOut:
    term = _get_term(db, school, term_id)
    _deactivate_other_terms(db, school, keep_id=term.id)
    term.is_active = True
    db.commit()
    db.refresh(term)
    return term
