from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.security import get_password_hash
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.school import SchoolCreate, SchoolRegistrationOut
from app.services.audit import log_activity

router = APIRouter()


@router.post("", response_model=SchoolRegistrationOut, status_code=status.HTTP_201_CREATED)
def register_school(payload: SchoolCreate, db: Session = Depends(get_db)) -> SchoolRegistrationOut:
    existing = db.execute(select(School).where(School.slug == payload.slug)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School slug already exists")

    school = School(
        name=payload.name.strip(),
        slug=payload.slug,
        address=payload.address,
        email=payload.email,
        phone=payload.phone,
    )
    db.add(school)
    db.flush()

    admin = User(
        school_id=school.id,
        full_name=payload.admin_name.strip(),
        email=payload.admin_email,
        hashed_password=get_password_hash(payload.admin_password),
        role=UserRole.super_admin,
    )
    db.add(admin)
    db.flush()
    log_activity(
        db,
        user=admin,
        action="school.registered",
        entity_type="school",
        entity_id=school.id,
        details={"slug": school.slug},
    )

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School slug already exists") from exc

    db.refresh(school)
    db.refresh(admin)
    return SchoolRegistrationOut(
        message="School created successfully",
        school=school,
        admin=admin,
    )
