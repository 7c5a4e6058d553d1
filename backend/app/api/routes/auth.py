from datetime import timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_school, get_current_user, get_db, get_optional_school, require_roles
from app.core.config import get_settings
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.school import SchoolOut
from app.schemas.user import Token, UserCreate, UserLogin, UserOut
from app.services.audit import log_activity
from app.services.rate_limit import enforce_rate_limit

settings = get_settings()
router = APIRouter()
logger = logging.getLogger(__name__)


def _find_login_user(db: Session, payload: UserLogin, school: School | None) -> User | None:
    if school is not None:
        user = db.execute(
            select(User).where(User.email == payload.email, User.school_id == school.id)
        ).scalar_one_or_none()
        if user is None or not verify_password(payload.password, user.hashed_password):
            return None
        return user

    # No tenant context: the same email may exist in several schools.
    candidates = [
        user
        for user in db.execute(select(User).where(User.email == payload.email).order_by(User.created_at)).scalars()
        if verify_password(payload.password, user.hashed_password)
    ]
    if len(candidates) > 1:
        logger.info("Ambiguous login for %s across %d schools; using first active", payload.email, len(candidates))
    for user in candidates:
        if user.is_active:
            return user
    return candidates[0] if candidates else None


@router.post("/login", response_model=Token)
def login(
    payload: UserLogin,
    request: Request,
    school: School | None = Depends(get_optional_school),
    db: Session = Depends(get_db),
) -> Token:
    enforce_rate_limit(
        request,
        scope="auth.login",
        limit=settings.auth_rate_limit_login_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
        identity=payload.email,
    )
    user = _find_login_user(db, payload, school)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials or inactive account")

    tenant_slug = school.slug if school is not None else None
    if tenant_slug is None and user.school_id is not None:
        user_school = db.get(School, user.school_id)
        tenant_slug = user_school.slug if user_school is not None else None

    access_token = create_access_token(
        user.id,
        role=user.role.value,
        school_id=user.school_id,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )
    return Token(access_token=access_token, token_type="bearer", user=user, tenant_slug=tenant_slug)


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    request: Request,
    school: School = Depends(get_current_school),
    current_user: User = Depends(require_roles(UserRole.super_admin)),
    db: Session = Depends(get_db),
) -> UserOut:
    enforce_rate_limit(
        request,
        scope="auth.register",
        limit=settings.auth_rate_limit_register_max_requests,
        window_seconds=settings.auth_rate_limit_window_seconds,
        identity=current_user.id,
    )
    existing = db.execute(
        select(User).where(User.email == payload.email, User.school_id == school.id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        school_id=school.id,
        full_name=payload.full_name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
    )
    db.add(user)
    db.flush()
    log_activity(
        db,
        user=current_user,
        school_id=school.id,
        action="user.registered",
        entity_type="user",
        entity_id=user.id,
        details={"role": payload.role.value},
    )

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc

    db.refresh(user)
    return user


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)) -> UserOut:
    return current_user


@router.get("/tenant/{slug}", response_model=SchoolOut)
def get_tenant_by_slug(slug: str, db: Session = Depends(get_db)) -> SchoolOut:
    school = db.execute(select(School).where(School.slug == slug.strip().lower())).scalar_one_or_none()
    if school is None or not school.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school
