from collections.abc import Callable, Generator, Iterable
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.school import School
from app.models.user import User, UserRole

security = HTTPBearer()
logger = logging.getLogger(__name__)

TENANT_HEADER = "x-tenant-slug"


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def resolve_tenant_slug(request: Request) -> str | None:
    """Pick the tenant slug for a request.

    An explicit ``X-Tenant-Slug`` header wins. Local development hosts fall
    back to the configured default school, and anything else is read from the
    leftmost label of a ``<slug>.<domain>.<tld>`` host.
    """
    header_slug = request.headers.get(TENANT_HEADER, "").strip().lower()
    if header_slug:
        return header_slug

    settings = get_settings()
    hostname = (request.url.hostname or "").lower()
    if hostname in settings.local_hostnames:
        return settings.default_tenant_slug or None

    parts = hostname.split(".")
    if len(parts) > 2:
        return parts[0]
    return None


def get_optional_school(request: Request, db: Session = Depends(get_db)) -> School | None:
    slug = resolve_tenant_slug(request)
    if not slug:
        return None
    school = db.execute(select(School).where(School.slug == slug)).scalar_one_or_none()
    if school is None:
        logger.debug("No school registered for tenant slug %s", slug)
        return None
    if not school.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="School account is inactive")
    return school


def get_current_school(school: School | None = Depends(get_optional_school)) -> School:
    if school is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant context missing")
    return school


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def get_tenant_user(
    current_user: User = Depends(get_current_user),
    school: School = Depends(get_current_school),
) -> User:
    if current_user.role != UserRole.system_owner and current_user.school_id != school.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User does not belong to this school")
    return current_user


def require_roles(*roles: UserRole) -> Callable[[User], User]:
    allowed_roles: Iterable[UserRole] = set(roles)

    def role_checker(current_user: User = Depends(get_tenant_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker
