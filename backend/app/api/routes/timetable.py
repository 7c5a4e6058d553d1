from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_school, get_db, get_tenant_user, require_roles
from app.core.exceptions import ValidationError
from app.models.school import School
from app.models.user import User, UserRole
from app.schemas.timetable import PeriodCreate, PeriodOut
from app.services.scheduling import TimetableScheduler

router = APIRouter()


def get_scheduler(
    school: School = Depends(get_current_school),
    db: Session = Depends(get_db),
) -> TimetableScheduler:
    return TimetableScheduler(db, school)


def _require_term(term_id: str | None) -> str:
    if not term_id or not term_id.strip():
        raise ValidationError(
            "Academic Term ID is required",
            errors=[{"field": "termId", "message": "Field required"}],
        )
    return term_id.strip()


@router.get("/class/{class_id}", response_model=list[PeriodOut])
def get_class_timetable(
    class_id: str,
    term_id: str | None = Query(default=None, alias="termId"),
    current_user: User = Depends(get_tenant_user),
    scheduler: TimetableScheduler = Depends(get_scheduler),
) -> list[PeriodOut]:
    return scheduler.list_for_class(class_id, _require_term(term_id))


@router.get("/teacher/{teacher_id}", response_model=list[PeriodOut])
def get_teacher_timetable(
    teacher_id: str,
    term_id: str | None = Query(default=None, alias="termId"),
    current_user: User = Depends(get_tenant_user),
    scheduler: TimetableScheduler = Depends(get_scheduler),
) -> list[PeriodOut]:
    return scheduler.list_for_teacher(teacher_id, _require_term(term_id))


@router.post("", response_model=PeriodOut, status_code=status.HTTP_201_CREATED)
def create_period(
    payload: PeriodCreate,
    current_user: User = Depends(require_roles(UserRole.super_admin, UserRole.teacher)),
    scheduler: TimetableScheduler = Depends(get_scheduler),
) -> PeriodOut:
    return scheduler.create_period(payload, actor=current_user)


@router.delete("/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_period(
    period_id: str,
    current_user: User = Depends(require_roles(UserRole.super_admin, UserRole.teacher)),
    scheduler: TimetableScheduler = Depends(get_scheduler),
) -> Response:
    scheduler.delete_period(period_id, actor=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
