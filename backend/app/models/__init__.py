from app.models.academic_term import AcademicTerm  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.school import School  # noqa: F401
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.subject import Subject  # noqa: F401
from app.models.timetable_period import DayOfWeek, TimetablePeriod  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
