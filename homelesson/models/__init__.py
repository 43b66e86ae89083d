"""ORM models.  Importing this package registers every table on ``Base.metadata``."""

from homelesson.models.attendance import Attendance
from homelesson.models.payroll import PaymentHistory, PayrollRecord
from homelesson.models.report import Report
from homelesson.models.system_config import SystemConfig
from homelesson.models.teacher import Subject, Teacher
from homelesson.models.timetable import TimetableEntry
from homelesson.models.user import User

__all__ = [
    "Attendance",
    "PaymentHistory",
    "PayrollRecord",
    "Report",
    "Subject",
    "SystemConfig",
    "Teacher",
    "TimetableEntry",
    "User",
]
