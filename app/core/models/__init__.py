from app.core.models.student_application import StudentApplication
from app.core.models.instructor import Instructor, InstructorApplication
from app.core.models.enrollment import Enrollment
from app.core.models.payment import Payment
from app.core.models.portal_access_code import PortalAccessCode
from app.core.models.notification import NotificationLog, NotificationOutbox
from app.core.models.report import Report

__all__ = [
    "StudentApplication",
    "Instructor",
    "InstructorApplication",
    "Enrollment",
    "Payment",
    "PortalAccessCode",
    "NotificationLog",
    "NotificationOutbox",
    "Report",
]
