from enum import Enum


class AdminRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    SUB_ADMIN = "SUB_ADMIN"
    INSTRUCTOR_ADMIN = "INSTRUCTOR_ADMIN"
    STUDENT_ADMIN = "STUDENT_ADMIN"


class TokenAudience(str, Enum):
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    PORTAL = "PORTAL"


class DeliveryMode(str, Enum):
    REMOTE = "REMOTE"
    IN_PERSON_1_1 = "IN_PERSON_1_1"
    IN_PERSON_GROUP = "IN_PERSON_GROUP"


class Gender(str, Enum):
    M = "M"
    F = "F"
    OTHER = "OTHER"


class ApplicationStatus(str, Enum):
    """Student application axis: SUBMITTED -> INSTRUCTOR_SELECTED -> ENROLLED."""

    SUBMITTED = "SUBMITTED"
    INSTRUCTOR_SELECTED = "INSTRUCTOR_SELECTED"
    ENROLLED = "ENROLLED"


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle. Declaration order is the lifecycle order."""

    BEFORE_PAYMENT = "BEFORE_PAYMENT"
    CONSULT_DONE = "CONSULT_DONE"
    PAYMENT_REQUESTED = "PAYMENT_REQUESTED"
    PAID = "PAID"

    @property
    def rank(self) -> int:
        return list(EnrollmentStatus).index(self)

    def can_advance_to(self, target: "EnrollmentStatus") -> bool:
        return target.rank >= self.rank

    @classmethod
    def not_after(cls, target: "EnrollmentStatus") -> list:
        """Statuses from which `target` is reachable without moving backward."""
        return [s for s in cls if s.rank <= target.rank]


class InstructorStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class InstructorApplicationStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentStatus(str, Enum):
    REQUESTED = "REQUESTED"
    PRODUCT_CREATED = "PRODUCT_CREATED"


class ReportType(str, Enum):
    PROJECT = "PROJECT"
    ALGORITHM = "ALGORITHM"


class ReportStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class NotificationChannel(str, Enum):
    INTERNAL = "INTERNAL"


class NotificationStatus(str, Enum):
    QUEUED = "QUEUED"


class OutboxStatus(str, Enum):
    PENDING = "PENDING"
    DISPATCHED = "DISPATCHED"
    FAILED = "FAILED"


class NotificationEvent(str, Enum):
    STUDENT_APPLICATION_CREATED = "STUDENT_APPLICATION_CREATED"
    STUDENT_SELECTED_INSTRUCTOR = "STUDENT_SELECTED_INSTRUCTOR"
    STUDENT_SELECTED_INSTRUCTOR_TO_INSTRUCTOR = "STUDENT_SELECTED_INSTRUCTOR_TO_INSTRUCTOR"
    INSTRUCTOR_APPLICATION_CREATED = "INSTRUCTOR_APPLICATION_CREATED"
    INSTRUCTOR_APPLICATION_APPROVED = "INSTRUCTOR_APPLICATION_APPROVED"
    INSTRUCTOR_APPLICATION_REJECTED = "INSTRUCTOR_APPLICATION_REJECTED"
    PAYMENT_LINK_CREATED = "PAYMENT_LINK_CREATED"
    PORTAL_CODE_ISSUED = "PORTAL_CODE_ISSUED"
    REPORT_SUBMITTED = "REPORT_SUBMITTED"


# Role groups notified for each kind of intake
STUDENT_DESK_ROLES = (AdminRole.SUPER_ADMIN, AdminRole.SUB_ADMIN, AdminRole.STUDENT_ADMIN)
INSTRUCTOR_DESK_ROLES = (AdminRole.SUPER_ADMIN, AdminRole.SUB_ADMIN, AdminRole.INSTRUCTOR_ADMIN)
REPORT_DESK_ROLES = (AdminRole.SUPER_ADMIN, AdminRole.SUB_ADMIN)
