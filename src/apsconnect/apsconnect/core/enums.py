from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    STUDENT = "student"
    FACULTY = "faculty"
    ADMIN = "admin"
    ALUMNI = "alumni"


class UserStatus(str, Enum):
    """Admission status of an account."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class MarkMethod(str, Enum):
    MANUAL = "manual"
    QR = "qr"


class ComplianceBand(str, Enum):
    """Reporting buckets for attendance percentages."""

    COMPLIANT = "compliant"
    AT_RISK = "at_risk"
    SHORTAGE = "shortage"


class LoanStatus(str, Enum):
    ISSUED = "issued"
    RETURNED = "returned"


class FeeStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    VERIFIED = "verified"
    REJECTED = "rejected"


class FeeAction(str, Enum):
    VERIFY = "verify"
    REJECT = "reject"
