from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """Lifecycle states of a leave request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    ARCHIVED = "ARCHIVED"
    DELETED = "DELETED"


# Statuses a request can return to after being archived or deleted.
WORKFLOW_STATUSES = frozenset({RequestStatus.PENDING, RequestStatus.APPROVED, RequestStatus.DENIED})


class LeaveType(enum.StrEnum):
    """Kind of leave requested."""

    VACATION = "Vacation"
    SICK_LEAVE = "Sick Leave"
    UNPAID = "Unpaid"
    OTHER = "Other"


class ShiftType(enum.StrEnum):
    """Portion of the shift the leave covers."""

    FIRST_HALF = "First-Half"
    SECOND_HALF = "Second-Half"
    FULL_SHIFT = "Full Shift"


class Role(enum.StrEnum):
    """Role carried by an authenticated principal."""

    USER = "USER"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class LifecycleAction(enum.StrEnum):
    """Transitions a caller can request on a leave request."""

    APPROVE = "approve"
    DENY = "deny"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"
    SOFT_DELETE = "soft-delete"
    RESTORE = "restore"


class ApprovalAction(enum.StrEnum):
    """Decision recorded on a leave approval row."""

    APPROVED = "APPROVED"
    DENIED = "DENIED"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_REQUEST = "leave_request"
    API = "api"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATED = "CREATED"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    ARCHIVED = "ARCHIVED"
    UNARCHIVED = "UNARCHIVED"
    DELETED = "DELETED"
    RESTORED = "RESTORED"
    PURGED = "PURGED"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    FORBIDDEN_ACCESS = "FORBIDDEN_ACCESS"


class AuditStatus(enum.StrEnum):
    """Outcome of an audited attempt."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
