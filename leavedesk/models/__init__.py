from sqlmodel import SQLModel

from leavedesk.models.approval import LeaveApproval
from leavedesk.models.audit import AuditLog
from leavedesk.models.base import IntIdBase, TimestampMixin
from leavedesk.models.enums import (
    ApprovalAction,
    AuditAction,
    AuditEntityType,
    AuditStatus,
    LeaveType,
    LifecycleAction,
    RequestStatus,
    Role,
    ShiftType,
)
from leavedesk.models.leave_request import LeaveRequest

__all__ = [
    "ApprovalAction",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "AuditStatus",
    "IntIdBase",
    "LeaveApproval",
    "LeaveRequest",
    "LeaveType",
    "LifecycleAction",
    "RequestStatus",
    "Role",
    "SQLModel",
    "ShiftType",
    "TimestampMixin",
]
