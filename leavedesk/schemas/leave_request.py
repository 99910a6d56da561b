# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavedesk.models.enums import LeaveType, RequestStatus, ShiftType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeaveRequestPayload(BaseModel):
    """Request body for submitting a new leave request."""

    form_response_id: str | None = Field(default=None, min_length=1, max_length=255)
    employee_name: str = Field(min_length=1, max_length=255)
    manager_name: str = Field(min_length=1, max_length=255)
    leave_type: LeaveType
    shift_type: ShiftType
    start_date: date
    end_date: date
    duration_days: int = Field(gt=0)
    reason: str = Field(min_length=1)
    submitted_at: datetime | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class TransitionPayload(BaseModel):
    """Request body shared by the lifecycle actions.

    Identity fields a client may still send (``approvedBy``, ``deniedBy``,
    ``restoredBy`` ...) are dropped; actor identity always comes from the
    authenticated principal.
    """

    model_config = ConfigDict(extra="ignore")

    admin_notes: str | None = Field(default=None, max_length=1000)
    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Query filters
# ---------------------------------------------------------------------------


class LeaveRequestFilters(BaseModel):
    """Filters accepted by the leave request listing."""

    status: RequestStatus | None = None
    employee_name: str | None = None
    manager_name: str | None = None
    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    include_archived: bool = False
    include_deleted: bool = False
    user_id: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: int
    form_response_id: str | None
    user_id: str | None
    employee_name: str
    manager_name: str
    leave_type: LeaveType
    shift_type: ShiftType
    start_date: date
    end_date: date
    duration_days: int
    reason: str
    submitted_at: datetime
    status: RequestStatus
    previous_status: RequestStatus | None
    admin_notes: str | None
    approved_by: str | None
    approved_at: datetime | None
    denied_by: str | None
    denied_at: datetime | None
    archived_by: str | None
    archived_at: datetime | None
    archive_reason: str | None
    unarchived_by: str | None
    unarchived_at: datetime | None
    unarchive_reason: str | None
    deleted_by: str | None
    deleted_at: datetime | None
    delete_reason: str | None
    restored_by: str | None
    restored_at: datetime | None
    restore_reason: str | None
    restore_days_remaining: int | None = None
    created_at: datetime
    updated_at: datetime | None


class LeaveRequestListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class AuditLogResponse(BaseModel):
    """One audit log entry."""

    id: int
    user_id: str | None
    entity_type: str
    entity_id: int
    action: str
    performed_by: str
    status: str
    reason: str | None
    metadata: dict[str, Any] | None
    created_at: datetime
