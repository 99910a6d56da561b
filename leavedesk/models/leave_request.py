# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import IntIdBase, TimestampMixin, now_utc
from leavedesk.models.enums import RequestStatus

_TZ_DATETIME = sa.DateTime(timezone=True)


class LeaveRequest(IntIdBase, TimestampMixin, table=True):
    """An employee's leave submission and its lifecycle bookkeeping."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_status_submitted", "status", "submitted_at"),
        sa.CheckConstraint("duration_days > 0", name="ck_leave_request_duration_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_request_date_order"),
    )

    form_response_id: str | None = Field(default=None, max_length=255, unique=True)
    user_id: str | None = Field(default=None, max_length=255, index=True)
    employee_name: str = Field(max_length=255, index=True)
    manager_name: str = Field(max_length=255, index=True)
    leave_type: str = Field(max_length=50)
    shift_type: str = Field(max_length=50)
    start_date: date
    end_date: date
    duration_days: int
    reason: str
    submitted_at: datetime = Field(default_factory=now_utc, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]

    status: str = Field(
        default=RequestStatus.PENDING, max_length=20, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    previous_status: str | None = Field(default=None, max_length=20)
    admin_notes: str | None = None

    approved_by: str | None = Field(default=None, max_length=255)
    approved_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]
    denied_by: str | None = Field(default=None, max_length=255)
    denied_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]

    archived_by: str | None = Field(default=None, max_length=255)
    archived_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]
    archive_reason: str | None = None
    unarchived_by: str | None = Field(default=None, max_length=255)
    unarchived_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]
    unarchive_reason: str | None = None

    deleted_by: str | None = Field(default=None, max_length=255)
    deleted_at: datetime | None = Field(
        default=None, index=True, sa_type=_TZ_DATETIME  # ty: ignore[invalid-argument-type]
    )
    delete_reason: str | None = None
    restored_by: str | None = Field(default=None, max_length=255)
    restored_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]
    restore_reason: str | None = None

    updated_at: datetime | None = Field(default=None, sa_type=_TZ_DATETIME)  # ty: ignore[invalid-argument-type]
