from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from leavedesk.exceptions import AppError
from leavedesk.models.base import now_utc
from leavedesk.models.enums import AuditAction, AuditStatus, RequestStatus
from leavedesk.models.leave_request import LeaveRequest
from leavedesk.schemas.leave_request import (
    AuditLogResponse,
    LeaveRequestListResponse,
    LeaveRequestResponse,
)
from leavedesk.services.audit import AuditRecorder
from leavedesk.services.expiry import remaining_days

if TYPE_CHECKING:
    from datetime import datetime

    from leavedesk.models.audit import AuditLog
    from leavedesk.schemas.auth import Principal
    from leavedesk.schemas.leave_request import LeaveRequestFilters, SubmitLeaveRequestPayload
    from leavedesk.services.store import LeaveRequestStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_leave_request_response(request: LeaveRequest, now: datetime | None = None) -> LeaveRequestResponse:
    """Map a leave request model to its response schema."""
    response = LeaveRequestResponse.model_validate(request, from_attributes=True)
    if request.status == RequestStatus.DELETED.value and request.deleted_at is not None:
        response.restore_days_remaining = remaining_days(request.deleted_at, now or now_utc())
    return response


def _build_audit_response(entry: AuditLog) -> AuditLogResponse:
    return AuditLogResponse(
        id=entry.id or 0,
        user_id=entry.user_id,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        action=entry.action,
        performed_by=entry.performed_by,
        status=entry.status,
        reason=entry.reason,
        metadata=entry.metadata_json,
        created_at=entry.created_at,
    )


async def _get_request_or_404(store: LeaveRequestStore, request_id: int) -> LeaveRequest:
    request = await store.get(request_id)
    if request is None:
        raise AppError("Leave request not found", status_code=404)
    return request


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_leave_request(
    store: LeaveRequestStore,
    actor: Principal,
    payload: SubmitLeaveRequestPayload,
    *,
    now: datetime | None = None,
) -> LeaveRequestResponse:
    """Create a PENDING leave request.

    Requests imported from an external form carry a ``form_response_id``; a
    second submission with the same id is rejected with 409.
    """
    now = now or now_utc()
    if payload.form_response_id is not None and await store.form_response_exists(payload.form_response_id):
        raise AppError("Leave request already exists for this form response", status_code=409)

    request = LeaveRequest(
        form_response_id=payload.form_response_id,
        user_id=actor.id,
        employee_name=payload.employee_name,
        manager_name=payload.manager_name,
        leave_type=payload.leave_type.value,
        shift_type=payload.shift_type.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        duration_days=payload.duration_days,
        reason=payload.reason,
        submitted_at=payload.submitted_at or now,
        status=RequestStatus.PENDING.value,
        created_at=now,
    )

    try:
        async with store.transaction() as tx:
            await tx.save(request)
            await AuditRecorder(tx).record_for(
                actor,
                action=AuditAction.CREATED,
                status=AuditStatus.SUCCESS,
                entity_id=request.id or 0,
                metadata={
                    "employee_name": request.employee_name,
                    "leave_type": request.leave_type,
                    "duration_days": request.duration_days,
                },
            )
    except IntegrityError:
        raise AppError("Duplicate leave request", status_code=409) from None

    logger.info("Leave request %s submitted by %s", request.id, actor.email)
    return build_leave_request_response(request, now)


async def get_leave_request(store: LeaveRequestStore, request_id: int) -> LeaveRequestResponse:
    """Get a single leave request by ID, including archived and deleted ones."""
    request = await _get_request_or_404(store, request_id)
    return build_leave_request_response(request)


async def list_leave_requests(
    store: LeaveRequestStore,
    filters: LeaveRequestFilters,
    offset: int = 0,
    limit: int = 50,
) -> LeaveRequestListResponse:
    """List leave requests with optional filters, newest submission first."""
    total = await store.count(filters)
    requests = await store.find_many(filters, offset, limit)
    now = now_utc()
    return LeaveRequestListResponse(
        items=[build_leave_request_response(r, now) for r in requests],
        total=total,
    )


async def get_audit_history(store: LeaveRequestStore, request_id: int) -> list[AuditLogResponse]:
    """Audit trail of one leave request, newest first."""
    await _get_request_or_404(store, request_id)
    return [_build_audit_response(e) for e in await store.audit_history(request_id)]
