# ruff: noqa: B008, TC001
from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Path, Query, status

from leavedesk.api.deps import PrincipalDep, StoreDep
from leavedesk.exceptions import unwrap_transition_result
from leavedesk.models.enums import LeaveType, LifecycleAction, RequestStatus
from leavedesk.schemas.leave_request import (
    AuditLogResponse,
    LeaveRequestFilters,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    SubmitLeaveRequestPayload,
    TransitionPayload,
)
from leavedesk.services import leave_request as leave_request_service
from leavedesk.services.lifecycle import transition

if TYPE_CHECKING:
    from leavedesk.schemas.auth import Principal
    from leavedesk.services.store import LeaveRequestStore

leave_requests_router = APIRouter(
    prefix="/api/v1/leave/requests",
    tags=["leave-requests"],
)

RequestId = Annotated[int, Path(gt=0)]


async def _run_transition(
    store: LeaveRequestStore,
    action: LifecycleAction,
    request_id: int,
    principal: Principal,
    payload: TransitionPayload | None,
) -> LeaveRequestResponse:
    result = await transition(store, action, request_id, principal, payload)
    return leave_request_service.build_leave_request_response(unwrap_transition_result(result))


@leave_requests_router.get("", response_model=LeaveRequestListResponse)
async def list_leave_requests(
    store: StoreDep,
    principal: PrincipalDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    employee_name: str | None = Query(default=None),
    manager_name: str | None = Query(default=None),
    leave_type: LeaveType | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    include_archived: bool = Query(default=False),
    include_deleted: bool = Query(default=False),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LeaveRequestListResponse:
    """List leave requests; archived and deleted ones are hidden unless asked for."""
    filters = LeaveRequestFilters(
        status=status_filter,
        employee_name=employee_name,
        manager_name=manager_name,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        include_archived=include_archived,
        include_deleted=include_deleted,
    )
    return await leave_request_service.list_leave_requests(store, filters, offset, limit)


@leave_requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave_request(
    payload: SubmitLeaveRequestPayload,
    store: StoreDep,
    principal: PrincipalDep,
) -> LeaveRequestResponse:
    """Submit a new leave request."""
    return await leave_request_service.submit_leave_request(store, principal, payload)


@leave_requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await leave_request_service.get_leave_request(store, request_id)


@leave_requests_router.get("/{request_id}/audit", response_model=list[AuditLogResponse])
async def get_audit_history(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
) -> list[AuditLogResponse]:
    """Audit trail of a leave request, newest first."""
    return await leave_request_service.get_audit_history(store, request_id)


@leave_requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending leave request (manager or admin)."""
    return await _run_transition(store, LifecycleAction.APPROVE, request_id, principal, payload)


@leave_requests_router.post("/{request_id}/deny", response_model=LeaveRequestResponse)
async def deny_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Deny a pending leave request (manager or admin)."""
    return await _run_transition(store, LifecycleAction.DENY, request_id, principal, payload)


@leave_requests_router.post("/{request_id}/archive", response_model=LeaveRequestResponse)
async def archive_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Archive a leave request (admin only)."""
    return await _run_transition(store, LifecycleAction.ARCHIVE, request_id, principal, payload)


@leave_requests_router.post("/{request_id}/unarchive", response_model=LeaveRequestResponse)
async def unarchive_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Return an archived leave request to its previous status (admin only)."""
    return await _run_transition(store, LifecycleAction.UNARCHIVE, request_id, principal, payload)


@leave_requests_router.post("/{request_id}/delete", response_model=LeaveRequestResponse)
async def delete_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Soft-delete a leave request; it can be restored for 7 days (admin only)."""
    return await _run_transition(store, LifecycleAction.SOFT_DELETE, request_id, principal, payload)


@leave_requests_router.post("/{request_id}/restore", response_model=LeaveRequestResponse)
async def restore_leave_request(
    request_id: RequestId,
    store: StoreDep,
    principal: PrincipalDep,
    payload: TransitionPayload | None = None,
) -> LeaveRequestResponse:
    """Restore a soft-deleted leave request within its grace period (admin only)."""
    return await _run_transition(store, LifecycleAction.RESTORE, request_id, principal, payload)
