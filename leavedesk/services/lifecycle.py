"""Leave request lifecycle state machine.

Every approve/deny/archive/unarchive/soft-delete/restore goes through
:func:`transition`, which runs inside one store transaction:

1. Load the row with a lock (``NotFound`` if missing).
2. Check the actor's role against the authorization table (``Forbidden``).
3. Check the transition table and, for restore, the grace period
   (``InvalidTransition`` with a stable reason string).
4. Compute the new field values; every ``*_by`` field comes from the actor.
5. Save, stage the approval row for approve/deny, audit the success.
6. Commit and return ``Ok``.

Anything else rolls back and becomes ``InternalError``. Every non-``Ok``
outcome is audited as a FAILURE after the rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from leavedesk.models.approval import LeaveApproval
from leavedesk.models.base import now_utc
from leavedesk.models.enums import (
    WORKFLOW_STATUSES,
    ApprovalAction,
    AuditAction,
    AuditStatus,
    LifecycleAction,
    RequestStatus,
    Role,
)
from leavedesk.schemas.leave_request import TransitionPayload
from leavedesk.services.audit import AuditRecorder, model_to_audit_dict
from leavedesk.services.authorization import UnknownActionError, authorize, required_roles
from leavedesk.services.expiry import GRACE_PERIOD_DAYS, is_expired

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from leavedesk.models.leave_request import LeaveRequest
    from leavedesk.schemas.auth import Principal
    from leavedesk.services.store import LeaveRequestStore

logger = logging.getLogger(__name__)

# Reason strings are matched by callers; keep them stable.
REASON_NOT_FOUND = "Leave request not found"
REASON_NOT_PENDING_APPROVE = "Only pending requests can be approved"
REASON_NOT_PENDING_DENY = "Only pending requests can be denied"
REASON_ALREADY_ARCHIVED = "Request is already archived"
REASON_ARCHIVE_DELETED = "Cannot archive a deleted request"
REASON_NOT_ARCHIVED = "Request is not archived"
REASON_ALREADY_DELETED = "Request is already deleted"
REASON_DELETE_REASON_REQUIRED = "Deletion reason is required"
REASON_NOT_DELETED = "Request is not deleted"
REASON_RESTORE_EXPIRED = f"Cannot restore request deleted more than {GRACE_PERIOD_DAYS} days ago"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ok:
    """The transition committed."""

    kind: ClassVar[str] = "ok"
    request: LeaveRequest


@dataclass(frozen=True)
class NotFound:
    """No live row has the requested id."""

    kind: ClassVar[str] = "not_found"
    reason: str = REASON_NOT_FOUND


@dataclass(frozen=True)
class Forbidden:
    """The actor's role may not perform the action."""

    kind: ClassVar[str] = "forbidden"
    required_roles: tuple[Role, ...] = ()
    reason: str = "Insufficient permissions"


@dataclass(frozen=True)
class InvalidTransition:
    """The current state, or the grace period, does not allow the action."""

    kind: ClassVar[str] = "invalid_transition"
    reason: str


@dataclass(frozen=True)
class InternalError:
    """Storage failure or data-integrity violation. Details are only logged."""

    kind: ClassVar[str] = "internal_error"
    reason: str = "Internal server error"


TransitionResult = Ok | NotFound | Forbidden | InvalidTransition | InternalError


class DataIntegrityError(RuntimeError):
    """A stored row violates a lifecycle invariant."""


class _TransitionAborted(Exception):
    def __init__(self, result: TransitionResult) -> None:
        self.result = result
        super().__init__(result.kind)


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------


def _current_status(request: LeaveRequest) -> RequestStatus:
    try:
        return RequestStatus(request.status)
    except ValueError:
        msg = f"Leave request {request.id} has unknown status {request.status!r}"
        raise DataIntegrityError(msg) from None


def _stored_previous_status(request: LeaveRequest) -> RequestStatus:
    if request.previous_status is None or request.previous_status not in WORKFLOW_STATUSES:
        msg = (
            f"Leave request {request.id} in status {request.status} "
            f"has invalid previous_status {request.previous_status!r}"
        )
        raise DataIntegrityError(msg)
    return RequestStatus(request.previous_status)


def _reject(reason: str) -> _TransitionAborted:
    return _TransitionAborted(InvalidTransition(reason))


def _approve(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    if _current_status(request) != RequestStatus.PENDING:
        raise _reject(REASON_NOT_PENDING_APPROVE)
    request.status = RequestStatus.APPROVED.value
    request.admin_notes = payload.admin_notes
    request.approved_by = actor.email
    request.approved_at = now


def _deny(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    if _current_status(request) != RequestStatus.PENDING:
        raise _reject(REASON_NOT_PENDING_DENY)
    request.status = RequestStatus.DENIED.value
    request.admin_notes = payload.admin_notes
    request.denied_by = actor.email
    request.denied_at = now


def _archive(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    status = _current_status(request)
    if status == RequestStatus.ARCHIVED:
        raise _reject(REASON_ALREADY_ARCHIVED)
    if status == RequestStatus.DELETED:
        raise _reject(REASON_ARCHIVE_DELETED)
    request.previous_status = status.value
    request.status = RequestStatus.ARCHIVED.value
    request.archived_at = now
    request.archived_by = actor.email
    request.archive_reason = payload.reason


def _unarchive(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    if _current_status(request) != RequestStatus.ARCHIVED:
        raise _reject(REASON_NOT_ARCHIVED)
    request.status = _stored_previous_status(request).value
    request.previous_status = None
    request.archived_at = None
    request.archived_by = None
    request.archive_reason = None
    request.unarchived_at = now
    request.unarchived_by = actor.email
    request.unarchive_reason = payload.reason


def _soft_delete(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    status = _current_status(request)
    if status == RequestStatus.DELETED:
        raise _reject(REASON_ALREADY_DELETED)
    reason = (payload.reason or "").strip()
    if not reason:
        raise _reject(REASON_DELETE_REASON_REQUIRED)
    if status == RequestStatus.ARCHIVED:
        # previous_status already holds the pre-archive workflow status.
        _stored_previous_status(request)
    else:
        request.previous_status = status.value
    request.status = RequestStatus.DELETED.value
    request.deleted_at = now
    request.deleted_by = actor.email
    request.delete_reason = reason


def _restore(request: LeaveRequest, actor: Principal, payload: TransitionPayload, now: datetime) -> None:
    if _current_status(request) != RequestStatus.DELETED:
        raise _reject(REASON_NOT_DELETED)
    if request.deleted_at is None:
        msg = f"Deleted leave request {request.id} has no deleted_at"
        raise DataIntegrityError(msg)
    if is_expired(request.deleted_at, now):
        raise _reject(REASON_RESTORE_EXPIRED)
    previous = _stored_previous_status(request)
    if request.archived_at is not None:
        # Deleted while archived: go back to ARCHIVED and keep previous_status for unarchive.
        request.status = RequestStatus.ARCHIVED.value
    else:
        request.status = previous.value
        request.previous_status = None
    request.deleted_at = None
    request.deleted_by = None
    request.delete_reason = None
    request.restored_at = now
    request.restored_by = actor.email
    request.restore_reason = payload.reason


_HANDLERS: dict[LifecycleAction, Callable[[LeaveRequest, Principal, TransitionPayload, datetime], None]] = {
    LifecycleAction.APPROVE: _approve,
    LifecycleAction.DENY: _deny,
    LifecycleAction.ARCHIVE: _archive,
    LifecycleAction.UNARCHIVE: _unarchive,
    LifecycleAction.SOFT_DELETE: _soft_delete,
    LifecycleAction.RESTORE: _restore,
}

AUDIT_ACTIONS: dict[LifecycleAction, AuditAction] = {
    LifecycleAction.APPROVE: AuditAction.APPROVED,
    LifecycleAction.DENY: AuditAction.DENIED,
    LifecycleAction.ARCHIVE: AuditAction.ARCHIVED,
    LifecycleAction.UNARCHIVE: AuditAction.UNARCHIVED,
    LifecycleAction.SOFT_DELETE: AuditAction.DELETED,
    LifecycleAction.RESTORE: AuditAction.RESTORED,
}

_APPROVAL_ACTIONS: dict[LifecycleAction, ApprovalAction] = {
    LifecycleAction.APPROVE: ApprovalAction.APPROVED,
    LifecycleAction.DENY: ApprovalAction.DENIED,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def transition(
    store: LeaveRequestStore,
    action: LifecycleAction | str,
    request_id: int,
    actor: Principal,
    payload: TransitionPayload | None = None,
    *,
    now: datetime | None = None,
) -> TransitionResult:
    """Apply ``action`` to leave request ``request_id`` on behalf of ``actor``.

    Never raises for storage, audit or state problems; the outcome is one of
    the result variants.
    """
    try:
        allowed_roles = required_roles(action)
    except UnknownActionError:
        logger.exception("Rejected transition with unknown action %r on leave request %s", action, request_id)
        return InternalError()
    action = LifecycleAction(action)
    payload = payload or TransitionPayload()
    now = now or now_utc()

    try:
        async with store.transaction() as tx:
            request = await tx.load_for_update(request_id)
            if request is None:
                raise _TransitionAborted(NotFound())
            if not authorize(action, actor.role):
                raise _TransitionAborted(Forbidden(required_roles=allowed_roles))

            before = model_to_audit_dict(request)
            _HANDLERS[action](request, actor, payload, now)
            request.updated_at = now
            await tx.save(request)

            approval_action = _APPROVAL_ACTIONS.get(action)
            if approval_action is not None:
                await tx.record_approval(
                    LeaveApproval(
                        request_id=request_id,
                        action=approval_action.value,
                        approved_by=actor.email,
                        admin_notes=payload.admin_notes,
                    )
                )

            await AuditRecorder(tx).record_for(
                actor,
                action=AUDIT_ACTIONS[action],
                status=AuditStatus.SUCCESS,
                entity_id=request_id,
                reason=payload.reason,
                metadata={
                    "previous_status": before["status"],
                    "new_status": request.status,
                    "admin_notes": payload.admin_notes,
                    "timestamp": now,
                },
            )
    except _TransitionAborted as aborted:
        result = aborted.result
    except DataIntegrityError:
        logger.exception("Data integrity violation during %s on leave request %s", action.value, request_id)
        result = InternalError()
    except Exception:
        logger.exception("Unexpected failure during %s on leave request %s", action.value, request_id)
        result = InternalError()
    else:
        logger.info(
            "Leave request %s: %s by %s (%s -> %s)",
            request_id,
            action.value,
            actor.email,
            before["status"],
            request.status,
        )
        return Ok(request)

    await _record_failure(store, action, request_id, actor, result)
    return result


async def _record_failure(
    store: LeaveRequestStore,
    action: LifecycleAction,
    request_id: int,
    actor: Principal,
    result: TransitionResult,
) -> None:
    recorder = AuditRecorder(store)
    if isinstance(result, Forbidden):
        logger.info("Forbidden %s on leave request %s by %s (%s)", action.value, request_id, actor.email, actor.role)
        await recorder.record_forbidden(actor, action.value, result.required_roles, entity_id=request_id)
        return
    reason = getattr(result, "reason", None)
    await recorder.record_for(
        actor,
        action=AUDIT_ACTIONS[action],
        status=AuditStatus.FAILURE,
        entity_id=request_id,
        reason=reason,
        metadata={"result": result.kind},
    )
