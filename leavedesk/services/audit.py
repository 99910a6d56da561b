from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from leavedesk.models.audit import AuditLog
from leavedesk.models.enums import AuditAction, AuditEntityType, AuditStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlmodel import SQLModel

    from leavedesk.schemas.auth import Principal

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


class AuditSink(Protocol):
    """Anything that can append an audit entry."""

    async def append_audit(self, entry: AuditLog) -> None: ...


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    return {key: _json_safe(value) for key, value in model.model_dump().items()}


class AuditRecorder:
    """Best-effort writer of audit entries.

    Failures while building or appending an entry are logged and swallowed;
    recording never raises to the caller.
    """

    def __init__(self, sink: AuditSink) -> None:
        self._sink = sink

    async def record(
        self,
        *,
        action: AuditAction,
        status: AuditStatus,
        performed_by: str,
        user_id: str | None = None,
        entity_type: AuditEntityType = AuditEntityType.LEAVE_REQUEST,
        entity_id: int = 0,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Append one entry. Returns it, or None if recording failed."""
        try:
            entry = AuditLog(
                user_id=user_id,
                entity_type=entity_type.value,
                entity_id=entity_id,
                action=action.value,
                performed_by=performed_by,
                status=status.value,
                reason=reason,
                metadata_json={k: _json_safe(v) for k, v in metadata.items()} if metadata else None,
            )
            await self._sink.append_audit(entry)
        except Exception:
            logger.warning(
                "Failed to record audit entry action=%s entity=%s:%s status=%s",
                action.value,
                entity_type.value,
                entity_id,
                status.value,
                exc_info=True,
            )
            return None
        return entry

    async def record_for(
        self,
        actor: Principal,
        *,
        action: AuditAction,
        status: AuditStatus,
        entity_id: int,
        reason: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Record an action performed by ``actor`` on a leave request."""
        return await self.record(
            action=action,
            status=status,
            performed_by=actor.email,
            user_id=actor.id,
            entity_id=entity_id,
            reason=reason,
            metadata=metadata,
        )

    async def record_unauthorized(self, principal: Principal | None, action: str) -> AuditLog | None:
        """Record an attempt with no valid session."""
        return await self.record(
            action=AuditAction.UNAUTHORIZED_ACCESS,
            status=AuditStatus.FAILURE,
            performed_by=principal.email if principal is not None else ANONYMOUS,
            user_id=principal.id if principal is not None else None,
            entity_type=AuditEntityType.API,
            reason="No valid session",
            metadata={"attempted_action": action},
        )

    async def record_forbidden(
        self,
        principal: Principal,
        action: str,
        required: Iterable[str],
        *,
        entity_id: int = 0,
    ) -> AuditLog | None:
        """Record an attempt by a principal whose role lacks permission."""
        roles = [str(role) for role in required]
        return await self.record(
            action=AuditAction.FORBIDDEN_ACCESS,
            status=AuditStatus.FAILURE,
            performed_by=principal.email,
            user_id=principal.id,
            entity_type=AuditEntityType.LEAVE_REQUEST if entity_id else AuditEntityType.API,
            entity_id=entity_id,
            reason=f"Requires one of: {', '.join(roles)}",
            metadata={"attempted_action": str(action), "user_role": principal.role.value, "required_roles": roles},
        )
