"""Physical removal of soft-deleted leave requests past their grace period."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from leavedesk.models.enums import AuditAction, AuditStatus, RequestStatus
from leavedesk.services.audit import AuditRecorder
from leavedesk.services.expiry import is_expired, purge_cutoff

if TYPE_CHECKING:
    from datetime import datetime

    from leavedesk.services.store import LeaveRequestStore

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


@dataclass
class PurgeRunResult:
    """Result of a purge run."""

    run_at: datetime
    purged: int = 0
    skipped: int = 0
    errors: int = 0
    purged_ids: list[int] = field(default_factory=list)


async def purge_expired_requests(store: LeaveRequestStore, now: datetime) -> PurgeRunResult:
    """Delete every DELETED request whose grace period has elapsed at ``now``.

    Each row is purged in its own transaction and re-checked under its lock,
    so a concurrent restore either wins or sees the row gone.
    """
    result = PurgeRunResult(run_at=now)
    candidate_ids = await store.find_expired_ids(purge_cutoff(now))

    for request_id in candidate_ids:
        try:
            async with store.transaction() as tx:
                request = await tx.load_for_update(request_id)
                if (
                    request is None
                    or request.status != RequestStatus.DELETED.value
                    or request.deleted_at is None
                    or not is_expired(request.deleted_at, now)
                ):
                    result.skipped += 1
                    continue

                metadata = {
                    "previous_status": request.previous_status,
                    "deleted_at": request.deleted_at,
                    "deleted_by": request.deleted_by,
                    "delete_reason": request.delete_reason,
                }
                await tx.delete(request)
                await AuditRecorder(tx).record(
                    action=AuditAction.PURGED,
                    status=AuditStatus.SUCCESS,
                    performed_by=SYSTEM_ACTOR,
                    entity_id=request_id,
                    metadata=metadata,
                )
        except Exception:
            logger.exception("Failed to purge leave request %s", request_id)
            result.errors += 1
            continue

        result.purged += 1
        result.purged_ids.append(request_id)

    return result
