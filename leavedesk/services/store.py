"""Transactional access to leave request rows.

:class:`LeaveRequestStore` is the contract the lifecycle engine consumes.
:class:`SqlLeaveRequestStore` backs it with an async SQLModel session and row
locks; :class:`InMemoryLeaveRequestStore` is a development stub with per-id
locks that behaves the same way under concurrency.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import func, select
from sqlmodel import col

from leavedesk.models.approval import LeaveApproval
from leavedesk.models.audit import AuditLog
from leavedesk.models.enums import AuditEntityType, RequestStatus
from leavedesk.models.leave_request import LeaveRequest
from leavedesk.services.expiry import as_utc

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.schemas.leave_request import LeaveRequestFilters


@runtime_checkable
class LeaveRequestTransaction(Protocol):
    """Operations available inside one store transaction."""

    async def load_for_update(self, request_id: int) -> LeaveRequest | None:
        """Load a row and hold its lock until the transaction ends."""
        ...

    async def save(self, request: LeaveRequest) -> None:
        """Insert or update a row."""
        ...

    async def delete(self, request: LeaveRequest) -> None:
        """Physically remove a row. Only the purge job calls this."""
        ...

    async def record_approval(self, approval: LeaveApproval) -> None:
        """Stage an approval decision row."""
        ...

    async def append_audit(self, entry: AuditLog) -> None:
        """Append an audit entry that commits or rolls back with the transaction."""
        ...


@runtime_checkable
class LeaveRequestStore(Protocol):
    """Interface for leave request persistence."""

    def transaction(self) -> AbstractAsyncContextManager[LeaveRequestTransaction]:
        """Open a transaction that commits on exit and rolls back on any exception."""
        ...

    async def append_audit(self, entry: AuditLog) -> None:
        """Append an audit entry in its own short transaction."""
        ...

    async def get(self, request_id: int) -> LeaveRequest | None:
        """Fetch a row without locking it."""
        ...

    async def find_many(
        self, filters: LeaveRequestFilters, offset: int = 0, limit: int = 50
    ) -> list[LeaveRequest]:
        """List rows matching ``filters`` ordered by submitted_at DESC."""
        ...

    async def count(self, filters: LeaveRequestFilters) -> int:
        """Count rows matching ``filters``."""
        ...

    async def form_response_exists(self, form_response_id: str) -> bool:
        """Return whether a row was already created from this form response."""
        ...

    async def find_expired_ids(self, cutoff: datetime) -> list[int]:
        """Ids of deleted rows whose deleted_at is before ``cutoff``."""
        ...

    async def audit_history(self, request_id: int) -> list[AuditLog]:
        """Audit entries for one request, newest first."""
        ...


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def _status_clauses(filters: LeaveRequestFilters) -> tuple[set[str] | None, set[str]]:
    """Return (required statuses, excluded statuses) for a filter set.

    ARCHIVED and DELETED select only those rows; anything else hides archived
    and deleted rows unless explicitly included.
    """
    if filters.status in (RequestStatus.ARCHIVED, RequestStatus.DELETED):
        return {filters.status.value}, set()
    excluded: set[str] = set()
    if not filters.include_archived:
        excluded.add(RequestStatus.ARCHIVED.value)
    if not filters.include_deleted:
        excluded.add(RequestStatus.DELETED.value)
    required = {filters.status.value} if filters.status is not None else None
    return required, excluded


def _filter_conditions(filters: LeaveRequestFilters) -> list[Any]:
    required, excluded = _status_clauses(filters)
    conditions: list[Any] = []
    if required is not None:
        conditions.append(col(LeaveRequest.status).in_(required))
    if excluded:
        conditions.append(col(LeaveRequest.status).not_in(excluded))
    if filters.employee_name:
        conditions.append(col(LeaveRequest.employee_name).contains(filters.employee_name))
    if filters.manager_name:
        conditions.append(col(LeaveRequest.manager_name) == filters.manager_name)
    if filters.leave_type is not None:
        conditions.append(col(LeaveRequest.leave_type) == filters.leave_type.value)
    if filters.start_date is not None:
        conditions.append(col(LeaveRequest.start_date) >= filters.start_date)
    if filters.end_date is not None:
        conditions.append(col(LeaveRequest.end_date) <= filters.end_date)
    if filters.user_id:
        conditions.append(col(LeaveRequest.user_id) == filters.user_id)
    return conditions


def _matches(request: LeaveRequest, filters: LeaveRequestFilters) -> bool:
    required, excluded = _status_clauses(filters)
    checks = [
        required is None or request.status in required,
        request.status not in excluded,
        not filters.employee_name or filters.employee_name in request.employee_name,
        not filters.manager_name or request.manager_name == filters.manager_name,
        filters.leave_type is None or request.leave_type == filters.leave_type.value,
        filters.start_date is None or request.start_date >= filters.start_date,
        filters.end_date is None or request.end_date <= filters.end_date,
        not filters.user_id or request.user_id == filters.user_id,
    ]
    return all(checks)


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------


class SqlLeaveRequestTransaction:
    """Transaction handle bound to an open AsyncSession transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_for_update(self, request_id: int) -> LeaveRequest | None:
        result = await self._session.execute(
            select(LeaveRequest)
            .where(col(LeaveRequest.id) == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def save(self, request: LeaveRequest) -> None:
        self._session.add(request)
        await self._session.flush()

    async def delete(self, request: LeaveRequest) -> None:
        await self._session.delete(request)
        await self._session.flush()

    async def record_approval(self, approval: LeaveApproval) -> None:
        self._session.add(approval)
        await self._session.flush()

    async def append_audit(self, entry: AuditLog) -> None:
        # SAVEPOINT so a failed insert does not poison the enclosing transaction.
        async with self._session.begin_nested():
            self._session.add(entry)


class SqlLeaveRequestStore:
    """LeaveRequestStore backed by an async SQLModel session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlLeaveRequestTransaction]:
        try:
            yield SqlLeaveRequestTransaction(self._session)
        except BaseException:
            await self._session.rollback()
            raise
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    async def append_audit(self, entry: AuditLog) -> None:
        self._session.add(entry)
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    async def get(self, request_id: int) -> LeaveRequest | None:
        return await self._session.get(LeaveRequest, request_id)

    async def find_many(
        self, filters: LeaveRequestFilters, offset: int = 0, limit: int = 50
    ) -> list[LeaveRequest]:
        result = await self._session.execute(
            select(LeaveRequest)
            .where(*_filter_conditions(filters))
            .order_by(col(LeaveRequest.submitted_at).desc(), col(LeaveRequest.id).desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self, filters: LeaveRequestFilters) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(LeaveRequest).where(*_filter_conditions(filters))
        )
        return result.scalar_one()

    async def form_response_exists(self, form_response_id: str) -> bool:
        result = await self._session.execute(
            select(func.count())
            .select_from(LeaveRequest)
            .where(col(LeaveRequest.form_response_id) == form_response_id)
        )
        return result.scalar_one() > 0

    async def find_expired_ids(self, cutoff: datetime) -> list[int]:
        result = await self._session.execute(
            select(col(LeaveRequest.id))
            .where(
                col(LeaveRequest.status) == RequestStatus.DELETED.value,
                col(LeaveRequest.deleted_at) < cutoff,
            )
            .order_by(col(LeaveRequest.id))
        )
        return list(result.scalars().all())

    async def audit_history(self, request_id: int) -> list[AuditLog]:
        result = await self._session.execute(
            select(AuditLog)
            .where(
                col(AuditLog.entity_type) == AuditEntityType.LEAVE_REQUEST.value,
                col(AuditLog.entity_id) == request_id,
            )
            .order_by(col(AuditLog.created_at).desc(), col(AuditLog.id).desc())
        )
        return list(result.scalars().all())


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


def _copy(request: LeaveRequest) -> LeaveRequest:
    return LeaveRequest(**request.model_dump())


class InMemoryLeaveRequestTransaction:
    """Buffers writes until commit; holds per-id locks until the transaction ends."""

    def __init__(self, store: InMemoryLeaveRequestStore) -> None:
        self._store = store
        self._held: list[asyncio.Lock] = []
        self._locked_ids: set[int] = set()
        self._writes: dict[int, LeaveRequest] = {}
        self._deletes: set[int] = set()
        self._approvals: list[LeaveApproval] = []
        self._audit: list[AuditLog] = []

    async def load_for_update(self, request_id: int) -> LeaveRequest | None:
        if request_id not in self._locked_ids:
            lock = self._store._locks[request_id]
            await lock.acquire()
            self._held.append(lock)
            self._locked_ids.add(request_id)
        # Let other tasks run, as a database round trip would.
        await asyncio.sleep(0)
        row = self._store._rows.get(request_id)
        return _copy(row) if row is not None else None

    async def save(self, request: LeaveRequest) -> None:
        if request.id is None:
            request.id = self._store._next_id()
        self._writes[request.id] = request

    async def delete(self, request: LeaveRequest) -> None:
        if request.id is not None:
            self._writes.pop(request.id, None)
            self._deletes.add(request.id)

    async def record_approval(self, approval: LeaveApproval) -> None:
        self._approvals.append(approval)

    async def append_audit(self, entry: AuditLog) -> None:
        self._audit.append(entry)

    def _commit(self) -> None:
        for request_id, request in self._writes.items():
            self._store._rows[request_id] = _copy(request)
        for request_id in self._deletes:
            self._store._rows.pop(request_id, None)
        for approval in self._approvals:
            self._store._add_approval(approval)
        for entry in self._audit:
            self._store._add_audit(entry)

    def _release(self) -> None:
        for lock in reversed(self._held):
            lock.release()
        self._held.clear()
        self._locked_ids.clear()


class InMemoryLeaveRequestStore:
    """In-memory stub implementation for development and tests."""

    def __init__(self) -> None:
        self._rows: dict[int, LeaveRequest] = {}
        self._locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_id = 0
        self._approval_ids = itertools.count(1)
        self._audit_ids = itertools.count(1)
        self.approvals: list[LeaveApproval] = []
        self.audit_entries: list[AuditLog] = []

    def seed(self, request: LeaveRequest) -> LeaveRequest:
        """Seed a row directly, bypassing transactions."""
        if request.id is None:
            request.id = self._next_id()
        self._last_id = max(self._last_id, request.id)
        self._rows[request.id] = _copy(request)
        return request

    def _next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def _add_approval(self, approval: LeaveApproval) -> None:
        approval.id = next(self._approval_ids)
        self.approvals.append(approval)

    def _add_audit(self, entry: AuditLog) -> None:
        entry.id = next(self._audit_ids)
        self.audit_entries.append(entry)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryLeaveRequestTransaction]:
        tx = InMemoryLeaveRequestTransaction(self)
        try:
            yield tx
            tx._commit()
        finally:
            tx._release()

    async def append_audit(self, entry: AuditLog) -> None:
        self._add_audit(entry)

    async def get(self, request_id: int) -> LeaveRequest | None:
        row = self._rows.get(request_id)
        return _copy(row) if row is not None else None

    async def find_many(
        self, filters: LeaveRequestFilters, offset: int = 0, limit: int = 50
    ) -> list[LeaveRequest]:
        rows = sorted(
            (r for r in self._rows.values() if _matches(r, filters)),
            key=lambda r: (r.submitted_at, r.id or 0),
            reverse=True,
        )
        return [_copy(r) for r in rows[offset : offset + limit]]

    async def count(self, filters: LeaveRequestFilters) -> int:
        return sum(1 for r in self._rows.values() if _matches(r, filters))

    async def form_response_exists(self, form_response_id: str) -> bool:
        return any(r.form_response_id == form_response_id for r in self._rows.values())

    async def find_expired_ids(self, cutoff: datetime) -> list[int]:
        return sorted(
            request_id
            for request_id, r in self._rows.items()
            if r.status == RequestStatus.DELETED.value
            and r.deleted_at is not None
            and as_utc(r.deleted_at) < cutoff
        )

    async def audit_history(self, request_id: int) -> list[AuditLog]:
        entries = [
            e
            for e in self.audit_entries
            if e.entity_type == AuditEntityType.LEAVE_REQUEST.value and e.entity_id == request_id
        ]
        return sorted(entries, key=lambda e: e.id or 0, reverse=True)
