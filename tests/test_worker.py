from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leavedesk import worker
from leavedesk.models import LeaveRequest
from leavedesk.models.base import now_utc
from tests.helpers import make_leave_request

if TYPE_CHECKING:
    import pytest
    from sqlalchemy.ext.asyncio import AsyncEngine


async def test_run_purge_once_removes_expired_rows(
    engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        expired = make_leave_request(
            status="DELETED", previous_status="PENDING", deleted_at=now_utc() - timedelta(days=10), delete_reason="x"
        )
        kept = make_leave_request(
            status="DELETED", previous_status="PENDING", deleted_at=now_utc() - timedelta(days=1), delete_reason="y"
        )
        session.add_all([expired, kept])
        await session.commit()

    monkeypatch.setattr(worker, "get_session_factory", lambda: factory)
    with caplog.at_level(logging.INFO, logger="leavedesk.worker"):
        await worker.run_purge_once()

    async with AsyncSession(engine) as session:
        assert await session.get(LeaveRequest, expired.id) is None
        assert await session.get(LeaveRequest, kept.id) is not None
    assert "purged=1 skipped=0 errors=0" in caplog.text


async def test_run_purge_once_logs_and_survives_failures(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def _unavailable() -> async_sessionmaker[AsyncSession]:
        raise ConnectionError("database unavailable")

    monkeypatch.setattr(worker, "get_session_factory", _unavailable)
    with caplog.at_level(logging.ERROR, logger="leavedesk.worker"):
        await worker.run_purge_once()
    assert "Purge run failed" in caplog.text
