"""Shared principals, headers and row factories for the test suite."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from leavedesk.models import LeaveRequest
from leavedesk.schemas.auth import Principal

T0 = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)

ADMIN = Principal(id="u-admin", email="admin@x", role="ADMIN")
MANAGER = Principal(id="u-manager", email="manager@x", role="MANAGER")
USER = Principal(id="u-user", email="user@x", role="USER")


def headers_for(principal: Principal) -> dict[str, str]:
    return {
        "X-User-Id": principal.id,
        "X-User-Email": principal.email,
        "X-Role": principal.role.value,
    }


ADMIN_HEADERS = headers_for(ADMIN)
MANAGER_HEADERS = headers_for(MANAGER)
USER_HEADERS = headers_for(USER)


def make_leave_request(**overrides: Any) -> LeaveRequest:
    """Build an unsaved PENDING leave request with sensible defaults."""
    values: dict[str, Any] = {
        "user_id": USER.id,
        "employee_name": "Jane Doe",
        "manager_name": "Sam Boss",
        "leave_type": "Vacation",
        "shift_type": "Full Shift",
        "start_date": date(2025, 4, 1),
        "end_date": date(2025, 4, 3),
        "duration_days": 3,
        "reason": "Family trip",
        "submitted_at": T0,
        "created_at": T0,
    }
    values.update(overrides)
    return LeaveRequest(**values)
