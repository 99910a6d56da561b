"""Unit tests for leave request payloads and the principal schema."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from leavedesk.models.enums import LeaveType, Role, ShiftType
from leavedesk.schemas.auth import Principal
from leavedesk.schemas.leave_request import SubmitLeaveRequestPayload, TransitionPayload


def _payload(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "employee_name": "Jane Doe",
        "manager_name": "Sam Boss",
        "leave_type": "Sick Leave",
        "shift_type": "First-Half",
        "start_date": "2025-04-01",
        "end_date": "2025-04-02",
        "duration_days": 2,
        "reason": "Flu",
    }
    data.update(overrides)
    return data


def test_submit_payload_valid() -> None:
    payload = SubmitLeaveRequestPayload.model_validate(_payload())
    assert payload.leave_type == LeaveType.SICK_LEAVE
    assert payload.shift_type == ShiftType.FIRST_HALF
    assert payload.start_date == date(2025, 4, 1)
    assert payload.form_response_id is None


def test_submit_payload_rejects_end_before_start() -> None:
    with pytest.raises(ValidationError, match="end_date must not be before start_date"):
        SubmitLeaveRequestPayload.model_validate(_payload(start_date="2025-04-05", end_date="2025-04-01"))


@pytest.mark.parametrize("duration", [0, -1])
def test_submit_payload_rejects_non_positive_duration(duration: int) -> None:
    with pytest.raises(ValidationError):
        SubmitLeaveRequestPayload.model_validate(_payload(duration_days=duration))


def test_submit_payload_rejects_unknown_leave_type() -> None:
    with pytest.raises(ValidationError):
        SubmitLeaveRequestPayload.model_validate(_payload(leave_type="Sabbatical"))


def test_transition_payload_drops_identity_fields() -> None:
    payload = TransitionPayload.model_validate(
        {"admin_notes": "ok", "deniedBy": "mallory", "restored_by": "mallory", "approvedBy": "mallory"}
    )
    assert payload.admin_notes == "ok"
    assert "mallory" not in payload.model_dump_json()


def test_transition_payload_limits_length() -> None:
    with pytest.raises(ValidationError):
        TransitionPayload(reason="x" * 1001)


def test_principal_defaults_to_user_role() -> None:
    principal = Principal(id="u1", email="u1@x")
    assert principal.role == Role.USER


def test_principal_rejects_unknown_role() -> None:
    with pytest.raises(ValidationError):
        Principal(id="u1", email="u1@x", role="SUPERUSER")


def test_principal_is_immutable() -> None:
    principal = Principal(id="u1", email="u1@x", role="ADMIN")
    with pytest.raises(ValidationError):
        principal.role = Role.USER  # ty: ignore[invalid-assignment]
