from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import IntIdBase, TimestampMixin


class LeaveApproval(IntIdBase, TimestampMixin, table=True):
    """A single approve or deny decision taken on a leave request."""

    __tablename__ = "leave_approval"

    request_id: int = Field(
        sa_column=sa.Column(
            sa.Integer, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    action: str = Field(max_length=20)
    approved_by: str = Field(max_length=255)
    admin_notes: str | None = None
