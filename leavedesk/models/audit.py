from __future__ import annotations

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import IntIdBase, now_utc


class AuditLog(IntIdBase, table=True):
    """Append-only record of one guarded action attempt and its outcome."""

    __tablename__ = "audit_log"
    __table_args__ = (sa.Index("ix_audit_entity", "entity_type", "entity_id"),)

    user_id: str | None = Field(default=None, max_length=255)
    entity_type: str = Field(max_length=50)
    entity_id: int = 0
    action: str = Field(max_length=50)
    performed_by: str = Field(max_length=255)
    status: str = Field(max_length=20)
    reason: str | None = None
    metadata_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = Field(
        default_factory=now_utc,
        index=True,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
