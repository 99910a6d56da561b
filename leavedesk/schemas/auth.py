from __future__ import annotations

from pydantic import BaseModel, Field

from leavedesk.models.enums import Role


class Principal(BaseModel):
    """Authenticated actor supplied by the auth layer."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    role: Role = Role.USER
