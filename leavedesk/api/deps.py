# ruff: noqa: B008
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header, Request, status

from leavedesk.db import SessionDep
from leavedesk.exceptions import AppError
from leavedesk.schemas.auth import Principal
from leavedesk.services.audit import AuditRecorder
from leavedesk.services.store import LeaveRequestStore, SqlLeaveRequestStore

logger = logging.getLogger(__name__)


async def get_store(session: SessionDep) -> LeaveRequestStore:
    """Leave request store bound to the request's database session."""
    return SqlLeaveRequestStore(session)


StoreDep = Annotated[LeaveRequestStore, Depends(get_store)]


async def get_principal(
    request: Request,
    store: StoreDep,
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_role: str | None = Header(default=None),
) -> Principal:
    """Resolve the authenticated principal from the auth proxy headers."""
    try:
        if not x_user_id or not x_user_email or not x_role:
            msg = "missing identity headers"
            raise ValueError(msg)
        return Principal(id=x_user_id, email=x_user_email, role=x_role.upper())
    except ValueError:
        logger.info("Rejected unauthenticated %s %s", request.method, request.url.path)
        await AuditRecorder(store).record_unauthorized(None, f"{request.method} {request.url.path}")
        raise AppError("Authentication required", status_code=status.HTTP_401_UNAUTHORIZED) from None


PrincipalDep = Annotated[Principal, Depends(get_principal)]
