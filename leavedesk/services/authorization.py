"""Role policy for lifecycle actions.

The table is fixed in code; every transition consults it through
:func:`authorize` so route handlers never carry their own role checks.
"""

from __future__ import annotations

from leavedesk.models.enums import LifecycleAction, Role

ACTION_POLICY: dict[LifecycleAction, frozenset[Role]] = {
    LifecycleAction.APPROVE: frozenset({Role.MANAGER, Role.ADMIN}),
    LifecycleAction.DENY: frozenset({Role.MANAGER, Role.ADMIN}),
    LifecycleAction.ARCHIVE: frozenset({Role.ADMIN}),
    LifecycleAction.UNARCHIVE: frozenset({Role.ADMIN}),
    LifecycleAction.SOFT_DELETE: frozenset({Role.ADMIN}),
    LifecycleAction.RESTORE: frozenset({Role.ADMIN}),
}

# Stable ordering for messages and audit metadata.
_ROLE_ORDER = (Role.ADMIN, Role.MANAGER, Role.USER)


class UnknownActionError(LookupError):
    """Raised when an action has no entry in the policy table."""

    def __init__(self, action: object) -> None:
        self.action = action
        super().__init__(f"No authorization policy for action {action!r}")


def _allowed_roles(action: LifecycleAction | str) -> frozenset[Role]:
    try:
        return ACTION_POLICY[LifecycleAction(action)]
    except (ValueError, KeyError):
        raise UnknownActionError(action) from None


def required_roles(action: LifecycleAction | str) -> tuple[Role, ...]:
    """Return the roles allowed to perform ``action``."""
    allowed = _allowed_roles(action)
    return tuple(role for role in _ROLE_ORDER if role in allowed)


def authorize(action: LifecycleAction | str, role: Role | str) -> bool:
    """Return whether ``role`` may perform ``action``.

    Unknown actions raise :class:`UnknownActionError`; unknown roles are
    simply not allowed.
    """
    allowed = _allowed_roles(action)
    try:
        return Role(role) in allowed
    except ValueError:
        return False
