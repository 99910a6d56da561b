from __future__ import annotations

import pytest

from leavedesk.models.enums import LifecycleAction, Role
from leavedesk.services.authorization import ACTION_POLICY, UnknownActionError, authorize, required_roles

ADMIN_ONLY = [
    LifecycleAction.ARCHIVE,
    LifecycleAction.UNARCHIVE,
    LifecycleAction.SOFT_DELETE,
    LifecycleAction.RESTORE,
]
DECISIONS = [LifecycleAction.APPROVE, LifecycleAction.DENY]


def test_every_action_has_a_policy() -> None:
    assert set(ACTION_POLICY) == set(LifecycleAction)


@pytest.mark.parametrize("action", DECISIONS)
def test_decisions_allow_manager_and_admin(action: LifecycleAction) -> None:
    assert authorize(action, Role.ADMIN)
    assert authorize(action, Role.MANAGER)
    assert not authorize(action, Role.USER)
    assert required_roles(action) == (Role.ADMIN, Role.MANAGER)


@pytest.mark.parametrize("action", ADMIN_ONLY)
def test_admin_only_actions(action: LifecycleAction) -> None:
    assert authorize(action, Role.ADMIN)
    assert not authorize(action, Role.MANAGER)
    assert not authorize(action, Role.USER)
    assert required_roles(action) == (Role.ADMIN,)


def test_accepts_plain_strings() -> None:
    assert authorize("soft-delete", "ADMIN")
    assert not authorize("approve", "USER")


def test_unknown_role_is_denied() -> None:
    assert not authorize(LifecycleAction.APPROVE, "SUPERUSER")


def test_unknown_action_raises() -> None:
    with pytest.raises(UnknownActionError):
        authorize("purge", Role.ADMIN)
    with pytest.raises(UnknownActionError):
        required_roles("purge")
