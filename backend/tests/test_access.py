import uuid
import pytest

from hackcontrol.errors import Forbidden
from hackcontrol.models.user import User
from hackcontrol.models.hackathon import Hackathon
from hackcontrol.services.access import (
    Capability, allowed, require, is_admin, is_authenticated, is_organizer, is_owner,
)


def _user(role="USER", has_access=True):
    return User(id=uuid.uuid4(), username=f"u{uuid.uuid4().hex[:6]}", email="x@example.com", role=role, has_access=has_access)


def _hackathon(owner):
    return Hackathon(id=uuid.uuid4(), owner_id=owner.id, name="H", url="h")


def test_role_predicates():
    admin, org, user = _user("ADMIN"), _user("ORGANIZER"), _user()
    assert is_admin(admin) and not is_admin(org) and not is_admin(user)
    assert is_organizer(admin) and is_organizer(org) and not is_organizer(user)
    assert not is_authenticated(None)


def test_revoked_users_have_no_capabilities():
    revoked_admin = _user("ADMIN", has_access=False)
    h = _hackathon(revoked_admin)
    assert not is_authenticated(revoked_admin)
    assert not is_admin(revoked_admin)
    assert not is_owner(revoked_admin, h)


def test_owner_predicate():
    owner, other = _user("ORGANIZER"), _user("ORGANIZER")
    h = _hackathon(owner)
    assert is_owner(owner, h)
    assert not is_owner(other, h)


@pytest.mark.asyncio
async def test_require_without_session_lookup():
    # ADMIN / CREATE_HACKATHON / MANAGE_HACKATHON never hit the database
    owner, admin, user = _user("ORGANIZER"), _user("ADMIN"), _user()
    h = _hackathon(owner)
    assert await allowed(None, Capability.MANAGE_HACKATHON, owner, h)
    assert await allowed(None, Capability.MANAGE_HACKATHON, admin, h)
    assert not await allowed(None, Capability.MANAGE_HACKATHON, user, h)
    assert await allowed(None, Capability.CREATE_HACKATHON, owner)
    with pytest.raises(Forbidden):
        await require(None, Capability.CREATE_HACKATHON, user)
    with pytest.raises(Forbidden):
        await require(None, Capability.ADMIN, owner)


@pytest.mark.asyncio
async def test_hackathon_scoped_capability_needs_hackathon():
    with pytest.raises(ValueError):
        await allowed(None, Capability.MANAGE_HACKATHON, _user("ADMIN"))
