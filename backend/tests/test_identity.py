"""
Tests for token verification and user resolution.
"""

from datetime import timedelta

import pytest

from ticket_manager.core.exceptions import AuthenticationError
from ticket_manager.core.security import Principal, create_access_token, decode_token
from ticket_manager.models.user import ROLE_ADMIN, ROLE_MEMBER
from ticket_manager.services import identity_service


def test_token_round_trip_carries_namespaced_claims():
    token = create_access_token("auth0|abc", email="a@example.com", name="Ann", roles=["admin"])
    principal = decode_token(token)
    assert principal == Principal(sub="auth0|abc", email="a@example.com", name="Ann", roles=["admin"])


def test_expired_token_rejected():
    token = create_access_token("auth0|abc", expires_delta=timedelta(minutes=-1))
    with pytest.raises(AuthenticationError):
        decode_token(token)


def test_tampered_token_rejected():
    token = create_access_token("auth0|abc")
    with pytest.raises(AuthenticationError):
        decode_token(token[:-4] + "AAAA")


@pytest.mark.asyncio
async def test_first_login_creates_member(db_session):
    user = await identity_service.resolve_user(db_session, Principal(sub="auth0|new"))
    assert user.id is not None
    assert user.role == ROLE_MEMBER
    assert user.email == "unknown@example.com"
    assert user.name == "Unknown"


@pytest.mark.asyncio
async def test_login_refreshes_profile_without_duplicates(db_session):
    first = await identity_service.resolve_user(
        db_session, Principal(sub="auth0|p", email="old@example.com", name="Old")
    )
    second = await identity_service.resolve_user(
        db_session, Principal(sub="auth0|p", email="new@example.com", name="New")
    )
    assert second.id == first.id
    assert (second.email, second.name) == ("new@example.com", "New")
    assert len(await identity_service.list_users(db_session)) == 1


@pytest.mark.asyncio
async def test_admin_role_claim_grants_admin(db_session):
    user = await identity_service.resolve_user(
        db_session, Principal(sub="auth0|boss", roles=[ROLE_ADMIN])
    )
    assert user.is_admin


@pytest.mark.asyncio
async def test_admin_is_never_downgraded_by_login(db_session):
    await identity_service.resolve_user(db_session, Principal(sub="auth0|boss", roles=[ROLE_ADMIN]))
    again = await identity_service.resolve_user(db_session, Principal(sub="auth0|boss"))
    assert again.role == ROLE_ADMIN


@pytest.mark.asyncio
async def test_configured_admin_email(db_session, monkeypatch):
    monkeypatch.setattr(identity_service.settings, "ADMIN_EMAILS", ["owner@example.com"])
    owner = await identity_service.resolve_user(
        db_session, Principal(sub="auth0|owner", email="owner@example.com")
    )
    guest = await identity_service.resolve_user(
        db_session, Principal(sub="auth0|guest", email="guest@example.com")
    )
    assert owner.role == ROLE_ADMIN
    assert guest.role == ROLE_MEMBER


@pytest.mark.asyncio
async def test_first_user_is_not_automatically_admin(db_session):
    first = await identity_service.resolve_user(db_session, Principal(sub="auth0|first"))
    assert first.role == ROLE_MEMBER


@pytest.mark.asyncio
async def test_grant_admin(db_session, member):
    assert await identity_service.grant_admin(db_session, member.external_sub) is True
    assert await identity_service.grant_admin(db_session, "auth0|nobody") is False

    user = await identity_service.get_user(db_session, member.id)
    assert user.role == ROLE_ADMIN


def test_single_role_string_claim_kept_whole():
    token = create_access_token("auth0|solo", roles="admin")
    assert decode_token(token).roles == ["admin"]
