"""
Tests for the identity resolver.
"""

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ValidationError
from app.models.user import User
from app.services.identity_service import get_user_by_identifier, resolve_user, validate_identifier


@pytest.mark.asyncio
async def test_resolve_creates_user_once(db_session):
    first = await resolve_user(db_session, "ab12")
    await db_session.commit()
    second = await resolve_user(db_session, "ab12")

    assert first.id == second.id
    assert first.username == "ab12"
    assert first.identifier == "ab12"
    assert first.password  # placeholder credential
    count = (await db_session.execute(select(func.count()).select_from(User))).scalar()
    assert count == 1


@pytest.mark.asyncio
async def test_resolve_is_rolled_back_with_the_unit_of_work(db_session):
    await resolve_user(db_session, "ab12")
    await db_session.rollback()

    assert await get_user_by_identifier(db_session, "ab12") is None


@pytest.mark.asyncio
async def test_placeholder_credentials_differ(db_session):
    a = await resolve_user(db_session, "ab12")
    b = await resolve_user(db_session, "zz99")
    assert a.password != b.password


def test_validate_identifier():
    assert validate_identifier("  ab12 ") == "ab12"
    with pytest.raises(ValidationError):
        validate_identifier("a")
    with pytest.raises(ValidationError):
        validate_identifier("a" * 21)
    with pytest.raises(ValidationError):
        validate_identifier(None)
