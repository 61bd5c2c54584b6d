"""
Identity resolver: maps an external identifier to a User row.

There is no login. The first reservation made with an identifier creates
its user; afterwards the identifier always resolves to that same row.
Creation is an INSERT .. ON CONFLICT DO NOTHING followed by a SELECT, so two
concurrent first reservations for one identifier converge on one user
instead of racing a check-then-create.
"""

import secrets
from typing import Optional

from sqlalchemy import select, insert as generic_insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, IDENTIFIER_MIN_LENGTH, IDENTIFIER_MAX_LENGTH
from app.core.exceptions import StorageFailure, ValidationError
from app.core.logging import get_logger

logger = get_logger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def validate_identifier(identifier: str) -> str:
    """Return the normalized identifier or raise ValidationError."""
    if not isinstance(identifier, str):
        raise ValidationError("Identifier must be a string", field="identifier")
    normalized = identifier.strip()
    if not IDENTIFIER_MIN_LENGTH <= len(normalized) <= IDENTIFIER_MAX_LENGTH:
        raise ValidationError(
            f"Identifier must be between {IDENTIFIER_MIN_LENGTH} and "
            f"{IDENTIFIER_MAX_LENGTH} characters",
            field="identifier",
        )
    return normalized


async def get_user_by_identifier(db: AsyncSession, identifier: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.identifier == identifier))
    return result.scalar_one_or_none()


async def resolve_user(db: AsyncSession, identifier: str) -> User:
    """
    Return the user for ``identifier``, creating it on first use.

    Does not commit: the caller's unit of work decides whether the new user
    is kept. A reservation that fails later rolls the user back with it.
    """
    user = await get_user_by_identifier(db, identifier)
    if user:
        return user

    values = {
        "username": identifier,
        "password": secrets.token_urlsafe(16),
        "identifier": identifier,
    }
    insert_fn = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
    if insert_fn is not None:
        stmt = insert_fn(User).values(**values).on_conflict_do_nothing(index_elements=["identifier"])
    else:
        stmt = generic_insert(User).values(**values)

    result = await db.execute(stmt)
    if result.rowcount:
        logger.info("user_created", identifier=identifier)

    user = await get_user_by_identifier(db, identifier)
    if user is None:
        # Only possible if the row vanished between insert and select
        raise StorageFailure(f"User {identifier!r} could not be resolved")
    return user
