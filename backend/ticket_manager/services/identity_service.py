"""
Identity resolver: maps an authenticated principal to a local user record.

Roles are assigned explicitly. A user is an admin when the token carries the
admin role, or when the subject or email is listed in ADMIN_SUBJECTS /
ADMIN_EMAILS, or after an operator runs `ticket-manager grant-admin`. Logging
in never downgrades an admin, and nothing a member sends can raise a role.
"""

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import storage_guard
from ticket_manager.core.logging import get_logger
from ticket_manager.core.security import Principal
from ticket_manager.db.session import upsert_insert
from ticket_manager.models.user import User, ROLE_ADMIN, ROLE_MEMBER

logger = get_logger(__name__)
settings = get_settings()


def granted_role(principal: Principal) -> str:
    if ROLE_ADMIN in principal.roles:
        return ROLE_ADMIN
    if principal.sub in settings.ADMIN_SUBJECTS:
        return ROLE_ADMIN
    if principal.email and principal.email in settings.ADMIN_EMAILS:
        return ROLE_ADMIN
    return ROLE_MEMBER


@storage_guard
async def resolve_user(db: AsyncSession, principal: Principal) -> User:
    """Insert or refresh the caller's user row in one upsert, then load it."""
    role = granted_role(principal)
    email = principal.email or "unknown@example.com"
    name = principal.name or "Unknown"

    stmt = upsert_insert(db, User).values(
        external_sub=principal.sub, email=email, name=name, role=role
    )
    refreshed = {"email": stmt.excluded.email, "name": stmt.excluded.name, "updated_at": func.now()}
    if role == ROLE_ADMIN:
        refreshed["role"] = ROLE_ADMIN
    await db.execute(
        stmt.on_conflict_do_update(index_elements=[User.external_sub], set_=refreshed)
    )

    result = await db.execute(
        select(User)
        .where(User.external_sub == principal.sub)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@storage_guard
async def grant_admin(db: AsyncSession, external_sub: str) -> bool:
    """Explicit admin seeding for an existing user."""
    result = await db.execute(
        update(User).where(User.external_sub == external_sub).values(role=ROLE_ADMIN)
    )
    if result.rowcount == 1:
        logger.info("admin_granted", external_sub=external_sub)
        return True
    return False


@storage_guard
async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)


@storage_guard
async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.name, User.id))
    return list(result.scalars().all())
