"""
Shared route dependencies: the resolved caller and the admin gate.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import AuthorizationError
from ticket_manager.core.security import Principal, get_current_principal
from ticket_manager.db.session import get_db
from ticket_manager.models.user import User
from ticket_manager.services.identity_service import resolve_user


async def get_current_user(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await resolve_user(db, principal)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AuthorizationError()
    return user
