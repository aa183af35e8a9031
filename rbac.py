"""Access gate for API routes.

Every route declares the session it needs through ``Depends(with_role(...))``.
The dependency resolves the session, rejects the request with 401 when there
is none and with 403 when the role is not allowed, and otherwise hands the
resolved :class:`~schemas.Identity` to the route as a regular parameter.
"""
from typing import Iterable, Optional

from fastapi import Depends, HTTPException, status

from common.enum import RoleEnum
from schemas import Identity
from security import resolve_session


def authorize(session: Optional[Identity], allowed_roles: Optional[Iterable[str]] = None) -> Identity:
    """Check a resolved session against an optional role allow-list.

    An empty or missing allow-list admits any authenticated identity. A
    session without a role is treated as ``USER``.
    """
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    role = session.role or RoleEnum.USER
    allowed = list(allowed_roles or [])
    if allowed and role not in allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden"
        )

    return session


def with_role(*allowed_roles: str):
    """Build a dependency that admits only sessions holding one of ``allowed_roles``"""

    async def gate(session: Optional[Identity] = Depends(resolve_session)) -> Identity:
        return authorize(session, allowed_roles)

    return gate


require_session = with_role()
require_admin = with_role(RoleEnum.ADMIN)
