"""
Authentication dependencies for FastAPI.

Resolves the bearer token of a request into an AuthSession. The session is
rebuilt from the database on every request, so role changes and account
state take effect immediately regardless of what the token claims.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.core.jwt import decode_access_token
from fleetflow.app.core.redis_client import get_redis
from fleetflow.app.core.token_revocation import is_token_revoked
from fleetflow.app.db.session import get_db
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.user import User

# HTTP Bearer security scheme; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


@dataclass
class AuthSession:
    """The authenticated caller of the current request."""
    user_id: int
    email: str
    full_name: str
    role: UserRole
    token: str
    claims: Dict[str, Any] = field(default_factory=dict)

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
) -> AuthSession:
    """
    FastAPI dependency for JWT authentication.

    Checks, in order:
    1. A bearer token is present
    2. Signature and expiry are valid
    3. The token has not been revoked by logout
    4. The user still exists and is verified

    Raises:
        HTTPException: 401 for token problems, 403 for unverified accounts
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    token = credentials.credentials

    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if await is_token_revoked(redis, token):
        raise _unauthorized("Token has been revoked")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email first",
        )

    return AuthSession(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        token=token,
        claims=payload,
    )
