"""
Role-based access guards.

Roles come from the AuthSession, which is loaded from the database; the
client's idea of its own role is never consulted.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from fleetflow.app.models.enums import UserRole
from fleetflow.app.core.dependencies import AuthSession, get_current_user


ALL_ROLES = list(UserRole)

# Trip creation, dispatch, completion and cancellation
TRIP_OPERATORS = [UserRole.MANAGER, UserRole.DISPATCHER]
TRIP_VIEWERS = [UserRole.MANAGER, UserRole.DISPATCHER, UserRole.ANALYST]

FLEET_MANAGERS = [UserRole.MANAGER]
DRIVER_MANAGERS = [UserRole.MANAGER, UserRole.SAFETY_OFFICER]

# Maintenance, expenses and financial reports
FINANCE_VIEWERS = [UserRole.MANAGER, UserRole.ANALYST]


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/trips/{trip_id}/dispatch")
        async def dispatch(session: AuthSession = Depends(require_role(TRIP_OPERATORS))):
            ...

    Raises:
        HTTPException 403 if the caller's role is not in allowed_roles
    """
    async def role_checker(current_user: AuthSession = Depends(get_current_user)) -> AuthSession:
        if not current_user.has_role(*allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker
