"""
FastAPI dependencies for authentication and authorization.

WHY: Dependencies provide reusable authentication and authorization logic
that can be injected into route handlers, ensuring role checks run before
any data access.
"""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import verify_token
from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
    TokenInvalidError,
)
from app.db.session import get_db
from app.models.user import User, UserRole
from app.dao.user import UserDAO


# HTTP Bearer token security scheme
# Format: "Authorization: Bearer <token>"
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user from JWT token.

    WHY: This dependency:
    1. Extracts token from Authorization header
    2. Verifies token signature and expiration
    3. Fetches user from database
    4. Ensures user still exists and is active

    Args:
        credentials: JWT token from Authorization header
        db: Database session

    Returns:
        Authenticated User instance

    Raises:
        AuthenticationError: If token is invalid, expired, or user not found
    """
    token = credentials.credentials

    try:
        payload = verify_token(token)
    except (TokenExpiredError, TokenInvalidError) as e:
        # WHY: Re-raise as AuthenticationError for consistent API responses
        raise AuthenticationError(
            message=str(e),
            status_code=e.status_code,
        )

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError(
            message="Invalid token: missing user_id",
        )

    # WHY: Role in the token might be stale; always fetch current data
    user = await UserDAO(db).get_by_id(user_id)

    if not user:
        raise AuthenticationError(
            message="User not found",
            user_id=user_id,
        )

    if not user.is_active:
        raise AuthenticationError(
            message="User account is inactive",
            user_id=user_id,
        )

    return user


def require_roles(*allowed_roles: UserRole):
    """
    Factory function to create a role requirement dependency.

    Usage:
        @router.post("/admin/markup-rules")
        async def create_rule(
            user: User = Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER)),
        ):
            ...

    Args:
        *allowed_roles: Roles permitted to call the endpoint

    Returns:
        Dependency function that checks the user's role
    """

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                message="Insufficient permissions",
                user_id=current_user.id,
                user_role=current_user.role.value,
                required_roles=[role.value for role in allowed_roles],
            )
        return current_user

    return role_checker


# Markup rules and product pricing are restricted to elevated roles
require_pricing_admin = require_roles(UserRole.ADMIN, UserRole.MANAGER)
