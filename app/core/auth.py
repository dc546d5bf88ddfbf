"""Authentication dependencies for FastAPI routes.

This module provides FastAPI dependency injection functions for
JWT token verification and role checks.
"""

from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings
from app.core.jwt import jwt_verifier
from app.schemas.auth import CurrentUser, JWTClaims
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the access token cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.auth.access_token_cookie)


def user_from_claims(claims: JWTClaims) -> CurrentUser:
    """Convert verified claims to the CurrentUser carried on the request."""
    return CurrentUser(
        id=claims.sub,
        email=claims.email,
        role=(claims.app_metadata or {}).get("role") or claims.role or "user",
        link_id=jwt_verifier.extract_link_id(claims),
        app_metadata=claims.app_metadata,
        user_metadata=claims.user_metadata,
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Get the current authenticated user.

    Uses the user the authentication middleware attached to the request,
    and otherwise verifies the Bearer token or access token cookie.

    Raises:
        HTTPException: If token is missing, invalid, or expired
    """
    user = getattr(request.state, "user", None)
    if isinstance(user, CurrentUser):
        return user

    token = credentials.credentials if credentials else request.cookies.get(settings.auth.access_token_cookie)
    if not token:
        LOGGER.warning("No authorization credentials provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = await jwt_verifier.verify_token(token)
    except jwt.InvalidTokenError as e:
        LOGGER.warning(f"Invalid token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user = user_from_claims(claims)
    LOGGER.debug(f"Authenticated user: {user.id}")
    return user


def require_role(required_role: str):
    """Create a dependency that requires a specific user role.

    Example:
        admin_only = require_role("admin")

        @router.post("/admin")
        async def admin_route(user: CurrentUser = Depends(admin_only)):
            ...
    """
    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role != required_role:
            LOGGER.warning(
                f"Access denied for user {user.id}: insufficient role '{user.role}', required '{required_role}'"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required role: {required_role}",
            )
        return user

    return role_checker


require_admin = require_role("admin")
