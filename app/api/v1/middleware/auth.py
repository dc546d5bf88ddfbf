"""JWT Authentication Middleware for FastAPI.

This middleware verifies the JWT access token, from the Authorization
header or the access token cookie, and attaches the user to the request state.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import jwt

from app.core.auth import extract_token, user_from_claims
from app.core.jwt import jwt_verifier
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Paths that don't require authentication
EXCLUDED_PATHS = {
    "/",
    "/docs",
    "/docs/",
    "/redoc",
    "/openapi.json",
}


class JWTAuthenticationMiddleware(BaseHTTPMiddleware):
    """Middleware for JWT authentication.

    Verifies the access token and populates request.state.user.
    """

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return await call_next(request)

        if request.url.path in EXCLUDED_PATHS or request.url.path.startswith("/health"):
            return await call_next(request)

        token = extract_token(request)
        if not token:
            LOGGER.warning(f"Missing access token for {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Authorization header missing"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            claims = await jwt_verifier.verify_token(token)
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token for {request.url.path}: {e}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid authentication token"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user = user_from_claims(claims)
        LOGGER.debug(f"Authenticated user {claims.sub} via middleware")

        return await call_next(request)
