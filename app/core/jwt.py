"""JWT verification utilities.

This module provides JWT decoding and verification of HS256 access
tokens issued by the identity provider, using the PyJWT library.
"""

import time
from typing import Any, Dict, Optional
from uuid import UUID

import jwt

from app.core.config import settings
from app.schemas.auth import JWTClaims
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWTVerifier:
    """JWT verifier for identity provider access tokens.

    This class handles:
    - JWT decoding with signature verification
    - Claims validation (exp, iss, aud)
    - Extraction of the linked identity claim
    """

    def __init__(
        self,
        jwt_secret: str,
        issuer: str,
        audience: str = "authenticated",
        link_id_claim: str = "link_id",
    ):
        """Initialize JWT verifier.

        Args:
            jwt_secret: Shared secret for HS256 verification
            issuer: Expected ``iss`` claim
            audience: Expected ``aud`` claim
            link_id_claim: Claim holding the linked secondary identity
        """
        self.jwt_secret = jwt_secret
        self.expected_issuer = issuer
        self.audience = audience
        self.link_id_claim = link_id_claim

        LOGGER.info(f"JWT verifier initialized for issuer: {self.expected_issuer}")

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode an access token.

        Args:
            token: JWT access token from the Authorization header or cookie

        Returns:
            Decoded and validated JWT claims

        Raises:
            jwt.InvalidTokenError: If token is invalid or expired
        """
        if not self.jwt_secret:
            LOGGER.error("Token received but AUTH_JWT_SECRET is not configured")
            raise jwt.InvalidTokenError("Token verification is not configured")

        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.audience,
                issuer=self.expected_issuer,
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "require": ["sub", "exp", "iat", "iss"],
                },
            )
            claims = JWTClaims(**payload)

            LOGGER.debug(f"Successfully verified token for user: {claims.sub}")
            return claims

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidSignatureError as e:
            LOGGER.warning(f"Invalid signature: {e}")
            raise jwt.InvalidTokenError("Invalid token signature") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise
        except ValueError as e:
            # Claims that decode but do not fit JWTClaims
            LOGGER.warning(f"Malformed token claims: {e}")
            raise jwt.InvalidTokenError("Malformed token claims") from e

    def extract_link_id(self, claims: JWTClaims) -> Optional[UUID]:
        """Read the linked identity from the top level or ``app_metadata``."""
        extra: Dict[str, Any] = claims.model_extra or {}
        raw = extra.get(self.link_id_claim)
        if raw is None and claims.app_metadata:
            raw = claims.app_metadata.get(self.link_id_claim)
        if raw is None:
            return None

        try:
            return UUID(str(raw))
        except ValueError:
            LOGGER.warning(f"Ignoring malformed {self.link_id_claim} claim for user: {claims.sub}")
            return None

    def is_token_expired(self, claims: JWTClaims) -> bool:
        """Check if token claims indicate expiration."""
        return claims.exp < int(time.time())


# Global JWT verifier instance
jwt_verifier = JWTVerifier(
    jwt_secret=settings.auth.jwt_secret,
    issuer=settings.auth.jwt_issuer,
    audience=settings.auth.jwt_audience,
    link_id_claim=settings.auth.link_id_claim,
)
