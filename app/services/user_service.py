"""User service for business logic operations.

Maps the authenticated token subject to a local user record and exposes
the caller identity the review services work with.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import User
from app.repositories.user_repository import UserRepository
from app.schemas.auth import CallerIdentity, CurrentUser, UserProfile
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def username_of(user: User) -> Optional[str]:
    return (user.user_metadata or {}).get("username")


class UserService:
    """Service for user business logic operations."""

    def __init__(self, db_session: AsyncSession):
        """Initialize service with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.repository = UserRepository(db_session)

    async def ensure_user_exists(self, current_user: CurrentUser) -> User:
        """Get or create the local user for the token claims.

        It ensures we have a local user record for every authenticated user.

        Args:
            current_user: Current user from JWT claims

        Returns:
            User database instance (existing or newly created)
        """
        return await self.repository.get_or_create_from_claims(
            auth_user_id=current_user.id,
            email=current_user.email,
            role=current_user.role,
            link_id=current_user.link_id,
            user_metadata=current_user.user_metadata,
        )

    async def resolve_caller(self, current_user: CurrentUser) -> CallerIdentity:
        """Resolve the caller's primary and linked identities."""
        user = await self.ensure_user_exists(current_user)
        caller = CallerIdentity(
            id=user.id,
            link_id=user.link_id,
            role=current_user.role,
            username=username_of(user),
        )
        LOGGER.debug(
            "Resolved caller identity",
            extra={"user_id": str(caller.id), "has_link_id": caller.link_id is not None},
        )
        return caller

    async def get_current_user_profile(self, current_user: CurrentUser) -> UserProfile:
        """Get profile for the currently authenticated user."""
        user = await self.ensure_user_exists(current_user)
        return UserProfile(
            id=user.id,
            auth_user_id=user.auth_user_id,
            email=user.email,
            username=username_of(user),
            role=user.role,
            link_id=user.link_id,
            created_at=user.created_at,
        )
