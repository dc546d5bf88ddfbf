"""Repository for user data access operations.

This module provides data access operations for user management,
following the repository pattern for clean separation of concerns.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import User
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__(session, User)

    async def get_by_auth_user_id(self, auth_user_id: str) -> Optional[User]:
        """Get user by the subject of their identity token.

        Args:
            auth_user_id: Token subject

        Returns:
            User instance or None if not found
        """
        try:
            stmt = select(User).where(User.auth_user_id == auth_user_id)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_database_error(f"retrieving user {auth_user_id}", e)

    async def get_or_create_from_claims(
        self,
        auth_user_id: str,
        email: Optional[str] = None,
        role: str = "user",
        link_id: Optional[UUID] = None,
        user_metadata: Optional[Dict[str, Any]] = None,
    ) -> User:
        """Get existing user or create a new one from token claims.

        Identity fields that changed upstream (email, link, profile
        metadata) are refreshed on the stored record.

        Args:
            auth_user_id: Token subject
            email: User email
            role: User role (defaults to "user")
            link_id: Linked secondary identity, if the token carries one
            user_metadata: Profile metadata (holds the display ``username``)

        Returns:
            User instance (existing or newly created)
        """
        user = await self.get_by_auth_user_id(auth_user_id)

        try:
            if user:
                needs_update = (
                    (email is not None and user.email != email)
                    or (link_id is not None and user.link_id != link_id)
                    or (user_metadata is not None and user.user_metadata != user_metadata)
                )
                if needs_update:
                    if email is not None:
                        user.email = email
                    if link_id is not None:
                        user.link_id = link_id
                    if user_metadata is not None:
                        user.user_metadata = user_metadata
                    await self.session.commit()
                    LOGGER.info(f"Updated existing user from token claims: {user.id}")
                return user

            user = User(
                auth_user_id=auth_user_id,
                email=email,
                role=role,
                link_id=link_id,
                user_metadata=user_metadata or {},
            )
            self.session.add(user)
            try:
                await self.session.commit()
            except IntegrityError:
                # A concurrent first request created the same subject
                await self.session.rollback()
                existing = await self.get_by_auth_user_id(auth_user_id)
                if existing is None:
                    raise
                LOGGER.info(f"User {auth_user_id} was created concurrently, using stored record")
                return existing
            await self.session.refresh(user)

            LOGGER.info(f"Created new user from token claims: {user.id}")
            return user
        except SQLAlchemyError as e:
            await self._rollback_and_raise(f"syncing user {auth_user_id}", e)
