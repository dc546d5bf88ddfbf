"""Repositories for funding rounds and reviewer groups."""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database.models import FundingRound, ReviewerGroupMember, Topic
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class FundingRoundRepository(BaseRepository[FundingRound]):
    """Repository for FundingRound reads."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, FundingRound)

    async def get_with_topic_and_reviewer_groups(self, funding_round_id: UUID) -> Optional[FundingRound]:
        """Get a funding round with its topic, reviewer group links and phase records.

        Args:
            funding_round_id: Funding round ID

        Returns:
            FundingRound or None if not found
        """
        try:
            stmt = (
                select(FundingRound)
                .where(FundingRound.id == funding_round_id)
                .options(
                    selectinload(FundingRound.topic).selectinload(Topic.reviewer_groups),
                    selectinload(FundingRound.consideration_phase),
                    selectinload(FundingRound.deliberation_phase),
                    selectinload(FundingRound.voting_phase),
                )
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_database_error(f"retrieving funding round {funding_round_id}", e)


class ReviewerGroupRepository(BaseRepository[ReviewerGroupMember]):
    """Repository for reviewer group membership reads."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ReviewerGroupMember)

    async def get_members(self, reviewer_group_ids: Sequence[UUID]) -> List[ReviewerGroupMember]:
        """Get all members of the given reviewer groups.

        Args:
            reviewer_group_ids: Reviewer group IDs

        Returns:
            Membership rows (empty when no groups are given)
        """
        if not reviewer_group_ids:
            return []

        try:
            stmt = select(ReviewerGroupMember).where(
                ReviewerGroupMember.reviewer_group_id.in_(list(reviewer_group_ids))
            )
            result = await self.session.execute(stmt)
            members = list(result.scalars().all())
            LOGGER.debug(
                "Loaded reviewer group members",
                extra={"groups": len(reviewer_group_ids), "members": len(members)},
            )
            return members
        except SQLAlchemyError as e:
            self._raise_database_error("retrieving reviewer group members", e)
