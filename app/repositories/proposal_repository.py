"""Repository for managing Proposal persistence."""

from typing import Any, List, Optional, Sequence, Tuple, Type
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import func

from app.database.models import ConsiderationVote, DeliberationVote, FundingRound, Proposal, Topic
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProposalRepository(BaseRepository[Proposal]):
    """Repository for Proposal database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Proposal)

    async def get_with_funding_round(self, proposal_id: int) -> Optional[Proposal]:
        """Get a proposal with its submitter, funding round phase records and reviewer group links."""
        try:
            stmt = (
                select(Proposal)
                .where(Proposal.id == proposal_id)
                .options(
                    selectinload(Proposal.user),
                    selectinload(Proposal.funding_round).selectinload(FundingRound.consideration_phase),
                    selectinload(Proposal.funding_round).selectinload(FundingRound.deliberation_phase),
                    selectinload(Proposal.funding_round).selectinload(FundingRound.voting_phase),
                    selectinload(Proposal.funding_round)
                    .selectinload(FundingRound.topic)
                    .selectinload(Topic.reviewer_groups),
                )
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_database_error(f"retrieving proposal {proposal_id}", e)

    async def find_with_consideration_vote(
        self,
        funding_round_id: UUID,
        statuses: Sequence[str],
        voter_id: UUID,
    ) -> List[Tuple[Proposal, Optional[ConsiderationVote]]]:
        """Proposals of a round in the given statuses, each with the voter's own consideration vote."""
        return await self._find_with_vote(ConsiderationVote, funding_round_id, statuses, voter_id)

    async def find_with_deliberation_vote(
        self,
        funding_round_id: UUID,
        statuses: Sequence[str],
        voter_id: UUID,
    ) -> List[Tuple[Proposal, Optional[DeliberationVote]]]:
        """Proposals of a round in the given statuses, each with the voter's own deliberation vote."""
        return await self._find_with_vote(DeliberationVote, funding_round_id, statuses, voter_id)

    async def _find_with_vote(
        self,
        vote_model: Type[Any],
        funding_round_id: UUID,
        statuses: Sequence[str],
        voter_id: UUID,
    ) -> List[Tuple[Proposal, Any]]:
        # The voter filter sits in the join condition so unvoted proposals survive the outer join.
        try:
            stmt = (
                select(Proposal, vote_model)
                .outerjoin(
                    vote_model,
                    and_(vote_model.proposal_id == Proposal.id, vote_model.voter_id == voter_id),
                )
                .where(
                    Proposal.funding_round_id == funding_round_id,
                    Proposal.status.in_(list(statuses)),
                )
                .options(selectinload(Proposal.user))
                .order_by(Proposal.created_at, Proposal.id)
            )
            result = await self.session.execute(stmt)
            rows = [(row[0], row[1]) for row in result.all()]
            LOGGER.debug(
                "Loaded proposals with caller votes",
                extra={
                    "funding_round_id": str(funding_round_id),
                    "statuses": list(statuses),
                    "count": len(rows),
                },
            )
            return rows
        except SQLAlchemyError as e:
            self._raise_database_error(f"retrieving proposals for funding round {funding_round_id}", e)

    async def transition_status(self, proposal_id: int, from_status: str, to_status: str) -> bool:
        """Move a proposal between statuses if it is still in ``from_status``.

        The update is conditional on the current status, so a concurrent
        transition makes this one a no-op instead of overwriting it.

        Returns:
            True if the row was updated, False if its status had already changed
        """
        try:
            stmt = (
                update(Proposal)
                .where(Proposal.id == proposal_id, Proposal.status == from_status)
                .values(status=to_status, updated_at=func.now())
            )
            result = await self.session.execute(stmt)
            await self.session.commit()
            updated = result.rowcount == 1
            LOGGER.info(
                "Proposal status transition",
                extra={
                    "proposal_id": proposal_id,
                    "from_status": from_status,
                    "to_status": to_status,
                    "applied": updated,
                },
            )
            return updated
        except SQLAlchemyError as e:
            await self._rollback_and_raise(f"transitioning proposal {proposal_id}", e)
