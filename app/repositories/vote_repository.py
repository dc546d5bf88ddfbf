"""Repositories for consideration and deliberation votes.

Writes are single-statement upserts keyed by ``(proposal_id, voter_id)``:
re-voting replaces the voter's row and concurrent submissions from the
same voter resolve to the last write. Counts are grouped aggregates read
in one statement so a listing sees a single snapshot.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import ConsiderationVote, DeliberationVote, User
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ConsiderationVoteRepository(BaseRepository[ConsiderationVote]):
    """Repository for ConsiderationVote operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ConsiderationVote)

    async def upsert(
        self,
        proposal_id: int,
        voter_id: UUID,
        decision: str,
        feedback: str,
    ) -> ConsiderationVote:
        """Insert or replace the voter's consideration vote on a proposal."""
        try:
            stmt = (
                self._insert()
                .values(
                    proposal_id=proposal_id,
                    voter_id=voter_id,
                    decision=decision,
                    feedback=feedback,
                )
                .on_conflict_do_update(
                    index_elements=["proposal_id", "voter_id"],
                    set_={
                        "decision": decision,
                        "feedback": feedback,
                        "updated_at": func.now(),
                    },
                )
                .returning(ConsiderationVote)
            )
            result = await self.session.execute(
                stmt, execution_options={"populate_existing": True}
            )
            vote = result.scalar_one()
            await self.session.commit()

            LOGGER.info(
                "Recorded consideration vote",
                extra={"proposal_id": proposal_id, "voter_id": str(voter_id), "decision": decision},
            )
            return vote
        except SQLAlchemyError as e:
            await self._rollback_and_raise(f"recording consideration vote on proposal {proposal_id}", e)

    async def count_by_decision(self, proposal_id: int) -> Dict[str, int]:
        """Count votes on one proposal grouped by decision."""
        counts = await self.count_by_decision_for_proposals([proposal_id])
        return counts.get(proposal_id, {})

    async def count_by_decision_for_proposals(
        self, proposal_ids: Sequence[int]
    ) -> Dict[int, Dict[str, int]]:
        """Count votes grouped by proposal and decision.

        Proposals without votes are absent from the result.
        """
        if not proposal_ids:
            return {}

        try:
            stmt = (
                select(
                    ConsiderationVote.proposal_id,
                    ConsiderationVote.decision,
                    func.count(ConsiderationVote.id).label("count"),
                )
                .where(ConsiderationVote.proposal_id.in_(list(proposal_ids)))
                .group_by(ConsiderationVote.proposal_id, ConsiderationVote.decision)
            )
            result = await self.session.execute(stmt)

            counts: Dict[int, Dict[str, int]] = defaultdict(dict)
            for row in result:
                counts[row.proposal_id][row.decision] = row.count
            return dict(counts)
        except SQLAlchemyError as e:
            self._raise_database_error("counting consideration votes", e)


class DeliberationVoteRepository(BaseRepository[DeliberationVote]):
    """Repository for DeliberationVote operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DeliberationVote)

    async def upsert(
        self,
        proposal_id: int,
        voter_id: UUID,
        feedback: str,
        recommendation: Optional[bool],
        is_reviewer_vote: bool,
    ) -> DeliberationVote:
        """Insert or replace the voter's deliberation vote on a proposal.

        For reviewers this is also the merge of their entry in the public
        reviewer-comment list: one row per reviewer, last write wins.
        """
        try:
            stmt = (
                self._insert()
                .values(
                    proposal_id=proposal_id,
                    voter_id=voter_id,
                    feedback=feedback,
                    recommendation=recommendation,
                    is_reviewer_vote=is_reviewer_vote,
                )
                .on_conflict_do_update(
                    index_elements=["proposal_id", "voter_id"],
                    set_={
                        "feedback": feedback,
                        "recommendation": recommendation,
                        "is_reviewer_vote": is_reviewer_vote,
                        "updated_at": func.now(),
                    },
                )
                .returning(DeliberationVote)
            )
            result = await self.session.execute(
                stmt, execution_options={"populate_existing": True}
            )
            vote = result.scalar_one()
            await self.session.commit()

            LOGGER.info(
                "Recorded deliberation vote",
                extra={
                    "proposal_id": proposal_id,
                    "voter_id": str(voter_id),
                    "is_reviewer_vote": is_reviewer_vote,
                },
            )
            return vote
        except SQLAlchemyError as e:
            await self._rollback_and_raise(f"recording deliberation vote on proposal {proposal_id}", e)

    async def count_by_recommendation(self, proposal_id: int) -> Dict[bool, int]:
        """Count reviewer recommendations on one proposal."""
        counts = await self.count_by_recommendation_for_proposals([proposal_id])
        return counts.get(proposal_id, {})

    async def count_by_recommendation_for_proposals(
        self, proposal_ids: Sequence[int]
    ) -> Dict[int, Dict[bool, int]]:
        """Count reviewer recommendations grouped by proposal and position.

        Community comments carry no recommendation and are not counted.
        """
        if not proposal_ids:
            return {}

        try:
            stmt = (
                select(
                    DeliberationVote.proposal_id,
                    DeliberationVote.recommendation,
                    func.count(DeliberationVote.id).label("count"),
                )
                .where(
                    DeliberationVote.proposal_id.in_(list(proposal_ids)),
                    DeliberationVote.recommendation.is_not(None),
                )
                .group_by(DeliberationVote.proposal_id, DeliberationVote.recommendation)
            )
            result = await self.session.execute(stmt)

            counts: Dict[int, Dict[bool, int]] = defaultdict(dict)
            for row in result:
                counts[row.proposal_id][row.recommendation] = row.count
            return dict(counts)
        except SQLAlchemyError as e:
            self._raise_database_error("counting deliberation recommendations", e)

    async def list_reviewer_comments(self, proposal_ids: Sequence[int]) -> List[dict]:
        """Reviewer comments for the given proposals, with the reviewer's username.

        Returns:
            Dicts with id, proposal_id, feedback, recommendation, created_at, username
        """
        if not proposal_ids:
            return []

        try:
            stmt = (
                select(DeliberationVote, User.user_metadata)
                .join(User, User.id == DeliberationVote.voter_id)
                .where(
                    DeliberationVote.proposal_id.in_(list(proposal_ids)),
                    DeliberationVote.recommendation.is_not(None),
                )
                .order_by(DeliberationVote.created_at, DeliberationVote.id)
            )
            result = await self.session.execute(stmt)

            comments = []
            for vote, metadata in result.all():
                comments.append(
                    {
                        "id": vote.id,
                        "proposal_id": vote.proposal_id,
                        "feedback": vote.feedback,
                        "recommendation": vote.recommendation,
                        "created_at": vote.updated_at or vote.created_at,
                        "username": (metadata or {}).get("username"),
                    }
                )
            return comments
        except SQLAlchemyError as e:
            self._raise_database_error("retrieving reviewer comments", e)
