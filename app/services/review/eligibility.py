"""Reviewer eligibility for a funding round."""

from typing import Any, Iterable, Optional, Tuple
from uuid import UUID

from app.core.exceptions import FundingRoundNotFoundError
from app.repositories.funding_round_repository import FundingRoundRepository, ReviewerGroupRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def is_member(members: Iterable[Any], user_id: UUID, link_id: Optional[UUID]) -> bool:
    """True if any member row names the user's primary or linked identity."""
    identities = {str(user_id)}
    if link_id is not None:
        identities.add(str(link_id))
    return any(str(member.user_id) in identities for member in members)


class EligibilityResolver:
    """Decides whether a caller is a reviewer or a general community voter.

    A caller is a reviewer for a round iff they belong, by primary or
    linked identity, to any reviewer group attached to the round's topic.
    """

    def __init__(
        self,
        funding_rounds: FundingRoundRepository,
        reviewer_groups: ReviewerGroupRepository,
    ):
        self.funding_rounds = funding_rounds
        self.reviewer_groups = reviewer_groups

    async def load_round(self, funding_round_id: UUID) -> Any:
        """Load the funding round with its topic and reviewer group links.

        Raises:
            FundingRoundNotFoundError: If the round does not exist
        """
        funding_round = await self.funding_rounds.get_with_topic_and_reviewer_groups(funding_round_id)
        if funding_round is None:
            raise FundingRoundNotFoundError(f"Funding round {funding_round_id} not found")
        return funding_round

    async def is_reviewer_for_round(
        self, user_id: UUID, link_id: Optional[UUID], funding_round: Any
    ) -> bool:
        """Resolve eligibility against an already loaded funding round."""
        topic = funding_round.topic
        group_ids = [link.reviewer_group_id for link in (topic.reviewer_groups if topic else [])]
        members = await self.reviewer_groups.get_members(group_ids)
        eligible = is_member(members, user_id, link_id)

        LOGGER.debug(
            "Resolved reviewer eligibility",
            extra={
                "user_id": str(user_id),
                "funding_round_id": str(funding_round.id),
                "groups": len(group_ids),
                "is_reviewer": eligible,
            },
        )
        return eligible

    async def is_reviewer(
        self, user_id: UUID, link_id: Optional[UUID], funding_round_id: UUID
    ) -> bool:
        """Whether the caller is a reviewer for the funding round.

        Raises:
            FundingRoundNotFoundError: If the round does not exist
        """
        funding_round = await self.load_round(funding_round_id)
        return await self.is_reviewer_for_round(user_id, link_id, funding_round)

    async def resolve(
        self, user_id: UUID, link_id: Optional[UUID], funding_round_id: UUID
    ) -> Tuple[Any, bool]:
        """Load the round and resolve eligibility in one step."""
        funding_round = await self.load_round(funding_round_id)
        eligible = await self.is_reviewer_for_round(user_id, link_id, funding_round)
        return funding_round, eligible
