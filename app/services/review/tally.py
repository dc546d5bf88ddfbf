"""Vote tallying engine.

Turns grouped vote counts into ``VoteStats`` and derives the per-viewer
consideration status. The aggregate tally and the viewer's own status are
kept apart: a viewer's status never reflects how anyone else voted.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

from app.core.exceptions import UnsupportedPhaseError
from app.models.review import Phase, ViewerStatus, VoteDecision
from app.repositories.vote_repository import ConsiderationVoteRepository, DeliberationVoteRepository
from app.schemas.proposals import VoteStats
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def consideration_stats(counts: Mapping[str, int]) -> VoteStats:
    """Build stats from consideration counts keyed by decision."""
    approved = int(counts.get(VoteDecision.APPROVED.value, 0))
    rejected = int(counts.get(VoteDecision.REJECTED.value, 0))
    return VoteStats(approved=approved, rejected=rejected, total=approved + rejected)


def deliberation_stats(counts: Mapping[bool, int]) -> VoteStats:
    """Build stats from reviewer recommendation counts keyed by position."""
    approved = int(counts.get(True, 0))
    rejected = int(counts.get(False, 0))
    return VoteStats(approved=approved, rejected=rejected, total=approved + rejected)


def viewer_status(own_vote: Optional[Any]) -> ViewerStatus:
    """Consideration status from the viewer's own vote only."""
    if own_vote is None:
        return ViewerStatus.PENDING
    return ViewerStatus(VoteDecision(own_vote.decision).value.lower())


class VoteTallyService:
    """Reads vote counts and aggregates them per proposal and phase."""

    def __init__(
        self,
        consideration_votes: ConsiderationVoteRepository,
        deliberation_votes: DeliberationVoteRepository,
    ):
        self.consideration_votes = consideration_votes
        self.deliberation_votes = deliberation_votes

    async def tally(self, proposal_id: int, phase: Phase) -> VoteStats:
        """Tally one proposal's votes in a phase.

        Raises:
            UnsupportedPhaseError: For phases this engine does not tally
        """
        phase = Phase(phase)
        if phase == Phase.CONSIDERATION:
            return consideration_stats(await self.consideration_votes.count_by_decision(proposal_id))
        if phase == Phase.DELIBERATION:
            return deliberation_stats(await self.deliberation_votes.count_by_recommendation(proposal_id))
        raise UnsupportedPhaseError(f"Tallying is not available for the {phase.value} phase")

    async def tally_many(self, proposal_ids: Sequence[int], phase: Phase) -> Dict[int, VoteStats]:
        """Tally several proposals from a single aggregate read.

        Every requested proposal gets an entry; proposals without votes get
        zero stats. Storage errors propagate so no partial tally is returned.
        """
        phase = Phase(phase)
        if phase == Phase.CONSIDERATION:
            counts = await self.consideration_votes.count_by_decision_for_proposals(proposal_ids)
            build = consideration_stats
        elif phase == Phase.DELIBERATION:
            counts = await self.deliberation_votes.count_by_recommendation_for_proposals(proposal_ids)
            build = deliberation_stats
        else:
            raise UnsupportedPhaseError(f"Tallying is not available for the {phase.value} phase")

        stats = {proposal_id: build(counts.get(proposal_id, {})) for proposal_id in proposal_ids}
        LOGGER.debug(
            "Tallied votes",
            extra={"phase": phase.value, "proposals": len(stats)},
        )
        return stats
