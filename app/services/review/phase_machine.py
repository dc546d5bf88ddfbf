"""Proposal phase state machine.

Holds the legal status transitions, the status in which each kind of vote
may be written, and the phase records a funding round must configure for
a proposal to enter a phase. What triggers a transition (an administrator
or a scheduled round boundary) lives outside this module.
"""

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from app.core.exceptions import (
    InvalidTransitionError,
    PhaseClosedError,
    PhaseNotConfiguredError,
    ValidationError,
    VoteNotAcceptedError,
)
from app.models.review import DeliberationMode, Phase, ProposalStatus
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


TRANSITIONS: Dict[ProposalStatus, FrozenSet[ProposalStatus]] = {
    ProposalStatus.DRAFT: frozenset({ProposalStatus.CONSIDERATION}),
    ProposalStatus.CONSIDERATION: frozenset({ProposalStatus.DELIBERATION, ProposalStatus.REJECTED}),
    ProposalStatus.DELIBERATION: frozenset({ProposalStatus.VOTING, ProposalStatus.REJECTED}),
    ProposalStatus.VOTING: frozenset({ProposalStatus.APPROVED, ProposalStatus.REJECTED}),
    ProposalStatus.APPROVED: frozenset(),
    ProposalStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES: FrozenSet[ProposalStatus] = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)

# Status a proposal must be in for votes of a phase to be written
VOTE_STATUS: Dict[Phase, ProposalStatus] = {
    Phase.CONSIDERATION: ProposalStatus.CONSIDERATION,
    Phase.DELIBERATION: ProposalStatus.DELIBERATION,
    Phase.VOTING: ProposalStatus.VOTING,
}

# Funding round attribute holding each phase's record
PHASE_RECORD: Dict[Phase, str] = {
    Phase.CONSIDERATION: "consideration_phase",
    Phase.DELIBERATION: "deliberation_phase",
    Phase.VOTING: "voting_phase",
}

ENTRY_PHASE: Dict[ProposalStatus, Phase] = {
    ProposalStatus.CONSIDERATION: Phase.CONSIDERATION,
    ProposalStatus.DELIBERATION: Phase.DELIBERATION,
    ProposalStatus.VOTING: Phase.VOTING,
}


class PhaseStateMachine:
    """Authoritative rules for moving and acting on proposals."""

    def __init__(self, enforce_phase_windows: bool = False):
        """Initialize the state machine.

        Args:
            enforce_phase_windows: Reject votes cast outside the phase record's
                start/end dates when True
        """
        self.enforce_phase_windows = enforce_phase_windows

    def can_transition(self, current: ProposalStatus, target: ProposalStatus) -> bool:
        return target in TRANSITIONS[ProposalStatus(current)]

    def validate_transition(
        self,
        current: ProposalStatus,
        target: ProposalStatus,
        funding_round: Any,
    ) -> None:
        """Check that a proposal may move from ``current`` to ``target``.

        Raises:
            InvalidTransitionError: If the transition is not in the table
            PhaseNotConfiguredError: If the round lacks the target phase record
        """
        current = ProposalStatus(current)
        target = ProposalStatus(target)

        if not self.can_transition(current, target):
            raise InvalidTransitionError(
                f"Cannot move a proposal from {current.value} to {target.value}"
            )

        phase = ENTRY_PHASE.get(target)
        if phase is not None:
            self._require_phase_record(funding_round, phase)

    def ensure_accessible(self, funding_round: Any) -> None:
        """A round's proposals are reviewable only once consideration is configured."""
        self._require_phase_record(funding_round, Phase.CONSIDERATION)

    def ensure_accepts_vote(
        self,
        status: ProposalStatus,
        phase: Phase,
        funding_round: Any,
        now: Optional[datetime] = None,
    ) -> None:
        """Check that a vote of ``phase`` may be written on a proposal in ``status``.

        Raises:
            VoteNotAcceptedError: If the proposal is not in the phase
            PhaseNotConfiguredError: If the round lacks the phase record
            PhaseClosedError: If windows are enforced and ``now`` is outside it
        """
        expected = VOTE_STATUS[phase]
        if ProposalStatus(status) != expected:
            raise VoteNotAcceptedError(
                f"{phase.value.capitalize()} votes require a proposal in {expected.value}, "
                f"not {ProposalStatus(status).value}"
            )

        record = self._require_phase_record(funding_round, phase)

        if self.enforce_phase_windows:
            now = now or datetime.now(timezone.utc)
            start_date = getattr(record, "start_date", None)
            end_date = getattr(record, "end_date", None)
            if (start_date and now < start_date) or (end_date and now > end_date):
                LOGGER.info(
                    "Vote outside phase window",
                    extra={"phase": phase.value, "start_date": str(start_date), "end_date": str(end_date)},
                )
                raise PhaseClosedError(f"The {phase.value.lower()} phase is not open")

    def deliberation_mode(self, is_reviewer: bool, recommendation: Optional[bool]) -> DeliberationMode:
        """Tag a deliberation write by the voter's role and position.

        Reviewers must take a position; community members must not.

        Raises:
            ValidationError: On a missing or forbidden recommendation
        """
        if is_reviewer:
            if recommendation is None:
                raise ValidationError.for_field(
                    "recommendation", "Reviewers must recommend or not recommend the proposal"
                )
            if recommendation:
                return DeliberationMode.REVIEWER_RECOMMEND
            return DeliberationMode.REVIEWER_NOT_RECOMMEND

        if recommendation is not None:
            raise ValidationError.for_field(
                "recommendation", "Only reviewers can submit a recommendation"
            )
        return DeliberationMode.COMMUNITY_COMMENT

    def existing_vote_mode(self, is_reviewer: bool, vote: Any) -> Optional[DeliberationMode]:
        """Mode in which the caller edits their existing deliberation, if any."""
        if vote is None:
            return None
        if not is_reviewer:
            return DeliberationMode.COMMUNITY_COMMENT
        if vote.recommendation:
            return DeliberationMode.REVIEWER_RECOMMEND
        return DeliberationMode.REVIEWER_NOT_RECOMMEND

    def _require_phase_record(self, funding_round: Any, phase: Phase) -> Any:
        record = getattr(funding_round, PHASE_RECORD[phase], None) if funding_round else None
        if record is None:
            raise PhaseNotConfiguredError(
                f"Funding round has no {phase.value.lower()} phase configured"
            )
        return record
