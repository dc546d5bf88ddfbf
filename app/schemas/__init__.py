from .common import ApiResponse, ErrorDetail, ResponseMeta
from .proposals import (
    ConsiderationProposalList,
    DeliberationProposalList,
    ProposalDetail,
    VoteStats,
)
from .votes import (
    ConsiderationVoteAck,
    ConsiderationVoteRequest,
    DeliberationVoteAck,
    DeliberationVoteRequest,
    PhaseTransitionRequest,
    PhaseTransitionResult,
)

__all__ = [
    "ApiResponse",
    "ErrorDetail",
    "ResponseMeta",
    "ConsiderationProposalList",
    "DeliberationProposalList",
    "ProposalDetail",
    "VoteStats",
    "ConsiderationVoteAck",
    "ConsiderationVoteRequest",
    "DeliberationVoteAck",
    "DeliberationVoteRequest",
    "PhaseTransitionRequest",
    "PhaseTransitionResult",
]
