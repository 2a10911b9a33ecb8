"""
Quadratic Voting Governance

Provides:
  - isqrt / quadratic_cost                          (isqrt.py)
  - GovernanceError and the error taxonomy          (errors.py)
  - Voter / VoterInfo / VoterRegistry               (registry.py)
  - ProposalStatus / Proposal / ProposalStore       (proposals.py)
  - EventBus and the four governance events         (events.py)
  - VoteReceipt / VotingEngine                      (voting.py)

Callers should only drive ``VotingEngine``; the registry and store are
exported for inspection and tests.
"""

from .errors import (
    AlreadyExecutedError,
    AlreadyRegisteredError,
    AlreadyVotedError,
    EmptyTitleError,
    GovernanceError,
    InsufficientCreditsError,
    InvalidCreditsError,
    InvalidDurationError,
    InvalidIdentityError,
    NotAuthorizedError,
    NotRegisteredError,
    ProposalError,
    ProposalNotFoundError,
    RegistryError,
    VotingClosedError,
    VotingError,
    VotingStillOpenError,
    ZeroVoteResultError,
)
from .events import (
    EventBus,
    GovernanceEvent,
    ProposalCreated,
    ProposalExecuted,
    VoteCast,
    VoterRegistered,
)
from .isqrt import isqrt, quadratic_cost
from .proposals import Proposal, ProposalStatus, ProposalStore, ProposalView
from .registry import Voter, VoterInfo, VoterRegistry
from .voting import VoteReceipt, VotingEngine

__all__ = [
    # Errors
    "GovernanceError",
    "NotAuthorizedError",
    "RegistryError",
    "NotRegisteredError",
    "AlreadyRegisteredError",
    "InvalidIdentityError",
    "ProposalError",
    "ProposalNotFoundError",
    "EmptyTitleError",
    "InvalidDurationError",
    "VotingClosedError",
    "VotingStillOpenError",
    "AlreadyExecutedError",
    "VotingError",
    "AlreadyVotedError",
    "InvalidCreditsError",
    "InsufficientCreditsError",
    "ZeroVoteResultError",
    # Events
    "EventBus",
    "GovernanceEvent",
    "VoterRegistered",
    "ProposalCreated",
    "VoteCast",
    "ProposalExecuted",
    # Math
    "isqrt",
    "quadratic_cost",
    # Stores
    "Voter",
    "VoterInfo",
    "VoterRegistry",
    "Proposal",
    "ProposalStatus",
    "ProposalStore",
    "ProposalView",
    # Engine
    "VoteReceipt",
    "VotingEngine",
]
