"""
Governance error taxonomy.

Every failure the engine reports is a subclass of ``GovernanceError`` and
carries a stable ``code`` string that transports (RPC, CLI, HTTP) can
forward verbatim. All of them are caller-recoverable: the engine state is
untouched when one is raised.
"""

from typing import Any, Dict


class GovernanceError(Exception):
    """Base governance exception."""

    code = "GovernanceError"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class NotAuthorizedError(GovernanceError):
    """Caller is not the admin for an admin-only operation."""
    code = "NotAuthorized"


# ══════════════════════════════════════════════════════════════════════
#  REGISTRY
# ══════════════════════════════════════════════════════════════════════

class RegistryError(GovernanceError):
    """Voter registration / balance errors."""


class NotRegisteredError(RegistryError):
    code = "NotRegistered"


class AlreadyRegisteredError(RegistryError):
    code = "AlreadyRegistered"


class InvalidIdentityError(RegistryError):
    """Voter identity is empty or the null address."""
    code = "InvalidIdentity"


# ══════════════════════════════════════════════════════════════════════
#  PROPOSALS
# ══════════════════════════════════════════════════════════════════════

class ProposalError(GovernanceError):
    """Proposal creation / lifecycle errors."""


class ProposalNotFoundError(ProposalError):
    code = "ProposalNotFound"


class EmptyTitleError(ProposalError):
    code = "EmptyTitle"


class InvalidDurationError(ProposalError):
    code = "InvalidDuration"


class VotingClosedError(ProposalError):
    """Vote attempted at or after the voting end time."""
    code = "VotingClosed"


class VotingStillOpenError(ProposalError):
    """Execution attempted before the voting end time."""
    code = "VotingStillOpen"


class AlreadyExecutedError(ProposalError):
    code = "AlreadyExecuted"


# ══════════════════════════════════════════════════════════════════════
#  VOTING
# ══════════════════════════════════════════════════════════════════════

class VotingError(GovernanceError):
    """Base vote-casting error."""


class AlreadyVotedError(VotingError):
    """Voter already cast a vote on this proposal."""
    code = "AlreadyVoted"


class InvalidCreditsError(VotingError):
    code = "InvalidCredits"


class InsufficientCreditsError(VotingError):
    """Spend would take used credits above the voter's total."""
    code = "InsufficientCredits"


class ZeroVoteResultError(VotingError):
    code = "ZeroVoteResult"
