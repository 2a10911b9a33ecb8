"""
Governance Proposals

Defines the proposal lifecycle and the ProposalStore that owns every
proposal's metadata, per-voter spend records and tally.

Lifecycle (derived from the caller-supplied clock, never stored):

    OPEN      now <  voting_end_time, not executed   — accepts votes
    CLOSED    now >= voting_end_time, not executed   — accepts execution
    EXECUTED  terminal
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ..logger import get_logger
from .errors import (
    AlreadyExecutedError,
    AlreadyVotedError,
    EmptyTitleError,
    InvalidDurationError,
    NotAuthorizedError,
    ProposalNotFoundError,
    VotingClosedError,
    VotingStillOpenError,
)
from .isqrt import isqrt

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class ProposalStatus(IntEnum):
    """Lifecycle stage."""
    OPEN = 0
    CLOSED = 1
    EXECUTED = 2


# ══════════════════════════════════════════════════════════════════════
#  PROPOSAL
# ══════════════════════════════════════════════════════════════════════

@dataclass
class Proposal:
    """
    A time-bounded item open for quadratic voting.

    Fields:
        id:               Sequential identifier, starting at 1
        title:            Short title (non-empty)
        description:      Detailed description / rationale
        creator:          Admin identity that created it
        created_at:       Caller-supplied creation time
        voting_end_time:  created_at + duration; votes accepted strictly before
        total_votes:      Sum of isqrt(credits) over all recorded votes
        executed:         Set exactly once, after voting closes
    """
    id: int
    title: str
    description: str
    creator: str
    created_at: float
    voting_end_time: float
    total_votes: int = 0
    executed: bool = False
    executed_at: Optional[float] = None
    # voter → credits spent; membership is the "has voted" flag
    _voter_credits: Dict[str, int] = field(default_factory=dict, repr=False)

    def status_at(self, now: float) -> ProposalStatus:
        if self.executed:
            return ProposalStatus.EXECUTED
        if now < self.voting_end_time:
            return ProposalStatus.OPEN
        return ProposalStatus.CLOSED

    def has_voted(self, voter_id: str) -> bool:
        return voter_id in self._voter_credits

    @property
    def voter_count(self) -> int:
        return len(self._voter_credits)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "creator": self.creator,
            "createdAt": self.created_at,
            "votingEndTime": self.voting_end_time,
            "totalVotes": self.total_votes,
            "executed": self.executed,
            "executedAt": self.executed_at,
            "voterCredits": dict(self._voter_credits),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        voter_credits = {str(k): int(v) for k, v in data.get("voterCredits", {}).items()}
        if any(c <= 0 for c in voter_credits.values()):
            raise ValueError(f"Proposal #{data['id']}: non-positive credit record")
        proposal = cls(
            id=int(data["id"]),
            title=data["title"],
            description=data.get("description", ""),
            creator=data.get("creator", ""),
            created_at=float(data["createdAt"]),
            voting_end_time=float(data["votingEndTime"]),
            total_votes=int(data.get("totalVotes", 0)),
            executed=bool(data.get("executed", False)),
            executed_at=data.get("executedAt"),
            _voter_credits=voter_credits,
        )
        if proposal.executed and (
            proposal.executed_at is None or proposal.executed_at < proposal.voting_end_time
        ):
            raise ValueError(
                f"Proposal #{proposal.id}: executed before voting ended "
                f"(executedAt={proposal.executed_at!r}, votingEndTime={proposal.voting_end_time})"
            )
        expected = sum(isqrt(c) for c in voter_credits.values())
        if proposal.total_votes != expected:
            raise ValueError(
                f"Proposal #{proposal.id}: totalVotes {proposal.total_votes} "
                f"!= sum of isqrt(credits) {expected}"
            )
        return proposal

    def __repr__(self) -> str:
        return (
            f"<Proposal #{self.id} '{self.title}' "
            f"votes={self.total_votes} executed={self.executed}>"
        )


@dataclass(frozen=True)
class ProposalView:
    """Read-only snapshot of a proposal. Per-voter records are not exposed."""
    id: int
    title: str
    description: str
    voting_end_time: float
    total_votes: int
    executed: bool
    voter_count: int

    @classmethod
    def of(cls, proposal: Proposal) -> "ProposalView":
        return cls(
            id=proposal.id,
            title=proposal.title,
            description=proposal.description,
            voting_end_time=proposal.voting_end_time,
            total_votes=proposal.total_votes,
            executed=proposal.executed,
            voter_count=proposal.voter_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "votingEndTime": self.voting_end_time,
            "totalVotes": self.total_votes,
            "executed": self.executed,
            "voterCount": self.voter_count,
        }


# ══════════════════════════════════════════════════════════════════════
#  STORE
# ══════════════════════════════════════════════════════════════════════

class ProposalStore:
    """
    Owns all proposals. Ids are dense ``1..proposal_count``; the counter
    never decreases and ids are never reused.
    """

    def __init__(self, admin: str):
        self.admin = admin
        self._proposals: Dict[int, Proposal] = {}
        self._counter = 0

    @property
    def proposal_count(self) -> int:
        return self._counter

    def _lookup(self, proposal_id: int) -> Optional[Proposal]:
        # True and 1.0 hash like 1; ids are strictly ints
        if not isinstance(proposal_id, int) or isinstance(proposal_id, bool):
            return None
        return self._proposals.get(proposal_id)

    def _require(self, proposal_id: int) -> Proposal:
        proposal = self._lookup(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(
                f"Proposal #{proposal_id} does not exist "
                f"(valid ids: 1..{self._counter})"
            )
        return proposal

    # ── Creation ──────────────────────────────────────────────────────

    def create(
        self,
        caller: str,
        title: str,
        description: str,
        duration_seconds: int,
        now: float,
    ) -> int:
        """
        Create a proposal open until ``now + duration_seconds``.

        Raises NotAuthorizedError, EmptyTitleError, InvalidDurationError.
        """
        if caller != self.admin:
            raise NotAuthorizedError(f"{caller} is not allowed to create proposals")
        if not isinstance(title, str) or not title.strip():
            raise EmptyTitleError("Proposal title cannot be empty")
        if (
            not isinstance(duration_seconds, (int, float))
            or isinstance(duration_seconds, bool)
            or not duration_seconds > 0
            or (isinstance(duration_seconds, float) and not math.isfinite(duration_seconds))
        ):
            raise InvalidDurationError(
                f"Voting duration must be positive and finite, got {duration_seconds!r}"
            )

        pid = self._counter + 1
        proposal = Proposal(
            id=pid,
            title=title,
            description=description or "",
            creator=caller,
            created_at=now,
            voting_end_time=now + duration_seconds,
        )
        self._proposals[pid] = proposal
        self._counter = pid
        logger.info(
            f"Proposal #{pid} created: '{title}' "
            f"(voting ends at {proposal.voting_end_time})"
        )
        return pid

    # ── Voting ────────────────────────────────────────────────────────

    def check_vote(self, proposal_id: int, voter_id: str, now: float) -> Proposal:
        """Validate that *voter_id* may vote on *proposal_id* at *now*."""
        proposal = self._require(proposal_id)
        if proposal.status_at(now) != ProposalStatus.OPEN:
            raise VotingClosedError(
                f"Voting on proposal #{proposal_id} closed at {proposal.voting_end_time}"
            )
        if proposal.has_voted(voter_id):
            raise AlreadyVotedError(f"{voter_id} has already voted on proposal #{proposal_id}")
        return proposal

    def record_vote(
        self,
        proposal_id: int,
        voter_id: str,
        credits: int,
        votes: int,
        now: float,
    ) -> Proposal:
        proposal = self.check_vote(proposal_id, voter_id, now)
        proposal._voter_credits[voter_id] = credits
        proposal.total_votes += votes
        return proposal

    # ── Execution ─────────────────────────────────────────────────────

    def execute(self, caller: str, proposal_id: int, now: float) -> Proposal:
        """
        Move a CLOSED proposal to EXECUTED.

        Raises NotAuthorizedError, ProposalNotFoundError,
        VotingStillOpenError, AlreadyExecutedError.
        """
        if caller != self.admin:
            raise NotAuthorizedError(f"{caller} is not allowed to execute proposals")
        proposal = self._require(proposal_id)
        if now < proposal.voting_end_time:
            raise VotingStillOpenError(
                f"Voting on proposal #{proposal_id} is open until {proposal.voting_end_time}"
            )
        if proposal.executed:
            raise AlreadyExecutedError(f"Proposal #{proposal_id} was already executed")

        proposal.executed = True
        proposal.executed_at = now
        logger.info(f"Proposal #{proposal_id} executed with {proposal.total_votes} votes")
        return proposal

    # ── Queries ───────────────────────────────────────────────────────

    def get(self, proposal_id: int) -> Optional[ProposalView]:
        proposal = self._lookup(proposal_id)
        return ProposalView.of(proposal) if proposal is not None else None

    def status(self, proposal_id: int, now: float) -> ProposalStatus:
        return self._require(proposal_id).status_at(now)

    def has_voted(self, proposal_id: int, voter_id: str) -> bool:
        proposal = self._lookup(proposal_id)
        return proposal is not None and proposal.has_voted(voter_id)

    def voter_credits(self, proposal_id: int, voter_id: str) -> Optional[int]:
        proposal = self._lookup(proposal_id)
        if proposal is None:
            return None
        return proposal._voter_credits.get(voter_id)

    def list_ids(self) -> List[int]:
        return list(range(1, self._counter + 1))

    def __len__(self) -> int:
        return self._counter

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self.admin,
            "proposalCounter": self._counter,
            "proposals": {str(pid): p.to_dict() for pid, p in self._proposals.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProposalStore":
        store = cls(admin=data["admin"])
        counter = int(data.get("proposalCounter", 0))
        proposals = {}
        for key, pdata in data.get("proposals", {}).items():
            proposal = Proposal.from_dict(pdata)
            if int(key) != proposal.id:
                raise ValueError(f"Proposal table key {key} != id {proposal.id}")
            proposals[proposal.id] = proposal
        if sorted(proposals) != list(range(1, counter + 1)):
            raise ValueError(
                f"Proposal ids must be dense 1..{counter}, got {sorted(proposals)}"
            )
        store._proposals = proposals
        store._counter = counter
        return store

    def __repr__(self) -> str:
        return f"<ProposalStore proposals={self._counter}>"
