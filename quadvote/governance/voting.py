"""
Quadratic Voting Engine

The single caller-facing surface of the governance package. Implements:
  - Admin-only voter registration with a fixed credit budget
  - Admin-only proposal creation with a voting window
  - Quadratic vote casting: spending c credits yields isqrt(c) votes
  - Admin-only execution of closed proposals

Time and caller identity are explicit inputs to every call; the engine never
reads a wall clock for lifecycle decisions. One re-entrant lock serializes
every operation so ``cast_vote`` is atomic across both stores, and events
are delivered in commit order.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..constants import INITIAL_CREDITS
from ..logger import get_logger
from .errors import (
    GovernanceError,
    InvalidCreditsError,
    NotRegisteredError,
    ZeroVoteResultError,
)
from .events import (
    EventBus,
    ProposalCreated,
    ProposalExecuted,
    VoteCast,
    VoterRegistered,
)
from .isqrt import isqrt
from .proposals import ProposalStatus, ProposalStore, ProposalView
from .registry import VoterInfo, VoterRegistry

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  RECEIPT
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class VoteReceipt:
    """Proof of an accepted vote."""
    proposal_id: int
    voter: str
    credits: int
    votes: int
    remaining_credits: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposalId": self.proposal_id,
            "voter": self.voter,
            "credits": self.credits,
            "votes": self.votes,
            "remainingCredits": self.remaining_credits,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  VOTING ENGINE
# ══════════════════════════════════════════════════════════════════════

class VotingEngine:
    """
    Quadratic voting engine.

    Responsibilities:
        - Enforce admin authorization for register / create / execute
        - Validate every precondition before mutating either store
        - Keep ``used_credits <= total_credits`` for every voter
        - Keep ``total_votes == sum(isqrt(credits))`` for every proposal
        - Emit VoterRegistered / ProposalCreated / VoteCast / ProposalExecuted
    """

    def __init__(
        self,
        admin: str,
        initial_credits: int = INITIAL_CREDITS,
        event_bus: Optional[EventBus] = None,
    ):
        """
        Args:
            admin:           Identity allowed to run admin-only operations
            initial_credits: Credits granted to each voter at registration
            event_bus:       Sink for emitted events (a private bus if None)
        """
        self._registry = VoterRegistry(admin, initial_credits)
        self._store = ProposalStore(admin)
        self.events = event_bus if event_bus is not None else EventBus()
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config, event_bus: Optional[EventBus] = None) -> "VotingEngine":
        """Build an engine from a validated ``quadvote.config.EngineConfig``."""
        config.validate()
        return cls(
            admin=config.admin,
            initial_credits=config.initial_credits,
            event_bus=event_bus,
        )

    @property
    def admin(self) -> str:
        return self._registry.admin

    @property
    def initial_credits(self) -> int:
        return self._registry.initial_credits

    # ── Registration ──────────────────────────────────────────────────

    def register_voter(self, caller: str, voter_id: str, now: Optional[float] = None) -> VoterInfo:
        with self._lock:
            try:
                voter = self._registry.register(caller, voter_id, now)
            except GovernanceError as e:
                logger.debug(f"register_voter rejected: {e.code} ({e})")
                raise
            info = VoterInfo.of(voter)
            self.events.emit(VoterRegistered(voter=voter_id, credits=info.total_credits))
        return info

    # ── Proposals ─────────────────────────────────────────────────────

    def create_proposal(
        self,
        caller: str,
        title: str,
        description: str,
        duration: int,
        now: float,
    ) -> int:
        with self._lock:
            try:
                pid = self._store.create(caller, title, description, duration, now)
            except GovernanceError as e:
                logger.debug(f"create_proposal rejected: {e.code} ({e})")
                raise
            view = self._store.get(pid)
            self.events.emit(
                ProposalCreated(id=pid, title=view.title, voting_end_time=view.voting_end_time)
            )
        return pid

    def execute_proposal(self, caller: str, proposal_id: int, now: float) -> ProposalView:
        with self._lock:
            try:
                proposal = self._store.execute(caller, proposal_id, now)
            except GovernanceError as e:
                logger.debug(f"execute_proposal rejected: {e.code} ({e})")
                raise
            view = ProposalView.of(proposal)
            self.events.emit(ProposalExecuted(id=view.id, total_votes=view.total_votes))
        return view

    # ── Cast vote ─────────────────────────────────────────────────────

    def cast_vote(self, voter_id: str, proposal_id: int, credits: int, now: float) -> VoteReceipt:
        """
        Spend *credits* on *proposal_id* for ``isqrt(credits)`` votes.

        Checks run in this order and all complete before anything mutates:
        NotRegistered, ProposalNotFound / VotingClosed / AlreadyVoted,
        InvalidCredits, InsufficientCredits, ZeroVoteResult.
        """
        with self._lock:
            try:
                receipt = self._cast_vote_locked(voter_id, proposal_id, credits, now)
            except GovernanceError as e:
                logger.debug(
                    f"cast_vote rejected: {e.code} "
                    f"(voter={voter_id}, proposal=#{proposal_id}, credits={credits!r})"
                )
                raise
            self.events.emit(
                VoteCast(
                    proposal_id=receipt.proposal_id,
                    voter=receipt.voter,
                    credits=receipt.credits,
                    votes=receipt.votes,
                )
            )
        return receipt

    def _cast_vote_locked(self, voter_id: str, proposal_id: int, credits: int, now: float) -> VoteReceipt:
        # Validate
        if not self._registry.is_registered(voter_id):
            raise NotRegisteredError(f"{voter_id} is not a registered voter")
        self._store.check_vote(proposal_id, voter_id, now)
        if not isinstance(credits, int) or isinstance(credits, bool) or credits <= 0:
            raise InvalidCreditsError(f"Credits must be a positive integer, got {credits!r}")
        self._registry.check_spend(voter_id, credits)
        votes = isqrt(credits)
        if votes == 0:
            # Unreachable while credits > 0 is enforced above
            raise ZeroVoteResultError(f"{credits} credits buy zero votes")

        # Commit; both calls re-validate and cannot fail under the lock
        voter = self._registry.spend(voter_id, credits)
        self._store.record_vote(proposal_id, voter_id, credits, votes, now)

        logger.info(
            f"VoteCast: {voter_id} spent {credits} credits on Proposal #{proposal_id} "
            f"for {votes} votes ({voter.remaining_credits} left)"
        )
        return VoteReceipt(
            proposal_id=proposal_id,
            voter=voter_id,
            credits=credits,
            votes=votes,
            remaining_credits=voter.remaining_credits,
            timestamp=now,
        )

    # ── Queries ───────────────────────────────────────────────────────

    def get_proposal(self, proposal_id: int) -> Optional[ProposalView]:
        with self._lock:
            return self._store.get(proposal_id)

    def get_voter_info(self, voter_id: str) -> Optional[VoterInfo]:
        with self._lock:
            return self._registry.info(voter_id)

    def has_voted_on_proposal(self, proposal_id: int, voter_id: str) -> bool:
        with self._lock:
            return self._store.has_voted(proposal_id, voter_id)

    def proposal_status(self, proposal_id: int, now: float) -> ProposalStatus:
        with self._lock:
            return self._store.status(proposal_id, now)

    @property
    def proposal_count(self) -> int:
        with self._lock:
            return self._store.proposal_count

    @property
    def voter_count(self) -> int:
        with self._lock:
            return len(self._registry)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            registry = self._registry.to_dict()
            store = self._store.to_dict()
        return {
            "admin": registry["admin"],
            "initialCredits": registry["initialCredits"],
            "voters": registry["voters"],
            "proposalCounter": store["proposalCounter"],
            "proposals": store["proposals"],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], event_bus: Optional[EventBus] = None) -> "VotingEngine":
        engine = cls(
            admin=data["admin"],
            initial_credits=int(data.get("initialCredits", INITIAL_CREDITS)),
            event_bus=event_bus,
        )
        engine._registry = VoterRegistry.from_dict(data)
        engine._store = ProposalStore.from_dict(data)
        engine._check_cross_store(data)
        return engine

    def _check_cross_store(self, data: Dict[str, Any]) -> None:
        """Recorded spends must belong to registered voters and add up to their used credits."""
        spent: Dict[str, int] = {vid: 0 for vid in data.get("voters", {})}
        for pdata in data.get("proposals", {}).values():
            for vid, c in pdata.get("voterCredits", {}).items():
                if not self._registry.is_registered(vid):
                    raise ValueError(f"Vote record for unregistered voter {vid}")
                spent[vid] = spent.get(vid, 0) + int(c)
        for vid, total in spent.items():
            info = self._registry.info(vid)
            if total != info.used_credits:
                raise ValueError(
                    f"Voter {vid}: vote records total {total} credits "
                    f"but {info.used_credits} are marked used"
                )

    def __repr__(self) -> str:
        return (
            f"<VotingEngine voters={len(self._registry)} "
            f"proposals={self._store.proposal_count}>"
        )
