"""
Voter Registry

Tracks registration status and credit balances per voter identity. Every
voter receives a fixed credit budget at registration; ``used_credits`` only
grows, and only through successful vote casts, and never exceeds
``total_credits``.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from ..constants import INITIAL_CREDITS, ZERO_IDENTITY_PATTERN
from ..logger import get_logger
from .errors import (
    AlreadyRegisteredError,
    InsufficientCreditsError,
    InvalidCreditsError,
    InvalidIdentityError,
    NotAuthorizedError,
    NotRegisteredError,
)

logger = get_logger(__name__)


def is_null_identity(identity: Any) -> bool:
    """Empty, whitespace-only, or an all-zero hex address."""
    if not isinstance(identity, str) or not identity.strip():
        return True
    return bool(ZERO_IDENTITY_PATTERN.match(identity.strip()))


@dataclass
class Voter:
    """A registered voter and their credit budget."""
    identity: str
    total_credits: int
    used_credits: int = 0
    is_registered: bool = True
    registered_at: float = field(default_factory=time.time)

    @property
    def remaining_credits(self) -> int:
        return self.total_credits - self.used_credits

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "isRegistered": self.is_registered,
            "totalCredits": self.total_credits,
            "usedCredits": self.used_credits,
            "registeredAt": self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voter":
        voter = cls(
            identity=data["identity"],
            total_credits=int(data["totalCredits"]),
            used_credits=int(data.get("usedCredits", 0)),
            is_registered=bool(data.get("isRegistered", True)),
            registered_at=float(data.get("registeredAt", 0.0)),
        )
        if not 0 <= voter.used_credits <= voter.total_credits:
            raise ValueError(
                f"Voter {voter.identity}: used credits {voter.used_credits} "
                f"outside 0..{voter.total_credits}"
            )
        return voter


@dataclass(frozen=True)
class VoterInfo:
    """Read-only snapshot of a voter's balance."""
    identity: str
    is_registered: bool
    total_credits: int
    used_credits: int
    remaining: int

    @classmethod
    def of(cls, voter: Voter) -> "VoterInfo":
        return cls(
            identity=voter.identity,
            is_registered=voter.is_registered,
            total_credits=voter.total_credits,
            used_credits=voter.used_credits,
            remaining=voter.remaining_credits,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "isRegistered": self.is_registered,
            "totalCredits": self.total_credits,
            "usedCredits": self.used_credits,
            "remaining": self.remaining,
        }


class VoterRegistry:
    """
    Registration and credit accounting.

    The registry does no locking of its own; ``VotingEngine`` serializes all
    access to it.
    """

    def __init__(self, admin: str, initial_credits: int = INITIAL_CREDITS):
        if is_null_identity(admin):
            raise ValueError("Registry admin identity is required")
        if initial_credits < 1:
            raise ValueError(f"initial_credits must be >= 1, got {initial_credits}")
        self.admin = admin
        self.initial_credits = initial_credits
        self._voters: Dict[str, Voter] = {}

    # ── Registration ──────────────────────────────────────────────────

    def register(self, caller: str, voter_id: str, now: Optional[float] = None) -> Voter:
        """
        Register *voter_id* with the initial credit budget.

        Raises NotAuthorizedError, InvalidIdentityError, AlreadyRegisteredError.
        """
        if caller != self.admin:
            raise NotAuthorizedError(f"{caller} is not allowed to register voters")
        if is_null_identity(voter_id):
            raise InvalidIdentityError(f"Invalid voter identity: {voter_id!r}")
        if voter_id in self._voters:
            raise AlreadyRegisteredError(f"{voter_id} is already registered")

        voter = Voter(
            identity=voter_id,
            total_credits=self.initial_credits,
            registered_at=time.time() if now is None else now,
        )
        self._voters[voter_id] = voter
        logger.info(f"Registered voter {voter_id} ({voter.total_credits} credits)")
        return voter

    # ── Credits ───────────────────────────────────────────────────────

    def check_spend(self, voter_id: str, amount: int) -> Voter:
        """Validate a spend without applying it."""
        voter = self._voters.get(voter_id)
        if voter is None or not voter.is_registered:
            raise NotRegisteredError(f"{voter_id} is not a registered voter")
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidCreditsError(f"Credit amount must be a positive integer, got {amount!r}")
        if voter.used_credits + amount > voter.total_credits:
            raise InsufficientCreditsError(
                f"{voter_id} has {voter.remaining_credits} credits left, "
                f"cannot spend {amount}"
            )
        return voter

    def spend(self, voter_id: str, amount: int) -> Voter:
        """Consume *amount* credits. Either fully applied or not at all."""
        voter = self.check_spend(voter_id, amount)
        voter.used_credits += amount
        return voter

    # ── Queries ───────────────────────────────────────────────────────

    def info(self, voter_id: str) -> Optional[VoterInfo]:
        voter = self._voters.get(voter_id)
        return VoterInfo.of(voter) if voter is not None else None

    def is_registered(self, voter_id: str) -> bool:
        voter = self._voters.get(voter_id)
        return voter is not None and voter.is_registered

    def voters(self) -> Iterator[VoterInfo]:
        for voter in self._voters.values():
            yield VoterInfo.of(voter)

    def __contains__(self, voter_id: object) -> bool:
        return voter_id in self._voters

    def __len__(self) -> int:
        return len(self._voters)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "admin": self.admin,
            "initialCredits": self.initial_credits,
            "voters": {vid: v.to_dict() for vid, v in self._voters.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoterRegistry":
        registry = cls(
            admin=data["admin"],
            initial_credits=int(data.get("initialCredits", INITIAL_CREDITS)),
        )
        for vid, vdata in data.get("voters", {}).items():
            voter = Voter.from_dict(vdata)
            if voter.identity != vid:
                raise ValueError(f"Voter table key {vid!r} != identity {voter.identity!r}")
            registry._voters[vid] = voter
        return registry

    def __repr__(self) -> str:
        return f"<VoterRegistry voters={len(self._voters)} credits={self.initial_credits}>"
