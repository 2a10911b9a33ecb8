"""
Governance event sink.

The engine emits four event kinds after a state change has committed:

  - VoterRegistered   {voter, credits}
  - ProposalCreated   {id, title, voting_end_time}
  - VoteCast          {proposal_id, voter, credits, votes}
  - ProposalExecuted  {id, total_votes}

Delivery is synchronous and in subscription order. A subscriber that raises
is logged and skipped; it cannot roll back the engine or block later
subscribers.
"""

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Type, Union

from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GovernanceEvent:
    """Base class for emitted events."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, **asdict(self)}


@dataclass(frozen=True)
class VoterRegistered(GovernanceEvent):
    voter: str
    credits: int


@dataclass(frozen=True)
class ProposalCreated(GovernanceEvent):
    id: int
    title: str
    voting_end_time: float


@dataclass(frozen=True)
class VoteCast(GovernanceEvent):
    proposal_id: int
    voter: str
    credits: int
    votes: int


@dataclass(frozen=True)
class ProposalExecuted(GovernanceEvent):
    id: int
    total_votes: int


Subscriber = Callable[[GovernanceEvent], None]
EventFilter = Union[Type[GovernanceEvent], Tuple[Type[GovernanceEvent], ...]]


# ══════════════════════════════════════════════════════════════════════
#  BUS
# ══════════════════════════════════════════════════════════════════════

class EventBus:
    """
    Ordered subscriber list with an optional bounded history.

    Args:
        history_size: number of recent events kept in ``history``
                      (0 disables it)
    """

    def __init__(self, history_size: int = 256) -> None:
        self._subscribers: List[Tuple[Subscriber, Optional[EventFilter]]] = []
        self._history: Deque[GovernanceEvent] = deque(maxlen=history_size or None)
        self._keep_history = history_size > 0

    def subscribe(
        self,
        callback: Subscriber,
        event_types: Optional[EventFilter] = None,
    ) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        entry = (callback, event_types)
        self._subscribers.append(entry)
        logger.debug(f"Subscriber registered: {getattr(callback, '__name__', callback)!r}")

        def unsubscribe() -> None:
            self._subscribers = [s for s in self._subscribers if s is not entry]

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, event: GovernanceEvent) -> None:
        if self._keep_history:
            self._history.append(event)
        for callback, event_types in list(self._subscribers):
            if event_types is not None and not isinstance(event, event_types):
                continue
            try:
                callback(event)
            except Exception:
                logger.exception(
                    f"Subscriber {getattr(callback, '__name__', callback)!r} "
                    f"failed on {event.name}"
                )

    @property
    def history(self) -> List[GovernanceEvent]:
        return list(self._history)

    def clear(self) -> None:
        self._history.clear()

    def __repr__(self) -> str:
        return f"<EventBus subscribers={len(self._subscribers)}>"
