"""
Proposal store test suite.

Coverage:
  - creation: authorization, title / duration validation, sequential ids
  - vote recording: window boundary, at-most-once, tally
  - execution: boundary, re-execution, authorization
  - lifecycle status and serialization
"""

import pytest

from quadvote.governance.errors import (
    AlreadyExecutedError,
    AlreadyVotedError,
    EmptyTitleError,
    InvalidDurationError,
    NotAuthorizedError,
    ProposalNotFoundError,
    VotingClosedError,
    VotingStillOpenError,
)
from quadvote.governance.proposals import (
    Proposal,
    ProposalStatus,
    ProposalStore,
    ProposalView,
)

ADMIN = "0x" + "AD" * 20
ALICE = "0x" + "A1" * 20
BOB = "0x" + "B2" * 20

T0 = 1_700_000_000
HOUR = 3600


def make_store_with_proposal(duration=HOUR):
    store = ProposalStore(ADMIN)
    pid = store.create(ADMIN, "Fund the park", "Allocate budget", duration, T0)
    return store, pid


class TestProposalCreation:

    def test_create_basic(self):
        store, pid = make_store_with_proposal()
        assert pid == 1
        view = store.get(pid)
        assert isinstance(view, ProposalView)
        assert view.title == "Fund the park"
        assert view.voting_end_time == T0 + HOUR
        assert view.total_votes == 0
        assert not view.executed

    def test_sequential_ids(self):
        store = ProposalStore(ADMIN)
        ids = [store.create(ADMIN, f"P{i}", "", 10, T0) for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]
        assert store.proposal_count == 5
        assert store.list_ids() == [1, 2, 3, 4, 5]

    def test_failed_create_does_not_consume_id(self):
        store = ProposalStore(ADMIN)
        with pytest.raises(EmptyTitleError):
            store.create(ADMIN, "", "", 10, T0)
        assert store.create(ADMIN, "ok", "", 10, T0) == 1

    def test_non_admin_raises(self):
        store = ProposalStore(ADMIN)
        with pytest.raises(NotAuthorizedError):
            store.create(ALICE, "Title", "", HOUR, T0)
        assert store.proposal_count == 0

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_empty_title_raises(self, title):
        store = ProposalStore(ADMIN)
        with pytest.raises(EmptyTitleError):
            store.create(ADMIN, title, "desc", HOUR, T0)

    @pytest.mark.parametrize("duration", [0, -1, None, "3600", False, float("nan"), float("inf")])
    def test_invalid_duration_raises(self, duration):
        store = ProposalStore(ADMIN)
        with pytest.raises(InvalidDurationError):
            store.create(ADMIN, "Title", "", duration, T0)

    def test_empty_description_allowed(self):
        store = ProposalStore(ADMIN)
        pid = store.create(ADMIN, "Title", "", HOUR, T0)
        assert store.get(pid).description == ""


class TestRecordVote:

    def test_record_vote_tallies(self):
        store, pid = make_store_with_proposal()
        store.record_vote(pid, ALICE, 36, 6, T0 + 1)
        store.record_vote(pid, BOB, 10, 3, T0 + 2)
        assert store.get(pid).total_votes == 9
        assert store.get(pid).voter_count == 2
        assert store.voter_credits(pid, ALICE) == 36
        assert store.has_voted(pid, ALICE)

    def test_double_vote_raises(self):
        store, pid = make_store_with_proposal()
        store.record_vote(pid, ALICE, 36, 6, T0 + 1)
        with pytest.raises(AlreadyVotedError):
            store.record_vote(pid, ALICE, 4, 2, T0 + 2)
        assert store.get(pid).total_votes == 6
        assert store.voter_credits(pid, ALICE) == 36

    def test_vote_at_end_time_closed(self):
        store, pid = make_store_with_proposal()
        with pytest.raises(VotingClosedError):
            store.record_vote(pid, ALICE, 1, 1, T0 + HOUR)

    def test_vote_just_before_end_accepted(self):
        store, pid = make_store_with_proposal()
        store.record_vote(pid, ALICE, 1, 1, T0 + HOUR - 1)
        assert store.has_voted(pid, ALICE)

    @pytest.mark.parametrize("pid", [0, 2, -1, 999])
    def test_unknown_proposal_raises(self, pid):
        store, _ = make_store_with_proposal()
        with pytest.raises(ProposalNotFoundError):
            store.record_vote(pid, ALICE, 1, 1, T0)

    def test_has_voted_unknown_proposal_false(self):
        store = ProposalStore(ADMIN)
        assert not store.has_voted(7, ALICE)
        assert store.voter_credits(7, ALICE) is None


class TestExecution:

    def test_execute_at_end_time(self):
        store, pid = make_store_with_proposal()
        proposal = store.execute(ADMIN, pid, T0 + HOUR)
        assert proposal.executed
        assert proposal.executed_at == T0 + HOUR
        assert store.get(pid).executed

    def test_execute_before_end_raises(self):
        store, pid = make_store_with_proposal()
        with pytest.raises(VotingStillOpenError):
            store.execute(ADMIN, pid, T0 + HOUR - 1)
        assert not store.get(pid).executed

    def test_reexecute_raises(self):
        store, pid = make_store_with_proposal()
        store.execute(ADMIN, pid, T0 + HOUR)
        with pytest.raises(AlreadyExecutedError):
            store.execute(ADMIN, pid, T0 + 2 * HOUR)

    def test_non_admin_raises(self):
        store, pid = make_store_with_proposal()
        with pytest.raises(NotAuthorizedError):
            store.execute(ALICE, pid, T0 + HOUR)

    def test_unknown_raises(self):
        store, _ = make_store_with_proposal()
        with pytest.raises(ProposalNotFoundError):
            store.execute(ADMIN, 42, T0 + HOUR)

    def test_vote_after_execution_closed(self):
        store, pid = make_store_with_proposal()
        store.execute(ADMIN, pid, T0 + HOUR)
        with pytest.raises(VotingClosedError):
            store.record_vote(pid, ALICE, 1, 1, T0 + HOUR + 5)


class TestLifecycle:

    def test_open_closed_executed(self):
        store, pid = make_store_with_proposal()
        assert store.status(pid, T0) == ProposalStatus.OPEN
        assert store.status(pid, T0 + HOUR - 1) == ProposalStatus.OPEN
        assert store.status(pid, T0 + HOUR) == ProposalStatus.CLOSED
        store.execute(ADMIN, pid, T0 + HOUR)
        assert store.status(pid, T0 + HOUR) == ProposalStatus.EXECUTED

    def test_status_unknown_raises(self):
        with pytest.raises(ProposalNotFoundError):
            ProposalStore(ADMIN).status(1, T0)


class TestProposalSerialization:

    def test_round_trip_preserves_records(self):
        store, pid = make_store_with_proposal()
        store.record_vote(pid, ALICE, 36, 6, T0 + 1)
        store.create(ADMIN, "Second", "", 60, T0)
        restored = ProposalStore.from_dict(store.to_dict())
        assert restored.proposal_count == 2
        assert restored.get(pid) == store.get(pid)
        assert restored.voter_credits(pid, ALICE) == 36
        assert restored.create(ADMIN, "Third", "", 60, T0) == 3

    def test_from_dict_rejects_tally_mismatch(self):
        store, pid = make_store_with_proposal()
        store.record_vote(pid, ALICE, 36, 6, T0 + 1)
        data = store.to_dict()
        data["proposals"]["1"]["totalVotes"] = 7
        with pytest.raises(ValueError, match="totalVotes"):
            ProposalStore.from_dict(data)

    def test_from_dict_rejects_sparse_ids(self):
        store, _ = make_store_with_proposal()
        data = store.to_dict()
        data["proposalCounter"] = 2
        with pytest.raises(ValueError, match="dense"):
            ProposalStore.from_dict(data)

    def test_proposal_repr(self):
        store, pid = make_store_with_proposal()
        p = Proposal.from_dict(store.to_dict()["proposals"]["1"])
        assert "#1" in repr(p)
