"""
Snapshot persistence tests.
"""

import json

import pytest

from quadvote.config import EngineConfig
from quadvote.constants import SNAPSHOT_VERSION
from quadvote.governance import AlreadyVotedError, EventBus, VotingEngine
from quadvote.persist import (
    dump_snapshot,
    load_snapshot,
    open_engine,
    restore_snapshot,
    save_snapshot,
)

ADMIN = "0x" + "AD" * 20
ALICE = "0x" + "A1" * 20
BOB = "0x" + "B2" * 20

T0 = 1_700_000_000


@pytest.fixture
def engine():
    e = VotingEngine(ADMIN, initial_credits=100)
    e.register_voter(ADMIN, ALICE, now=T0)
    e.register_voter(ADMIN, BOB, now=T0)
    pid = e.create_proposal(ADMIN, "Bike lanes", "Paint them", 3600, T0)
    e.create_proposal(ADMIN, "Library hours", "", 600, T0)
    e.cast_vote(ALICE, pid, 36, T0 + 1)
    e.cast_vote(BOB, pid, 10, T0 + 2)
    e.execute_proposal(ADMIN, 2, T0 + 600)
    return e


class TestSnapshotFile:

    def test_save_and_load(self, engine, tmp_path):
        path = save_snapshot(engine, tmp_path / "state" / "engine.json")
        assert path.exists()

        restored = load_snapshot(path)
        assert restored.admin == ADMIN
        assert restored.to_dict() == engine.to_dict()
        assert restored.get_proposal(1).total_votes == 9
        assert restored.get_proposal(2).executed
        assert restored.get_voter_info(ALICE).remaining == 64

    def test_restored_engine_keeps_enforcing(self, engine, tmp_path):
        restored = load_snapshot(save_snapshot(engine, tmp_path / "s.json"))
        with pytest.raises(AlreadyVotedError):
            restored.cast_vote(ALICE, 1, 4, T0 + 10)
        assert restored.create_proposal(ADMIN, "Next", "", 60, T0 + 10) == 3

    def test_file_layout(self, engine, tmp_path):
        path = save_snapshot(engine, tmp_path / "s.json")
        data = json.loads(path.read_text())
        assert data["version"] == SNAPSHOT_VERSION
        assert data["admin"] == ADMIN
        assert set(data["voters"]) == {ALICE, BOB}
        assert set(data["proposals"]) == {"1", "2"}
        assert data["proposals"]["1"]["voterCredits"] == {ALICE: 36, BOB: 10}

    def test_overwrite_leaves_no_temp_files(self, engine, tmp_path):
        path = tmp_path / "s.json"
        save_snapshot(engine, path)
        save_snapshot(engine, path)
        assert [p.name for p in tmp_path.iterdir()] == ["s.json"]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_snapshot(path)

    def test_event_bus_attached(self, engine, tmp_path):
        bus = EventBus()
        restored = load_snapshot(save_snapshot(engine, tmp_path / "s.json"), event_bus=bus)
        restored.register_voter(ADMIN, "0x" + "C3" * 20)
        assert len(bus.history) == 1


class TestSnapshotValidation:

    def test_unknown_version(self, engine):
        data = dump_snapshot(engine)
        data["version"] = 99
        with pytest.raises(ValueError, match="version"):
            restore_snapshot(data)

    def test_missing_field(self, engine):
        data = dump_snapshot(engine)
        del data["admin"]
        with pytest.raises(ValueError, match="Malformed"):
            restore_snapshot(data)

    def test_vote_by_unregistered_voter(self, engine):
        data = dump_snapshot(engine)
        del data["voters"][BOB]
        with pytest.raises(ValueError, match="unregistered"):
            restore_snapshot(data)

    def test_votes_exceed_used_credits(self, engine):
        data = dump_snapshot(engine)
        data["voters"][ALICE]["usedCredits"] = 10
        with pytest.raises(ValueError, match="used"):
            restore_snapshot(data)

    def test_executed_before_end_time(self, engine):
        data = dump_snapshot(engine)
        data["proposals"]["1"]["executed"] = True
        data["proposals"]["1"]["executedAt"] = T0
        with pytest.raises(ValueError, match="executed before voting ended"):
            restore_snapshot(data)

    def test_executed_without_timestamp(self, engine):
        data = dump_snapshot(engine)
        data["proposals"]["2"]["executedAt"] = None
        with pytest.raises(ValueError, match="executed before voting ended"):
            restore_snapshot(data)

    @pytest.mark.parametrize("table", ["voters", "proposals"])
    def test_table_of_wrong_shape(self, engine, table):
        data = dump_snapshot(engine)
        data[table] = list(data[table].values())
        with pytest.raises(ValueError, match="Malformed"):
            restore_snapshot(data)


class TestOpenEngine:

    def test_fresh_when_no_snapshot(self, tmp_path):
        cfg = EngineConfig(admin=ADMIN, initial_credits=81, snapshot_path=str(tmp_path / "s.json"))
        engine = open_engine(cfg)
        assert engine.proposal_count == 0
        assert engine.initial_credits == 81

    def test_restores_existing_snapshot(self, engine, tmp_path):
        path = save_snapshot(engine, tmp_path / "s.json")
        cfg = EngineConfig(admin=ADMIN, snapshot_path=str(path))
        restored = open_engine(cfg)
        assert restored.get_proposal(1).total_votes == 9

    def test_admin_mismatch(self, engine, tmp_path):
        path = save_snapshot(engine, tmp_path / "s.json")
        cfg = EngineConfig(admin=BOB, snapshot_path=str(path))
        with pytest.raises(ValueError, match="admin"):
            open_engine(cfg)
