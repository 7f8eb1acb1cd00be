import json
from pathlib import Path

from allocator import AllocationInput, allocate
from journey import ProgressTracker
from journey_persistence import JourneyStore, JsonFileStore, MemoryStore


class BrokenStore:
    def get(self, key):
        raise OSError("disk unavailable")

    def set(self, key, value):
        raise OSError("disk full")

    def delete(self, key):
        raise OSError("read-only")


def make_plan():
    return allocate(AllocationInput(budget=15000, odds_a=1.60, odds_b=2.35, bonus_percent_b=20, min_odds_for_bonus=2.1))


def test_json_file_store_round_trip(tmp_path: Path) -> None:
    plan = make_plan()
    store = JourneyStore(JsonFileStore(tmp_path / "journeys"))

    tracker = ProgressTracker(plan, store.load(plan.fingerprint))
    tracker.add_entry("A", 1000)
    tracker.add_cross_funded("A", 250)
    tracker.add_entry("B", 300, is_bonus=True)
    assert store.save(tracker.log) is True

    files = list((tmp_path / "journeys").glob("*.json"))
    assert [f.name for f in files] == ["betting-journey-1.6-2.35-15000.json"]

    loaded = store.load(plan.fingerprint)
    assert loaded.fingerprint == plan.fingerprint
    assert [e.id for e in loaded.book_a.entries] == [e.id for e in tracker.log.book_a.entries]
    assert loaded.book_a.total_deposit == 1250
    assert loaded.book_b.total_deposit == 250
    assert loaded.book_b.total_bonus == 300


def test_missing_journey_loads_empty() -> None:
    store = JourneyStore(MemoryStore())
    log = store.load("betting-journey-2-2-100")
    assert log.fingerprint == "betting-journey-2-2-100"
    assert log.book_a.entries == [] and log.book_b.entries == []


def test_corrupt_payload_loads_empty(capsys) -> None:
    backend = MemoryStore()
    backend.set("k", "{not json")
    log = JourneyStore(backend).load("k")
    assert log.book_a.entries == []
    assert "[WARN]" in capsys.readouterr().out


def test_load_recomputes_totals_from_entries() -> None:
    backend = MemoryStore()
    payload = {
        "book_a": {
            "entries": [{"id": "x1", "amount": 400, "is_bonus": False, "timestamp": "t", "fund_source": "A"}],
            "total_deposit": 999,
            "total_bonus": 5,
        },
        "book_b": {"entries": [], "total_deposit": 0, "total_bonus": 0},
        "is_complete": False,
    }
    backend.set("k", json.dumps(payload))
    log = JourneyStore(backend).load("k")
    assert log.book_a.total_deposit == 400
    assert log.book_a.total_bonus == 0


def test_storage_failures_do_not_raise(capsys) -> None:
    plan = make_plan()
    store = JourneyStore(BrokenStore())

    log = store.load(plan.fingerprint)
    tracker = ProgressTracker(plan, log)
    tracker.add_entry("A", 100)

    assert store.save(tracker.log) is False
    assert tracker.log.book_a.total_deposit == 100
    assert store.discard(plan.fingerprint) is False
    assert capsys.readouterr().out.count("[WARN]") == 3


def test_discard_removes_snapshot(tmp_path: Path) -> None:
    plan = make_plan()
    backend = JsonFileStore(tmp_path)
    store = JourneyStore(backend)
    tracker = ProgressTracker(plan)
    tracker.add_entry("B", 10)
    store.save(tracker.log, is_complete=tracker.summary().all_complete)

    assert json.loads(backend.get(plan.fingerprint))["is_complete"] is False
    assert store.discard(plan.fingerprint) is True
    assert backend.get(plan.fingerprint) is None
    assert store.load(plan.fingerprint).book_b.entries == []
