import json
import sqlite3

import pytest

from farf import config
from farf import store as farf_store
from farf.core.errors import PersistenceError
from farf.core.models import DayRecord, QuestCount
from farf.ledger import complete_daily_task, complete_quest
from farf.store import MemoryStore, SqliteStore, load_state, save_state
from tests.conftest import START


def test_init_creates_schema(tmp_farf_dir):
    farf_store.init()

    with farf_store.get_db() as conn:
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        applied = {r[0] for r in conn.execute("SELECT name FROM _migrations")}
    assert "documents" in tables
    assert applied == {"001_documents"}


def test_init_is_repeatable(tmp_farf_dir):
    farf_store.init()
    farf_store.init()
    assert config.DB_PATH.exists()


def test_get_db_auto_rollback(tmp_farf_dir):
    farf_store.init()
    with pytest.raises(sqlite3.IntegrityError):
        with farf_store.get_db() as conn:
            conn.execute("INSERT INTO documents (key, body) VALUES (?, ?)", ("k", "{}"))
            conn.execute("INSERT INTO documents (key, body) VALUES (?, ?)", ("k", "{}"))

    with farf_store.get_db() as conn:
        assert conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0] == 0


def test_sqlite_store_read_write_delete(tmp_farf_dir):
    s = SqliteStore()

    assert s.read("k") is None
    s.write("k", "one")
    s.write("k", "two")
    assert s.read("k") == "two"
    s.delete("k")
    assert s.read("k") is None


def test_sqlite_store_wraps_errors(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    s = SqliteStore(blocker / "nested" / "farf.db")

    with pytest.raises(PersistenceError):
        s.write("k", "v")
    with pytest.raises(PersistenceError):
        s.read("k")


def test_load_missing_document_gives_defaults(store):
    state = load_state(store)

    assert state.daily_goal == 100
    assert [q.id for q in state.quests] == ["q1", "q2"]
    assert state.today_date is None


def test_round_trip_sqlite(tmp_farf_dir, state):
    state.daily_goal = 60
    complete_daily_task(state, "de1", START)
    complete_quest(state, "q1", START)
    state.daily_history = [
        DayRecord(date=START.date().replace(day=8), xp=70, quests=(QuestCount("Learn", 1),)),
        DayRecord(date=START.date().replace(day=9), xp=15),
    ]
    s = SqliteStore()

    save_state(s, state)

    assert load_state(s) == state


def test_round_trip_memory(store, state):
    state.streak = 3
    state.best_streak = 7
    state.celebrated_today = True
    save_state(store, state)

    assert load_state(store) == state


def test_document_uses_storage_key_and_camel_case(store, state):
    save_state(store, state)

    doc = json.loads(store.documents[config.STORAGE_KEY])
    assert doc["dailyGoal"] == 100
    assert doc["todayDate"] == START.date().isoformat()
    assert doc["dailyEssentials"][0] == {
        "id": "de1",
        "name": "Drink 5 Bottles of Water",
        "xp": 10,
        "completed": False,
    }
    assert doc["schemaVersion"] == config.SCHEMA_VERSION


def test_old_document_backfills_missing_fields():
    legacy = {
        "dailyGoal": 80,
        "streak": 4,
        "todayXP": 30,
        "todayDate": "2025-03-10",
        "weeklyProgress": ["2025-03-09"],
        "quests": [{"id": "q9", "name": "Run", "xp": 30, "completedCount": 1}],
    }
    s = MemoryStore({config.STORAGE_KEY: json.dumps(legacy)})

    state = load_state(s)

    assert state.daily_history == []
    assert state.best_streak == 4
    assert state.daily_goal == 80
    assert [q.id for q in state.quests] == ["q9"]
    assert [t.id for t in state.daily_essentials] == ["de1", "de2", "de3"]
    assert state.total_xp_earned == 0


def test_corrupt_document_raises():
    s = MemoryStore({config.STORAGE_KEY: "{not json"})
    with pytest.raises(PersistenceError):
        load_state(s)


def test_non_object_document_raises():
    s = MemoryStore({config.STORAGE_KEY: "[1, 2]"})
    with pytest.raises(PersistenceError):
        load_state(s)


def test_mistyped_document_loads_coerced():
    s = MemoryStore({config.STORAGE_KEY: '{"weeklyProgress": 5, "todayXP": Infinity}'})

    state = load_state(s)

    assert state.weekly_progress == set()
    assert state.today_xp == 0


def test_unconvertible_document_raises(monkeypatch):
    def explode(doc):
        raise TypeError("bad field")

    monkeypatch.setattr(farf_store, "dict_to_state", explode)
    s = MemoryStore({config.STORAGE_KEY: "{}"})

    with pytest.raises(PersistenceError, match="malformed"):
        load_state(s)
