from datetime import datetime, timedelta

import pytest

from farf import config
from farf.core.models import AppState, default_state
from farf.store import MemoryStore

START = datetime(2025, 3, 10, 9, 30)


class FakeClock:
    """Callable time source that only moves when told to."""

    def __init__(self, at: datetime = START):
        self.at = at

    def __call__(self) -> datetime:
        return self.at

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0) -> datetime:
        self.at += timedelta(days=days, hours=hours, minutes=minutes)
        return self.at

    def set(self, at: datetime) -> datetime:
        self.at = at
        return at


@pytest.fixture(autouse=True)
def _isolate_log(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOG_FILE", tmp_path / "farf.log")


@pytest.fixture
def tmp_farf_dir(tmp_path, monkeypatch):
    farf_dir = tmp_path / ".farf"
    monkeypatch.setattr(config, "FARF_DIR", farf_dir)
    monkeypatch.setattr(config, "DB_PATH", farf_dir / "farf.db")
    monkeypatch.setattr(config, "CONFIG_PATH", farf_dir / "config.yaml")
    monkeypatch.setattr(config, "LOG_FILE", farf_dir / "farf.log")
    return farf_dir


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def state() -> AppState:
    """Default state already reconciled to START's day."""
    return default_state(today=START.date())
