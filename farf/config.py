from pathlib import Path

import yaml

FARF_DIR = Path.home() / ".farf"
DB_PATH = FARF_DIR / "farf.db"
CONFIG_PATH = FARF_DIR / "config.yaml"
LOG_FILE = FARF_DIR / "farf.log"

STORAGE_KEY = "farflife_data"
SCHEMA_VERSION = 2

MIN_DAILY_GOAL = 10
HISTORY_DAYS = 30
REVIEW_DAYS = 7


class Config:
    """Single-instance config manager. Load once, cache in memory."""

    _instance: "Config | None" = None
    _data: dict[str, object]

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = {}
            cls._instance._load()
        return cls._instance

    def _load(self) -> None:
        """Load config from disk."""
        if not CONFIG_PATH.exists():
            self._data = {}
            return
        try:
            with CONFIG_PATH.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            loaded = None
        self._data = loaded if isinstance(loaded, dict) else {}

    def _save(self) -> None:
        """Persist config to disk."""
        FARF_DIR.mkdir(exist_ok=True)
        with CONFIG_PATH.open("w") as f:
            yaml.dump(self._data, f, default_flow_style=False, allow_unicode=True)

    def get(self, key: str, default: object = None) -> object:
        """Get config value."""
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        """Set config value and persist."""
        self._data[key] = value
        self._save()


_config = Config()


def _get_int(key: str, default: int) -> int:
    val = _config.get(key)
    if isinstance(val, bool):
        return default
    try:
        return int(val) if val is not None else default
    except (TypeError, ValueError):
        return default


def get_default_goal() -> int:
    """Daily goal used when creating a fresh state."""
    return max(MIN_DAILY_GOAL, _get_int("default_goal", 100))


def set_default_goal(goal: int) -> None:
    _config.set("default_goal", goal)


def get_tick_seconds() -> int:
    """Interval of the clock-refresh tick in the scheduler."""
    return max(1, _get_int("tick_seconds", 60))
