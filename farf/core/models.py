import dataclasses
import secrets
import string
import time
from datetime import date

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclasses.dataclass
class DailyTask:
    id: str
    name: str
    xp: int
    completed: bool = False


@dataclasses.dataclass
class Quest:
    id: str
    name: str
    xp: int
    completed_count: int = 0


@dataclasses.dataclass(frozen=True)
class QuestCount:
    name: str
    count: int


@dataclasses.dataclass(frozen=True)
class DayRecord:
    date: date
    xp: int
    quests: tuple[QuestCount, ...] = ()


@dataclasses.dataclass
class AppState:
    daily_goal: int = 100
    streak: int = 0
    best_streak: int = 0
    last_completed_date: date | None = None
    total_days_completed: int = 0
    total_xp_earned: int = 0
    total_quests_completed: int = 0
    daily_essentials: list[DailyTask] = dataclasses.field(default_factory=list)
    quests: list[Quest] = dataclasses.field(default_factory=list)
    weekly_progress: set[date] = dataclasses.field(default_factory=set)
    daily_history: list[DayRecord] = dataclasses.field(default_factory=list)
    today_xp: int = 0
    today_date: date | None = None
    celebrated_today: bool = False


@dataclasses.dataclass(frozen=True)
class DaySummary:
    date: date
    day_name: str
    xp: int
    completed: bool
    is_today: bool = False
    quests: tuple[QuestCount, ...] = ()


@dataclasses.dataclass(frozen=True)
class Review:
    days_completed: int
    total_xp: int
    completion_rate: int
    top_quests: tuple[QuestCount, ...]
    current_streak: int
    best_streak: int
    chart_max: int = 0
    motivation: str = ""


@dataclasses.dataclass(frozen=True)
class Stats:
    total_days_completed: int = 0
    total_xp_earned: int = 0
    total_quests_completed: int = 0


@dataclasses.dataclass(frozen=True)
class Completion:
    xp_gained: int = 0
    goal_reached: bool = False
    celebrate: bool = False


def default_state(daily_goal: int = 100, today: date | None = None) -> AppState:
    """Fresh first-run state seeded with the starter tasks."""
    return AppState(
        daily_goal=daily_goal,
        daily_essentials=[
            DailyTask(id="de1", name="Drink 5 Bottles of Water", xp=10),
            DailyTask(id="de2", name="Exercise for 30 Minutes", xp=20),
            DailyTask(id="de3", name="Read for 15 Minutes", xp=15),
        ],
        quests=[
            Quest(id="q1", name="Learn a New Language", xp=50),
            Quest(id="q2", name="Practice an Instrument", xp=40),
        ],
        today_date=today,
    )


def new_id() -> str:
    """Unique, stable item id: task_<ms timestamp>_<9 base36 chars>."""
    stamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"task_{stamp}_{suffix}"
