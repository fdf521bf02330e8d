from datetime import datetime

from .config import MIN_DAILY_GOAL
from .core.errors import NotFoundError, ValidationError
from .core.models import AppState, DailyTask, Quest, new_id
from .cycle import reset_day_counters
from .history import prune_window
from .lib import clock
from .lib.fuzzy import find_in_pool, find_in_pool_exact
from .store import fresh_state

__all__ = [
    "MAX_ITEM_XP",
    "add_daily_task",
    "add_quest",
    "check_goal",
    "complete_daily_task",
    "complete_quest",
    "delete_item",
    "find_item",
    "get_item",
    "rename_item",
    "reprice_item",
    "reset_all",
    "reset_today",
    "set_daily_goal",
]

# soft bound offered to input widgets; the core accepts any xp >= 1
MAX_ITEM_XP = 500


# ── goal ─────────────────────────────────────────────────────────────────────


def check_goal(state: AppState, now: datetime | None = None) -> bool:
    """Credit today once the goal is met. True only on the crossing."""
    now = now or clock.now()
    today = now.date()
    if state.today_xp < state.daily_goal or today in state.weekly_progress:
        return False

    state.weekly_progress.add(today)
    state.weekly_progress = set(prune_window(state.weekly_progress, now))
    state.total_days_completed += 1
    state.streak += 1
    state.best_streak = max(state.best_streak, state.streak)
    state.last_completed_date = today
    return True


def set_daily_goal(state: AppState, goal: int, now: datetime | None = None) -> bool:
    if isinstance(goal, bool) or not isinstance(goal, int) or goal < MIN_DAILY_GOAL:
        raise ValidationError(f"daily goal must be at least {MIN_DAILY_GOAL} XP")
    state.daily_goal = goal
    return check_goal(state, now)


# ── completions ──────────────────────────────────────────────────────────────


def _get_task(state: AppState, task_id: str) -> DailyTask:
    task = next((t for t in state.daily_essentials if t.id == task_id), None)
    if task is None:
        raise NotFoundError("daily task", task_id)
    return task


def _get_quest(state: AppState, quest_id: str) -> Quest:
    quest = next((q for q in state.quests if q.id == quest_id), None)
    if quest is None:
        raise NotFoundError("quest", quest_id)
    return quest


def complete_daily_task(state: AppState, task_id: str, now: datetime | None = None) -> bool:
    task = _get_task(state, task_id)
    if task.completed:
        return False
    task.completed = True
    state.today_xp += task.xp
    state.total_xp_earned += task.xp
    return check_goal(state, now)


def complete_quest(state: AppState, quest_id: str, now: datetime | None = None) -> bool:
    quest = _get_quest(state, quest_id)
    quest.completed_count += 1
    state.today_xp += quest.xp
    state.total_xp_earned += quest.xp
    state.total_quests_completed += 1
    return check_goal(state, now)


# ── items ────────────────────────────────────────────────────────────────────


def _clean_name(name: str) -> str:
    cleaned = name.strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationError("name cannot be empty")
    return cleaned


def _clean_xp(xp: int) -> int:
    if isinstance(xp, bool) or not isinstance(xp, int) or xp < 1:
        raise ValidationError("xp must be a whole number of at least 1")
    return xp


def get_item(state: AppState, item_id: str) -> DailyTask | Quest:
    item = next((t for t in state.daily_essentials if t.id == item_id), None)
    if item is None:
        item = next((q for q in state.quests if q.id == item_id), None)
    if item is None:
        raise NotFoundError("task or quest", item_id)
    return item


def find_item(state: AppState, ref: str, exact: bool = False) -> DailyTask | Quest | None:
    """Resolve by id, id prefix, name, name substring, then fuzzy name unless `exact`."""
    pool = [*state.daily_essentials, *state.quests]
    return find_in_pool_exact(ref, pool) if exact else find_in_pool(ref, pool)


def add_daily_task(state: AppState, name: str, xp: int) -> DailyTask:
    task = DailyTask(id=new_id(), name=_clean_name(name), xp=_clean_xp(xp))
    state.daily_essentials.append(task)
    return task


def add_quest(state: AppState, name: str, xp: int) -> Quest:
    quest = Quest(id=new_id(), name=_clean_name(name), xp=_clean_xp(xp))
    state.quests.append(quest)
    return quest


def rename_item(state: AppState, item_id: str, name: str) -> DailyTask | Quest:
    cleaned = _clean_name(name)
    item = get_item(state, item_id)
    item.name = cleaned
    return item


def reprice_item(state: AppState, item_id: str, xp: int) -> DailyTask | Quest:
    """Change future earnings only; XP already banked today is kept."""
    value = _clean_xp(xp)
    item = get_item(state, item_id)
    item.xp = value
    return item


def delete_item(state: AppState, item_id: str) -> DailyTask | Quest:
    item = get_item(state, item_id)
    if isinstance(item, DailyTask):
        state.daily_essentials = [t for t in state.daily_essentials if t.id != item_id]
    else:
        state.quests = [q for q in state.quests if q.id != item_id]
    return item


# ── resets ───────────────────────────────────────────────────────────────────


def reset_today(state: AppState, now: datetime | None = None) -> None:
    """Clear today's progress and withdraw today's completion credit, if any.

    Lifetime XP and quest totals are not rolled back.
    """
    now = now or clock.now()
    today = now.date()
    reset_day_counters(state)
    if today in state.weekly_progress:
        state.weekly_progress.discard(today)
        state.total_days_completed = max(0, state.total_days_completed - 1)
        state.streak = max(0, state.streak - 1)


def reset_all(now: datetime | None = None) -> AppState:
    now = now or clock.now()
    return fresh_state(today=now.date())
