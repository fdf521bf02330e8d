from datetime import datetime

from .core.models import AppState
from .history import archive_day, prune_state
from .lib import clock
from .lib.dates import is_yesterday

__all__ = ["reconcile_day", "reset_day_counters"]


def reset_day_counters(state: AppState) -> None:
    for task in state.daily_essentials:
        task.completed = False
    for quest in state.quests:
        quest.completed_count = 0
    state.today_xp = 0
    state.celebrated_today = False


def _previous_goal_reached(state: AppState) -> bool:
    if state.today_date is None:
        return False
    return state.today_xp >= state.daily_goal or state.today_date in state.weekly_progress


def reconcile_day(state: AppState, now: datetime | None = None) -> bool:
    """Roll the state over to the current calendar day.

    No-op when the state already belongs to today, so repeated calls on the
    same day are safe. Returns True when a rollover happened; the caller
    persists.
    """
    now = now or clock.now()
    today = now.date()
    previous = state.today_date
    if previous == today:
        return False

    if previous is not None and state.today_xp > 0:
        archive_day(state, previous, now)

    continued = _previous_goal_reached(state) and is_yesterday(previous, now)
    if previous is not None and not continued:
        state.streak = 0

    reset_day_counters(state)
    state.today_date = today
    prune_state(state, now)
    return True
