from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import TypeVar

from .config import HISTORY_DAYS, REVIEW_DAYS
from .core.models import AppState, DayRecord, DaySummary, QuestCount, Review
from .lib import clock
from .lib.dates import day_name, last_days, window_start

__all__ = [
    "archive_day",
    "live_quest_counts",
    "motivation",
    "prune_window",
    "prune_state",
    "review_summary",
    "week_view",
]

TOP_QUESTS = 3

T = TypeVar("T", date, DayRecord)


def _day_of(item: date | DayRecord) -> date:
    return item.date if isinstance(item, DayRecord) else item


def prune_window(
    collection: Iterable[T], now: datetime, days: int = HISTORY_DAYS
) -> list[T]:
    """Drop entries dated before the start of the trailing `days` window."""
    cutoff = window_start(now, days)
    return [item for item in collection if _day_of(item) >= cutoff]


def prune_state(state: AppState, now: datetime) -> None:
    state.weekly_progress = set(prune_window(state.weekly_progress, now))
    state.daily_history = prune_window(state.daily_history, now)


def live_quest_counts(state: AppState) -> tuple[QuestCount, ...]:
    return tuple(
        QuestCount(name=q.name, count=q.completed_count)
        for q in state.quests
        if q.completed_count > 0
    )


def archive_day(state: AppState, day: date, now: datetime) -> DayRecord:
    """Snapshot the live counters as the record for `day`, replacing any earlier one."""
    record = DayRecord(date=day, xp=state.today_xp, quests=live_quest_counts(state))
    for i, existing in enumerate(state.daily_history):
        if existing.date == day:
            state.daily_history[i] = record
            break
    else:
        state.daily_history.append(record)
    state.daily_history = prune_window(state.daily_history, now)
    return record


def week_view(state: AppState, now: datetime | None = None) -> list[DaySummary]:
    """The last seven days ending today, oldest first.

    Today is read from the live counters, earlier days from the archived
    records. A day with no record contributes zero XP.
    """
    now = now or clock.now()
    today = now.date()
    by_date = {r.date: r for r in state.daily_history}
    week = []
    for day in last_days(now, REVIEW_DAYS):
        if day == today:
            xp, quests = state.today_xp, live_quest_counts(state)
        elif record := by_date.get(day):
            xp, quests = record.xp, record.quests
        else:
            xp, quests = 0, ()
        week.append(
            DaySummary(
                date=day,
                day_name=day_name(day),
                xp=xp,
                completed=day in state.weekly_progress,
                is_today=day == today,
                quests=quests,
            )
        )
    return week


def _top_quests(week: Sequence[DaySummary]) -> tuple[QuestCount, ...]:
    totals: dict[str, int] = {}
    for day in week:
        for q in day.quests:
            totals[q.name] = totals.get(q.name, 0) + q.count
    # sorted() is stable, so ties keep first-encountered order
    ranked = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    return tuple(QuestCount(name=n, count=c) for n, c in ranked[:TOP_QUESTS])


def motivation(completion_rate: int, days_completed: int) -> str:
    if completion_rate >= 100:
        return "Perfect week! You're unstoppable!"
    if completion_rate >= 85:
        return "Amazing progress! Almost perfect!"
    if completion_rate >= 70:
        return "Great job! You're building strong habits!"
    if completion_rate >= 50:
        return "Good progress! Every day counts!"
    if days_completed > 0:
        return "You've got this! One day at a time!"
    return "This week is a fresh start!"


def review_summary(week: Sequence[DaySummary], state: AppState) -> Review:
    days_completed = sum(1 for d in week if d.completed)
    rate = round(days_completed / REVIEW_DAYS * 100)
    return Review(
        days_completed=days_completed,
        total_xp=sum(d.xp for d in week),
        completion_rate=rate,
        top_quests=_top_quests(week),
        current_streak=state.streak,
        best_streak=state.best_streak,
        chart_max=max([d.xp for d in week] + [state.daily_goal]),
        motivation=motivation(rate, days_completed),
    )
