from collections.abc import Mapping
from typing import Any

from farf.config import SCHEMA_VERSION
from farf.core.models import AppState, DailyTask, DayRecord, Quest, QuestCount, new_id

from .dates import parse_day

Document = dict[str, Any]


def _int(val: object, default: int = 0, floor: int = 0) -> int:
    """Coerce a stored number, falling back to `default` for junk."""
    if isinstance(val, bool) or val is None:
        return default
    try:
        return max(floor, int(val))  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return default


def _name(val: object) -> str:
    return str(val).strip() if val is not None else ""


def _iso(day) -> str | None:
    return day.isoformat() if day is not None else None


def row_to_task(row: Mapping[str, Any]) -> DailyTask:
    return DailyTask(
        id=str(row.get("id") or new_id()),
        name=_name(row.get("name")),
        xp=_int(row.get("xp"), default=1, floor=1),
        completed=bool(row.get("completed", False)),
    )


def row_to_quest(row: Mapping[str, Any]) -> Quest:
    return Quest(
        id=str(row.get("id") or new_id()),
        name=_name(row.get("name")),
        xp=_int(row.get("xp"), default=1, floor=1),
        completed_count=_int(row.get("completedCount")),
    )


def _quest_counts(rows: object) -> tuple[QuestCount, ...]:
    if not isinstance(rows, list):
        return ()
    return tuple(
        QuestCount(name=_name(q.get("name")), count=_int(q.get("count")))
        for q in rows
        if isinstance(q, Mapping)
    )


def row_to_record(row: Mapping[str, Any]) -> DayRecord | None:
    day = parse_day(row.get("date"))
    if day is None:
        return None
    return DayRecord(date=day, xp=_int(row.get("xp")), quests=_quest_counts(row.get("quests")))


def _records(rows: object) -> list[DayRecord]:
    """Parse history rows; a later row for the same date replaces an earlier one."""
    by_date: dict = {}
    for row in rows if isinstance(rows, list) else []:
        if not isinstance(row, Mapping):
            continue
        record = row_to_record(row)
        if record is not None:
            by_date[record.date] = record
    return list(by_date.values())


def _rows(val: object) -> list[Mapping[str, Any]]:
    return [r for r in val if isinstance(r, Mapping)] if isinstance(val, list) else []


def state_to_dict(state: AppState) -> Document:
    """Serialize to the persisted camelCase document."""
    return {
        "schemaVersion": SCHEMA_VERSION,
        "dailyGoal": state.daily_goal,
        "streak": state.streak,
        "bestStreak": state.best_streak,
        "lastCompletedDate": _iso(state.last_completed_date),
        "totalDaysCompleted": state.total_days_completed,
        "totalXPEarned": state.total_xp_earned,
        "totalQuestsCompleted": state.total_quests_completed,
        "dailyEssentials": [
            {"id": t.id, "name": t.name, "xp": t.xp, "completed": t.completed}
            for t in state.daily_essentials
        ],
        "quests": [
            {"id": q.id, "name": q.name, "xp": q.xp, "completedCount": q.completed_count}
            for q in state.quests
        ],
        "weeklyProgress": sorted(d.isoformat() for d in state.weekly_progress),
        "dailyHistory": [
            {
                "date": r.date.isoformat(),
                "xp": r.xp,
                "quests": [{"name": q.name, "count": q.count} for q in r.quests],
            }
            for r in sorted(state.daily_history, key=lambda r: r.date)
        ],
        "todayXP": state.today_xp,
        "todayDate": _iso(state.today_date),
        "celebratedToday": state.celebrated_today,
    }


def merge_defaults(stored: Mapping[str, Any], defaults: AppState) -> Document:
    """Shallow merge of a stored document over the schema defaults.

    Older documents lack `dailyHistory` and `bestStreak`; history backfills
    empty and best streak backfills from the current streak.
    """
    doc = state_to_dict(defaults)
    doc.update(stored)
    if not doc.get("dailyHistory"):
        doc["dailyHistory"] = []
    if not doc.get("bestStreak"):
        doc["bestStreak"] = doc.get("streak") or 0
    return doc


def dict_to_state(doc: Mapping[str, Any]) -> AppState:
    """Build state from a merged document, coercing every field."""
    progress = doc.get("weeklyProgress")
    weekly = {parse_day(d) for d in progress} if isinstance(progress, list) else set()
    weekly.discard(None)
    streak = _int(doc.get("streak"))
    return AppState(
        daily_goal=_int(doc.get("dailyGoal"), default=100, floor=10),
        streak=streak,
        best_streak=max(streak, _int(doc.get("bestStreak"))),
        last_completed_date=parse_day(doc.get("lastCompletedDate")),
        total_days_completed=_int(doc.get("totalDaysCompleted")),
        total_xp_earned=_int(doc.get("totalXPEarned")),
        total_quests_completed=_int(doc.get("totalQuestsCompleted")),
        daily_essentials=[row_to_task(r) for r in _rows(doc.get("dailyEssentials"))],
        quests=[row_to_quest(r) for r in _rows(doc.get("quests"))],
        weekly_progress=weekly,  # type: ignore[arg-type]
        daily_history=_records(doc.get("dailyHistory")),
        today_xp=_int(doc.get("todayXP")),
        today_date=parse_day(doc.get("todayDate")),
        celebrated_today=bool(doc.get("celebratedToday", False)),
    )
