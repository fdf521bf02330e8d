import copy
from datetime import timedelta

from farf.core.models import DayRecord, QuestCount, default_state
from farf.cycle import reconcile_day
from farf.ledger import complete_daily_task, complete_quest
from tests.conftest import START

DAY = timedelta(days=1)


def test_first_run_sets_today_and_keeps_streak():
    state = default_state()
    state.streak = 2

    assert reconcile_day(state, START) is True
    assert state.today_date == START.date()
    assert state.streak == 2
    assert state.daily_history == []


def test_same_day_is_noop(state):
    complete_quest(state, "q1", START)

    assert reconcile_day(state, START + timedelta(hours=10)) is False
    assert state.today_xp == 50


def test_reconcile_is_idempotent(state):
    complete_quest(state, "q1", START)
    later = START + DAY

    reconcile_day(state, later)
    snapshot = copy.deepcopy(state)
    reconcile_day(state, later)

    assert state == snapshot
    assert len(state.daily_history) == 1


def test_rollover_archives_and_resets(state):
    complete_daily_task(state, "de1", START)
    complete_quest(state, "q2", START)
    complete_quest(state, "q2", START)
    state.celebrated_today = True

    reconcile_day(state, START + DAY)

    assert state.daily_history == [
        DayRecord(date=START.date(), xp=90, quests=(QuestCount("Practice an Instrument", 2),))
    ]
    assert state.today_xp == 0
    assert state.today_date == (START + DAY).date()
    assert state.celebrated_today is False
    assert not any(t.completed for t in state.daily_essentials)
    assert all(q.completed_count == 0 for q in state.quests)
    assert state.total_xp_earned == 90


def test_zero_xp_day_leaves_no_record(state):
    reconcile_day(state, START + DAY)
    assert state.daily_history == []


def test_archive_replaces_existing_record_for_date(state):
    state.daily_history = [DayRecord(date=START.date(), xp=5)]
    complete_quest(state, "q1", START)

    reconcile_day(state, START + DAY)

    assert state.daily_history == [
        DayRecord(date=START.date(), xp=50, quests=(QuestCount("Learn a New Language", 1),))
    ]


def test_completed_yesterday_keeps_streak(state):
    state.daily_goal = 50
    complete_quest(state, "q1", START)

    reconcile_day(state, START + DAY)

    assert state.streak == 1


def test_missed_yesterday_resets_streak(state):
    state.streak = 4
    complete_daily_task(state, "de1", START)

    reconcile_day(state, START + DAY)

    assert state.streak == 0


def test_gap_of_two_days_resets_streak(state):
    state.daily_goal = 50
    complete_quest(state, "q1", START)

    reconcile_day(state, START + 2 * DAY)

    assert state.streak == 0
    assert state.best_streak == 1


def test_goal_raised_after_crediting_still_counts_as_completed(state):
    state.daily_goal = 50
    complete_quest(state, "q1", START)
    state.daily_goal = 500

    reconcile_day(state, START + DAY)

    assert state.streak == 1


def test_rollover_prunes_windows(state):
    old = START.date() - timedelta(days=29)
    state.weekly_progress = {old}
    state.daily_history = [DayRecord(date=old, xp=40)]

    reconcile_day(state, START + 2 * DAY)

    assert state.weekly_progress == set()
    assert state.daily_history == []


def test_streak_continuity_across_a_missed_day(state):
    state.daily_goal = 50
    day = START

    complete_quest(state, "q1", day)
    day += DAY
    reconcile_day(state, day)
    complete_quest(state, "q1", day)
    assert state.streak == 2

    day += DAY
    reconcile_day(state, day)
    complete_daily_task(state, "de1", day)

    day += DAY
    reconcile_day(state, day)
    complete_quest(state, "q1", day)

    assert state.streak == 1
    assert state.total_days_completed == 3
    assert state.best_streak == 2
