"""Core-to-UI facade.

One method per UI intent. Each runs exactly one core operation against the
live state and persists the result. Read accessors expose what a renderer
needs. All calls are serialised so the scheduler thread and the UI never
interleave inside a mutation.
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, datetime

from . import cycle, history, ledger
from .config import STORAGE_KEY
from .core.errors import PersistenceError
from .core.models import AppState, Completion, DailyTask, DaySummary, Quest, Review, Stats
from .lib import clock
from .lib.log import log
from .store import MemoryStore, SqliteStore, Store, fresh_state, load_state, save_state

__all__ = ["NEAR_COMPLETE_PERCENT", "Session"]

NEAR_COMPLETE_PERCENT = 80


class Session:
    def __init__(
        self,
        store: Store,
        state: AppState,
        now: Callable[[], datetime] = clock.now,
    ):
        self.store = store
        self.state = state
        self.now = now
        self.last_save_error: PersistenceError | None = None
        self._lock = threading.RLock()

    @classmethod
    def open(
        cls,
        store: Store | None = None,
        now: Callable[[], datetime] = clock.now,
    ) -> "Session":
        """Load the stored state (or defaults), reconcile to today, persist."""
        store = store if store is not None else SqliteStore()
        try:
            state = load_state(store)
        except PersistenceError as e:
            log(f"[session] load failed, starting from defaults: {e}")
            state = fresh_state()
        session = cls(store, state, now=now)
        session.reconcile()
        return session

    @classmethod
    def in_memory(cls, now: Callable[[], datetime] = clock.now) -> "Session":
        return cls.open(MemoryStore(), now=now)

    @contextmanager
    def _mutation(self) -> Iterator[datetime]:
        """Serialise, bring the state up to today, then persist afterwards."""
        with self._lock:
            now = self.now()
            self._roll(now)
            try:
                yield now
            finally:
                self._persist()

    def _roll(self, now: datetime) -> bool:
        rolled = cycle.reconcile_day(self.state, now)
        if rolled:
            log(f"[session] rolled over to {self.state.today_date}")
        return rolled

    def _persist(self) -> None:
        try:
            save_state(self.store, self.state)
        except PersistenceError as e:
            self.last_save_error = e
            log(f"[session] save failed, keeping in-memory state: {e}")
        else:
            self.last_save_error = None

    def _completion(self, xp_gained: int, goal_reached: bool) -> Completion:
        celebrate = goal_reached and not self.state.celebrated_today
        if celebrate:
            self.state.celebrated_today = True
        return Completion(xp_gained=xp_gained, goal_reached=goal_reached, celebrate=celebrate)

    # ── day cycle ────────────────────────────────────────────────────────────

    def reconcile(self) -> bool:
        with self._lock:
            rolled = self._roll(self.now())
            self._persist()
        return rolled

    # ── intents ──────────────────────────────────────────────────────────────

    def complete_daily_task(self, task_id: str) -> Completion:
        with self._mutation() as now:
            before = self.state.today_xp
            reached = ledger.complete_daily_task(self.state, task_id, now)
            return self._completion(self.state.today_xp - before, reached)

    def complete_quest(self, quest_id: str) -> Completion:
        with self._mutation() as now:
            before = self.state.today_xp
            reached = ledger.complete_quest(self.state, quest_id, now)
            return self._completion(self.state.today_xp - before, reached)

    def set_daily_goal(self, goal: int) -> Completion:
        with self._mutation() as now:
            reached = ledger.set_daily_goal(self.state, goal, now)
            return self._completion(0, reached)

    def add_daily_task(self, name: str, xp: int) -> DailyTask:
        with self._mutation():
            return ledger.add_daily_task(self.state, name, xp)

    def add_quest(self, name: str, xp: int) -> Quest:
        with self._mutation():
            return ledger.add_quest(self.state, name, xp)

    def rename(self, item_id: str, name: str) -> DailyTask | Quest:
        with self._mutation():
            return ledger.rename_item(self.state, item_id, name)

    def reprice(self, item_id: str, xp: int) -> DailyTask | Quest:
        with self._mutation():
            return ledger.reprice_item(self.state, item_id, xp)

    def delete(self, item_id: str) -> DailyTask | Quest:
        with self._mutation():
            return ledger.delete_item(self.state, item_id)

    def reset_today(self) -> None:
        with self._mutation() as now:
            ledger.reset_today(self.state, now)

    def reset_all(self) -> None:
        with self._lock:
            try:
                self.store.delete(STORAGE_KEY)
            except PersistenceError as e:
                log(f"[session] could not discard stored document: {e}")
            self.state = ledger.reset_all(self.now())
            self._persist()
        log("[session] all data reset")

    def find(self, ref: str, exact: bool = False) -> DailyTask | Quest | None:
        with self._lock:
            return ledger.find_item(self.state, ref, exact=exact)

    # ── accessors ────────────────────────────────────────────────────────────

    @property
    def today_xp(self) -> int:
        return self.state.today_xp

    @property
    def daily_goal(self) -> int:
        return self.state.daily_goal

    @property
    def percentage(self) -> float:
        return min(self.state.today_xp / self.state.daily_goal * 100, 100.0)

    @property
    def bar_level(self) -> str:
        pct = self.percentage
        if pct >= 100:
            return "complete"
        if pct >= NEAR_COMPLETE_PERCENT:
            return "near"
        return "progress" if pct > 0 else "empty"

    @property
    def streak(self) -> int:
        return self.state.streak

    @property
    def best_streak(self) -> int:
        return self.state.best_streak

    @property
    def daily_essentials(self) -> list[DailyTask]:
        return list(self.state.daily_essentials)

    @property
    def quests(self) -> list[Quest]:
        return list(self.state.quests)

    @property
    def weekly_progress(self) -> frozenset[date]:
        return frozenset(self.state.weekly_progress)

    def stats(self) -> Stats:
        return Stats(
            total_days_completed=self.state.total_days_completed,
            total_xp_earned=self.state.total_xp_earned,
            total_quests_completed=self.state.total_quests_completed,
        )

    def week(self) -> list[DaySummary]:
        with self._lock:
            return history.week_view(self.state, self.now())

    def review(self) -> Review:
        with self._lock:
            return history.review_summary(history.week_view(self.state, self.now()), self.state)
