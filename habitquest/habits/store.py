"""Habit state store: owns the tracker state and persists every change."""

import logging
import time
from typing import Optional, Union

from .models import Habit, HabitState
from .storage import StateStorage

logger = logging.getLogger(__name__)

DEFAULT_GOAL = 31
DEFAULT_CATEGORY = "General"


def coerce_goal(goal: Union[int, str, None], default: int = DEFAULT_GOAL) -> int:
    """
    Turn a supplied goal into a non-negative integer.

    Anything that isn't a valid non-negative integer becomes ``default``.
    """
    if isinstance(goal, bool):
        return default
    if isinstance(goal, int):
        return goal if goal >= 0 else default
    if isinstance(goal, str) and goal.strip().isdigit():
        return int(goal.strip())
    return default


class HabitStore:
    """
    The single writer of HabitState.

    Each transition builds a new state object, replacing only the parts it
    touches, and saves the result before returning.
    """

    def __init__(self, storage: StateStorage, state: Optional[HabitState] = None):
        """
        Initialize store.

        Args:
            storage: Persistence adapter
            state: Initial state (loaded from storage when omitted)
        """
        self.storage = storage
        self._state = state if state is not None else storage.load()

    @property
    def state(self) -> HabitState:
        """Current state. Treat as read-only; change it through transitions."""
        return self._state

    def _commit(self, state: HabitState):
        self._state = state
        self.storage.save(state)

    def toggle_completion(self, date_key: str, habit_id: str) -> bool:
        """
        Flip one habit's completion for one day.

        Args:
            date_key: Day in ``YYYY-MM-DD`` form
            habit_id: Habit identifier (not checked against ``habits``)

        Returns:
            The new completion value
        """
        history = self._state.history
        day = dict(history.get(date_key, {}))
        day[habit_id] = not day.get(habit_id, False)

        self._commit(
            self._state.model_copy(update={"history": {**history, date_key: day}})
        )
        logger.info(f"Toggled {habit_id} on {date_key}: {day[habit_id]}")
        return day[habit_id]

    def add_habit(
        self,
        name: Optional[str],
        goal: Union[int, str, None] = DEFAULT_GOAL,
        category: str = DEFAULT_CATEGORY,
    ) -> Optional[Habit]:
        """
        Append a new habit.

        Returns:
            The created habit, or None if ``name`` is empty
        """
        if not name:
            logger.debug("Add habit skipped: no name given")
            return None

        habit = Habit(
            id=self._new_id(),
            name=name,
            goal=coerce_goal(goal),
            category=category,
        )
        self._commit(
            self._state.model_copy(update={"habits": [*self._state.habits, habit]})
        )
        logger.info(f"Added habit: {habit.name} (id={habit.id}, goal={habit.goal})")
        return habit

    def delete_habit(self, habit_id: str, purge_history: bool = False) -> bool:
        """
        Remove a habit.

        Completion history for the habit is kept unless ``purge_history`` is
        set; kept entries are simply never read again by analytics.

        Returns:
            True if a habit was removed
        """
        habits = [h for h in self._state.habits if h.id != habit_id]
        if len(habits) == len(self._state.habits):
            logger.warning(f"Delete skipped, unknown habit: {habit_id}")
            return False

        update = {"habits": habits}
        if purge_history:
            update["history"] = _without_habits(self._state.history, {habit_id})

        self._commit(self._state.model_copy(update=update))
        logger.info(f"Deleted habit {habit_id} (history purged: {purge_history})")
        return True

    def purge_orphaned_history(self) -> int:
        """
        Drop history entries for habits that no longer exist.

        Returns:
            Number of completion entries removed
        """
        known = self._state.habit_ids()
        orphans = {
            habit_id
            for day in self._state.history.values()
            for habit_id in day
            if habit_id not in known
        }
        if not orphans:
            return 0

        removed = sum(
            1
            for day in self._state.history.values()
            for habit_id in day
            if habit_id in orphans
        )
        self._commit(
            self._state.model_copy(
                update={"history": _without_habits(self._state.history, orphans)}
            )
        )
        logger.info(f"Purged {removed} orphaned history entries")
        return removed

    def _new_id(self) -> str:
        """Time-derived id, bumped until unused."""
        existing = self._state.habit_ids()
        candidate = int(time.time() * 1000)
        while str(candidate) in existing:
            candidate += 1
        return str(candidate)


def _without_habits(history: dict, habit_ids: set[str]) -> dict:
    """Copy of ``history`` without the given habits; empty days are dropped."""
    cleaned = {}
    for date_key, day in history.items():
        kept = {k: v for k, v in day.items() if k not in habit_ids}
        if kept:
            cleaned[date_key] = kept
    return cleaned
