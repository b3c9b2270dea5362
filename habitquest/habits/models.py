"""Data models for habits, completion history and derived analytics."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# date key (YYYY-MM-DD) -> habit id -> completed
DayCompletion = dict[str, bool]
History = dict[str, DayCompletion]


class Habit(BaseModel):
    """A recurring activity with a monthly completion goal."""

    id: str
    name: str
    goal: int = 31  # target completions for the month
    category: str = "General"


class HabitState(BaseModel):
    """Everything the tracker persists, stored as a single blob."""

    model_config = ConfigDict(populate_by_name=True)

    habits: list[Habit] = Field(default_factory=list)
    history: History = Field(default_factory=dict)
    monthly_targets: list[str] = Field(default_factory=list, alias="monthlyTargets")

    def habit_ids(self) -> set[str]:
        return {habit.id for habit in self.habits}

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        for habit in self.habits:
            if habit.id == habit_id:
                return habit
        return None

    def is_completed(self, date_key: str, habit_id: str) -> bool:
        return bool(self.history.get(date_key, {}).get(habit_id, False))

    def to_blob(self) -> dict:
        """Serialize with the stored key names (``monthlyTargets``)."""
        return self.model_dump(by_alias=True)


@dataclass
class AnalyticSummary:
    """Per-habit progress for one month. Derived, never persisted."""
    habit_id: str
    name: str
    actual: int
    goal: int
    progress: float


@dataclass
class GridStats:
    """Completion stats over the whole habit x day grid."""
    completed: int
    total_possible: int
    progress: int  # rounded percent


def default_state() -> HabitState:
    """State used on first start or when stored data cannot be read."""
    return HabitState(
        habits=[
            Habit(id="1", name="Morning Exercise", goal=31, category="Health"),
            Habit(id="2", name="Read 20 Pages", goal=31, category="Mind"),
            Habit(id="3", name="Meditation", goal=31, category="Mind"),
            Habit(id="4", name="Deep Work (4hrs)", goal=20, category="Work"),
        ],
        history={},
        monthly_targets=[
            "Complete 75% of all habits",
            "Finish a new book",
            "Run 50km total",
        ],
    )
