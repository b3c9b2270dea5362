"""Monthly progress calculation from completion history."""

import calendar
import math

from .models import AnalyticSummary, GridStats, HabitState

TARGET_ROWS = 10


def date_key(year: int, month: int, day: int) -> str:
    """Canonical history key, e.g. ``2024-02-01``."""
    return f"{year:04d}-{month:02d}-{day:02d}"


def days_in_month(year: int, month: int) -> int:
    """Number of days in the month (handles leap years)."""
    return calendar.monthrange(year, month)[1]


def days_array(year: int, month: int) -> list[int]:
    """Day numbers of the month: 1..n."""
    return list(range(1, days_in_month(year, month) + 1))


def week_number(day: int) -> int:
    """Week of the month a day falls in (days 1-7 are week 1)."""
    return math.ceil(day / 7)


def _progress(actual: int, goal: int) -> float:
    return (actual / goal) * 100 if goal > 0 else 0.0


def compute_summaries(state: HabitState, year: int, month: int) -> list[AnalyticSummary]:
    """
    Summarize every habit for one month.

    Iteration is driven by ``state.habits``, so history left behind by
    deleted habits is never counted.

    Args:
        state: Tracker state
        year: Calendar year
        month: Month number (1-12)

    Returns:
        One summary per habit, in habit order
    """
    keys = [date_key(year, month, day) for day in days_array(year, month)]

    summaries = []
    for habit in state.habits:
        actual = sum(1 for key in keys if state.is_completed(key, habit.id))
        summaries.append(
            AnalyticSummary(
                habit_id=habit.id,
                name=habit.name,
                actual=actual,
                goal=habit.goal,
                progress=_progress(actual, habit.goal),
            )
        )
    return summaries


def overall_progress(summaries: list[AnalyticSummary]) -> float:
    """Total completions against total goals, as a percentage."""
    total_goal = sum(s.goal for s in summaries)
    total_actual = sum(s.actual for s in summaries)
    return _progress(total_actual, total_goal)


def grid_stats(state: HabitState, year: int, month: int) -> GridStats:
    """Completed cells out of every habit x day cell of the month."""
    days = days_in_month(year, month)
    total_possible = len(state.habits) * days

    completed = sum(
        1
        for habit in state.habits
        for day in range(1, days + 1)
        if state.is_completed(date_key(year, month, day), habit.id)
    )

    progress = round(completed / total_possible * 100) if total_possible > 0 else 0
    return GridStats(completed=completed, total_possible=total_possible, progress=progress)


def daily_counts(state: HabitState, year: int, month: int) -> list[int]:
    """Habits completed on each day of the month (index 0 is day 1)."""
    return [
        sum(1 for habit in state.habits if state.is_completed(date_key(year, month, day), habit.id))
        for day in days_array(year, month)
    ]


def distribution(summaries: list[AnalyticSummary]) -> list[tuple[str, int]]:
    """(name, actual) for habits with at least one completion."""
    return [(s.name, s.actual) for s in summaries if s.actual > 0]


def padded_targets(targets: list[str], rows: int = TARGET_ROWS) -> list[str]:
    """Monthly targets followed by blank rows up to ``rows`` entries."""
    return list(targets) + [""] * max(0, rows - len(targets))


def summary_text(summaries: list[AnalyticSummary]) -> str:
    """Compact ``name: actual/goal`` listing used as AI prompt input."""
    return ", ".join(f"{s.name}: {s.actual}/{s.goal}" for s in summaries)
