"""User prompts for habit creation and deletion.

The store only accepts already-validated values; asking the user (and
deciding what a cancelled or garbled answer means) happens here.
"""

import logging
import re
from typing import Optional, Protocol, Union

from .models import Habit
from .store import DEFAULT_GOAL, HabitStore

logger = logging.getLogger(__name__)

NAME_PROMPT = "Enter habit name:"
GOAL_PROMPT = "Monthly goal (days):"
DELETE_PROMPT = "Delete this habit and all history?"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class Prompter(Protocol):
    """Whatever can ask the user a question."""

    def request_text(self, prompt: str, default: Optional[str] = None) -> Optional[str]:
        """Return the answer, or None if the user cancelled."""
        ...

    def request_confirmation(self, prompt: str) -> bool:
        ...


class StaticPrompter:
    """Prompter that replays answers the caller already collected."""

    def __init__(
        self,
        answers: Optional[dict[str, Optional[str]]] = None,
        confirm: bool = False,
    ):
        self.answers = answers or {}
        self.confirm = confirm
        self.asked: list[str] = []

    def request_text(self, prompt: str, default: Optional[str] = None) -> Optional[str]:
        self.asked.append(prompt)
        return self.answers.get(prompt, default)

    def request_confirmation(self, prompt: str) -> bool:
        self.asked.append(prompt)
        return self.confirm


def parse_goal(raw: Union[str, int, None], default: int = DEFAULT_GOAL) -> int:
    """
    Parse a goal typed by the user.

    Reads the leading integer of the text ("20 days" -> 20). Blank, cancelled,
    non-numeric and negative answers give ``default``.

    Example:
        parse_goal("12") == 12
        parse_goal("abc") == 31
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw if raw >= 0 else default

    match = _LEADING_INT.match(raw)
    if not match:
        return default

    value = int(match.group(1))
    return value if value >= 0 else default


def prompt_new_habit(store: HabitStore, prompter: Prompter) -> Optional[Habit]:
    """Ask for a name and goal, then add the habit. Cancelling is a no-op."""
    name = prompter.request_text(NAME_PROMPT)
    if not name:
        return None

    goal = parse_goal(prompter.request_text(GOAL_PROMPT, str(DEFAULT_GOAL)))
    return store.add_habit(name, goal)


def confirm_delete_habit(
    store: HabitStore,
    prompter: Prompter,
    habit_id: str,
    purge_history: bool = False,
) -> bool:
    """Delete a habit only after the user confirms."""
    if not prompter.request_confirmation(DELETE_PROMPT):
        logger.info(f"Deletion of {habit_id} not confirmed")
        return False
    return store.delete_habit(habit_id, purge_history=purge_history)
