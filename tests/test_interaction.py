from habitquest.habits.interaction import (
    DELETE_PROMPT,
    GOAL_PROMPT,
    NAME_PROMPT,
    StaticPrompter,
    confirm_delete_habit,
    parse_goal,
    prompt_new_habit,
)
from habitquest.habits.models import Habit, HabitState
from habitquest.habits.storage import StateStorage
from habitquest.habits.store import HabitStore


def _store(tmp_path):
    state = HabitState(
        habits=[Habit(id="1", name="Read")],
        history={"2024-02-01": {"1": True}},
    )
    return HabitStore(StateStorage(str(tmp_path / "habits.db")), state)


def test_parse_goal():
    assert parse_goal("20") == 20
    assert parse_goal("  15 days") == 15
    assert parse_goal("0") == 0
    assert parse_goal("") == 31
    assert parse_goal(None) == 31
    assert parse_goal("many") == 31
    assert parse_goal("-4") == 31
    assert parse_goal(9) == 9


def test_prompt_new_habit_asks_name_then_goal(tmp_path):
    store = _store(tmp_path)
    prompter = StaticPrompter({NAME_PROMPT: "Journal", GOAL_PROMPT: "12"})

    habit = prompt_new_habit(store, prompter)

    assert prompter.asked == [NAME_PROMPT, GOAL_PROMPT]
    assert habit.name == "Journal"
    assert habit.goal == 12
    assert store.state.habits[-1].id == habit.id


def test_prompt_new_habit_uses_default_goal(tmp_path):
    store = _store(tmp_path)

    habit = prompt_new_habit(store, StaticPrompter({NAME_PROMPT: "Journal"}))

    assert habit.goal == 31


def test_cancelled_name_adds_nothing(tmp_path):
    store = _store(tmp_path)
    prompter = StaticPrompter({NAME_PROMPT: None})

    assert prompt_new_habit(store, prompter) is None
    assert prompter.asked == [NAME_PROMPT]
    assert len(store.state.habits) == 1


def test_delete_requires_confirmation(tmp_path):
    store = _store(tmp_path)
    prompter = StaticPrompter(confirm=False)

    assert confirm_delete_habit(store, prompter, "1") is False
    assert prompter.asked == [DELETE_PROMPT]
    assert len(store.state.habits) == 1


def test_confirmed_delete_keeps_history(tmp_path):
    store = _store(tmp_path)

    assert confirm_delete_habit(store, StaticPrompter(confirm=True), "1") is True
    assert store.state.habits == []
    assert store.state.history == {"2024-02-01": {"1": True}}
