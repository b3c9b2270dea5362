import json

from habitquest.habits.models import Habit, HabitState
from habitquest.habits.storage import StateStorage
from habitquest.habits.store import HabitStore, coerce_goal


def _store(tmp_path, state=None):
    storage = StateStorage(str(tmp_path / "habits.db"))
    if state is None:
        state = HabitState(habits=[Habit(id="1", name="Read", goal=4)])
    return HabitStore(storage, state)


def _saved(store):
    return json.loads(store.storage.read_raw())


def test_toggle_twice_restores_original_value(tmp_path):
    store = _store(tmp_path)

    assert store.toggle_completion("2024-02-01", "1") is True
    assert store.state.is_completed("2024-02-01", "1")

    assert store.toggle_completion("2024-02-01", "1") is False
    assert not store.state.is_completed("2024-02-01", "1")
    assert store.state.history["2024-02-01"] == {"1": False}


def test_toggle_leaves_other_habits_and_days_alone(tmp_path):
    state = HabitState(
        habits=[Habit(id="1", name="Read"), Habit(id="2", name="Run")],
        history={"2024-02-01": {"2": True}, "2024-02-02": {"1": True}},
    )
    store = _store(tmp_path, state)

    store.toggle_completion("2024-02-01", "1")

    assert store.state.history == {
        "2024-02-01": {"1": True, "2": True},
        "2024-02-02": {"1": True},
    }
    # the previous state object is not mutated
    assert state.history["2024-02-01"] == {"2": True}


def test_toggle_unknown_habit_creates_sparse_entry(tmp_path):
    store = _store(tmp_path)

    store.toggle_completion("2030-01-01", "ghost")

    assert store.state.history["2030-01-01"] == {"ghost": True}


def test_every_transition_is_persisted(tmp_path):
    store = _store(tmp_path)

    store.toggle_completion("2024-02-01", "1")
    assert _saved(store)["history"] == {"2024-02-01": {"1": True}}

    habit = store.add_habit("Stretch", 10)
    assert [h["id"] for h in _saved(store)["habits"]] == ["1", habit.id]

    store.delete_habit("1")
    assert [h["id"] for h in _saved(store)["habits"]] == [habit.id]
    assert "monthlyTargets" in _saved(store)


def test_add_habit_appends_with_defaults(tmp_path):
    store = _store(tmp_path)

    habit = store.add_habit("Stretch", "not a number")

    assert habit.goal == 31
    assert habit.category == "General"
    assert store.state.habits[-1] == habit


def test_add_habit_without_name_is_noop(tmp_path):
    store = _store(tmp_path)

    assert store.add_habit("", 10) is None
    assert store.add_habit(None) is None
    assert len(store.state.habits) == 1
    assert store.storage.read_raw() is None


def test_add_habit_ids_are_unique(tmp_path, monkeypatch):
    store = _store(tmp_path)
    monkeypatch.setattr("habitquest.habits.store.time.time", lambda: 1.0)

    ids = {store.add_habit(f"Habit {i}").id for i in range(5)}

    assert len(ids) == 5
    assert "1" not in ids


def test_delete_keeps_history_by_default(tmp_path):
    state = HabitState(
        habits=[Habit(id="1", name="Read"), Habit(id="2", name="Run")],
        history={"2024-02-01": {"1": True, "2": True}},
    )
    store = _store(tmp_path, state)

    assert store.delete_habit("1") is True

    assert [h.id for h in store.state.habits] == ["2"]
    assert store.state.history == {"2024-02-01": {"1": True, "2": True}}
    assert _saved(store)["history"] == {"2024-02-01": {"1": True, "2": True}}


def test_delete_with_purge_drops_history(tmp_path):
    state = HabitState(
        habits=[Habit(id="1", name="Read"), Habit(id="2", name="Run")],
        history={"2024-02-01": {"1": True, "2": True}, "2024-02-02": {"1": True}},
    )
    store = _store(tmp_path, state)

    store.delete_habit("1", purge_history=True)

    assert store.state.history == {"2024-02-01": {"2": True}}


def test_delete_unknown_habit(tmp_path):
    store = _store(tmp_path)

    assert store.delete_habit("missing") is False
    assert len(store.state.habits) == 1


def test_purge_orphaned_history(tmp_path):
    state = HabitState(
        habits=[Habit(id="1", name="Read")],
        history={"2024-02-01": {"1": True, "old": True}, "2024-02-02": {"old": False}},
    )
    store = _store(tmp_path, state)

    assert store.purge_orphaned_history() == 2
    assert store.state.history == {"2024-02-01": {"1": True}}
    assert store.purge_orphaned_history() == 0


def test_coerce_goal():
    assert coerce_goal(12) == 12
    assert coerce_goal(0) == 0
    assert coerce_goal(" 7 ") == 7
    assert coerce_goal(-3) == 31
    assert coerce_goal("abc") == 31
    assert coerce_goal(None) == 31
    assert coerce_goal(True) == 31
