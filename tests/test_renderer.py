from PIL import Image

from habitquest.dashboard.renderer import DashboardRenderer
from habitquest.habits.models import HabitState, default_state


def test_render_month_dashboard(tmp_path):
    renderer = DashboardRenderer(str(tmp_path / "images"))
    state = default_state().model_copy(
        update={"history": {"2024-02-01": {"1": True}, "2024-02-29": {"4": True}}}
    )

    filename, file_path = renderer.render(state, 2024, 2)

    assert filename.startswith("dashboard-2024-02-")
    with Image.open(file_path) as image:
        assert image.format == "PNG"
        assert image.width > 29 * 20


def test_render_without_habits(tmp_path):
    renderer = DashboardRenderer(str(tmp_path / "images"))

    _, file_path = renderer.render(HabitState(), 2023, 4)

    with Image.open(file_path) as image:
        assert image.height > 0
