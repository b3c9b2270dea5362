"""Monthly habit dashboard image renderer."""

import calendar
import logging
from datetime import datetime
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from habitquest.habits.analytics import (
    compute_summaries,
    daily_counts,
    date_key,
    days_in_month,
    grid_stats,
    overall_progress,
    padded_targets,
    week_number,
)
from habitquest.habits.models import AnalyticSummary, HabitState

logger = logging.getLogger(__name__)

NAME_COLUMN = 220
CELL = 26
ROW = 30
MARGIN = 20


class DashboardRenderer:
    """Renders the habit x day grid and the month's analysis to an image."""

    def __init__(self, output_dir: str = "static/images"):
        """
        Initialize renderer.

        Args:
            output_dir: Directory to save generated images
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        # Try to load fonts, fall back to default
        self.fonts = self._load_fonts()

    def _load_fonts(self) -> dict:
        """Load fonts for rendering."""
        fonts = {}

        font_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
            "/System/Library/Fonts/Helvetica.ttc",  # macOS
        ]

        try:
            for path in font_paths:
                if Path(path).exists():
                    fonts["header"] = ImageFont.truetype(path, 28)
                    fonts["title"] = ImageFont.truetype(path, 18)
                    fonts["normal"] = ImageFont.truetype(path, 14)
                    fonts["small"] = ImageFont.truetype(path, 11)
                    logger.info(f"Loaded fonts from {path}")
                    break
        except OSError as e:
            logger.warning(f"Could not load TrueType fonts: {e}, using default")

        if not fonts:
            default_font = ImageFont.load_default()
            fonts["header"] = default_font
            fonts["title"] = default_font
            fonts["normal"] = default_font
            fonts["small"] = default_font

        return fonts

    def render(self, state: HabitState, year: int, month: int) -> tuple[str, str]:
        """
        Render the dashboard for one month.

        Args:
            state: Tracker state
            year: Calendar year
            month: Month number (1-12)

        Returns:
            Tuple of (filename, file_path)
        """
        days = days_in_month(year, month)
        summaries = compute_summaries(state, year, month)
        targets = padded_targets(state.monthly_targets)

        width = MARGIN * 2 + NAME_COLUMN + days * CELL
        grid_height = (len(state.habits) + 2) * ROW
        table_height = (len(summaries) + 2) * ROW
        targets_height = (len(targets) + 1) * 22
        height = 70 + grid_height + 30 + max(table_height, targets_height) + 60

        logger.info(
            f"Rendering {calendar.month_name[month]} {year} with {len(state.habits)} habits"
        )

        image = Image.new("RGB", (width, height), "white")
        draw = ImageDraw.Draw(image)

        self._draw_header(draw, state, year, month, width)
        y = self._draw_grid(draw, state, year, month, 70)
        self._draw_analysis(draw, summaries, y + 30)
        self._draw_targets(draw, targets, y + 30, width)
        self._draw_footer(draw, summaries, width, height)

        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        filename = f"dashboard-{year:04d}-{month:02d}-{timestamp}"
        file_path = self.output_dir / f"{filename}.png"

        image.save(file_path, "PNG")
        logger.info(f"Saved dashboard to {file_path}")

        return filename, str(file_path)

    def _draw_header(self, draw: ImageDraw, state: HabitState, year: int, month: int, width: int):
        """Month name on the left, grid completion on the right."""
        title = f"{calendar.month_name[month].upper()} {year}"
        draw.text((MARGIN, 15), title, fill="black", font=self.fonts["header"])

        stats = grid_stats(state, year, month)
        stats_text = f"Completed: {stats.completed}   Progress: {stats.progress}%"
        bbox = draw.textbbox((0, 0), stats_text, font=self.fonts["normal"])
        text_width = bbox[2] - bbox[0]
        draw.text((width - text_width - MARGIN, 24), stats_text, fill="black", font=self.fonts["normal"])

        draw.line([MARGIN, 55, width - MARGIN, 55], fill="black", width=2)

    def _draw_grid(self, draw: ImageDraw, state: HabitState, year: int, month: int, y: int) -> int:
        """
        Draw the habit x day matrix.

        Returns:
            y coordinate below the grid
        """
        days = days_in_month(year, month)
        x0 = MARGIN + NAME_COLUMN

        # Day numbers
        for day in range(1, days + 1):
            x = x0 + (day - 1) * CELL
            draw.text((x + 5, y + 8), str(day), fill="black", font=self.fonts["small"])

        for row, habit in enumerate(state.habits, start=1):
            row_y = y + row * ROW
            draw.text((MARGIN, row_y + 6), habit.name[:26], fill="black", font=self.fonts["normal"])

            for day in range(1, days + 1):
                x = x0 + (day - 1) * CELL
                box = [x + 3, row_y + 3, x + CELL - 3, row_y + ROW - 3]
                if state.is_completed(date_key(year, month, day), habit.id):
                    draw.rectangle(box, fill="#10b981", outline="black")
                else:
                    draw.rectangle(box, outline="#94a3b8")

        counts_y = y + (len(state.habits) + 1) * ROW
        bottom = counts_y + ROW

        # Per-day completion totals
        draw.line([MARGIN, counts_y, x0 + days * CELL, counts_y], fill="black", width=1)
        draw.text((MARGIN, counts_y + 6), "Progress (Daily)", fill="black", font=self.fonts["normal"])
        for day, count in enumerate(daily_counts(state, year, month), start=1):
            if count > 0:
                x = x0 + (day - 1) * CELL
                draw.text((x + 8, counts_y + 8), str(count), fill="black", font=self.fonts["small"])

        # Week separators
        for day in range(2, days + 1):
            if week_number(day) != week_number(day - 1):
                x = x0 + (day - 1) * CELL
                draw.line([x, y, x, bottom], fill="black", width=2)

        return bottom

    def _draw_analysis(self, draw: ImageDraw, summaries: list[AnalyticSummary], y: int):
        """Goal / actual / progress table on the left half."""
        columns = [MARGIN, MARGIN + 200, MARGIN + 260, MARGIN + 330]
        for x, label in zip(columns, ["HABIT", "GOAL", "ACTUAL", "PROGRESS"]):
            draw.text((x, y), label, fill="black", font=self.fonts["title"])

        if not summaries:
            draw.text((MARGIN, y + ROW), "No habits added yet", fill="#94a3b8", font=self.fonts["normal"])
            return

        for i, summary in enumerate(summaries, start=1):
            row_y = y + i * ROW
            draw.text((columns[0], row_y), summary.name[:24], fill="black", font=self.fonts["normal"])
            draw.text((columns[1], row_y), str(summary.goal), fill="black", font=self.fonts["normal"])
            draw.text((columns[2], row_y), str(summary.actual), fill="black", font=self.fonts["normal"])
            self._draw_progress_bar(draw, columns[3], row_y + 2, 120, 14, summary.progress)
            draw.text(
                (columns[3] + 130, row_y),
                f"{round(summary.progress)}%",
                fill="black",
                font=self.fonts["normal"],
            )

    def _draw_progress_bar(self, draw: ImageDraw, x: int, y: int, width: int, height: int, progress: float):
        """Horizontal bar filled to ``progress`` percent (capped at 100)."""
        filled = int(width * min(progress, 100) / 100)
        if filled > 0:
            draw.rectangle([x, y, x + filled, y + height], fill="#3b82f6")
        draw.rectangle([x, y, x + width, y + height], outline="black", width=1)

    def _draw_targets(self, draw: ImageDraw, targets: list[str], y: int, width: int):
        """Monthly targets, padded with blank ruled rows."""
        x = max(width // 2 + MARGIN, MARGIN + 540)
        draw.text((x, y), "MONTHLY TARGETS", fill="black", font=self.fonts["title"])

        for i, target in enumerate(targets, start=1):
            row_y = y + 6 + i * 22
            if target:
                draw.ellipse([x, row_y + 3, x + 10, row_y + 13], outline="black")
                draw.text((x + 18, row_y), target, fill="black", font=self.fonts["normal"])
            else:
                draw.line([x, row_y + 16, width - MARGIN, row_y + 16], fill="#e2e8f0", width=1)

    def _draw_footer(self, draw: ImageDraw, summaries: list[AnalyticSummary], width: int, height: int):
        """Overall completion and render time."""
        y = height - 35

        draw.line([MARGIN, y - 10, width - MARGIN, y - 10], fill="black", width=2)

        total_actual = sum(s.actual for s in summaries)
        total_goal = sum(s.goal for s in summaries)
        if summaries:
            percentage = round(overall_progress(summaries))
            summary_text = f"Overall completion: {total_actual}/{total_goal} ({percentage}%)"
        else:
            summary_text = "Overall completion: No habits"

        draw.text((MARGIN, y), summary_text, fill="black", font=self.fonts["normal"])

        time_text = f"Last update: {datetime.now().strftime('%H:%M')}"
        bbox = draw.textbbox((0, 0), time_text, font=self.fonts["small"])
        text_width = bbox[2] - bbox[0]
        draw.text((width - text_width - MARGIN, y + 2), time_text, fill="black", font=self.fonts["small"])
