"""HTTP API models."""

from typing import Literal, Optional, Union

from pydantic import BaseModel


class AddHabitRequest(BaseModel):
    """Answers to the "new habit" prompts. A missing name cancels."""

    name: Optional[str] = None
    goal: Optional[Union[int, str]] = None


class ToggleRequest(BaseModel):
    """Grid cell click."""

    date: str  # YYYY-MM-DD
    habit_id: str


class ToggleResponse(BaseModel):
    date: str
    habit_id: str
    completed: bool


class SummaryOut(BaseModel):
    habit_id: str
    name: str
    actual: int
    goal: int
    progress: float


class GridStatsOut(BaseModel):
    completed: int
    total_possible: int
    progress: int


class AnalyticsResponse(BaseModel):
    """Derived month view, recomputed on every request."""

    year: int
    month: int
    days: list[int]
    summaries: list[SummaryOut]
    overall_progress: float
    grid: GridStatsOut
    daily_counts: list[int]  # habits done per day, day 1 first
    distribution: list[tuple[str, int]]
    monthly_targets: list[str]


class InsightResponse(BaseModel):
    insight: str


class DashboardResponse(BaseModel):
    image_url: str
    filename: str


class VideoRequest(BaseModel):
    """Reference image (data URL or base64) plus animation settings."""

    image: str
    prompt: str = ""
    aspect_ratio: Literal["16:9", "9:16"] = "16:9"
    mime_type: str = "image/png"


class VideoResponse(BaseModel):
    status: Literal["done", "failed"]
    video_url: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
