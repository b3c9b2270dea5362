"""Main FastAPI application."""

import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.staticfiles import StaticFiles

from .config import settings
from .dashboard.renderer import DashboardRenderer
from .gemini.client import GeminiClient
from .gemini.credentials import EnvKeySelector
from .gemini.insight import InsightClient
from .gemini.video import AnimatorBusyError, VideoAnimator
from .habits.analytics import (
    compute_summaries,
    daily_counts,
    days_array,
    distribution,
    grid_stats,
    overall_progress,
    padded_targets,
    summary_text,
)
from .habits.interaction import (
    GOAL_PROMPT,
    NAME_PROMPT,
    StaticPrompter,
    confirm_delete_habit,
    prompt_new_habit,
)
from .habits.storage import StateStorage
from .habits.store import HabitStore
from .web.models import (
    AddHabitRequest,
    AnalyticsResponse,
    DashboardResponse,
    GridStatsOut,
    InsightResponse,
    SummaryOut,
    ToggleRequest,
    ToggleResponse,
    VideoRequest,
    VideoResponse,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="HabitQuest",
    description="Monthly habit tracker with Gemini insights and Veo celebration videos",
    version="1.0.0",
)

# Initialize components
store = HabitStore(StateStorage(settings.state_db_path))
renderer = DashboardRenderer(f"{settings.static_dir}/images")
key_selector = EnvKeySelector(settings.gemini_api_key)


def make_gemini_client(api_key: str) -> GeminiClient:
    return GeminiClient(api_key, settings.gemini_base_url, settings.request_timeout)


animator = VideoAnimator(
    key_selector,
    make_gemini_client,
    output_dir=f"{settings.static_dir}/videos",
    model=settings.video_model,
    resolution=settings.video_resolution,
    poll_interval=settings.video_poll_interval,
    max_poll_attempts=settings.video_max_poll_attempts,
    timeout=settings.video_poll_timeout,
)

# Mount static files
app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")


def get_base_url(request: Request) -> str:
    """Get base URL for serving images and videos."""
    return f"{request.url.scheme}://{request.headers.get('host', 'localhost')}"


def resolve_month(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    """Default to the current calendar month."""
    today = date.today()
    return year or today.year, month or today.month


def build_analytics(year: int, month: int) -> AnalyticsResponse:
    state = store.state
    summaries = compute_summaries(state, year, month)
    return AnalyticsResponse(
        year=year,
        month=month,
        days=days_array(year, month),
        summaries=[SummaryOut(**asdict(s)) for s in summaries],
        overall_progress=overall_progress(summaries),
        grid=GridStatsOut(**asdict(grid_stats(state, year, month))),
        daily_counts=daily_counts(state, year, month),
        distribution=distribution(summaries),
        monthly_targets=padded_targets(state.monthly_targets),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "HabitQuest",
        "version": "1.0.0",
        "endpoints": {
            "state": "/api/state",
            "habits": "/api/habits",
            "toggle": "/api/history/toggle",
            "analytics": "/api/analytics",
            "dashboard": "/api/dashboard",
            "insight": "/api/insight",
            "video": "/api/video",
            "status": "/status",
        },
    }


@app.get("/status")
async def status():
    """Server status endpoint."""
    return {
        "status": "running",
        "version": "1.0.0",
        "timestamp": datetime.utcnow().isoformat(),
        "habits": len(store.state.habits),
        "gemini_key_selected": key_selector.has_selected_key(),
        "video_in_progress": animator.busy,
    }


@app.get("/api/state")
async def get_state():
    """Full tracker state, in its stored shape."""
    return store.state.to_blob()


@app.post("/api/habits")
async def add_habit(body: AddHabitRequest):
    """
    Add a habit.

    A missing name is a silent no-op; an unusable goal becomes 31.
    """
    goal = None if body.goal is None else str(body.goal)
    prompter = StaticPrompter({NAME_PROMPT: body.name, GOAL_PROMPT: goal})
    habit = prompt_new_habit(store, prompter)
    return {"habit": habit.model_dump() if habit else None}


@app.delete("/api/habits/{habit_id}")
async def delete_habit(
    habit_id: str,
    confirm: bool = Query(False, description="User confirmed the deletion"),
    purge_history: bool = Query(False, description="Also drop the habit's history"),
):
    """Delete a habit. Requires ``confirm=true``."""
    if store.state.get_habit(habit_id) is None:
        raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")

    deleted = confirm_delete_habit(
        store, StaticPrompter(confirm=confirm), habit_id, purge_history=purge_history
    )
    if not deleted:
        raise HTTPException(status_code=409, detail="Deletion must be confirmed")

    return {"status": "success", "deleted": habit_id}


@app.post("/api/history/toggle", response_model=ToggleResponse)
async def toggle_completion(body: ToggleRequest):
    """Flip one grid cell."""
    completed = store.toggle_completion(body.date, body.habit_id)
    return ToggleResponse(date=body.date, habit_id=body.habit_id, completed=completed)


@app.get("/api/analytics", response_model=AnalyticsResponse)
async def analytics(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Per-habit summaries and totals for a month (current month by default)."""
    year, month = resolve_month(year, month)
    return build_analytics(year, month)


@app.get("/api/dashboard", response_model=DashboardResponse)
async def dashboard(
    request: Request,
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Render the month dashboard image and return its URL."""
    year, month = resolve_month(year, month)
    filename, _ = renderer.render(store.state, year, month)

    image_url = f"{get_base_url(request)}/static/images/{filename}.png"
    logger.info(f"Serving dashboard: {filename}")
    return DashboardResponse(image_url=image_url, filename=filename)


@app.post("/api/insight", response_model=InsightResponse)
async def insight(
    year: Optional[int] = Query(None, ge=1, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
):
    """Motivational insight for the month's progress (fallback text on failure)."""
    year, month = resolve_month(year, month)
    summary = summary_text(compute_summaries(store.state, year, month))

    async with make_gemini_client(key_selector.api_key) as client:
        text = await InsightClient(client, settings.text_model).insight_or_fallback(summary)

    return InsightResponse(insight=text)


@app.post("/api/video", response_model=VideoResponse)
async def video(request: Request, body: VideoRequest):
    """
    Generate a celebration video from a reference image.

    Blocks until the job finishes, fails, times out or is cancelled.
    """
    try:
        result = await animator.animate(
            body.image,
            prompt=body.prompt,
            aspect_ratio=body.aspect_ratio,
            mime_type=body.mime_type,
        )
    except AnimatorBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if result.error:
        return VideoResponse(
            status="failed", error=result.error, error_kind=result.error_kind.value
        )

    video_url = f"{get_base_url(request)}/static/videos/{result.filename}"
    return VideoResponse(status="done", video_url=video_url)


@app.post("/api/video/cancel")
async def cancel_video():
    """Cancel the video job in flight, if any."""
    cancelled = animator.cancel()
    return {"status": "cancelled" if cancelled else "idle"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
