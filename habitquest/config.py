"""Application configuration."""

import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gemini
    gemini_api_key: str = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    text_model: str = os.getenv("TEXT_MODEL", "gemini-3-flash-preview")
    video_model: str = os.getenv("VIDEO_MODEL", "veo-3.1-fast-generate-preview")
    video_resolution: str = os.getenv("VIDEO_RESOLUTION", "720p")
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "60"))

    # Video job polling
    video_poll_interval: float = float(os.getenv("VIDEO_POLL_INTERVAL", "5"))
    video_max_poll_attempts: int = int(os.getenv("VIDEO_MAX_POLL_ATTEMPTS", "120"))
    video_poll_timeout: float = float(
        os.getenv("VIDEO_POLL_TIMEOUT", "900")
    )  # seconds, 0 disables

    # Storage
    state_db_path: str = os.getenv("STATE_DB_PATH", "data/habits.db")
    static_dir: str = os.getenv("STATIC_DIR", "static")

    # Server
    server_host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    server_port: int = int(os.getenv("SERVER_PORT", "8000"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
