"""API key selection."""

import logging
import os
from typing import Protocol

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class KeySelector(Protocol):
    """Source of the Gemini credential."""

    @property
    def api_key(self) -> str:
        ...

    def has_selected_key(self) -> bool:
        ...

    def open_select_key(self) -> None:
        """Let the user pick (or re-pick) a key."""
        ...


class EnvKeySelector:
    """Reads the key from GEMINI_API_KEY / API_KEY (environment or .env)."""

    def __init__(self, api_key: str = "", env_file: str = ".env"):
        self.env_file = env_file
        self._api_key = api_key or self._read_env()

    @property
    def api_key(self) -> str:
        return self._api_key

    def has_selected_key(self) -> bool:
        return bool(self._api_key)

    def open_select_key(self) -> None:
        """Re-read the environment, picking up a key that was replaced."""
        load_dotenv(self.env_file, override=True)
        self._api_key = self._read_env()
        if self._api_key:
            logger.info("Gemini API key reloaded from environment")
        else:
            logger.warning("No Gemini API key set (GEMINI_API_KEY or API_KEY)")

    def _read_env(self) -> str:
        return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""
