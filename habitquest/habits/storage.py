"""Single-blob SQLite storage for the tracker state."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import HabitState, default_state

logger = logging.getLogger(__name__)

STATE_KEY = "habit_tracker_state"


class StateStorage:
    """Key/value SQLite table holding the serialized HabitState."""

    def __init__(self, db_path: str = "data/habits.db", key: str = STATE_KEY):
        """Initialize database."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.key = key
        self._init_db()

    def _init_db(self):
        """Create the storage table if it doesn't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        logger.info(f"State storage initialized at {self.db_path}")

    def read_raw(self) -> Optional[str]:
        """Return the stored blob as text, or None if nothing was saved yet."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "SELECT value FROM storage WHERE key = ?", (self.key,)
            )
            row = cursor.fetchone()
            return row[0] if row else None

    def write_raw(self, value: str):
        """Overwrite the stored blob."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO storage (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self.key, value, datetime.utcnow().isoformat()),
            )
            conn.commit()

    def load(self) -> HabitState:
        """
        Load the saved state.

        Missing or unreadable data falls back to the default state. Stored
        values are otherwise trusted as-is (no versioning or migration).
        """
        raw = self.read_raw()
        if raw is None:
            logger.info("No saved state found, using defaults")
            return default_state()

        try:
            return HabitState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Stored state is malformed, using defaults: {e}")
            return default_state()

    def save(self, state: HabitState):
        """Serialize and store the whole state."""
        self.write_raw(json.dumps(state.to_blob()))
        logger.debug(
            f"Saved state: {len(state.habits)} habits, {len(state.history)} days"
        )
