"""Configuration model for tasktracker."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TrackerConfig(BaseModel):
    """Main configuration for tasktracker."""

    default_file: str = "tasks.json"
    history_size: int = Field(default=10, ge=1)
    autosave: bool = False
    log_level: LogLevel = "WARNING"

    @property
    def tasks_path(self) -> Path:
        return Path(self.default_file)

    @classmethod
    def load(cls, path: Path | None = None) -> TrackerConfig:
        """Load configuration from file or return defaults."""
        if path is None:
            path = CONFIG_FILE

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_FILE

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


# Default config directory
TRACKER_DIR = Path(".tasktracker")
CONFIG_FILE = TRACKER_DIR / "config.json"
