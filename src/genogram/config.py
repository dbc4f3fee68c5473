from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _b(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EditorConfig:
    # Undo/redo depth per stack
    history_limit: int = field(default_factory=lambda: _i("GENOGRAM_HISTORY_LIMIT", 50))

    # Household drawing (canvas pixels)
    household_close_radius: float = field(
        default_factory=lambda: _f("GENOGRAM_HOUSEHOLD_CLOSE_RADIUS", 30.0)
    )
    household_buffer: float = field(default_factory=lambda: _f("GENOGRAM_HOUSEHOLD_BUFFER", 15.0))

    # Grid
    grid_size: int = field(default_factory=lambda: _i("GENOGRAM_GRID_SIZE", 20))
    snap_to_grid: bool = field(default_factory=lambda: _b("GENOGRAM_SNAP_TO_GRID", True))

    # Viewport
    min_zoom: float = field(default_factory=lambda: _f("GENOGRAM_MIN_ZOOM", 0.1))
    max_zoom: float = field(default_factory=lambda: _f("GENOGRAM_MAX_ZOOM", 5.0))

    # Autosave
    autosave_interval: float = field(default_factory=lambda: _f("GENOGRAM_AUTOSAVE_INTERVAL", 30.0))
    autosave_path: Path = field(
        default_factory=lambda: Path(os.getenv("GENOGRAM_AUTOSAVE_PATH", "./data/autosave.json"))
    )

    # Case-management backend; sync is disabled when no base URL is set
    api_base_url: str | None = field(default_factory=lambda: os.getenv("GENOGRAM_API_BASE_URL") or None)
    api_timeout: float = field(default_factory=lambda: _f("GENOGRAM_API_TIMEOUT", 10.0))
    api_max_retries: int = field(default_factory=lambda: _i("GENOGRAM_API_MAX_RETRIES", 2))

    @property
    def sync_enabled(self) -> bool:
        return bool(self.api_base_url)


def load_config(env_file: str | Path | None = None) -> EditorConfig:
    """Load configuration from the environment, reading a .env file first."""
    from dotenv import load_dotenv

    load_dotenv(env_file)
    return EditorConfig()
