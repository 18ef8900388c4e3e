"""
Runtime settings.

Values come from environment variables; CLI flags override them.

    LECTUREPLAN_API_URL     base URL of the portal API (default http://localhost:8000)
    LECTUREPLAN_TOKEN       bearer token sent with every request
    LECTUREPLAN_TIMEOUT     request timeout in seconds (default 30)
    LECTUREPLAN_SNAPSHOT    path of the cached snapshot.json
    LECTUREPLAN_DAY_START   first visible hour of the grid (default 08:00)
    LECTUREPLAN_DAY_END     last visible hour of the grid (default 17:00)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from lectureplan.grid import GridWindow

DEFAULT_API_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0


def default_snapshot_path() -> Path:
    """
    Return the default path of snapshot.json inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    base_dir = Path(__file__).resolve().parent
    return base_dir / "data" / "snapshot.json"


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    snapshot_path: Path = None  # type: ignore[assignment]
    day_start: str = "08:00"
    day_end: str = "17:00"

    def __post_init__(self) -> None:
        if self.snapshot_path is None:
            self.snapshot_path = default_snapshot_path()
        self.snapshot_path = Path(self.snapshot_path)
        self.api_url = self.api_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        timeout_raw = env.get("LECTUREPLAN_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            raise ValueError(f"LECTUREPLAN_TIMEOUT must be a number, got {timeout_raw!r}") from None

        snapshot = env.get("LECTUREPLAN_SNAPSHOT", "").strip()
        return cls(
            api_url=env.get("LECTUREPLAN_API_URL", "").strip() or DEFAULT_API_URL,
            token=env.get("LECTUREPLAN_TOKEN", "").strip() or None,
            timeout=timeout,
            snapshot_path=Path(snapshot) if snapshot else None,  # type: ignore[arg-type]
            day_start=env.get("LECTUREPLAN_DAY_START", "").strip() or "08:00",
            day_end=env.get("LECTUREPLAN_DAY_END", "").strip() or "17:00",
        )

    @property
    def window(self) -> GridWindow:
        return GridWindow.from_strings(self.day_start, self.day_end)
