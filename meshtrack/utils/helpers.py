"""Display, geometry and scheduling helpers shared by meshtrack consumers."""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import Any, Callable

DATA_DIR_NAME = ".meshtrack"

PLACEHOLDER_VALUES = {
    "undefined",
    "null",
    "Unknown",
    "unknown",
    "N/A",
    "n/a",
}


def get_data_path() -> Path:
    """
    Get the meshtrack data directory.

    Priority:
    1. `MESHTRACK_DATA_DIR` env override
    2. `~/.meshtrack`
    """
    env_path = str(os.environ.get("MESHTRACK_DATA_DIR") or "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / DATA_DIR_NAME


def format_value(value: Any, default_text: Any = "") -> Any:
    """
    Return `default_text` for missing or placeholder values, otherwise `value`.

    Zero and negative numbers are real readings and pass through unchanged.
    """
    if value is None:
        return default_text
    if isinstance(value, str):
        if value == "" or value in PLACEHOLDER_VALUES:
            return default_text
        if "n/a" in value.lower():
            return default_text
    return value


def is_point_in_bounds(lat: float, lng: float, bounds: Any) -> bool:
    """
    Check whether a point lies inside map bounds.

    Two bounds shapes are understood:
    - an object with `get_south_west()` / `get_north_east()` returning `(lat, lng)` pairs
    - a pair of corners `[[south, west], [north, east]]`

    Missing or unrecognized bounds never hide a point.
    """
    if not bounds:
        return True

    get_sw = getattr(bounds, "get_south_west", None)
    get_ne = getattr(bounds, "get_north_east", None)
    if callable(get_sw) and callable(get_ne):
        sw = get_sw()
        ne = get_ne()
        if _is_corner(sw) and _is_corner(ne):
            return sw[0] <= lat <= ne[0] and sw[1] <= lng <= ne[1]

    if isinstance(bounds, (list, tuple)) and len(bounds) == 2 and all(_is_corner(c) for c in bounds):
        (south, west), (north, east) = bounds[0][:2], bounds[1][:2]
        return south <= lat <= north and west <= lng <= east

    return True


def time_ago(timestamp_ms: float, *, now_ms: float | None = None) -> str:
    """Format elapsed time since `timestamp_ms` using the coarsest whole unit."""
    now = _now_ms() if now_ms is None else now_ms
    seconds = int((now - timestamp_ms) // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if seconds < 60:
        return f"{seconds} sec ago"
    if minutes < 60:
        return f"{minutes} min ago"
    if hours < 24:
        return f"{hours} h ago"
    return f"{days} d ago"


class Debounced:
    """Callable wrapper that runs `func` once calls stop arriving for `wait_ms`."""

    def __init__(self, func: Callable[..., Any], wait_ms: float) -> None:
        self.func = func
        self.wait_seconds = max(0.0, float(wait_ms)) / 1000.0
        self._handle: asyncio.TimerHandle | None = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.wait_seconds, self._fire, args, kwargs)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._handle = None
        self.func(*args, **kwargs)


def debounce(func: Callable[..., Any], wait_ms: float) -> Debounced:
    """Create a debounced wrapper around `func` bound to the running event loop."""
    return Debounced(func, wait_ms)


def _is_corner(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) >= 2 and all(_is_number(v) for v in value[:2])


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _now_ms() -> int:
    return int(time.time() * 1000)
