# utils/formatting.py
from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from flask import current_app, has_app_context

DEFAULT_STOP_DURATION = 5


def default_stop_duration() -> int:
    """DEFAULT_STOP_DURATION from the app config; the module constant outside an app."""
    if has_app_context():
        return int(current_app.config.get("DEFAULT_STOP_DURATION", DEFAULT_STOP_DURATION))
    return DEFAULT_STOP_DURATION


def parse_time_of_day(raw: Optional[str]) -> Optional[time]:
    """
    "22:00" / "22:00:00" → time(22, 0). Blank → None.
    Raises ValueError on anything else.
    """
    s = (raw or "").strip()
    if not s:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(s, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"invalid time of day: {raw!r}")


def format_time_12h(t: Optional[time]) -> str:
    """time(22, 0) → "10:00 PM"; missing → "-"."""
    if t is None:
        return "-"
    return t.strftime("%I:%M %p")


def format_stop_duration(minutes: Optional[int]) -> str:
    if minutes is None:
        minutes = default_stop_duration()
    return f"{int(minutes)} minutes"


def category_label(category: Optional[str]) -> str:
    return (category or "").replace("_", " ")
