"""Datetime helpers for the automation backend."""

from __future__ import annotations

from datetime import datetime, time, timezone


def ensure_utc_datetime(value: datetime | str) -> datetime:
    """Ensure datetime values are timezone-aware in UTC."""

    if isinstance(value, str):
        iso_value = value.replace("Z", "+00:00") if value.endswith("Z") else value
        parsed = datetime.fromisoformat(iso_value)
    else:
        parsed = value
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_clock_time(value: str | time) -> str:
    """Return a wall-clock time as ``HH:MM:SS`` (``"9:00"`` -> ``"09:00:00"``)."""

    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    parts = str(value).strip().split(":")
    if len(parts) == 2:
        parts.append("00")
    if len(parts) != 3:
        raise ValueError(f"Invalid time of day '{value}'")
    try:
        parsed = time(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError as exc:
        raise ValueError(f"Invalid time of day '{value}'") from exc
    return parsed.strftime("%H:%M:%S")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["ensure_utc_datetime", "normalize_clock_time", "utc_now"]
