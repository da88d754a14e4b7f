from __future__ import annotations


def _split_time(seconds: float) -> tuple[int, int, int, int]:
    s = max(0, int(seconds))
    days = s // 86400
    hours = (s % 86400) // 3600
    mins = (s % 3600) // 60
    secs = s % 60
    return days, hours, mins, secs


def format_elapsed(seconds: float) -> str:
    days, hours, mins, secs = _split_time(seconds)
    if days:
        return f"{days}d {hours:02d}:{mins:02d}:{secs:02d}"
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def format_uptime(seconds: float) -> str:
    days, hours, mins, _ = _split_time(seconds)
    parts = []
    if days:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    parts.append(f"{mins} min{'s' if mins != 1 else ''}")
    return ", ".join(parts)
