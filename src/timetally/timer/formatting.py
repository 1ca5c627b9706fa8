"""Human-readable durations."""

from __future__ import annotations


def format_duration(seconds: int) -> str:
    """
    Format a duration for display and speech.

    45 -> "45 seconds", 330 -> "5m 30s", 4220 -> "1h 10m 20s", 3600 -> "1h".
    """
    if seconds < 60:
        return f"{seconds} second{'' if seconds == 1 else 's'}"

    if seconds < 3600:
        mins, secs = divmod(seconds, 60)
        return f"{mins}m {secs}s"

    hrs, remainder = divmod(seconds, 3600)
    mins, secs = divmod(remainder, 60)
    result = f"{hrs}h"
    if mins > 0:
        result += f" {mins}m"
    if secs > 0:
        result += f" {secs}s"
    return result
