"""Human-readable duration formatting for dashboards and reports."""


def format_duration(seconds: int | float) -> str:
    """Format a duration in seconds.

    Examples:
        ```python
        format_duration(45)      # "45s"
        format_duration(125)     # "2m 5s"
        format_duration(11040)   # "3h 4m"
        format_duration(176400) # "2d 1h"
        ```
    """
    seconds = max(0, int(seconds))
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes, remaining = divmod(seconds, 60)
        return f"{minutes}m {remaining}s"
    if seconds < 86400:
        hours, remaining = divmod(seconds, 3600)
        return f"{hours}h {remaining // 60}m"
    days, remaining = divmod(seconds, 86400)
    return f"{days}d {remaining // 3600}h"


def format_hours(hours: float) -> str:
    """Format a duration given in hours (occurrence durations)."""
    if hours < 1:
        return f"{int(hours * 60)}min"
    if hours < 24:
        whole = int(hours)
        return f"{whole}h {int((hours - whole) * 60)}min"
    return f"{int(hours // 24)}d {int(hours % 24)}h"
