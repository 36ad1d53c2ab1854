"""
Timing utilities.

Helper functions for time-related operations and the scheduler used by
the scan loop.
"""

import threading
from typing import Any, Callable


def format_uptime(seconds: float) -> str:
    """
    Format uptime in human-readable format.

    Args:
        seconds: Uptime in seconds

    Returns:
        Formatted string (e.g., "1d 2h 30m 45s")
    """
    seconds = int(seconds)

    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    parts = []
    if days > 0:
        parts.append(f'{days}d')
    if hours > 0:
        parts.append(f'{hours}h')
    if minutes > 0:
        parts.append(f'{minutes}m')
    parts.append(f'{secs}s')

    return ' '.join(parts)


class TimerScheduler:
    """
    Runs callbacks after a delay on daemon timer threads.

    ``call_later`` returns a handle with a ``cancel()`` method. Cancelling
    a timer that already fired is harmless.
    """

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> threading.Timer:
        timer = threading.Timer(delay, callback, args=args)
        timer.daemon = True
        timer.start()
        return timer
