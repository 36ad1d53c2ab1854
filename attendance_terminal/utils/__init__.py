"""
Utility modules package.
"""

from .storage import (
    ATTENDANCE_KEY,
    PROFILES_KEY,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    load_collection,
    save_collection,
)
from .timing import TimerScheduler, format_uptime

__all__ = [
    'ATTENDANCE_KEY',
    'PROFILES_KEY',
    'JsonFileStore',
    'KeyValueStore',
    'MemoryStore',
    'load_collection',
    'save_collection',
    'TimerScheduler',
    'format_uptime',
]
