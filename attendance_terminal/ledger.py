"""
Attendance ledger module.

Records at most one clock-in per profile per calendar day and keeps a
bounded, most-recent-first history of those clock-ins.
"""

import threading
import uuid
from datetime import datetime
from typing import List, Optional, Tuple
from .logging_config import get_logger
from .models import AttendanceRecord, ClockInStatus, Profile
from .registry import ProfileRegistry
from .utils.storage import ATTENDANCE_KEY, KeyValueStore, load_collection, save_collection

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100

DATE_FORMAT = '%x'
TIME_FORMAT = '%H:%M'


class AttendanceLedger:
    """
    Bounded clock-in history.

    Records are kept newest first; once the capacity is exceeded the
    oldest entries are evicted.
    """

    def __init__(
        self,
        registry: ProfileRegistry,
        store: KeyValueStore,
        capacity: int = DEFAULT_CAPACITY
    ):
        """
        Initialize ledger from the store.

        Args:
            registry: Registry whose profiles get their clock-in date updated
            store: Backing key-value store
            capacity: Maximum number of records kept
        """
        if capacity < 1:
            raise ValueError('Ledger capacity must be at least 1')

        self.registry = registry
        self.store = store
        self.capacity = capacity
        self._lock = threading.RLock()
        self._records: List[AttendanceRecord] = load_collection(
            store, ATTENDANCE_KEY, AttendanceRecord.from_dict
        )[:capacity]

    def _persist(self) -> None:
        save_collection(self.store, ATTENDANCE_KEY, (r.to_dict() for r in self._records))

    def record_if_new(
        self,
        profile: Profile,
        now: Optional[datetime] = None
    ) -> Tuple[ClockInStatus, Optional[AttendanceRecord]]:
        """
        Clock a profile in unless it already clocked in today.

        Args:
            profile: Matched profile
            now: Local time of the event, defaults to now

        Returns:
            (SUCCESS, record) for the first clock-in of the day,
            (ALREADY, None) if the profile already clocked in today,
            (NONE, None) if the profile is no longer enrolled
        """
        now = now or datetime.now()
        today = now.date().isoformat()

        with self._lock:
            current = self.registry.get(profile.id)
            if current is None:
                logger.debug(f'Profile {profile.id} was removed before clock-in')
                return ClockInStatus.NONE, None

            if current.last_clock_in == today:
                logger.debug(f'{current.name} already clocked in on {today}')
                return ClockInStatus.ALREADY, None

            self.registry.mark_clocked_in(current.id, today)

            record = AttendanceRecord(
                id=str(uuid.uuid4()),
                name=current.name,
                date=now.strftime(DATE_FORMAT),
                time=now.strftime(TIME_FORMAT),
                timestamp=now.timestamp(),
            )
            self._records.insert(0, record)
            del self._records[self.capacity:]
            self._persist()

        logger.info(f'✅ {record.name} clocked in at {record.time}')
        return ClockInStatus.SUCCESS, record

    def remove(self, record_id: str) -> bool:
        """
        Delete one record.

        Returns:
            True if a record was removed, False if the id was unknown
        """
        with self._lock:
            remaining = [r for r in self._records if r.id != record_id]
            if len(remaining) == len(self._records):
                return False
            self._records = remaining
            self._persist()

        logger.info(f'Removed attendance record {record_id}')
        return True

    def clear(self) -> None:
        """Remove every record."""
        with self._lock:
            self._records = []
            self.store.remove(ATTENDANCE_KEY)
        logger.info('Attendance history cleared')

    def records(self) -> List[AttendanceRecord]:
        """Records, most recent first."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
