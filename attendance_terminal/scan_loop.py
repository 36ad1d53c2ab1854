"""
Attendance scan loop.

Timed state machine driving recognition:

    IDLE --begin--> SCANNING --match--> PAUSED --display window--> SCANNING
    SCANNING/PAUSED --stop--> STOPPED --begin--> SCANNING

Every tick pulls one frame, extracts a descriptor, matches it against the
registry and, on a match, records the clock-in and pauses for the display
window. Ticks and resumes are scheduled tasks tagged with a session
number; stopping bumps the session so a timer that still fires afterwards
does nothing.
"""

import enum
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional
from .camera import CameraSession
from .ledger import TIME_FORMAT, AttendanceLedger
from .logging_config import get_logger
from .models import ClockInStatus, RecognitionResult
from .recognition.matching import DEFAULT_THRESHOLD, DistanceFn, euclidean_distance, match_descriptor
from .registry import ProfileRegistry
from .utils.timing import TimerScheduler

logger = get_logger(__name__)

DEFAULT_SCAN_INTERVAL = 1.5
DEFAULT_DISPLAY_SECONDS = 2.0


class ScanState(str, enum.Enum):
    IDLE = 'idle'
    SCANNING = 'scanning'
    PAUSED = 'paused'
    STOPPED = 'stopped'


class ScanLoopController:
    """
    Owns the scan loop state: current state, the displayed result, the
    processing flag and the pending timers.

    At most one extract-and-match sequence runs at a time. A tick that
    fires while the previous one is still processing is skipped.
    """

    def __init__(
        self,
        registry: ProfileRegistry,
        ledger: AttendanceLedger,
        extractor: Any,
        camera: CameraSession,
        scheduler: Optional[Any] = None,
        threshold: float = DEFAULT_THRESHOLD,
        scan_interval: float = DEFAULT_SCAN_INTERVAL,
        display_seconds: float = DEFAULT_DISPLAY_SECONDS,
        distance: DistanceFn = euclidean_distance,
        clock: Callable[[], datetime] = datetime.now
    ):
        """
        Args:
            registry: Enrolled profiles
            ledger: Clock-in history
            extractor: Object with ``detect(frame) -> descriptor | None``
            camera: Camera session, acquired on begin and released on stop
            scheduler: Object with ``call_later(delay, fn, *args)`` returning
                a cancellable handle
            threshold: Acceptance threshold for the matcher
            scan_interval: Seconds between ticks
            display_seconds: Seconds a result stays displayed
            distance: Descriptor distance function
            clock: Local time source
        """
        self.registry = registry
        self.ledger = ledger
        self.extractor = extractor
        self.camera = camera
        self.scheduler = scheduler or TimerScheduler()
        self.threshold = threshold
        self.scan_interval = scan_interval
        self.display_seconds = display_seconds
        self.distance = distance
        self.clock = clock

        self.state = ScanState.IDLE
        self.current_result: Optional[RecognitionResult] = None
        self.resume_at: Optional[datetime] = None
        self.is_processing = False

        self._session = 0
        self._tick_handle: Optional[Any] = None
        self._resume_handle: Optional[Any] = None
        self._lock = threading.RLock()

    @property
    def is_active(self) -> bool:
        return self.state in (ScanState.SCANNING, ScanState.PAUSED)

    def begin(self) -> None:
        """
        Start scanning. A no-op while already scanning or paused.

        Raises:
            CameraDeniedError: If the camera cannot be opened; the state
                is left unchanged
        """
        with self._lock:
            if self.is_active:
                logger.debug('Scan loop already running')
                return

            self.camera.acquire()

            self._session += 1
            self.current_result = None
            self.resume_at = None
            self.state = ScanState.SCANNING
            self._schedule_tick(self._session)

        logger.info(f'🎬 Attendance scanning started ({len(self.registry)} profiles)')

    def stop(self) -> None:
        """Stop scanning, cancel pending timers and release the camera."""
        with self._lock:
            was_active = self.is_active
            self._session += 1
            self._cancel_timers()
            self.current_result = None
            self.resume_at = None
            if was_active:
                self.state = ScanState.STOPPED

        self.camera.release()
        if was_active:
            logger.info('Attendance scanning stopped')

    def _schedule_tick(self, session: int) -> None:
        self._tick_handle = self.scheduler.call_later(self.scan_interval, self._tick, session)

    def _cancel_timers(self) -> None:
        for handle in (self._tick_handle, self._resume_handle):
            if handle is not None:
                handle.cancel()
        self._tick_handle = None
        self._resume_handle = None

    def _tick(self, session: int) -> None:
        with self._lock:
            if session != self._session or self.state is not ScanState.SCANNING:
                return

            # Fixed-rate ticking: the next tick is due regardless of how
            # long this one takes
            self._schedule_tick(session)

            if self.is_processing:
                logger.debug('Previous scan still running, skipping tick')
                return
            self.is_processing = True

        try:
            self._scan(session)
        except Exception as e:
            # Most ticks see no usable face; failures are logged, never raised
            logger.error(f'Scan tick failed: {e}')
        finally:
            with self._lock:
                self.is_processing = False

    def _scan(self, session: int) -> Optional[RecognitionResult]:
        profiles = self.registry.snapshot()
        if not profiles:
            return None

        frame = self.camera.read()
        if frame is None:
            return None

        descriptor = self.extractor.detect(frame)
        if descriptor is None:
            return None

        profile, distance = match_descriptor(descriptor, profiles, self.threshold, self.distance)
        if profile is None:
            logger.debug('Face did not match any profile')
            return None

        with self._lock:
            if session != self._session or self.state is not ScanState.SCANNING:
                logger.debug('Scan session ended before match was recorded')
                return None

            now = self.clock()
            status, _ = self.ledger.record_if_new(profile, now)
            if status is ClockInStatus.NONE:
                return None

            result = RecognitionResult(
                matched=True,
                distance=distance,
                label=profile.name,
                clock_in_status=status,
                time=now.strftime(TIME_FORMAT),
            )
            self._pause(result, session, now)

        logger.info(f'Recognized {profile.name} (distance={distance:.3f}, status={status.value})')
        return result

    def _pause(self, result: RecognitionResult, session: int, now: datetime) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

        self.current_result = result
        self.resume_at = now + timedelta(seconds=self.display_seconds)
        self.state = ScanState.PAUSED
        self._resume_handle = self.scheduler.call_later(self.display_seconds, self._resume, session)

    def _resume(self, session: int) -> None:
        with self._lock:
            if session != self._session or self.state is not ScanState.PAUSED:
                return

            self._resume_handle = None
            self.current_result = None
            self.resume_at = None
            self.state = ScanState.SCANNING
            self._schedule_tick(session)

    def snapshot(self) -> Dict[str, Any]:
        """Current loop state for status reporting."""
        with self._lock:
            return {
                'state': self.state.value,
                'processing': self.is_processing,
                'result': self.current_result.to_dict() if self.current_result else None,
                'resumeAt': self.resume_at.isoformat() if self.resume_at else None,
            }
