"""
Attendance terminal facade.

Wires the registry, ledger, camera, feature extractor and scan loop
together and exposes the user actions: enroll staff, run attendance
scanning, and manage profiles and clock-in history.
"""

import enum
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from .camera import CameraSession
from .config import Config
from .exceptions import (
    CameraDeniedError,
    InvalidNameError,
    ModelUnavailableError,
    NoFaceDetectedError,
    TerminalBusyError,
    TerminalError,
)
from .ledger import AttendanceLedger
from .logging_config import get_logger
from .models import AttendanceRecord, Profile
from .registry import ProfileRegistry
from .scan_loop import ScanLoopController

logger = get_logger(__name__)


class TerminalMode(str, enum.Enum):
    LOADING_MODELS = 'LOADING_MODELS'
    READY = 'READY'
    REGISTERING = 'REGISTERING'
    VERIFYING = 'VERIFYING'
    ERROR = 'ERROR'


class AttendanceTerminal:
    """
    Single-camera attendance terminal.

    The terminal starts in LOADING_MODELS; load_model() moves it to READY
    or, if the model cannot be loaded, to ERROR for the rest of the
    session.
    """

    def __init__(
        self,
        config: Config,
        registry: ProfileRegistry,
        ledger: AttendanceLedger,
        camera: CameraSession,
        scheduler: Optional[Any] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config
        self.registry = registry
        self.ledger = ledger
        self.camera = camera
        self.scheduler = scheduler
        self.clock = clock

        self.mode = TerminalMode.LOADING_MODELS
        self.error_message: Optional[str] = None
        self.extractor: Optional[Any] = None
        self.controller: Optional[ScanLoopController] = None

        self._enrolling = False
        self._lock = threading.RLock()

    def load_model(self, loader: Callable[[], Any]) -> None:
        """
        Load the feature extractor.

        Args:
            loader: Returns an object with ``detect(frame)``

        Raises:
            ModelUnavailableError: If loading fails; the terminal stays in
                ERROR mode and does not retry
        """
        try:
            extractor = loader()
        except ModelUnavailableError as e:
            with self._lock:
                self.mode = TerminalMode.ERROR
                self.error_message = str(e)
            raise

        with self._lock:
            self.extractor = extractor
            self.controller = ScanLoopController(
                registry=self.registry,
                ledger=self.ledger,
                extractor=extractor,
                camera=self.camera,
                scheduler=self.scheduler,
                threshold=self.config.match_threshold,
                scan_interval=self.config.scan_interval_seconds,
                display_seconds=self.config.display_seconds,
                clock=self.clock,
            )
            self.mode = TerminalMode.READY
            self.error_message = None

        logger.info('Terminal ready')

    def _require_model(self) -> None:
        if self.mode is TerminalMode.ERROR:
            raise ModelUnavailableError(self.error_message or 'Face model unavailable')
        if self.mode is TerminalMode.LOADING_MODELS:
            raise TerminalBusyError('Face model is still loading')

    # Enrollment

    def start_registration(self) -> None:
        """
        Open the camera for enrollment.

        Raises:
            CameraDeniedError: If the camera cannot be opened
            TerminalBusyError: While attendance scanning is running
        """
        with self._lock:
            self._require_model()
            if self.mode is TerminalMode.REGISTERING:
                return
            if self.mode is TerminalMode.VERIFYING:
                raise TerminalBusyError('Exit attendance before enrolling')

            self.camera.acquire()
            self.mode = TerminalMode.REGISTERING

        logger.info('Registration started')

    def cancel_registration(self) -> None:
        with self._lock:
            if self.mode is not TerminalMode.REGISTERING:
                return
            self.camera.release()
            self.mode = TerminalMode.READY

    def enroll(self, name: str) -> Profile:
        """
        Capture one frame and enroll its face under the given name.

        Args:
            name: Staff name

        Returns:
            The new profile

        Raises:
            InvalidNameError: If the name is blank
            NoFaceDetectedError: If the frame holds no face; the camera
                stays open so the user can try again
            CameraDeniedError: If the camera cannot be opened or read
            TerminalBusyError: If another enrollment is running or
                attendance scanning is active
        """
        clean_name = (name or '').strip()
        if not clean_name:
            raise InvalidNameError('Please enter employee name first')

        with self._lock:
            self._require_model()
            if self._enrolling:
                raise TerminalBusyError('Enrollment already in progress')
            self.start_registration()
            self._enrolling = True

        try:
            frame = self.camera.read()
            if frame is None:
                raise CameraDeniedError('Camera returned no frame')

            try:
                descriptor = self.extractor.detect(frame)
            except TerminalError:
                raise
            except Exception as e:
                logger.exception('Face extraction error during enrollment')
                raise TerminalError(f'Enrollment failed: {e}') from e

            if descriptor is None:
                logger.warning(f'No face detected while enrolling {clean_name}')
                raise NoFaceDetectedError('No face detected. Adjust lighting.')

            profile = self.registry.add(clean_name, descriptor)
        finally:
            with self._lock:
                self._enrolling = False

        with self._lock:
            self.camera.release()
            self.mode = TerminalMode.READY

        return profile

    # Attendance

    def begin_attendance(self) -> None:
        """
        Start attendance scanning. Works with an empty registry too.

        Raises:
            CameraDeniedError: If the camera cannot be opened
            TerminalBusyError: While registering
        """
        with self._lock:
            self._require_model()
            if self.mode is TerminalMode.VERIFYING:
                return
            if self.mode is TerminalMode.REGISTERING:
                raise TerminalBusyError('Finish or cancel registration first')

            self.controller.begin()
            self.mode = TerminalMode.VERIFYING

    def exit_attendance(self) -> None:
        with self._lock:
            if self.mode is not TerminalMode.VERIFYING:
                return
            self.controller.stop()
            self.mode = TerminalMode.READY

    # Registry and history management

    def profiles(self) -> List[Profile]:
        return self.registry.snapshot()

    def delete_profile(self, profile_id: str) -> bool:
        return self.registry.remove(profile_id)

    def clear_registry(self) -> None:
        self.registry.clear()

    def attendance(self) -> List[AttendanceRecord]:
        return self.ledger.records()

    def clear_ledger(self) -> None:
        self.ledger.clear()

    def delete_ledger_entry(self, record_id: str) -> bool:
        return self.ledger.remove(record_id)

    def shutdown(self) -> None:
        """Stop scanning and release the camera."""
        self.exit_attendance()
        self.cancel_registration()
        self.camera.release()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            scan = self.controller.snapshot() if self.controller else None
            return {
                'mode': self.mode.value,
                'error': self.error_message,
                'enrolling': self._enrolling,
                'cameraActive': self.camera.is_active,
                'profiles': len(self.registry),
                'attendance': len(self.ledger),
                'scan': scan,
            }
