"""
Camera connection and management module.

Handles connection to various camera sources:
- Local webcams (index 0, 1, 2)
- RTSP streams
- HTTP MJPEG streams (from camera gateway)

The terminal opens the camera once per session and releases it exactly
once; repeated acquire/release calls are no-ops.
"""

import threading
import cv2
import numpy as np
import requests
from typing import Any, Optional
from .config import Config
from .exceptions import CameraDeniedError
from .logging_config import get_logger

logger = get_logger(__name__)


def open_capture(config: Config) -> Any:
    """
    Open the configured camera source.

    Args:
        config: Service configuration

    Returns:
        Opened capture object (cv2.VideoCapture or MJPEGStreamCapture)

    Raises:
        CameraDeniedError: If the source cannot be opened or yields no frame
    """
    camera_source = config.camera_source

    if camera_source.isdigit():
        logger.info(f'Opening local camera index {camera_source}...')
        video_capture = cv2.VideoCapture(int(camera_source))
        if video_capture.isOpened():
            video_capture.set(cv2.CAP_PROP_FRAME_WIDTH, config.camera_width)
            video_capture.set(cv2.CAP_PROP_FRAME_HEIGHT, config.camera_height)
    else:
        logger.info(f'Opening camera stream {_sanitize_url(camera_source)}...')
        video_capture = _open_stream_capture(camera_source)
        if video_capture is not None and camera_source.startswith('rtsp://'):
            video_capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

    if video_capture is None or not video_capture.isOpened():
        raise CameraDeniedError(f'Cannot open camera {_sanitize_url(camera_source)}')

    ret, frame = video_capture.read()
    if not ret or frame is None:
        video_capture.release()
        raise CameraDeniedError('Camera opened but failed to read frame')

    logger.info(f'✅ Camera connected, frame size: {frame.shape[1]}x{frame.shape[0]}')
    return video_capture


class CameraSession:
    """
    Shared camera resource for enrollment and attendance scanning.

    acquire() and release() are idempotent, so the terminal can call them
    from every mode transition without tracking who opened the device.
    """

    def __init__(self, config: Config, opener=open_capture):
        """
        Args:
            config: Service configuration
            opener: Callable that opens the device, receives the config
        """
        self.config = config
        self._opener = opener
        self._capture: Optional[Any] = None
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._capture is not None

    def acquire(self) -> None:
        """
        Open the camera if it is not already open.

        Raises:
            CameraDeniedError: If the device cannot be opened
        """
        with self._lock:
            if self._capture is not None:
                logger.debug('Camera already acquired')
                return
            try:
                self._capture = self._opener(self.config)
            except CameraDeniedError:
                raise
            except Exception as e:
                raise CameraDeniedError(f'Camera unavailable: {e}') from e

    def read(self) -> Optional[np.ndarray]:
        """
        Read the current frame.

        Returns:
            Frame, or None if the camera is closed or the read failed
        """
        with self._lock:
            if self._capture is None:
                return None
            ret, frame = self._capture.read()

        if not ret or frame is None:
            logger.warning('Failed to read frame')
            return None
        return frame

    def release(self) -> None:
        """Close the camera if it is open."""
        with self._lock:
            capture, self._capture = self._capture, None

        if capture is None:
            return

        try:
            capture.release()
        except Exception as e:
            logger.warning(f'Error releasing camera: {e}')
        logger.info('Camera released')


def _open_stream_capture(source: str) -> Optional[Any]:
    """
    Try multiple OpenCV backends to open HTTP/RTSP streams.
    For HTTP MJPEG streams, use MJPEGStreamCapture for better reliability.
    """
    if source.startswith('http://') or source.startswith('https://'):
        if '.mjpg' in source or 'mjpeg' in source.lower():
            logger.debug('Detected MJPEG stream, using HTTP reader')
            return MJPEGStreamCapture(source)

    backend_candidates = []
    if hasattr(cv2, 'CAP_FFMPEG'):
        backend_candidates.append(('CAP_FFMPEG', cv2.CAP_FFMPEG))
    backend_candidates.append(('DEFAULT', None))

    for backend_name, backend_flag in backend_candidates:
        try:
            capture = cv2.VideoCapture(source) if backend_flag is None else cv2.VideoCapture(source, backend_flag)
        except Exception as exc:
            logger.debug(f'Backend {backend_name} failed: {exc}')
            continue

        if capture.isOpened():
            logger.debug(f'Stream opened with backend {backend_name}')
            return capture
        capture.release()

    return None


def _sanitize_url(url: str) -> str:
    """
    Remove password from URL for logging.

    Args:
        url: URL with potential password

    Returns:
        Sanitized URL
    """
    if '://' not in url:
        return url

    protocol, rest = url.split('://', 1)
    if '@' not in rest:
        return url

    creds, host = rest.rsplit('@', 1)
    username = creds.split(':', 1)[0]
    return f'{protocol}://{username}@{host}'


class MJPEGStreamCapture:
    """
    VideoCapture-compatible reader for HTTP MJPEG streams.
    Uses requests to read the stream and decodes frames manually.
    """

    MAX_BUFFER_BYTES = 10 * 1024 * 1024

    def __init__(self, url: str, timeout: int = 10):
        """
        Initialize MJPEG stream reader.

        Args:
            url: HTTP URL of MJPEG stream
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._opened = False
        self._stream = None
        self._response = None
        self._buffer = b''

        try:
            logger.debug(f'Opening MJPEG stream: {_sanitize_url(url)}')
            self._response = requests.get(url, stream=True, timeout=timeout)
            if self._response.status_code == 200:
                self._stream = self._response.iter_content(chunk_size=1024)
                self._opened = True
            else:
                logger.warning(f'MJPEG stream returned status {self._response.status_code}')
        except requests.exceptions.RequestException as e:
            logger.warning(f'Failed to open MJPEG stream: {e}')

    def isOpened(self) -> bool:
        """Check if stream is open."""
        return self._opened

    def read(self) -> tuple[bool, Optional[np.ndarray]]:
        """
        Read next frame from MJPEG stream.

        Returns:
            Tuple of (success, frame)
        """
        if not self._opened or self._stream is None:
            return False, None

        try:
            while True:
                chunk = next(self._stream, None)
                if chunk is None:
                    return False, None

                self._buffer += chunk

                start = self._buffer.find(b'\xff\xd8')  # JPEG start
                end = self._buffer.find(b'\xff\xd9')    # JPEG end

                if start != -1 and end != -1 and end > start:
                    jpg = self._buffer[start:end + 2]
                    self._buffer = self._buffer[end + 2:]

                    frame = cv2.imdecode(np.frombuffer(jpg, dtype=np.uint8), cv2.IMREAD_COLOR)
                    if frame is not None:
                        return True, frame

                if len(self._buffer) > self.MAX_BUFFER_BYTES:
                    logger.warning('Buffer overflow, resetting')
                    self._buffer = b''

        except requests.exceptions.RequestException as e:
            logger.warning(f'Error reading MJPEG frame: {e}')
            return False, None

    def release(self) -> None:
        """Release stream resources."""
        self._opened = False
        if self._response is not None:
            self._response.close()
        self._stream = None
        self._buffer = b''

    def set(self, prop_id: int, value: float) -> bool:
        """Compatibility method (does nothing for MJPEG streams)."""
        return True
