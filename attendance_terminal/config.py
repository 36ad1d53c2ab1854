"""
Configuration module for the Attendance Terminal.

Loads configuration from environment variables with sensible defaults.
All settings are immutable after initialization.
"""

import os
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for the Attendance Terminal.

    Camera Settings:
        camera_source: Camera source - can be:
            - Integer (0, 1, 2) for local webcam
            - RTSP URL: rtsp://user:pass@ip:port/path
            - HTTP URL: http://camera-gateway:4000/streams/1.mjpg
        camera_width: Ideal capture width for local cameras
        camera_height: Ideal capture height for local cameras

    Service Identity:
        terminal_id: Logical identifier for this terminal (for logging)
        service_name: Name of this service instance
        http_port: Port for Flask HTTP server

    Recognition:
        match_threshold: Maximum Euclidean distance accepted as a match
        insightface_det_size: Detection size for InsightFace (width, height)

    Scan Loop:
        scan_interval_seconds: Delay between scan ticks
        display_seconds: How long a recognition result is shown before
            scanning resumes

    Storage:
        store_file: Path to the JSON file holding profiles and logs
        ledger_capacity: Number of most recent clock-ins kept

    System:
        debug_mode: Enable debug logging
    """

    # Camera
    camera_source: str
    camera_width: int
    camera_height: int

    # Service
    terminal_id: str
    service_name: str
    http_port: int

    # Recognition
    match_threshold: float
    insightface_det_size: Tuple[int, int]

    # Scan loop
    scan_interval_seconds: float
    display_seconds: float

    # Storage
    store_file: str
    ledger_capacity: int

    # System
    debug_mode: bool


def load_config() -> Config:
    """
    Load configuration from environment variables.

    Returns:
        Config: Immutable configuration object
    """
    camera_source_raw = os.getenv('CAMERA_SOURCE', '0')
    det_size = int(os.getenv('DET_SIZE', '640'))

    return Config(
        # Camera
        camera_source=camera_source_raw,
        camera_width=int(os.getenv('CAMERA_WIDTH', '640')),
        camera_height=int(os.getenv('CAMERA_HEIGHT', '480')),

        # Service
        terminal_id=os.getenv('TERMINAL_ID', camera_source_raw),
        service_name=os.getenv('SERVICE_NAME', 'attendance-terminal'),
        http_port=int(os.getenv('HTTP_PORT', '5001')),

        # Recognition
        match_threshold=float(os.getenv('MATCH_THRESHOLD', '0.5')),
        insightface_det_size=(det_size, det_size),

        # Scan loop
        scan_interval_seconds=float(os.getenv('SCAN_INTERVAL', '1.5')),
        display_seconds=float(os.getenv('DISPLAY_SECONDS', '2.0')),

        # Storage
        store_file=os.getenv('STORE_FILE', 'attendance_store.json'),
        ledger_capacity=int(os.getenv('LEDGER_CAPACITY', '100')),

        # System
        debug_mode=os.getenv('DEBUG', 'false').lower() == 'true',
    )
