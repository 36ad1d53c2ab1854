"""
Attendance Terminal - Main Entry Point

Loads the face model, restores enrolled profiles and clock-in history,
and serves the terminal actions over HTTP.
"""

import dataclasses
import os
import sys
import argparse
from pathlib import Path
from .app import create_app
from .camera import CameraSession
from .config import Config, load_config
from .exceptions import ModelUnavailableError
from .face_app import FaceExtractor, initialize_face_app
from .ledger import AttendanceLedger
from .logging_config import setup_logging, get_logger
from .registry import ProfileRegistry
from .terminal import AttendanceTerminal
from .utils.storage import JsonFileStore

logger = get_logger(__name__)


def _load_local_env() -> None:
    """Load environment variables from attendance_terminal/.env if present."""
    env_path = Path(__file__).resolve().parent / '.env'
    if not env_path.exists():
        return

    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Attendance Terminal - Face Recognition Clock-In'
    )

    parser.add_argument(
        '--camera-source',
        type=str,
        help='Camera index or stream URL (or set CAMERA_SOURCE)'
    )

    parser.add_argument(
        '--port',
        type=int,
        help='HTTP port (or set HTTP_PORT)'
    )

    parser.add_argument(
        '--store-file',
        type=str,
        help='JSON file for profiles and attendance history (or set STORE_FILE)'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the environment config."""
    config = load_config()
    overrides = {}

    if args.camera_source:
        overrides['camera_source'] = args.camera_source
    if args.port:
        overrides['http_port'] = args.port
    if args.store_file:
        overrides['store_file'] = args.store_file
    if args.debug:
        overrides['debug_mode'] = True

    return dataclasses.replace(config, **overrides)


def build_terminal(config: Config) -> AttendanceTerminal:
    """Restore persisted state and assemble the terminal."""
    store = JsonFileStore(config.store_file)
    registry = ProfileRegistry(store)
    ledger = AttendanceLedger(registry, store, capacity=config.ledger_capacity)
    camera = CameraSession(config)

    return AttendanceTerminal(config, registry, ledger, camera)


def main(argv=None) -> None:
    """Main entry point."""
    _load_local_env()
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(config.terminal_id, config.debug_mode)

    logger.info('=' * 60)
    logger.info('Attendance Terminal')
    logger.info('=' * 60)
    logger.info(f'Camera source: {config.camera_source}')
    logger.info(f'Store: {config.store_file}')
    logger.info(f'Match threshold: {config.match_threshold}')
    logger.info('=' * 60)

    terminal = build_terminal(config)

    try:
        terminal.load_model(lambda: FaceExtractor(initialize_face_app(config)))
    except ModelUnavailableError as e:
        logger.error(f'Model initialization failed: {e}')
        sys.exit(1)

    app = create_app(terminal, config)

    try:
        logger.info(f'Serving terminal API on port {config.http_port}')
        app.run(
            host='0.0.0.0',
            port=config.http_port,
            threaded=True,
            debug=False,
            use_reloader=False
        )
    except KeyboardInterrupt:
        logger.info('Received keyboard interrupt, shutting down...')
    finally:
        terminal.shutdown()


if __name__ == '__main__':
    main()
