"""
Key-value persistence module.

Stores the profile registry and attendance log as serialized JSON blobs
under fixed keys. Absent or corrupt data always falls back to an empty
collection so a damaged file never prevents the terminal from starting.
"""

import json
import os
import tempfile
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar
from ..logging_config import get_logger

logger = get_logger(__name__)

PROFILES_KEY = 'face_profiles'
ATTENDANCE_KEY = 'attendance_logs'

T = TypeVar('T')


class KeyValueStore:
    """Minimal blob store interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, blob: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store, used for tests and ephemeral terminals."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        with self._lock:
            self._data[key] = blob

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON document on disk.

    Every write replaces the file atomically so a crash mid-write leaves
    the previous version intact.
    """

    def __init__(self, path: str):
        """
        Initialize file store.

        Args:
            path: Path to the JSON document (created on first write)
        """
        self.path = path
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, blob: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = blob
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            logger.debug(f'Store file not found: {self.path}')
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f'Failed to read store {self.path}: {e}')
            return {}

        if not isinstance(data, dict):
            logger.error(f'Store {self.path} is not a JSON object, ignoring it')
            return {}

        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


def load_collection(
    store: KeyValueStore,
    key: str,
    parse: Callable[[Dict[str, Any]], T]
) -> List[T]:
    """
    Load a serialized list from the store.

    Args:
        store: Backing store
        key: Logical key of the collection
        parse: Converts one JSON object into an item

    Returns:
        Parsed items; malformed entries are skipped, an absent or corrupt
        blob yields an empty list
    """
    blob = store.get(key)
    if blob is None:
        return []

    try:
        raw = json.loads(blob)
    except ValueError as e:
        logger.warning(f'Corrupt data under "{key}", starting empty: {e}')
        return []

    if not isinstance(raw, list):
        logger.warning(f'Data under "{key}" is not a list, starting empty')
        return []

    items: List[T] = []
    for entry in raw:
        try:
            items.append(parse(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f'Skipping malformed entry under "{key}": {e}')

    logger.info(f'Loaded {len(items)} entries from "{key}"')
    return items


def save_collection(
    store: KeyValueStore,
    key: str,
    items: Iterable[Dict[str, Any]]
) -> None:
    """
    Serialize a list of dicts into the store.

    Args:
        store: Backing store
        key: Logical key of the collection
        items: Already-converted entries
    """
    store.set(key, json.dumps(list(items)))
