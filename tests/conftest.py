from datetime import datetime

import numpy as np
import pytest

from attendance_terminal.config import Config
from attendance_terminal.exceptions import CameraDeniedError
from attendance_terminal.ledger import AttendanceLedger
from attendance_terminal.registry import ProfileRegistry
from attendance_terminal.scan_loop import ScanLoopController
from attendance_terminal.terminal import AttendanceTerminal
from attendance_terminal.utils.storage import MemoryStore


class _Task:
    def __init__(self, due, seq, callback, args):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by a fake clock; callbacks run inside advance()."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._tasks = []

    def call_later(self, delay, callback, *args):
        task = _Task(self.now + delay, self._seq, callback, args)
        self._seq += 1
        self._tasks.append(task)
        return task

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self._tasks if not t.cancelled and t.due <= target]
            if not due:
                break
            task = min(due, key=lambda t: (t.due, t.seq))
            self._tasks.remove(task)
            self.now = task.due
            task.callback(*task.args)
        self.now = max(self.now, target)

    def pending(self):
        return [t for t in self._tasks if not t.cancelled]


class FakeCamera:
    def __init__(self, deny=False):
        self.deny = deny
        self.acquire_calls = 0
        self.release_calls = 0
        self.opened = 0
        self.closed = 0
        self._active = False
        self.frame = np.zeros((4, 4, 3), dtype=np.uint8)

    @property
    def is_active(self):
        return self._active

    def acquire(self):
        self.acquire_calls += 1
        if self.deny:
            raise CameraDeniedError('Camera access denied.')
        if not self._active:
            self._active = True
            self.opened += 1

    def read(self):
        return self.frame if self._active else None

    def release(self):
        self.release_calls += 1
        if self._active:
            self._active = False
            self.closed += 1


class FakeExtractor:
    """Returns queued descriptors, then repeats `default`."""

    def __init__(self, default=None):
        self.default = default
        self.queue = []
        self.calls = 0
        self.on_detect = None

    def detect(self, frame):
        self.calls += 1
        if self.on_detect is not None:
            self.on_detect()
        if self.queue:
            item = self.queue.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return self.default


def vec(*values):
    return np.array(values, dtype=np.float32)


@pytest.fixture
def config():
    return Config(
        camera_source='0',
        camera_width=640,
        camera_height=480,
        terminal_id='test',
        service_name='attendance-terminal',
        http_port=5001,
        match_threshold=0.5,
        insightface_det_size=(640, 640),
        scan_interval_seconds=1.5,
        display_seconds=2.0,
        store_file='unused.json',
        ledger_capacity=100,
        debug_mode=False,
    )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(store):
    return ProfileRegistry(store)


@pytest.fixture
def ledger(registry, store):
    return AttendanceLedger(registry, store)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def clock():
    return lambda: datetime(2026, 10, 18, 9, 5)


@pytest.fixture
def controller(registry, ledger, extractor, camera, scheduler, clock):
    return ScanLoopController(
        registry=registry,
        ledger=ledger,
        extractor=extractor,
        camera=camera,
        scheduler=scheduler,
        clock=clock,
    )


@pytest.fixture
def terminal(config, registry, ledger, camera, scheduler, clock, extractor):
    terminal = AttendanceTerminal(config, registry, ledger, camera, scheduler=scheduler, clock=clock)
    terminal.load_model(lambda: extractor)
    return terminal
