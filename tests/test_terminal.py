import pytest

from attendance_terminal.exceptions import (
    CameraDeniedError,
    InvalidNameError,
    ModelUnavailableError,
    NoFaceDetectedError,
    TerminalBusyError,
)
from attendance_terminal.models import ClockInStatus
from attendance_terminal.scan_loop import ScanState
from attendance_terminal.terminal import AttendanceTerminal, TerminalMode

from .conftest import vec


def test_enroll_adds_profile_and_releases_camera(terminal, extractor, camera, registry):
    extractor.queue.append(vec(0, 0, 0, 0))

    profile = terminal.enroll(' Aisha ')

    assert profile.name == 'Aisha'
    assert len(registry) == 1
    assert terminal.mode is TerminalMode.READY
    assert not camera.is_active


@pytest.mark.parametrize('name', ['', '   '])
def test_enroll_rejects_blank_name_before_camera(terminal, camera, registry, extractor, name):
    with pytest.raises(InvalidNameError):
        terminal.enroll(name)

    assert camera.acquire_calls == 0
    assert extractor.calls == 0
    assert len(registry) == 0


def test_enroll_without_face_keeps_registering(terminal, extractor, camera, registry):
    with pytest.raises(NoFaceDetectedError):
        terminal.enroll('Aisha')

    assert len(registry) == 0
    assert terminal.mode is TerminalMode.REGISTERING
    assert camera.is_active

    extractor.queue.append(vec(0, 0, 0, 0))
    terminal.enroll('Aisha')
    assert len(registry) == 1


def test_enroll_camera_denied(terminal, camera, registry):
    camera.deny = True

    with pytest.raises(CameraDeniedError):
        terminal.enroll('Aisha')

    assert terminal.mode is TerminalMode.READY
    assert len(registry) == 0


def test_cancel_registration(terminal, camera):
    terminal.start_registration()
    assert terminal.mode is TerminalMode.REGISTERING

    terminal.cancel_registration()

    assert terminal.mode is TerminalMode.READY
    assert not camera.is_active


def test_attendance_scenario(terminal, extractor, scheduler):
    extractor.queue.append(vec(0, 0, 0, 0))
    terminal.enroll('Aisha')
    assert len(terminal.profiles()) == 1

    extractor.default = vec(0.12, 0, 0, 0)
    terminal.begin_attendance()
    assert terminal.mode is TerminalMode.VERIFYING

    scheduler.advance(1.5)
    result = terminal.controller.current_result
    assert result.matched
    assert result.clock_in_status is ClockInStatus.SUCCESS

    scheduler.advance(2.0 + 1.5)
    assert terminal.controller.current_result.clock_in_status is ClockInStatus.ALREADY
    assert len(terminal.attendance()) == 1

    scheduler.advance(2.0)
    extractor.default = vec(0.8, 0, 0, 0)
    scheduler.advance(1.5)
    assert terminal.controller.state is ScanState.SCANNING
    assert terminal.controller.current_result is None

    terminal.exit_attendance()
    assert terminal.mode is TerminalMode.READY


def test_begin_attendance_with_no_profiles(terminal, extractor, scheduler):
    terminal.begin_attendance()

    assert terminal.controller.state is ScanState.SCANNING
    scheduler.advance(15)
    assert terminal.controller.current_result is None
    assert terminal.attendance() == []


def test_exit_attendance_twice(terminal, camera):
    terminal.begin_attendance()
    terminal.exit_attendance()
    terminal.exit_attendance()

    assert camera.closed == 1
    assert terminal.mode is TerminalMode.READY


def test_actions_rejected_in_wrong_mode(terminal):
    terminal.begin_attendance()
    with pytest.raises(TerminalBusyError):
        terminal.start_registration()
    with pytest.raises(TerminalBusyError):
        terminal.enroll('Aisha')

    terminal.exit_attendance()
    terminal.start_registration()
    with pytest.raises(TerminalBusyError):
        terminal.begin_attendance()


def test_model_failure_puts_terminal_in_error(config, registry, ledger, camera):
    terminal = AttendanceTerminal(config, registry, ledger, camera)

    def loader():
        raise ModelUnavailableError('weights missing')

    with pytest.raises(ModelUnavailableError):
        terminal.load_model(loader)

    assert terminal.mode is TerminalMode.ERROR
    with pytest.raises(ModelUnavailableError):
        terminal.begin_attendance()


def test_actions_wait_for_model(config, registry, ledger, camera):
    terminal = AttendanceTerminal(config, registry, ledger, camera)

    with pytest.raises(TerminalBusyError):
        terminal.begin_attendance()


def test_management_actions(terminal, extractor):
    extractor.queue.extend([vec(0, 0, 0, 0), vec(1, 1, 1, 1)])
    a = terminal.enroll('A')
    terminal.enroll('B')

    assert terminal.delete_profile(a.id) is True
    assert terminal.delete_profile(a.id) is False
    assert [p.name for p in terminal.profiles()] == ['B']

    terminal.clear_registry()
    assert terminal.profiles() == []

    assert terminal.delete_ledger_entry('missing') is False
    terminal.clear_ledger()
    assert terminal.attendance() == []


def test_status(terminal):
    status = terminal.status()

    assert status['mode'] == 'READY'
    assert status['profiles'] == 0
    assert status['scan']['state'] == 'idle'


def test_shutdown_releases_everything(terminal, camera):
    terminal.begin_attendance()

    terminal.shutdown()

    assert not camera.is_active
    assert terminal.mode is TerminalMode.READY
