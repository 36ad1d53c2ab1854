"""
Error taxonomy for the Attendance Terminal.

Missing ids are not errors: delete and mark operations on an unknown id
are silent no-ops.
"""


class TerminalError(Exception):
    """Base exception for the attendance terminal."""


class ModelUnavailableError(TerminalError):
    """Raised when the face model cannot be loaded. Fatal for the session."""


class CameraDeniedError(TerminalError):
    """Raised when the camera cannot be opened or stops delivering frames."""


class NoFaceDetectedError(TerminalError):
    """Raised by enrollment when the captured frame holds no face."""


class DescriptorMismatchError(TerminalError):
    """Raised when a descriptor length differs from the registry's dimensionality."""


class InvalidNameError(TerminalError, ValueError):
    """Raised when an enrollment name is blank."""


class TerminalBusyError(TerminalError):
    """Raised when an action is not allowed in the current terminal mode."""
