"""
Data model for enrolled profiles, clock-in records and recognition results.

Descriptors live in memory as float32 numpy arrays and are stored as plain
float lists.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np


class ClockInStatus(str, enum.Enum):
    SUCCESS = 'success'
    ALREADY = 'already'
    NONE = 'none'


@dataclass(eq=False)
class Profile:
    """
    An enrolled identity.

    Attributes:
        id: Opaque unique identifier
        name: Display name, never blank
        descriptor: Face signature produced by the feature extractor
        captured_at: Enrollment time (epoch seconds)
        last_clock_in: Calendar date (YYYY-MM-DD) of the last accepted
            clock-in, or None if the person never clocked in
    """

    id: str
    name: str
    descriptor: np.ndarray
    captured_at: float
    last_clock_in: Optional[str] = None

    def to_dict(self, include_descriptor: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'name': self.name,
            'capturedAt': self.captured_at,
            'lastClockIn': self.last_clock_in,
        }
        if include_descriptor:
            data['descriptor'] = [float(v) for v in self.descriptor]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Profile':
        descriptor = np.asarray(data['descriptor'], dtype=np.float32)
        if descriptor.ndim != 1 or descriptor.size == 0:
            raise ValueError('descriptor must be a non-empty flat list')

        name = str(data['name']).strip()
        if not name:
            raise ValueError('name must not be blank')

        return cls(
            id=str(data['id']),
            name=name,
            descriptor=descriptor,
            captured_at=float(data.get('capturedAt', 0.0)),
            last_clock_in=data.get('lastClockIn'),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """A single accepted clock-in. Immutable once created."""

    id: str
    name: str
    date: str
    time: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'date': self.date,
            'time': self.time,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttendanceRecord':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            date=str(data['date']),
            time=str(data['time']),
            timestamp=float(data['timestamp']),
        )


@dataclass(frozen=True)
class RecognitionResult:
    """Outcome of one scan tick, shown for a single display window."""

    matched: bool
    distance: float
    label: Optional[str] = None
    clock_in_status: ClockInStatus = ClockInStatus.NONE
    time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matched': self.matched,
            'distance': round(self.distance, 4),
            'label': self.label,
            'clockInStatus': self.clock_in_status.value,
            'time': self.time,
        }
