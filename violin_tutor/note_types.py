"""Type definitions for the Violin Tutor project."""

from enum import Enum
from typing import Optional, Tuple
from dataclasses import dataclass, field

import numpy as np

PITCH_CLASSES: Tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)


@dataclass(frozen=True)
class NoteName:
    """A pitch class (0-11, C=0) plus a scientific-pitch-notation octave."""

    pitch_class: int
    octave: int

    @property
    def midi(self) -> int:
        return (self.octave + 1) * 12 + self.pitch_class

    @property
    def letter(self) -> str:
        return PITCH_CLASSES[self.pitch_class]

    def __str__(self):
        return f"{self.letter}{self.octave}"


@dataclass(frozen=True)
class FingerPosition:
    """Represents a position on the violin fingerboard."""

    string_index: int  # 0 is the lowest string
    fret_index: int  # 0 for open string

    def __str__(self):
        return f"S{self.string_index}F{self.fret_index}"


class Severity(Enum):
    """How far a played pitch sits from the intended note."""

    IN_TUNE = "in_tune"
    SHARP = "sharp"
    FLAT = "flat"


@dataclass(frozen=True)
class IntonationReading:
    """Result of evaluating a detected pitch against a target fret."""

    note_name: NoteName
    pitch_hz: float
    string_index: int
    offset: float  # fraction of a semitone, whole semitones added when off-string
    severity: Severity


@dataclass(frozen=True)
class PitchEstimate:
    """A single reading from the pitch oracle."""

    frequency_hz: float
    clarity: float  # 0-1


def _identity_quaternion() -> np.ndarray:
    return np.array([0.0, 0.0, 0.0, 1.0])


@dataclass(eq=False)
class Pose:
    """Position (x, y, z) and orientation quaternion (x, y, z, w)."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=_identity_quaternion)

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3)
        self.orientation = np.asarray(self.orientation, dtype=float).reshape(4)

    def copy(self) -> "Pose":
        return Pose(self.position.copy(), self.orientation.copy())

    def is_close(self, other: "Pose", atol: float = 1e-9) -> bool:
        # q and -q are the same rotation
        same_rotation = np.allclose(
            self.orientation, other.orientation, atol=atol
        ) or np.allclose(self.orientation, -other.orientation, atol=atol)
        return bool(np.allclose(self.position, other.position, atol=atol)) and same_rotation


@dataclass(frozen=True)
class ScriptNote:
    """One entry of a song script: the target note and where to finger it."""

    note_name: NoteName
    position: Optional[FingerPosition] = None  # None when unfingerable

    def __str__(self):
        where = str(self.position) if self.position else "not found"
        return f"{self.note_name}@{where}"
