"""Violin Tutor: intonation, fingering and pose-tracking core for a virtual violin."""

from .fingering import FingeringChart
from .intonation import IntonationEngine
from .modes import ButtonEvent, Mode
from .note_types import FingerPosition, IntonationReading, NoteName, PitchEstimate, Pose, Severity
from .song import SongMatcher, SongScript
from .tracking import RelativeTransformTracker
from .violin import Violin, ViolinFrame

__all__ = [
    "ButtonEvent",
    "FingerPosition",
    "FingeringChart",
    "IntonationEngine",
    "IntonationReading",
    "Mode",
    "NoteName",
    "PitchEstimate",
    "Pose",
    "RelativeTransformTracker",
    "Severity",
    "SongMatcher",
    "SongScript",
    "Violin",
    "ViolinFrame",
]
