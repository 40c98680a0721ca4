"""Intonation feedback for a detected pitch against a target fret."""

import math
from typing import Optional

from .fingering import FingeringChart
from .logger import get_logger
from .note_types import IntonationReading, Severity
from .note_utils import REFERENCE_FREQUENCY, cents_offset, frequency_to_midi, midi_to_note_name

logger = get_logger(__name__)

DEFAULT_OFFSET_TOLERANCE = 0.1
# Absorbs float error from the log2 round trip at the tolerance boundary
TOLERANCE_EPSILON = 1e-9


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class IntonationEngine:
    """Pure evaluation of pitches against an immutable fingering chart.

    The pitch passed to ``evaluate`` must already have passed the pitch
    oracle's clarity and minimum-frequency gates.
    """

    def __init__(
        self,
        chart: FingeringChart,
        reference_frequency: float = REFERENCE_FREQUENCY,
        offset_tolerance: float = DEFAULT_OFFSET_TOLERANCE,
    ) -> None:
        if offset_tolerance < 0:
            raise ValueError(f"offset_tolerance must be >= 0, got {offset_tolerance}")
        self.chart = chart
        self.reference_frequency = reference_frequency
        self.offset_tolerance = offset_tolerance

    def classify(self, offset: float) -> Severity:
        if abs(offset) - self.offset_tolerance > TOLERANCE_EPSILON:
            return Severity.SHARP if offset > 0 else Severity.FLAT
        return Severity.IN_TUNE

    def evaluate(self, pitch: float, target_fret_index: int = 0) -> Optional[IntonationReading]:
        """Evaluate ``pitch`` against the string nearest it at ``target_fret_index``.

        The offset is the fractional semitone distance to the nearest note,
        corrected by whole semitones toward the chart's note on the chosen
        string so that an octave slip shows up as a large offset.

        Returns:
            The reading, or None when the pitch is not a usable frequency
        """
        pitch_midi = frequency_to_midi(pitch, self.reference_frequency)
        if pitch_midi is None:
            logger.warning(f"Ignoring invalid pitch: {pitch!r}")
            return None

        note_name = midi_to_note_name(pitch_midi)
        string_index = self.chart.closest_string_index(pitch, target_fret_index)
        raw_offset = cents_offset(pitch, self.reference_frequency)

        target_midi = self.chart.midi_at(string_index, target_fret_index)
        midi_offset = _round_half_up(target_midi) - _round_half_up(pitch_midi)
        offset = raw_offset + midi_offset

        reading = IntonationReading(
            note_name=note_name,
            pitch_hz=float(pitch),
            string_index=string_index,
            offset=offset,
            severity=self.classify(offset),
        )
        logger.debug(
            f"{pitch:.2f}Hz -> {note_name} on string {string_index} fret "
            f"{target_fret_index}: offset {offset * 100:+.0f} ({reading.severity.value})"
        )
        return reading
