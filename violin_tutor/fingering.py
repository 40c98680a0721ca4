"""Fingering chart: every playable (string, fret) position for a tuning."""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .logger import get_logger
from .note_types import FingerPosition, NoteName
from .note_utils import (
    REFERENCE_FREQUENCY,
    frequency_to_midi,
    midi_to_note_name,
)

logger = get_logger(__name__)

STRING_COUNT = 4

# G3 D4 A4 E5
STANDARD_TUNING: Tuple[float, ...] = (196.0, 293.66, 440.0, 659.26)
DEFAULT_FRETS_PER_STRING = 7


class FingeringChart:
    """Playable positions for a four-string fretted fingerboard.

    ``string_frequencies[s][k]`` is the open frequency of string ``s`` raised
    by ``k`` equal-tempered semitones. The note index lists positions in
    construction order: strings ascending, then frets ascending. The first
    entry is the canonical "first found" position and the last entry is the
    one a "prefer higher fret" policy picks.
    """

    def __init__(
        self,
        string_frequencies: np.ndarray,
        note_positions: Dict[NoteName, Tuple[FingerPosition, ...]],
        reference_frequency: float = REFERENCE_FREQUENCY,
    ) -> None:
        self._string_frequencies = string_frequencies
        self._string_frequencies.setflags(write=False)
        self._note_positions = note_positions
        self.reference_frequency = reference_frequency

    @classmethod
    def build(
        cls,
        tuning: Sequence[float] = STANDARD_TUNING,
        frets_per_string: int = DEFAULT_FRETS_PER_STRING,
        reference_frequency: float = REFERENCE_FREQUENCY,
    ) -> "FingeringChart":
        """Build the chart from four open-string frequencies.

        Raises:
            ValueError: If the tuning is not four strictly increasing positive
                frequencies, or frets_per_string is negative
        """
        tuning = [float(f) for f in tuning]
        if len(tuning) != STRING_COUNT:
            raise ValueError(
                f"Tuning needs {STRING_COUNT} open strings, got {len(tuning)}"
            )
        if any(not np.isfinite(f) or f <= 0 for f in tuning):
            raise ValueError(f"Tuning frequencies must be positive: {tuning}")
        if any(low >= high for low, high in zip(tuning, tuning[1:])):
            raise ValueError(f"Tuning must be strictly increasing: {tuning}")
        if frets_per_string < 0:
            raise ValueError(f"frets_per_string must be >= 0, got {frets_per_string}")

        semitones = np.arange(frets_per_string + 1)
        string_frequencies = np.array(tuning)[:, None] * 2.0 ** (semitones[None, :] / 12.0)

        index: Dict[NoteName, List[FingerPosition]] = {}
        for string_index in range(STRING_COUNT):
            for fret_index in range(frets_per_string + 1):
                frequency = string_frequencies[string_index, fret_index]
                note = midi_to_note_name(frequency_to_midi(frequency, reference_frequency))
                index.setdefault(note, []).append(
                    FingerPosition(string_index=string_index, fret_index=fret_index)
                )

        logger.info(
            f"Built fingering chart: {STRING_COUNT} strings x {frets_per_string + 1} "
            f"positions, {len(index)} distinct notes"
        )
        return cls(
            string_frequencies,
            {note: tuple(positions) for note, positions in index.items()},
            reference_frequency=reference_frequency,
        )

    @property
    def frets_per_string(self) -> int:
        return self._string_frequencies.shape[1] - 1

    @property
    def string_frequencies(self) -> np.ndarray:
        return self._string_frequencies

    @property
    def notes(self) -> List[NoteName]:
        return sorted(self._note_positions, key=lambda note: note.midi)

    def frequency_at(self, position: FingerPosition) -> float:
        return float(self._string_frequencies[position.string_index, position.fret_index])

    def midi_at(self, string_index: int, fret_index: int) -> float:
        return frequency_to_midi(
            float(self._string_frequencies[string_index, fret_index]),
            self.reference_frequency,
        )

    def note_positions(self, note: NoteName) -> Tuple[FingerPosition, ...]:
        """All positions producing ``note``, in construction order. Empty if none."""
        return self._note_positions.get(note, ())

    def first_found(self, note: NoteName) -> Optional[FingerPosition]:
        positions = self.note_positions(note)
        return positions[0] if positions else None

    def last_found(self, note: NoteName) -> Optional[FingerPosition]:
        positions = self.note_positions(note)
        return positions[-1] if positions else None

    def position_for(
        self, note: NoteName, prefer_higher_fret: bool = False
    ) -> Optional[FingerPosition]:
        """Preferred position for ``note``, or None when it is unfingerable."""
        if prefer_higher_fret:
            return self.last_found(note)
        return self.first_found(note)

    def closest_string_index(self, pitch: float, fret_index: int) -> int:
        """Index of the string whose ``fret_index`` frequency is nearest ``pitch``.

        Exact ties resolve to the lowest string index.

        Raises:
            ValueError: If fret_index is outside the chart
        """
        if not 0 <= fret_index <= self.frets_per_string:
            raise ValueError(
                f"Fret {fret_index} outside chart (0..{self.frets_per_string})"
            )
        distances = np.abs(pitch - self._string_frequencies[:, fret_index])
        # argmin returns the first minimum
        return int(np.argmin(distances))

    def __eq__(self, other) -> bool:
        if not isinstance(other, FingeringChart):
            return NotImplemented
        return (
            np.array_equal(self._string_frequencies, other._string_frequencies)
            and self._note_positions == other._note_positions
            and self.reference_frequency == other.reference_frequency
        )
