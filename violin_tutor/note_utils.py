"""Utility functions for working with musical notes and frequencies."""

import math
import re
from typing import Optional

import numpy as np

from .logger import get_logger
from .note_types import NoteName, PITCH_CLASSES

# Get logger for this module
logger = get_logger(__name__)

REFERENCE_FREQUENCY = 440.0
REFERENCE_MIDI = 69

FLAT_PITCH_CLASSES = ("C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B")

FLAT_TO_SHARP = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "Cb": "B",
    "Fb": "E",
    "E#": "F",
    "B#": "C",
}

# Note letter with optional accidental, then an optional (possibly negative) octave
NOTE_NAME_PATTERN = re.compile(r"^\s*([A-Ga-g])([#b]?)(-?\d+)?\s*$")


def _is_valid_frequency(freq) -> bool:
    if not isinstance(freq, (int, float, np.floating, np.integer)):
        logger.warning(f"Invalid frequency value: {freq!r}")
        return False
    if not np.isfinite(freq) or freq <= 0:
        logger.debug(f"Non-positive or non-finite frequency: {freq}")
        return False
    return True


def frequency_to_midi(
    freq: float,
    reference_frequency: float = REFERENCE_FREQUENCY,
    reference_midi: int = REFERENCE_MIDI,
) -> Optional[float]:
    """Convert a frequency to a (fractional) MIDI number.

    Returns None for non-positive or non-finite input.
    """
    if not _is_valid_frequency(freq):
        return None
    return reference_midi + 12 * float(np.log2(freq / reference_frequency))


def midi_to_frequency(
    midi: float,
    reference_frequency: float = REFERENCE_FREQUENCY,
    reference_midi: int = REFERENCE_MIDI,
) -> float:
    return reference_frequency * 2.0 ** ((midi - reference_midi) / 12.0)


def midi_to_note_name(midi: Optional[float]) -> Optional[NoteName]:
    """Round a MIDI number to the nearest note in scientific pitch notation.

    C4 is MIDI 60, A4 is MIDI 69.
    """
    if midi is None or not np.isfinite(midi):
        return None
    # floor(x + 0.5) keeps exact half-semitones rounding up like the display does
    midi_number = int(math.floor(midi + 0.5))
    return NoteName(pitch_class=midi_number % 12, octave=midi_number // 12 - 1)


def cents_offset(
    freq: float, reference_frequency: float = REFERENCE_FREQUENCY
) -> Optional[float]:
    """Distance from the nearest equal-tempered note, as a fraction of a semitone.

    The result lies in [-0.5, 0.5). Multiplying by 100 gives percent of a
    semitone, which the display labels as cents.
    """
    if not _is_valid_frequency(freq):
        return None
    semitones = 12 * float(np.log2(freq / reference_frequency))
    return semitones - math.floor(semitones + 0.5)


def note_name_for_frequency(
    freq: float, reference_frequency: float = REFERENCE_FREQUENCY
) -> Optional[NoteName]:
    return midi_to_note_name(frequency_to_midi(freq, reference_frequency))


def get_note_name(freq: float, use_flats: bool = False) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4', 'Bb3'), or '---' for
        an invalid frequency
    """
    note = note_name_for_frequency(freq)
    if note is None:
        return "---"
    return format_note_name(note, use_flats=use_flats)


def format_note_name(note: NoteName, use_flats: bool = False) -> str:
    table = FLAT_PITCH_CLASSES if use_flats else PITCH_CLASSES
    return f"{table[note.pitch_class]}{note.octave}"


def parse_note_name(text: str, default_octave: Optional[int] = None) -> NoteName:
    """Parse 'A4', 'Bb3' or 'C#5' into a NoteName.

    Raises:
        ValueError: If the text is not a note name, or has no octave and no
            default_octave is given
    """
    match = NOTE_NAME_PATTERN.match(text or "")
    if not match:
        raise ValueError(f"Invalid note name: {text!r}")

    letter, accidental, octave_text = match.groups()
    spelled = letter.upper() + accidental
    if octave_text is None:
        if default_octave is None:
            raise ValueError(f"Note name {text!r} has no octave")
        octave = default_octave
    else:
        octave = int(octave_text)

    sharp = FLAT_TO_SHARP.get(spelled, spelled)
    pitch_class = PITCH_CLASSES.index(sharp)

    # Cb4 sounds as B3 and B#3 as C4
    if spelled == "Cb":
        octave -= 1
    elif spelled == "B#":
        octave += 1
    return NoteName(pitch_class=pitch_class, octave=octave)
