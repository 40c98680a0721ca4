"""Follow-the-song mode: a cyclic script of target notes and a matching cursor."""

from typing import Iterable, List, Optional, Sequence

from .core.events import EventEmitter, ViolinEventType
from .fingering import FingeringChart
from .logger import get_logger
from .note_matcher import NoteMatcher
from .note_types import NoteName, ScriptNote
from .note_utils import format_note_name, note_name_for_frequency, parse_note_name

logger = get_logger(__name__)

# Opening of "Twinkle Twinkle Little Star" in A major
DEFAULT_SONG = ("A4", "A4", "E5", "E5", "F#5", "F#5", "E5")


class SongScript:
    """An ordered, non-empty sequence of target notes."""

    def __init__(self, notes: Sequence[ScriptNote]) -> None:
        if not notes:
            raise ValueError("A song script needs at least one note")
        self._notes = tuple(notes)

    @classmethod
    def from_note_names(
        cls,
        chart: FingeringChart,
        note_names: Iterable[str],
        prefer_higher_fret: bool = False,
    ) -> "SongScript":
        """Resolve note strings like 'A4' or 'Bb4' against the chart."""
        return cls.from_notes(
            chart, [parse_note_name(text) for text in note_names], prefer_higher_fret
        )

    @classmethod
    def from_frequencies(
        cls,
        chart: FingeringChart,
        frequencies: Iterable[float],
        prefer_higher_fret: bool = False,
    ) -> "SongScript":
        notes = []
        for frequency in frequencies:
            note = note_name_for_frequency(frequency, chart.reference_frequency)
            if note is None:
                raise ValueError(f"Invalid song frequency: {frequency!r}")
            notes.append(note)
        return cls.from_notes(chart, notes, prefer_higher_fret)

    @classmethod
    def from_notes(
        cls,
        chart: FingeringChart,
        notes: Iterable[NoteName],
        prefer_higher_fret: bool = False,
    ) -> "SongScript":
        script_notes = []
        for note in notes:
            position = chart.position_for(note, prefer_higher_fret=prefer_higher_fret)
            if position is None:
                logger.warning(f"Song note {note} is not fingerable on this chart")
            script_notes.append(ScriptNote(note_name=note, position=position))
        return cls(script_notes)

    @property
    def notes(self) -> Sequence[ScriptNote]:
        return self._notes

    @property
    def unfingerable(self) -> List[ScriptNote]:
        return [note for note in self._notes if note.position is None]

    def __len__(self) -> int:
        return len(self._notes)

    def __getitem__(self, index: int) -> ScriptNote:
        return self._notes[index]


class SongMatcher:
    """Cursor over a SongScript that advances when the target note is played.

    The script loops: after the last note the cursor wraps back to 0, there
    is no finished state.
    """

    def __init__(self, script: SongScript, events: Optional[EventEmitter] = None) -> None:
        self.script = script
        self.events = events or EventEmitter()
        self._cursor = 0
        self.stats = {"correct_notes": 0, "loops": 0}

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> ScriptNote:
        return self.script[self._cursor]

    @property
    def target_display(self) -> str:
        """Text for the target note, or 'not found' when it cannot be fingered."""
        if self.current.position is None:
            return "not found"
        return format_note_name(self.current.note_name)

    def _highlight(self) -> None:
        self.events.emit(ViolinEventType.HIGHLIGHT_TARGET, self._cursor, self.current)

    def jump_to(self, index: int) -> ScriptNote:
        """Move the cursor and always re-emit the highlight, even if unchanged.

        Raises:
            IndexError: If index is outside the script
        """
        if not 0 <= index < len(self.script):
            raise IndexError(f"Song index {index} outside 0..{len(self.script) - 1}")
        self._cursor = index
        logger.info(f"Song cursor set to {index}: {self.current}")
        self._highlight()
        return self.current

    def reset(self) -> ScriptNote:
        return self.jump_to(0)

    def clear_highlight(self) -> None:
        """Tell listeners to drop the song target; the cursor is kept."""
        self.events.emit(ViolinEventType.HIGHLIGHT_TARGET, None, None)

    def feed(self, note_name: Optional[NoteName]) -> bool:
        """Advance if ``note_name`` equals the current target note.

        Returns:
            True if the cursor advanced
        """
        if note_name is None:
            return False
        target = self.current
        if not NoteMatcher.match(target.note_name, note_name, match_octave=True):
            return False

        matched_index = self._cursor
        self._cursor = (self._cursor + 1) % len(self.script)
        self.stats["correct_notes"] += 1
        if self._cursor == 0:
            self.stats["loops"] += 1

        logger.info(f"Matched {note_name} at song index {matched_index}, next {self.current}")
        self.events.emit(ViolinEventType.NOTE_MATCHED, matched_index, target)
        self._highlight()
        return True
