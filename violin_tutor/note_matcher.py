from typing import Optional, Union

from .logger import get_logger
from .note_types import NoteName
from .note_utils import NOTE_NAME_PATTERN, parse_note_name

# Get logger for this module
logger = get_logger(__name__)

NoteLike = Union[str, NoteName]


class NoteMatcher:
    """
    Encapsulates logic for comparing detected notes to target notes,
    including normalization and enharmonic equivalence.
    """

    @staticmethod
    def normalize(note: Optional[NoteLike]) -> Optional[NoteName]:
        """Turn a note string or NoteName into a NoteName.

        Strings without an octave get octave 0, so only their pitch class is
        meaningful. Returns None for anything unparseable.
        """
        if note is None:
            return None
        if isinstance(note, NoteName):
            return note

        text = str(note).strip()
        if not NOTE_NAME_PATTERN.match(text):
            logger.warning(f"⚠️  INVALID NOTE FORMAT: '{text}'")
            return None
        return parse_note_name(text, default_octave=0)

    @staticmethod
    def has_octave(note: NoteLike) -> bool:
        if isinstance(note, NoteName):
            return True
        match = NOTE_NAME_PATTERN.match(str(note))
        return bool(match and match.group(3) is not None)

    @classmethod
    def match(
        cls, target: Optional[NoteLike], played: Optional[NoteLike], match_octave: bool = False
    ) -> bool:
        """
        Check if the played note matches the target note.

        Args:
            target: The target note (e.g., 'A', 'A#4', 'Bb' or a NoteName)
            played: The played note (e.g., 'A4', 'A#3' or a NoteName)
            match_octave: Also require the octaves to agree. Ignored when
                either side was given without an octave.
        Returns:
            bool: True if the notes match, False otherwise
        """
        target_note = cls.normalize(target)
        played_note = cls.normalize(played)

        if target_note is None or played_note is None:
            logger.debug(f"Cannot match target '{target}' with played '{played}'")
            return False

        if target_note.pitch_class != played_note.pitch_class:
            logger.debug(f"❌ NO MATCH: '{played}' != '{target}'")
            return False

        if match_octave and cls.has_octave(target) and cls.has_octave(played):
            # parse_note_name already shifted Cb/B# octaves
            if target_note.octave != played_note.octave:
                logger.debug(
                    f"❌ OCTAVE MISMATCH: '{played}' ({played_note.octave}) vs "
                    f"'{target}' ({target_note.octave})"
                )
                return False

        logger.debug(f"✅ MATCH: '{played}' matches '{target}'")
        return True
