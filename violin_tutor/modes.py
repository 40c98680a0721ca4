"""Interaction modes and the button-driven transitions between them."""

from enum import Enum
from typing import Dict, Optional, Tuple

from .core.events import EventEmitter, ViolinEventType
from .logger import get_logger

logger = get_logger(__name__)


class Mode(Enum):
    POSITION = "position"  # place the violin with the grab controller
    TUNE = "tune"  # open-string tuning feedback
    FINGERS = "fingers"  # free play with finger position feedback
    SONG = "song"  # follow a song script


class ButtonEvent(Enum):
    TOP = "top"
    BOTTOM = "bottom"


# (top, bottom) button names per controller hand
BUTTONS_BY_HAND: Dict[str, Tuple[str, str]] = {
    "left": ("y", "x"),
    "right": ("b", "a"),
}

_CYCLE = (Mode.POSITION, Mode.TUNE, Mode.FINGERS, Mode.SONG)

TRANSITIONS: Dict[Tuple[Mode, ButtonEvent], Mode] = {}
for _index, _mode in enumerate(_CYCLE):
    TRANSITIONS[(_mode, ButtonEvent.TOP)] = _CYCLE[(_index + 1) % len(_CYCLE)]
    TRANSITIONS[(_mode, ButtonEvent.BOTTOM)] = _CYCLE[(_index - 1) % len(_CYCLE)]


def other_side(side: str) -> str:
    if side not in BUTTONS_BY_HAND:
        raise ValueError(f"side must be 'left' or 'right', got {side!r}")
    return "right" if side == "left" else "left"


def button_event_for(hand: str, button: str) -> Optional[ButtonEvent]:
    """Map a raw button name on ``hand`` to a ButtonEvent, or None if unknown."""
    top, bottom = BUTTONS_BY_HAND[hand]
    if button == top:
        return ButtonEvent.TOP
    if button == bottom:
        return ButtonEvent.BOTTOM
    return None


class ModeMachine:
    """Current mode plus the transition table that moves between modes."""

    def __init__(self, initial: Mode = Mode.POSITION, events: Optional[EventEmitter] = None):
        self.mode = initial
        self.events = events or EventEmitter()

    def handle(self, event: ButtonEvent) -> Mode:
        previous = self.mode
        self.mode = TRANSITIONS[(previous, event)]
        logger.info(f"Mode {previous.value} -> {self.mode.value} ({event.value} button)")
        self.events.emit(ViolinEventType.MODE_CHANGED, previous, self.mode)
        return self.mode

    def set_mode(self, mode: Mode) -> Mode:
        """Jump straight to ``mode``; emits MODE_CHANGED even if unchanged."""
        previous = self.mode
        self.mode = mode
        logger.info(f"Mode {previous.value} -> {mode.value}")
        self.events.emit(ViolinEventType.MODE_CHANGED, previous, self.mode)
        return self.mode
