from collections import deque
from typing import Deque, Iterable, Optional

from .core.interfaces import IPitchOracle
from .note_types import PitchEstimate


class MockPitchOracle(IPitchOracle):
    """A scripted oracle for unit tests. Replays estimates, then reports nothing."""

    def __init__(self, estimates: Iterable[Optional[PitchEstimate]] = ()):
        self._queue: Deque[Optional[PitchEstimate]] = deque(estimates)

    def push(self, frequency_hz: float, clarity: float = 1.0) -> None:
        self._queue.append(PitchEstimate(frequency_hz, clarity))

    def get_pitch_estimate(self) -> Optional[PitchEstimate]:
        if not self._queue:
            return None
        return self._queue.popleft()
