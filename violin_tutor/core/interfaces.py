"""Defines the interfaces of the collaborators the core talks to."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..note_types import PitchEstimate, Pose


class IPitchOracle(ABC):
    """Interface for pitch estimators fed from audio capture."""

    @abstractmethod
    def get_pitch_estimate(self) -> Optional[PitchEstimate]:
        """Return the latest (frequency, clarity) estimate, if any."""
        pass


class IPoseSource(ABC):
    """Interface for tracked controller input."""

    @abstractmethod
    def get_controller_pose(self) -> Pose:
        """Return the controller's current world pose."""
        pass

    def get_hand_orientation(self) -> Optional[Sequence[float]]:
        """Return the moving reference frame's orientation (x, y, z, w), if tracked."""
        return None


class IKeyValueStore(ABC):
    """Interface for persistence of small values such as the violin pose."""

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """Return the bytes stored under key, or None."""
        pass

    @abstractmethod
    def save(self, key: str, value: bytes) -> None:
        """Store value under key, replacing any previous value."""
        pass
