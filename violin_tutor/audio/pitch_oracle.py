"""Pitch oracle adapters for microphone and WAV file input.

The pitch estimation itself is aubio's; these classes only feed it audio
and expose its latest (frequency, clarity) pair.
"""

from __future__ import annotations

import threading
from typing import Iterator, Optional

import aubio
import numpy as np
import sounddevice as sd
import soundfile as sf

from ..core.interfaces import IPitchOracle
from ..logger import get_logger
from ..note_types import PitchEstimate

logger = get_logger(__name__)

DEFAULT_SAMPLE_RATE = 44100
DEFAULT_HOP_SIZE = 512


def _make_detector(sample_rate: int, hop_size: int, tolerance: float) -> aubio.pitch:
    detector = aubio.pitch("yin", hop_size * 2, hop_size, sample_rate)
    detector.set_unit("Hz")
    detector.set_tolerance(tolerance)
    return detector


def _estimate(detector: aubio.pitch, chunk: np.ndarray) -> PitchEstimate:
    frequency = float(detector(chunk.astype(np.float32))[0])
    return PitchEstimate(frequency_hz=frequency, clarity=float(detector.get_confidence()))


class AubioPitchOracle(IPitchOracle):
    """Live microphone pitch via sounddevice and aubio's yin detector."""

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        hop_size: int = DEFAULT_HOP_SIZE,
        tolerance: float = 0.8,
    ) -> None:
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._hop_size = hop_size
        self._detector = _make_detector(sample_rate, hop_size, tolerance)
        self._stream: Optional[sd.InputStream] = None
        self._latest: Optional[PitchEstimate] = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        if self._stream is not None:
            return
        self._stream = sd.InputStream(
            device=self._device_id,
            channels=1,
            samplerate=self._sample_rate,
            blocksize=self._hop_size,
            callback=self._audio_callback,
            dtype="float32",
        )
        self._stream.start()
        logger.info(
            f"Listening on device {self._device_id} at {self._sample_rate}Hz "
            f"(hop {self._hop_size})"
        )

    def stop(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
            logger.info("Stopped listening")

    def _audio_callback(self, indata: np.ndarray, _frames: int, _time_info, status) -> None:
        if status:
            logger.warning(f"Audio input status: {status}")
        estimate = _estimate(self._detector, indata[:, 0])
        with self._lock:
            self._latest = estimate

    def get_pitch_estimate(self) -> Optional[PitchEstimate]:
        with self._lock:
            return self._latest


class WavFilePitchOracle(IPitchOracle):
    """Steps through a recording one hop per call to ``get_pitch_estimate``."""

    def __init__(
        self,
        file_path: str,
        hop_size: int = DEFAULT_HOP_SIZE,
        tolerance: float = 0.8,
        loop: bool = False,
    ) -> None:
        data, sample_rate = sf.read(file_path, dtype="float32", always_2d=True)
        # Mix down to mono
        self._samples = data.mean(axis=1)
        self._sample_rate = int(sample_rate)
        self._hop_size = hop_size
        self._loop = loop
        self._detector = _make_detector(self._sample_rate, hop_size, tolerance)
        self._offset = 0
        logger.info(
            f"Loaded {file_path}: {len(self._samples)} samples at {self._sample_rate}Hz"
        )

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def get_pitch_estimate(self) -> Optional[PitchEstimate]:
        if self._offset + self._hop_size > len(self._samples):
            if not self._loop or len(self._samples) < self._hop_size:
                return None
            self._offset = 0
        chunk = self._samples[self._offset : self._offset + self._hop_size]
        self._offset += self._hop_size
        return _estimate(self._detector, chunk)

    def __iter__(self) -> Iterator[PitchEstimate]:
        while True:
            estimate = self.get_pitch_estimate()
            if estimate is None:
                return
            yield estimate
