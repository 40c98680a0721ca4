"""Composition root: one Violin instance owns every core component."""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .core.config import ConfigManager
from .core.events import EventEmitter
from .core.interfaces import IKeyValueStore, IPitchOracle, IPoseSource
from .core.storage import MemoryStore
from .fingering import FingeringChart
from .intonation import IntonationEngine
from .logger import get_logger
from .modes import ButtonEvent, Mode, ModeMachine, button_event_for, other_side
from .note_types import FingerPosition, IntonationReading, PitchEstimate, Pose, ScriptNote
from .song import DEFAULT_SONG, SongMatcher, SongScript
from .tracking import RelativeTransformTracker

logger = get_logger(__name__)

# Host timestamps built from summed frame steps drift below the exact interval
TICK_EPSILON = 1e-9


class TickGate:
    """Lets at most ``tick_rate_hz`` ticks through, based on caller timestamps."""

    def __init__(self, tick_rate_hz: float):
        if tick_rate_hz < 0:
            raise ValueError(f"tick_rate_hz must be >= 0, got {tick_rate_hz}")
        self.tick_rate_hz = tick_rate_hz
        self.interval = 1.0 / tick_rate_hz if tick_rate_hz > 0 else 0.0
        self.last_invoked: Optional[float] = None

    def ready(self, now: float) -> bool:
        if (
            self.last_invoked is not None
            and now - self.last_invoked < self.interval - TICK_EPSILON
        ):
            return False
        self.last_invoked = now
        return True


@dataclass
class ViolinFrame:
    """Display values produced by one tick."""

    timestamp: float
    mode: Mode
    reading: Optional[IntonationReading] = None
    finger_position: Optional[FingerPosition] = None
    target: Optional[ScriptNote] = None
    matched: bool = False
    pose: Optional[Pose] = None


class Violin:
    """Owns the chart, engine, song matcher, pose tracker and mode machine."""

    def __init__(
        self,
        chart: FingeringChart,
        engine: IntonationEngine,
        matcher: SongMatcher,
        tracker: RelativeTransformTracker,
        store: Optional[IKeyValueStore] = None,
        min_clarity: float = 0.9,
        min_pitch_hz: float = 150.0,
        tick_rate_hz: float = 20.0,
        side: str = "left",
        prefer_higher_fret: bool = False,
        events: Optional[EventEmitter] = None,
    ):
        self.chart = chart
        self.engine = engine
        self.matcher = matcher
        self.tracker = tracker
        self.store = store if store is not None else MemoryStore()
        self.min_clarity = min_clarity
        self.min_pitch_hz = min_pitch_hz
        self.side = side
        self.other_side = other_side(side)
        self.prefer_higher_fret = prefer_higher_fret
        self.gate = TickGate(tick_rate_hz)
        self.events = events or EventEmitter()
        self.modes = ModeMachine(events=self.events)

        # Share one emitter so a host registers listeners once
        self.matcher.events = self.events
        self.tracker.events = self.events

    @classmethod
    def from_config(
        cls,
        config_manager: Optional[ConfigManager] = None,
        store: Optional[IKeyValueStore] = None,
        song: Sequence[str] = DEFAULT_SONG,
    ) -> "Violin":
        config_manager = config_manager or ConfigManager()
        intonation = config_manager.get_config("intonation")
        tracking = config_manager.get_config("tracking")
        runtime = config_manager.get_config("runtime")

        chart = FingeringChart.build(
            intonation["tuning"],
            int(intonation["frets_per_string"]),
            reference_frequency=float(intonation["reference_frequency"]),
        )
        engine = IntonationEngine(
            chart,
            reference_frequency=float(intonation["reference_frequency"]),
            offset_tolerance=float(intonation["offset_tolerance"]),
        )
        prefer_higher_fret = bool(intonation["prefer_higher_fret"])
        script = SongScript.from_note_names(chart, song, prefer_higher_fret=prefer_higher_fret)
        tracker = RelativeTransformTracker(
            track_hand_frame=bool(tracking["track_hand_frame"]),
            position_key=tracking["storage_key_position"],
            orientation_key=tracking["storage_key_orientation"],
        )
        return cls(
            chart,
            engine,
            SongMatcher(script),
            tracker,
            store=store,
            min_clarity=float(intonation["min_clarity"]),
            min_pitch_hz=float(intonation["min_pitch_hz"]),
            tick_rate_hz=float(runtime["tick_rate_hz"]),
            side=runtime["side"],
            prefer_higher_fret=prefer_higher_fret,
        )

    @property
    def mode(self) -> Mode:
        return self.modes.mode

    def load(self) -> Pose:
        """Restore the persisted violin pose; tracking is suppressed until this runs."""
        return self.tracker.load_initial_pose(self.store)

    def press_button(self, hand: str, button: str) -> Optional[Mode]:
        """Handle a raw button press; only the non-holding hand changes modes."""
        if hand != self.other_side:
            return None
        event = button_event_for(hand, button)
        if event is None:
            return None
        return self.handle_button(event)

    def handle_button(self, event: ButtonEvent) -> Mode:
        previous = self.mode
        self._on_mode_exit(previous)
        mode = self.modes.handle(event)
        self._on_mode_enter(mode)
        return mode

    def set_mode(self, mode: Mode) -> Mode:
        self._on_mode_exit(self.mode)
        self.modes.set_mode(mode)
        self._on_mode_enter(mode)
        return mode

    def _on_mode_exit(self, mode: Mode) -> None:
        if mode is Mode.POSITION and self.tracker.is_grabbed:
            self.grab_end()

    def _on_mode_enter(self, mode: Mode) -> None:
        if mode is Mode.SONG:
            self.matcher.reset()
        elif mode in (Mode.TUNE, Mode.FINGERS):
            self.matcher.clear_highlight()

    def grab_start(self) -> None:
        if self.mode is not Mode.POSITION:
            logger.debug(f"Grab ignored in {self.mode.value} mode")
            return
        self.tracker.grab_start()

    def grab_end(self) -> None:
        was_grabbed = self.tracker.is_grabbed
        self.tracker.grab_end()
        if was_grabbed and self.tracker.initial_pose_loaded:
            self.tracker.save_pose(self.store)

    def accept_estimate(self, estimate: Optional[PitchEstimate]) -> Optional[float]:
        """Apply the oracle's clarity and frequency floor; return the usable pitch."""
        if estimate is None:
            return None
        frequency = estimate.frequency_hz
        if not np.isfinite(frequency) or frequency < self.min_pitch_hz:
            return None
        if estimate.clarity < self.min_clarity:
            return None
        return float(frequency)

    def _evaluate(self, pitch: float, frame: ViolinFrame) -> None:
        if self.mode is Mode.TUNE:
            frame.reading = self.engine.evaluate(pitch, 0)
            if frame.reading is not None:
                frame.finger_position = FingerPosition(frame.reading.string_index, 0)
        elif self.mode is Mode.FINGERS:
            probe = self.engine.evaluate(pitch, 0)
            if probe is None:
                return
            position = self.chart.position_for(
                probe.note_name, prefer_higher_fret=self.prefer_higher_fret
            )
            fret_index = position.fret_index if position else 0
            frame.reading = self.engine.evaluate(pitch, fret_index)
            frame.finger_position = position
        elif self.mode is Mode.SONG:
            target = self.matcher.current
            fret_index = target.position.fret_index if target.position else 0
            frame.reading = self.engine.evaluate(pitch, fret_index)
            frame.finger_position = target.position
            if frame.reading is not None:
                frame.matched = self.matcher.feed(frame.reading.note_name)
            frame.target = self.matcher.current

    def tick(
        self,
        now: float,
        estimate: Optional[PitchEstimate] = None,
        controller: Optional[Pose] = None,
        hand_orientation: Optional[Sequence[float]] = None,
    ) -> Optional[ViolinFrame]:
        """Run one host tick.

        Args:
            now: Host timestamp in seconds
            estimate: Latest pitch oracle output, unfiltered
            controller: Pose of the grabbing controller
            hand_orientation: Orientation of the moving reference frame, if any

        Returns:
            The frame's display values, or None when the tick rate gate is closed
        """
        if not self.gate.ready(now):
            return None
        return self._process(now, estimate, controller, hand_orientation)

    def _process(
        self,
        now: float,
        estimate: Optional[PitchEstimate],
        controller: Optional[Pose],
        hand_orientation: Optional[Sequence[float]] = None,
    ) -> ViolinFrame:
        frame = ViolinFrame(timestamp=now, mode=self.mode)
        if self.mode is Mode.SONG:
            frame.target = self.matcher.current

        pitch = self.accept_estimate(estimate)
        if pitch is not None:
            self._evaluate(pitch, frame)

        if controller is not None:
            frame.pose = self.tracker.update(controller, hand_orientation)
        return frame

    def poll(
        self,
        now: float,
        oracle: Optional[IPitchOracle] = None,
        pose_source: Optional[IPoseSource] = None,
    ) -> Optional[ViolinFrame]:
        """Sample the collaborators once and run a tick, unless the gate is closed."""
        if not self.gate.ready(now):
            return None
        estimate = oracle.get_pitch_estimate() if oracle is not None else None
        controller = None
        hand_orientation = None
        if pose_source is not None:
            controller = pose_source.get_controller_pose()
            hand_orientation = pose_source.get_hand_orientation()
        return self._process(now, estimate, controller, hand_orientation)
