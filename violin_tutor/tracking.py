"""Controller-relative pose tracking for a grabbed object.

Quaternions are numpy arrays in (x, y, z, w) order.
"""

import json
from enum import Enum, auto
from typing import Optional, Sequence, Tuple

import numpy as np

from .core.events import EventEmitter, ViolinEventType
from .core.interfaces import IKeyValueStore
from .logger import get_logger
from .note_types import Pose

logger = get_logger(__name__)

IDENTITY = np.array([0.0, 0.0, 0.0, 1.0])

POSITION_KEY = "violin-position"
ORIENTATION_KEY = "violin-orientation"


def quat_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product ``a * b`` (apply ``b`` first, then ``a``)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array(
        [
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
            aw * bw - ax * bx - ay * by - az * bz,
        ]
    )


def quat_normalize(q: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(q)
    if norm == 0:
        raise ValueError("Zero-length quaternion")
    return np.asarray(q, dtype=float) / norm


def quat_inverse(q: np.ndarray) -> np.ndarray:
    x, y, z, w = q
    return np.array([-x, -y, -z, w]) / float(np.dot(q, q))


def quat_rotate(vector: np.ndarray, q: np.ndarray) -> np.ndarray:
    """Rotate a 3-vector by a unit quaternion."""
    pure = np.array([vector[0], vector[1], vector[2], 0.0])
    return quat_multiply(quat_multiply(q, pure), quat_inverse(q))[:3]


def quat_from_axis_angle(axis: Sequence[float], angle: float) -> np.ndarray:
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    half = angle / 2.0
    return np.append(axis * np.sin(half), np.cos(half))


class TrackerState(Enum):
    IDLE = auto()
    ANCHORING = auto()
    TRACKING = auto()


class RelativeTransformTracker:
    """Drives an object's pose from controller motion while it is grabbed.

    Position is re-anchored on every grab. Orientation deltas from earlier
    grabs are composed (newest on the left) into ``prior_orientation_delta``
    so that releasing and re-grabbing never snaps the object back.

    Ticks are ignored until ``load_initial_pose`` (or ``mark_loaded``) has run,
    so the persisted pose is never overwritten by a stale anchor.
    """

    def __init__(
        self,
        track_hand_frame: bool = False,
        events: Optional[EventEmitter] = None,
        position_key: str = POSITION_KEY,
        orientation_key: str = ORIENTATION_KEY,
    ) -> None:
        self.track_hand_frame = track_hand_frame
        self.events = events or EventEmitter()
        self.position_key = position_key
        self.orientation_key = orientation_key

        self.state = TrackerState.IDLE
        self.initial_pose_loaded = False
        self._pose = Pose()

        self._anchor_controller_position = np.zeros(3)
        self._anchor_controller_orientation_inverse = IDENTITY.copy()
        self._anchor_object_position = np.zeros(3)
        self._session_orientation_delta = IDENTITY.copy()
        self._prior_orientation_delta = IDENTITY.copy()
        # Frozen at grab end, folded into the prior delta at the next anchor
        self._released_orientation_delta: Optional[np.ndarray] = None

    @property
    def pose(self) -> Pose:
        return self._pose.copy()

    @property
    def prior_orientation_delta(self) -> np.ndarray:
        return self._prior_orientation_delta.copy()

    @property
    def is_grabbed(self) -> bool:
        return self.state is not TrackerState.IDLE

    def mark_loaded(self, pose: Optional[Pose] = None) -> None:
        """Accept ``pose`` (or the current pose) as the object's starting pose."""
        if pose is not None:
            self._pose = pose.copy()
            self._pose.orientation = quat_normalize(self._pose.orientation)
        # The resting orientation is the base every later grab composes onto
        self._prior_orientation_delta = self._pose.orientation.copy()
        self._released_orientation_delta = None
        self.initial_pose_loaded = True
        logger.info(
            f"Initial pose ready: position {self._pose.position.tolist()}, "
            f"orientation {self._pose.orientation.tolist()}"
        )

    def grab_start(self) -> None:
        """Begin a grab; the next ``update`` captures the anchor."""
        if not self.initial_pose_loaded:
            logger.warning("Grab ignored: initial pose has not been loaded yet")
            return
        if self.state is not TrackerState.IDLE:
            logger.debug(f"Grab start while {self.state.name}, ignoring")
            return
        self.state = TrackerState.ANCHORING
        logger.info("Grab started")

    def grab_end(self) -> None:
        """End the grab and freeze this session's orientation delta."""
        if self.state is TrackerState.TRACKING:
            self._released_orientation_delta = self._session_orientation_delta.copy()
        if self.state is not TrackerState.IDLE:
            logger.info("Grab ended")
        self.state = TrackerState.IDLE

    def _anchor(self, controller: Pose) -> None:
        self._anchor_controller_position = controller.position.copy()
        self._anchor_controller_orientation_inverse = quat_inverse(
            quat_normalize(controller.orientation)
        )
        self._anchor_object_position = self._pose.position.copy()
        if self._released_orientation_delta is not None:
            self._prior_orientation_delta = quat_normalize(
                quat_multiply(self._released_orientation_delta, self._prior_orientation_delta)
            )
            self._released_orientation_delta = None
        self._session_orientation_delta = IDENTITY.copy()
        logger.debug(
            f"Anchored at controller {self._anchor_controller_position.tolist()}, "
            f"object {self._anchor_object_position.tolist()}"
        )

    def update(
        self, controller: Pose, hand_orientation: Optional[Sequence[float]] = None
    ) -> Optional[Pose]:
        """Process one controller sample.

        Args:
            controller: The controller's world pose for this tick
            hand_orientation: Orientation of the moving reference frame; only
                used when ``track_hand_frame`` is set

        Returns:
            The new object pose, or None when idle or not yet loaded
        """
        if not self.initial_pose_loaded:
            logger.debug("Tick suppressed: initial pose not loaded")
            return None
        if self.state is TrackerState.IDLE:
            return None

        hand_inverse = None
        if self.track_hand_frame and hand_orientation is not None:
            hand_inverse = quat_inverse(quat_normalize(np.asarray(hand_orientation, dtype=float)))

        if self.state is TrackerState.ANCHORING:
            self._anchor(controller)
            self.state = TrackerState.TRACKING

        displacement = controller.position - self._anchor_controller_position
        if hand_inverse is not None:
            displacement = quat_rotate(displacement, hand_inverse)
        position = displacement + self._anchor_object_position

        self._session_orientation_delta = quat_normalize(
            quat_multiply(
                self._anchor_controller_orientation_inverse,
                quat_normalize(controller.orientation),
            )
        )
        orientation = quat_multiply(self._session_orientation_delta, self._prior_orientation_delta)
        if hand_inverse is not None:
            orientation = quat_multiply(hand_inverse, orientation)

        self._pose = Pose(position, quat_normalize(orientation))
        self.events.emit(ViolinEventType.POSE_UPDATED, self.pose)
        return self.pose

    def to_flat(self) -> Tuple[list, list]:
        """Position and orientation as flat lists of floats."""
        return self._pose.position.tolist(), self._pose.orientation.tolist()

    def save_pose(self, store: IKeyValueStore) -> None:
        position, orientation = self.to_flat()
        store.save(self.position_key, json.dumps(position).encode("utf-8"))
        store.save(self.orientation_key, json.dumps(orientation).encode("utf-8"))
        logger.debug(f"Saved pose under '{self.position_key}'/'{self.orientation_key}'")

    def load_initial_pose(self, store: IKeyValueStore) -> Pose:
        """Restore the persisted pose, or keep the default when none is stored.

        Either way the tracker is marked loaded afterwards.
        """
        position = self._load_vector(store, self.position_key, 3)
        orientation = self._load_vector(store, self.orientation_key, 4)
        pose = self._pose.copy()
        if position is not None:
            pose.position = position
        if orientation is not None and np.linalg.norm(orientation) > 0:
            pose.orientation = orientation
        self.mark_loaded(pose)
        return self.pose

    @staticmethod
    def _load_vector(store: IKeyValueStore, key: str, size: int) -> Optional[np.ndarray]:
        raw = store.load(key)
        if raw is None:
            return None
        try:
            values = np.asarray(json.loads(raw.decode("utf-8")), dtype=float)
        except (TypeError, ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding unreadable stored value for '{key}': {e}")
            return None
        if values.shape != (size,) or not np.all(np.isfinite(values)):
            logger.warning(f"Discarding stored '{key}' with shape {values.shape}")
            return None
        return values
