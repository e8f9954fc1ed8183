"""
Torso Motion Extraction
=======================

Reduces each frame of a pose timeline to one scalar torso motion value:
centroid of shoulders and hips, frame-to-frame displacement, then a
centered moving average.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import Config
from .landmarks import TORSO_LANDMARKS, Frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MotionSignal:
    """Smoothed torso motion, one value per frame"""
    values: np.ndarray
    timestamps_ms: np.ndarray
    diagnostics: Tuple[str, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return int(self.values.size)

    @classmethod
    def empty(cls) -> "MotionSignal":
        return cls(values=np.zeros(0), timestamps_ms=np.zeros(0))


def compute_centroid(points: np.ndarray) -> np.ndarray:
    """
    Arithmetic mean of an (n, 3) array of positions.

    Returns the origin for an empty array.
    """
    if len(points) == 0:
        return np.zeros(3)
    return np.asarray(points, dtype=float).mean(axis=0)


def moving_average(signal, window_size: int = 5) -> np.ndarray:
    """
    Centered moving average.

    Near the ends the window shrinks symmetrically, so index 0 and the
    last index are passed through unchanged and no padding is used.

    Args:
        signal: 1-D sequence of numbers
        window_size: Full window length (odd values are centered exactly)

    Returns:
        Smoothed signal of the same length
    """
    x = np.asarray(signal, dtype=float)
    n = x.size
    if n == 0 or window_size <= 1:
        return x.copy()

    half = window_size // 2
    out = np.empty(n)
    for i in range(n):
        h = min(half, i, n - 1 - i)
        out[i] = x[i - h:i + h + 1].mean()
    return out


def _frame_centroid(frame: Frame, min_visibility: float) -> Optional[np.ndarray]:
    points = []
    for name in TORSO_LANDMARKS:
        lm = frame.get(name)
        if lm is None or not lm.is_finite() or lm.visibility < min_visibility:
            return None
        points.append((lm.x, lm.y, lm.z))
    return compute_centroid(np.array(points))


def torso_centroids(timeline: Sequence[Frame],
                    min_visibility: float = 0.0) -> List[Optional[np.ndarray]]:
    """Torso centroid per frame, None where a torso landmark is unusable"""
    return [_frame_centroid(frame, min_visibility) for frame in timeline]


def _principal_axis(centroids: List[Optional[np.ndarray]]) -> np.ndarray:
    """Direction of largest centroid variance"""
    valid = np.array([c for c in centroids if c is not None])
    if len(valid) < 2:
        return np.array([0.0, 1.0, 0.0])
    centered = valid - valid.mean(axis=0)
    _, _, vt = np.linalg.svd(centered, full_matrices=False)
    return vt[0]


def _checked_timestamps(timeline: Sequence[Frame]) -> Tuple[np.ndarray, List[str]]:
    ts = np.array([float(frame.timestamp_ms) for frame in timeline])
    diagnostics = []
    if ts.size > 1:
        backwards = np.flatnonzero(np.diff(ts) < 0)
        if backwards.size:
            first = int(backwards[0]) + 1
            msg = (f"timestamps decrease at {backwards.size} frame(s), "
                   f"first at index {first}; clamped to running maximum")
            logger.warning("Landmark source contract violation: %s", msg)
            diagnostics.append(msg)
            ts = np.maximum.accumulate(ts)
    return ts, diagnostics


def _signed_steps(centroids: List[Optional[np.ndarray]]) -> np.ndarray:
    """
    Per-frame torso displacement.

    Magnitude is the Euclidean distance between consecutive centroids
    (per frame spanned), sign is the direction of travel along the
    principal axis. Frames without a centroid repeat the previous value.
    """
    axis = _principal_axis(centroids)
    raw = np.zeros(len(centroids))
    prev_centroid = None
    prev_index = 0
    prev_value = 0.0

    for i, centroid in enumerate(centroids):
        if centroid is None or prev_centroid is None:
            raw[i] = prev_value
            if centroid is not None:
                prev_centroid, prev_index = centroid, i
            continue

        step = centroid - prev_centroid
        distance = float(np.linalg.norm(step)) / (i - prev_index)
        value = -distance if float(np.dot(step, axis)) < 0 else distance

        raw[i] = value
        prev_value = value
        prev_centroid, prev_index = centroid, i

    return raw


def extract_motion(timeline: Sequence[Frame],
                   config: Optional[Config] = None) -> MotionSignal:
    """
    Extracts the torso motion signal from a timeline.

    Args:
        timeline: Ordered frames with pose landmarks
        config: Configuration (or default)

    Returns:
        MotionSignal aligned with the timeline
    """
    config = config or Config()
    if len(timeline) == 0:
        return MotionSignal.empty()

    timestamps, diagnostics = _checked_timestamps(timeline)
    centroids = torso_centroids(timeline, config.min_visibility)

    missing = sum(1 for c in centroids if c is None)
    if missing == len(centroids):
        logger.debug("No frame has all torso landmarks; motion is flat")
    elif missing:
        logger.debug("%d of %d frames lack torso landmarks", missing, len(centroids))

    smoothed = moving_average(_signed_steps(centroids), config.smoothing_window)
    return MotionSignal(values=smoothed, timestamps_ms=timestamps,
                        diagnostics=tuple(diagnostics))
