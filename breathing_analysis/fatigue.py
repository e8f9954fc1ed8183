"""
Fatigue Window Detection
========================

Finds periods of shallow or stopped breathing: sustained stretches where
torso motion stays below a fraction of the recording's own mean amplitude.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from scipy import ndimage

from .config import Config
from .motion import MotionSignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FatigueWindow:
    """A period of shallow or absent breathing"""
    start_ms: int
    end_ms: int
    severity: float

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms


@dataclass(frozen=True)
class Region:
    """Candidate window in sample indices (inclusive) and milliseconds"""
    start_idx: int
    end_idx: int
    start_ms: int
    end_ms: int


def _series(signal, sample_rate_hz: float) -> Tuple[np.ndarray, np.ndarray]:
    if isinstance(signal, MotionSignal):
        return np.asarray(signal.values, dtype=float), np.asarray(signal.timestamps_ms, dtype=float)
    values = np.nan_to_num(np.asarray(signal, dtype=float).ravel())
    return values, np.arange(values.size) * (1000.0 / sample_rate_hz)


def _frame_interval_ms(timestamps: np.ndarray, sample_rate_hz: float) -> float:
    if timestamps.size > 1:
        dt = float(np.median(np.diff(timestamps)))
        if dt > 0:
            return dt
    return 1000.0 / sample_rate_hz


def find_below_threshold(signal, threshold: float) -> List[Tuple[int, int]]:
    """
    Maximal runs where the signal is strictly below threshold.

    Returns:
        List of (start_idx, end_idx) pairs, end inclusive
    """
    below = np.asarray(signal, dtype=float) < threshold
    labels, count = ndimage.label(below)
    if count == 0:
        return []
    return [(s[0].start, s[0].stop - 1) for s in ndimage.find_objects(labels)]


def merge_close_windows(regions: List[Region], max_gap_ms: float) -> List[Region]:
    """
    Merges regions whose gap is below max_gap_ms.

    One sorted sweep is transitive: each merge only extends the current end.
    """
    merged: List[Region] = []
    for region in sorted(regions, key=lambda r: r.start_ms):
        if merged and region.start_ms - merged[-1].end_ms < max_gap_ms:
            last = merged[-1]
            merged[-1] = Region(last.start_idx, max(last.end_idx, region.end_idx),
                                last.start_ms, max(last.end_ms, region.end_ms))
        else:
            merged.append(region)
    return merged


def compute_severity(amplitude, start_idx: int, end_idx: int, threshold: float) -> float:
    """
    How far a window's mean amplitude falls below threshold.

    0.0 = at threshold, 1.0 = no motion. Invalid ranges give 0.0.
    """
    amplitude = np.asarray(amplitude, dtype=float)
    if threshold <= 0 or end_idx < start_idx or start_idx >= amplitude.size:
        return 0.0
    mean_val = float(np.mean(amplitude[start_idx:end_idx + 1]))
    return float(np.clip((threshold - mean_val) / threshold, 0.0, 1.0))


def detect_fatigue_windows(signal,
                           threshold_fraction: Optional[float] = None,
                           config: Optional[Config] = None,
                           sample_rate_hz: Optional[float] = None) -> List[FatigueWindow]:
    """
    Detects periods where breathing stops or becomes shallow.

    Args:
        signal: MotionSignal, or bare samples spaced at sample_rate_hz
        threshold_fraction: Fraction of mean amplitude (default from config)
        config: Configuration (or default)
        sample_rate_hz: Spacing for bare samples (default from config)

    Returns:
        Fatigue windows sorted by start, non-overlapping, at least
        merge_gap_ms apart
    """
    config = config or Config()
    fraction = config.fatigue_threshold_fraction if threshold_fraction is None else threshold_fraction
    fs = sample_rate_hz or config.default_sample_rate_hz

    values, timestamps = _series(signal, fs)
    if values.size == 0:
        return []

    amplitude = np.abs(values)
    threshold = fraction * float(np.mean(amplitude))
    if threshold <= 0:
        return []

    frame_ms = _frame_interval_ms(timestamps, fs)

    # Zero crossings of the breathing cycle dip briefly below threshold;
    # an opening removes runs shorter than the dip tolerance.
    below = amplitude < threshold
    dip = int(config.dip_tolerance_ms // frame_ms)
    if dip % 2 == 0:
        dip -= 1
    if dip > 1:
        below = ndimage.binary_opening(below, structure=np.ones(dip, dtype=bool))

    regions = []
    for start, end in find_below_threshold(np.where(below, 0.0, 1.0), 0.5):
        end_ms = timestamps[end + 1] if end + 1 < values.size else timestamps[end] + frame_ms
        regions.append(Region(start, end,
                              int(round(timestamps[start])), int(round(end_ms))))

    merged = merge_close_windows(regions, config.merge_gap_ms)
    kept = [r for r in merged
            if r.end_ms - r.start_ms >= config.min_window_ms and r.end_ms > r.start_ms]

    logger.debug("Fatigue scan: threshold %.4g, %d runs, %d merged, %d kept",
                 threshold, len(regions), len(merged), len(kept))

    return [
        FatigueWindow(start_ms=r.start_ms, end_ms=r.end_ms,
                      severity=compute_severity(amplitude, r.start_idx, r.end_idx, threshold))
        for r in kept
    ]
