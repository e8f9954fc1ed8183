"""
Configuration
=============
Central configuration parameters for breathing analysis.

The thresholds below are heuristic defaults, not physiological constants.
"""
from dataclasses import dataclass


@dataclass
class Config:
    """Configuration parameters for the pipeline"""

    # Motion extraction
    smoothing_window: int = 5
    min_visibility: float = 0.0

    # Spectral analysis
    band_low_hz: float = 0.1    # Hz (6 BPM)
    band_high_hz: float = 0.5   # Hz (30 BPM)
    min_seconds: float = 10.0
    apply_window: bool = True   # Hann
    # Peak-to-floor ratio mapped to confidence 0 and 1. White noise stays
    # near 2-3; a clean breathing peak is well above 10.
    confidence_noise_ratio: float = 3.0
    confidence_full_ratio: float = 10.0
    # RMS of the per-frame step signal (not displacement) mapped to depth
    # 1.0; steps shrink as the frame rate grows, tuned for ~15 fps.
    depth_normalization: float = 0.003

    # Fatigue windows
    fatigue_threshold_fraction: float = 0.3
    dip_tolerance_ms: float = 500.0
    merge_gap_ms: float = 2000.0
    min_window_ms: float = 1000.0
    default_sample_rate_hz: float = 15.0

    # Insights
    insight_min_confidence: float = 0.5
    elevated_rate_bpm: float = 25.0
    resting_high_bpm: float = 20.0
    resting_low_bpm: float = 12.0
    very_slow_rate_bpm: float = 8.0
    shallow_depth: float = 0.5
    strong_depth: float = 0.7
    baseline_change_pct: float = 15.0
    baseline_high_pct: float = 25.0
    long_hold_seconds: float = 3.0

    def validate(self) -> "Config":
        """Raises ValueError for settings no analysis can run with"""
        if self.smoothing_window < 1:
            raise ValueError("smoothing_window must be >= 1")
        if not 0.0 < self.band_low_hz < self.band_high_hz:
            raise ValueError("breathing band must satisfy 0 < low < high")
        if self.min_seconds <= 0:
            raise ValueError("min_seconds must be positive")
        if not 1.0 <= self.confidence_noise_ratio < self.confidence_full_ratio:
            raise ValueError("confidence ratios must satisfy 1 <= noise < full")
        if self.depth_normalization <= 0:
            raise ValueError("depth_normalization must be positive")
        if self.fatigue_threshold_fraction <= 0:
            raise ValueError("fatigue_threshold_fraction must be positive")
        if self.default_sample_rate_hz <= 0:
            raise ValueError("default_sample_rate_hz must be positive")
        if min(self.dip_tolerance_ms, self.merge_gap_ms, self.min_window_ms) < 0:
            raise ValueError("durations must be non-negative")
        return self
