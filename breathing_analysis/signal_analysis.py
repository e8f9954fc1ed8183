"""
Respiration Signal Analysis
===========================

Estimates breathing rate, confidence and depth from the torso motion
signal using a Hann-windowed FFT and a peak search in the breathing band.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import fft
from scipy.signal import windows

from .config import Config
from .motion import MotionSignal

logger = logging.getLogger(__name__)

METHOD_FFT_PEAK = "fft_peak"
METHOD_INSUFFICIENT = "insufficient_data"

# Absorbs float error in rfftfreq at the band edges
_BAND_EPS = 1e-9


@dataclass(frozen=True)
class RateEstimate:
    """Result of a spectral breathing rate estimate"""
    rate_bpm: Optional[float]
    confidence: float
    frequency_hz: Optional[float]
    depth_score: float
    method: str = METHOD_FFT_PEAK
    error: Optional[str] = None

    @property
    def is_reliable(self) -> bool:
        return self.rate_bpm is not None and self.confidence > 0.0


def _as_array(signal) -> np.ndarray:
    if isinstance(signal, MotionSignal):
        signal = signal.values
    x = np.asarray(signal, dtype=float).ravel()
    if not np.all(np.isfinite(x)):
        logger.warning("Replacing %d non-finite samples with zero",
                       int(np.count_nonzero(~np.isfinite(x))))
        x = np.nan_to_num(x, nan=0.0, posinf=0.0, neginf=0.0)
    return x


class RespirationAnalyzer:
    """Analyzes the torso motion signal and calculates respiratory rate"""

    def __init__(self,
                 band_low_hz: float = 0.1,
                 band_high_hz: float = 0.5,
                 min_seconds: float = 10.0,
                 apply_window: bool = True,
                 depth_normalization: float = 0.003,
                 confidence_noise_ratio: float = 3.0,
                 confidence_full_ratio: float = 10.0):
        """
        Args:
            band_low_hz: Lower edge of the breathing band (Hz)
            band_high_hz: Upper edge of the breathing band (Hz)
            min_seconds: Minimum signal duration for an estimate
            apply_window: Apply a Hann window before the FFT
            depth_normalization: RMS of the step signal mapped to depth 1.0
            confidence_noise_ratio: Peak-to-floor ratio scored as confidence 0
            confidence_full_ratio: Peak-to-floor ratio scored as confidence 1
        """
        self.band_low_hz = band_low_hz
        self.band_high_hz = band_high_hz
        self.min_seconds = min_seconds
        self.apply_window = apply_window
        self.depth_normalization = depth_normalization
        self.confidence_noise_ratio = confidence_noise_ratio
        self.confidence_full_ratio = confidence_full_ratio

    @classmethod
    def from_config(cls, config: Config) -> "RespirationAnalyzer":
        return cls(
            band_low_hz=config.band_low_hz,
            band_high_hz=config.band_high_hz,
            min_seconds=config.min_seconds,
            apply_window=config.apply_window,
            depth_normalization=config.depth_normalization,
            confidence_noise_ratio=config.confidence_noise_ratio,
            confidence_full_ratio=config.confidence_full_ratio,
        )

    def min_samples(self, sample_rate_hz: float) -> int:
        """Samples needed to resolve the breathing band"""
        return max(2, int(math.ceil(self.min_seconds * sample_rate_hz)))

    def spectrum(self, signal, sample_rate_hz: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Magnitude spectrum of the zero-mean (windowed) signal.

        Returns:
            (frequencies in Hz, magnitudes), positive frequencies only
        """
        x = _as_array(signal)
        if x.size == 0 or sample_rate_hz <= 0:
            return np.zeros(0), np.zeros(0)

        x = x - np.mean(x)
        if self.apply_window and x.size > 1:
            x = x * windows.hann(x.size, sym=True)

        # Zero-pad to the next power of two
        n_fft = 1 << max(x.size - 1, 1).bit_length()
        magnitudes = np.abs(fft.rfft(x, n=n_fft))
        freqs = fft.rfftfreq(n_fft, d=1.0 / sample_rate_hz)
        return freqs, magnitudes

    def main_lobe_hz(self, n_samples: int, sample_rate_hz: float) -> float:
        """Half-width of a spectral peak's main lobe (Hann: 2 bins, rectangular: 1)"""
        bins = 2.0 if self.apply_window else 1.0
        return bins * sample_rate_hz / n_samples

    def confidence(self, peak_ratio: float) -> float:
        """Maps peak-to-floor ratio onto [0, 1], linear between noise and full ratios"""
        span = self.confidence_full_ratio - self.confidence_noise_ratio
        return float(np.clip((peak_ratio - self.confidence_noise_ratio) / span, 0.0, 1.0))

    def depth_score(self, signal) -> float:
        """RMS amplitude scaled to [0, 1]"""
        x = _as_array(signal)
        if x.size == 0:
            return 0.0
        rms = float(np.sqrt(np.mean(x ** 2)))
        return float(np.clip(rms / self.depth_normalization, 0.0, 1.0))

    def _insufficient(self, depth: float, error: str) -> RateEstimate:
        return RateEstimate(rate_bpm=None, confidence=0.0, frequency_hz=None,
                            depth_score=depth, method=METHOD_INSUFFICIENT,
                            error=error)

    def analyze(self, signal, sample_rate_hz: float) -> RateEstimate:
        """
        Analyzes the signal and calculates respiratory rate.

        Args:
            signal: MotionSignal or 1-D array of samples
            sample_rate_hz: Samples per second

        Returns:
            RateEstimate (rate_bpm is None when data is insufficient)
        """
        x = _as_array(signal)

        if not sample_rate_hz or sample_rate_hz <= 0 or not math.isfinite(sample_rate_hz):
            return self._insufficient(0.0, f"Invalid sample rate: {sample_rate_hz}")

        needed = self.min_samples(sample_rate_hz)
        if x.size < needed:
            logger.debug("Rate estimate skipped: %d of %d samples", x.size, needed)
            return self._insufficient(
                self.depth_score(x),
                f"Insufficient samples (need at least {needed}, "
                f"~{self.min_seconds:g} seconds)")

        depth = self.depth_score(x)
        if np.ptp(x) == 0.0:
            return self._insufficient(depth, "Signal is constant")

        freqs, magnitudes = self.spectrum(x, sample_rate_hz)

        # Filter frequency range
        mask = ((freqs >= self.band_low_hz - _BAND_EPS) &
                (freqs <= self.band_high_hz + _BAND_EPS))
        freq_range = freqs[mask]
        mag_range = magnitudes[mask]

        if mag_range.size == 0:
            return self._insufficient(depth, "No frequency bins in breathing band")

        # argmax keeps the first (lowest frequency) maximum
        peak_idx = int(np.argmax(mag_range))
        peak_mag = float(mag_range[peak_idx])
        peak_freq = float(freq_range[peak_idx])

        if peak_mag <= np.finfo(float).eps:
            return self._insufficient(depth, "No periodic motion in breathing band")

        # Peak prominence: the floor is the band outside the peak's main lobe
        lobe_hz = self.main_lobe_hz(x.size, sample_rate_hz)
        floor = mag_range[np.abs(freq_range - peak_freq) >= lobe_hz]
        if floor.size == 0:
            logger.debug("Main lobe covers the whole band; confidence 0")
            confidence = 0.0
        else:
            floor_mag = max(float(np.mean(floor)), np.finfo(float).tiny)
            confidence = self.confidence(peak_mag / floor_mag)

        return RateEstimate(
            rate_bpm=peak_freq * 60.0,
            confidence=confidence,
            frequency_hz=peak_freq,
            depth_score=depth,
            method=METHOD_FFT_PEAK,
        )


def detect_rate(signal, sample_rate_hz: float,
                config: Optional[Config] = None) -> RateEstimate:
    """Breathing rate estimate for a motion signal (see RespirationAnalyzer)"""
    return RespirationAnalyzer.from_config(config or Config()).analyze(signal, sample_rate_hz)
