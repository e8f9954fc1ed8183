"""
Breathing Analysis Pipeline
===========================

Runs the full analysis on a completed recording:

    timeline -> motion signal -> rate estimate
                              -> fatigue windows
             -> insights

Synchronous and stateless; one call analyzes one timeline.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .config import Config
from .fatigue import FatigueWindow, detect_fatigue_windows
from .insights import BreathingBaseline, Insight, generate_insights
from .landmarks import Frame, timeline_duration_ms
from .motion import MotionSignal, extract_motion
from .signal_analysis import RateEstimate, RespirationAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BreathingAnalysis:
    """Everything one analysis produces"""
    rate_estimate: RateEstimate
    fatigue_windows: List[FatigueWindow]
    insights: List[Insight]
    signal: MotionSignal
    baseline: Optional[BreathingBaseline] = None

    @property
    def delta_from_baseline(self) -> Optional[float]:
        if self.baseline is None or self.rate_estimate.rate_bpm is None:
            return None
        return self.rate_estimate.rate_bpm - self.baseline.typical_rate_bpm

    @property
    def pct_change(self) -> Optional[float]:
        delta = self.delta_from_baseline
        if delta is None or self.baseline.typical_rate_bpm <= 0:
            return None
        return 100.0 * delta / self.baseline.typical_rate_bpm

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view for a presentation layer"""
        rate = self.rate_estimate
        return {
            "rate_bpm": rate.rate_bpm,
            "frequency_hz": rate.frequency_hz,
            "confidence": rate.confidence,
            "depth_score": rate.depth_score,
            "method": rate.method,
            "error": rate.error,
            "baseline_rate": self.baseline.typical_rate_bpm if self.baseline else None,
            "delta_from_baseline": self.delta_from_baseline,
            "pct_change": self.pct_change,
            "fatigue_windows": [
                {"start_ms": w.start_ms, "end_ms": w.end_ms, "severity": w.severity}
                for w in self.fatigue_windows
            ],
            "insights": [
                {
                    "title": i.title,
                    "description": i.description,
                    "severity": i.severity.value,
                    "recommendation": i.recommendation,
                    "timestamp_ms": i.timestamp_ms,
                }
                for i in self.insights
            ],
            "diagnostics": list(self.signal.diagnostics),
        }


class BreathingPipeline:
    """Runs motion extraction, rate, fatigue and insight stages"""

    def __init__(self, config: Optional[Config] = None):
        """
        Args:
            config: Configuration parameters (or default)
        """
        self.config = (config or Config()).validate()
        self.analyzer = RespirationAnalyzer.from_config(self.config)

    def analyze(self, timeline: Sequence[Frame], sample_rate_hz: float,
                baseline: Optional[BreathingBaseline] = None) -> BreathingAnalysis:
        """
        Analyzes one recording.

        Args:
            timeline: Ordered frames of the recording
            sample_rate_hz: Frames per second of the timeline
            baseline: Optional personal baseline

        Returns:
            BreathingAnalysis
        """
        logger.debug("Analyzing %d frames (%.1f s) at %.2f Hz",
                     len(timeline), timeline_duration_ms(timeline) / 1000.0, sample_rate_hz)

        signal = extract_motion(timeline, self.config)
        rate = self.analyzer.analyze(signal, sample_rate_hz)

        fraction = None
        if baseline is not None and baseline.fatigue_threshold_fraction is not None:
            fraction = baseline.fatigue_threshold_fraction
        windows = detect_fatigue_windows(signal, threshold_fraction=fraction,
                                         config=self.config, sample_rate_hz=sample_rate_hz)

        insights = generate_insights(rate, windows, baseline=baseline, config=self.config)

        if rate.rate_bpm is None:
            logger.info("No reliable breathing rate: %s", rate.error)
        else:
            logger.debug("Rate %.1f bpm (confidence %.2f), %d fatigue windows",
                         rate.rate_bpm, rate.confidence, len(windows))

        return BreathingAnalysis(rate_estimate=rate, fatigue_windows=windows,
                                 insights=insights, signal=signal, baseline=baseline)


def analyze(timeline: Sequence[Frame], sample_rate_hz: float,
            baseline: Optional[BreathingBaseline] = None,
            config: Optional[Config] = None) -> BreathingAnalysis:
    """Single entry point: analyzes a completed recording"""
    return BreathingPipeline(config).analyze(timeline, sample_rate_hz, baseline)
