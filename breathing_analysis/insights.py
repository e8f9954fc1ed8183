"""
Coaching Insights
=================

Rule-based mapping from rate, depth and fatigue windows to short,
human-readable findings. Rate and depth findings need a confident
estimate; fatigue windows are always reported.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from .config import Config
from .fatigue import FatigueWindow
from .signal_analysis import RateEstimate


class InsightSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    severity: InsightSeverity
    recommendation: str
    timestamp_ms: Optional[int] = None


@dataclass(frozen=True)
class BreathingBaseline:
    """Personal breathing baseline supplied by the caller"""
    typical_rate_bpm: float
    fatigue_threshold_fraction: Optional[float] = None


def format_timestamp(ms: float) -> str:
    """Milliseconds -> 'MM:SS'"""
    total_seconds = int(ms) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def _rate_insight(rate: float, config: Config) -> Insight:
    bpm = int(rate)
    if rate > config.elevated_rate_bpm:
        return Insight(
            "Elevated breathing rate",
            f"Breathing rate of {bpm} bpm is higher than typical resting rate "
            f"({config.resting_low_bpm:g}-{config.resting_high_bpm:g} bpm)",
            InsightSeverity.MEDIUM,
            "Focus on slower, controlled breathing. Try 4-count inhale, 6-count exhale.")
    if rate > config.resting_high_bpm:
        return Insight(
            "Breathing rate above resting range",
            f"Breathing rate of {bpm} bpm is slightly above the resting range "
            f"({config.resting_low_bpm:g}-{config.resting_high_bpm:g} bpm)",
            InsightSeverity.LOW,
            "Allow a little more recovery time between efforts.")
    if rate >= config.resting_low_bpm:
        return Insight(
            "Normal breathing rate",
            f"Breathing rate of {bpm} bpm is within healthy resting range "
            f"({config.resting_low_bpm:g}-{config.resting_high_bpm:g} bpm)",
            InsightSeverity.LOW,
            "Maintain this steady breathing pattern during warm-up and recovery.")
    if rate >= config.very_slow_rate_bpm:
        return Insight(
            "Slow breathing rate",
            f"Breathing rate of {bpm} bpm is below the typical resting range",
            InsightSeverity.LOW,
            "Slow breathing is fine at rest. Keep it relaxed rather than forced.")
    return Insight(
        "Very slow breathing detected",
        f"Breathing rate of {bpm} bpm is unusually low",
        InsightSeverity.LOW,
        "Ensure you're breathing naturally. Breath holds may be affecting the measurement.")


def _baseline_insight(rate: float, baseline: BreathingBaseline, config: Config) -> Insight:
    base = baseline.typical_rate_bpm
    pct_change = 100.0 * (rate - base) / base
    abs_pct = abs(pct_change)

    if pct_change > 0 and abs_pct > config.baseline_change_pct:
        return Insight(
            "Breathing rate elevated",
            f"Your rate of {int(rate)} bpm is {int(abs_pct)}% above your baseline "
            f"of {int(base)} bpm",
            InsightSeverity.HIGH if abs_pct > config.baseline_high_pct else InsightSeverity.MEDIUM,
            "Focus on slower, controlled breathing to return to your baseline pace.")
    if pct_change < 0 and abs_pct > config.baseline_change_pct:
        return Insight(
            "Breathing rate lowered",
            f"Your rate of {int(rate)} bpm is {int(abs_pct)}% below your baseline "
            f"of {int(base)} bpm",
            InsightSeverity.LOW,
            "Good recovery breathing. This is slower than your typical pace.")
    return Insight(
        "Breathing rate normal",
        f"Your rate of {int(rate)} bpm is within {int(abs_pct)}% of your baseline "
        f"of {int(base)} bpm",
        InsightSeverity.LOW,
        "Maintain this steady breathing pattern.")


def _depth_insight(depth: float, config: Config) -> Optional[Insight]:
    pct = int(depth * 100)
    if depth < config.shallow_depth:
        return Insight(
            "Shallow breathing detected",
            f"Breathing depth score of {pct}% indicates limited torso expansion",
            InsightSeverity.MEDIUM,
            "Practice diaphragmatic breathing. Focus on belly expansion rather than chest.")
    if depth > config.strong_depth:
        return Insight(
            "Strong breathing depth",
            f"Breathing depth score of {pct}% shows good torso expansion",
            InsightSeverity.LOW,
            "Excellent. Maintain this breathing pattern during training.")
    return None


def _window_insight(window: FatigueWindow, config: Config) -> Insight:
    duration_s = window.duration_ms / 1000.0
    if window.severity > 0.8:
        severity = InsightSeverity.HIGH
    elif window.severity > 0.5:
        severity = InsightSeverity.MEDIUM
    else:
        severity = InsightSeverity.LOW

    if duration_s > config.long_hold_seconds:
        recommendation = ("Extended breath hold detected. Monitor breathing during "
                          "high-intensity movements.")
    else:
        recommendation = ("Brief breathing disruption. May indicate movement "
                          "transition or exertion.")

    return Insight(
        f"Breath disruption at {format_timestamp(window.start_ms)}",
        f"Breathing stopped or became very shallow for {duration_s:.1f} seconds "
        f"(severity: {int(window.severity * 100)}%)",
        severity,
        recommendation,
        timestamp_ms=window.start_ms,
    )


def generate_insights(rate_estimate: RateEstimate,
                      fatigue_windows: Sequence[FatigueWindow],
                      baseline: Optional[BreathingBaseline] = None,
                      config: Optional[Config] = None) -> List[Insight]:
    """
    Generates coaching insights.

    Order: rate, depth, then one insight per fatigue window by start time.
    Rate and depth insights are dropped when the estimate is missing or
    its confidence is below config.insight_min_confidence.
    """
    config = config or Config()
    insights: List[Insight] = []

    confident = (rate_estimate.rate_bpm is not None and
                 rate_estimate.confidence >= config.insight_min_confidence)

    if confident:
        rate = rate_estimate.rate_bpm
        if baseline is not None and baseline.typical_rate_bpm > 0:
            insights.append(_baseline_insight(rate, baseline, config))
        else:
            insights.append(_rate_insight(rate, config))

        depth = _depth_insight(rate_estimate.depth_score, config)
        if depth is not None:
            insights.append(depth)

    for window in sorted(fatigue_windows, key=lambda w: w.start_ms):
        insights.append(_window_insight(window, config))

    return insights
