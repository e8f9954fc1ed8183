"""
Breathing Analysis
==================
Breathing rate, fatigue windows and coaching insights from pose landmarks.
Tracks the torso centroid (shoulders and hips) over a recorded timeline
and analyzes its motion with an FFT in the 0.1-0.5 Hz breathing band.
"""

from .config import Config
from .landmarks import Frame, Landmark, TorsoLandmark
from .motion import MotionSignal, extract_motion
from .signal_analysis import RateEstimate, RespirationAnalyzer, detect_rate
from .fatigue import FatigueWindow, detect_fatigue_windows
from .insights import BreathingBaseline, Insight, InsightSeverity, generate_insights
from .pipeline import BreathingAnalysis, BreathingPipeline, analyze

__version__ = "1.0.0"
__all__ = [
    "Config",
    "Frame",
    "Landmark",
    "TorsoLandmark",
    "MotionSignal",
    "extract_motion",
    "RateEstimate",
    "RespirationAnalyzer",
    "detect_rate",
    "FatigueWindow",
    "detect_fatigue_windows",
    "BreathingBaseline",
    "Insight",
    "InsightSeverity",
    "generate_insights",
    "BreathingAnalysis",
    "BreathingPipeline",
    "analyze",
]
