"""
Recording I/O
=============

Loads landmark timelines exported by a pose estimator and writes
analysis reports next to them.

Timeline CSV (long format, one row per landmark per frame):
    frame,timestamp_ms,landmark,x,y,z[,visibility]
"""

import os
from typing import Dict, List

import numpy as np
import pandas as pd

from .insights import format_timestamp
from .landmarks import Frame, Landmark, normalize_landmark_name
from .pipeline import BreathingAnalysis

REQUIRED_COLUMNS = ("frame", "timestamp_ms", "landmark", "x", "y", "z")


def load_timeline_csv(path: str) -> List[Frame]:
    """
    Reads a landmark CSV into a timeline ordered by frame index.

    Raises:
        ValueError: if a required column is missing
    """
    df = pd.read_csv(path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {', '.join(missing)}")

    if "visibility" not in df.columns:
        df["visibility"] = 1.0

    timeline = []
    for index, group in df.sort_values("frame").groupby("frame", sort=True):
        landmarks = [
            Landmark(normalize_landmark_name(str(row.landmark)),
                     float(row.x), float(row.y), float(row.z), float(row.visibility))
            for row in group.itertuples(index=False)
        ]
        timestamp = float(group["timestamp_ms"].iloc[0])
        timeline.append(Frame.from_landmarks(int(index), timestamp, landmarks))
    return timeline


def write_report(analysis: BreathingAnalysis, base_path: str) -> Dict[str, str]:
    """
    Saves signal, fatigue windows, insights and a summary.

    Returns:
        Mapping of artifact name to file path
    """
    directory = os.path.dirname(base_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    paths = {
        "signal": f"{base_path}_signal.csv",
        "windows": f"{base_path}_windows.csv",
        "insights": f"{base_path}_insights.csv",
        "summary": f"{base_path}_summary.txt",
    }

    # 1. Motion signal
    pd.DataFrame({
        "timestamp_ms": analysis.signal.timestamps_ms,
        "motion": analysis.signal.values,
    }).to_csv(paths["signal"], index=False, float_format="%.6f")

    # 2. Fatigue windows
    pd.DataFrame(
        [(w.start_ms, w.end_ms, w.severity) for w in analysis.fatigue_windows],
        columns=["start_ms", "end_ms", "severity"],
    ).to_csv(paths["windows"], index=False, float_format="%.4f")

    # 3. Insights
    pd.DataFrame(
        [(i.timestamp_ms, i.severity.value, i.title, i.description, i.recommendation)
         for i in analysis.insights],
        columns=["timestamp_ms", "severity", "title", "description", "recommendation"],
    ).to_csv(paths["insights"], index=False)

    # 4. Summary
    with open(paths["summary"], "w") as f:
        f.write(format_summary(analysis))
        f.write("\nFiles:\n")
        for key in ("signal", "windows", "insights"):
            f.write(f"  - {paths[key]}\n")

    return paths


def format_summary(analysis: BreathingAnalysis) -> str:
    """Multi-line text summary of an analysis"""
    rate = analysis.rate_estimate
    ts = analysis.signal.timestamps_ms
    duration = float(ts[-1] - ts[0]) / 1000.0 if len(ts) > 1 else 0.0

    lines = [
        f"Duration: {duration:.1f} seconds",
        f"Samples: {len(analysis.signal)}",
    ]
    if rate.rate_bpm is None:
        lines.append(f"Respiratory rate: n/a ({rate.error})")
    else:
        lines.append(f"Respiratory rate: {rate.rate_bpm:.1f} /min "
                     f"(confidence {rate.confidence:.2f})")
    lines.append(f"Depth score: {rate.depth_score:.2f}")
    if analysis.pct_change is not None:
        lines.append(f"Change from baseline: {analysis.pct_change:+.1f}%")

    lines.append(f"Fatigue windows: {len(analysis.fatigue_windows)}")
    for w in analysis.fatigue_windows:
        lines.append(f"  {format_timestamp(w.start_ms)} - {format_timestamp(w.end_ms)} "
                     f"severity {w.severity:.2f}")

    lines.append("Insights:")
    for insight in analysis.insights:
        lines.append(f"  [{insight.severity.value}] {insight.title}: {insight.description}")
    for msg in analysis.signal.diagnostics:
        lines.append(f"Warning: {msg}")

    if len(analysis.signal):
        lines.append(f"Motion RMS: {float(np.sqrt(np.mean(analysis.signal.values ** 2))):.6f}")

    return "\n".join(lines) + "\n"
