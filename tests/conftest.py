"""Pytest configuration and shared fixtures for breathing analysis tests.

Provides synthetic pose timelines: a torso breathing at a known rate,
optionally holding its breath for part of the recording.
"""
import sys
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from breathing_analysis.landmarks import Frame, Landmark

logging.getLogger('matplotlib').setLevel(logging.WARNING)


BASE_POSE = {
    "nose": (0.50, 0.30, -0.10),
    "left_shoulder": (0.42, 0.42, 0.0),
    "right_shoulder": (0.58, 0.42, 0.0),
    "left_hip": (0.45, 0.58, 0.0),
    "right_hip": (0.55, 0.58, 0.0),
    "left_knee": (0.44, 0.72, 0.0),
    "right_knee": (0.56, 0.72, 0.0),
}


def make_breathing_timeline(duration_s: float = 60.0,
                            fps: float = 15.0,
                            bpm: float = 22.0,
                            amplitude: float = 0.03,
                            noise: float = 5e-5,
                            hold: Optional[Tuple[float, float]] = None,
                            seed: int = 7) -> List[Frame]:
    """Timeline whose shoulders rise and fall sinusoidally at `bpm`.

    During `hold` (start_s, end_s) the shoulders stay where they were at
    start_s. Every landmark gets Gaussian noise of std `noise`.
    """
    rng = np.random.default_rng(seed)
    freq = bpm / 60.0
    n = int(round(duration_s * fps))
    frames = []
    for i in range(n):
        t = i / fps
        t_phase = t
        if hold is not None and hold[0] <= t < hold[1]:
            t_phase = hold[0]
        s = np.sin(2 * np.pi * freq * t_phase)

        landmarks = []
        for name, (x, y, z) in BASE_POSE.items():
            if name.endswith("shoulder"):
                y = y - amplitude * s
                z = z + 0.5 * amplitude * s
            dx, dy, dz = rng.normal(0.0, noise, size=3)
            landmarks.append(Landmark(name, x + dx, y + dy, z + dz, 0.95))
        frames.append(Frame.from_landmarks(i, i * 1000.0 / fps, landmarks))
    return frames


def make_linear_timeline(n: int = 30, step: float = 0.01, fps: float = 15.0,
                         drop: Optional[dict] = None) -> List[Frame]:
    """Torso translating `step` per frame along y, no noise.

    `drop` maps frame index -> landmark name removed from that frame.
    """
    drop = drop or {}
    frames = []
    for i in range(n):
        landmarks = []
        for name, (x, y, z) in BASE_POSE.items():
            if drop.get(i) == name:
                continue
            landmarks.append(Landmark(name, x, y + step * i, z))
        frames.append(Frame.from_landmarks(i, i * 1000.0 / fps, landmarks))
    return frames


def sine_wave(freq_hz: float, duration_s: float, fs: float,
              amplitude: float = 0.02) -> np.ndarray:
    t = np.arange(int(round(duration_s * fs))) / fs
    return amplitude * np.sin(2 * np.pi * freq_hz * t)


@pytest.fixture(scope="session")
def breathing_timeline():
    """60 s at 15 FPS, 22 breaths/min."""
    return make_breathing_timeline()


@pytest.fixture(scope="session")
def breath_hold_timeline():
    """60 s at 15 FPS, 22 breaths/min, breath held from 45 s to 48 s."""
    return make_breathing_timeline(hold=(45.0, 48.0))
