"""
Visualization
=============

Plots an analysis: motion signal with fatigue windows, and the magnitude
spectrum with the breathing band and detected rate.
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np

from .config import Config
from .pipeline import BreathingAnalysis
from .signal_analysis import RespirationAnalyzer


def render_analysis(analysis: BreathingAnalysis, sample_rate_hz: float,
                    config: Optional[Config] = None, title: str = ""):
    """
    Draws the analysis figure.

    Returns:
        matplotlib Figure with two axes
    """
    config = config or Config()
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 8))
    if title:
        fig.suptitle(title, fontsize=14)

    # 1. Motion signal with fatigue windows
    signal = analysis.signal
    t = signal.timestamps_ms / 1000.0
    ax1.plot(t, signal.values, 'b-', linewidth=0.8, label='Torso motion')
    for i, w in enumerate(analysis.fatigue_windows):
        ax1.axvspan(w.start_ms / 1000.0, w.end_ms / 1000.0, color='red',
                    alpha=0.15 + 0.35 * w.severity,
                    label='Fatigue window' if i == 0 else None)
    ax1.set_xlabel('Time (s)')
    ax1.set_ylabel('Motion')
    ax1.set_title('Torso motion signal')
    ax1.legend(loc='upper right')
    ax1.grid(True, alpha=0.3)

    # 2. Spectrum
    analyzer = RespirationAnalyzer.from_config(config)
    freqs, magnitudes = analyzer.spectrum(signal, sample_rate_hz)
    if freqs.size:
        mask = freqs <= 1.0
        ax2.plot(freqs[mask] * 60, magnitudes[mask], 'g-', linewidth=1.5)
        ax2.axvspan(config.band_low_hz * 60, config.band_high_hz * 60,
                    color='gray', alpha=0.15, label='Breathing band')
    rate = analysis.rate_estimate
    if rate.rate_bpm is not None:
        ax2.axvline(x=rate.rate_bpm, color='red', linestyle='--',
                    label=f"Detected: {rate.rate_bpm:.1f}/min ({rate.confidence:.2f})")
    ax2.set_xlabel('Breaths per minute')
    ax2.set_ylabel('Magnitude')
    ax2.set_title('Frequency spectrum')
    ax2.legend(loc='upper right')
    ax2.grid(True, alpha=0.3)
    ax2.set_xlim([0, 60])

    if magnitudes.size and not np.any(magnitudes):
        ax2.set_ylim([0, 1])

    fig.tight_layout()
    return fig
