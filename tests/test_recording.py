"""Tests for timeline CSV loading, report files, plotting and the CLI."""
import os

import matplotlib.pyplot as plt
import pandas as pd
import pytest

import analyze as cli
from breathing_analysis import BreathingBaseline, analyze
from breathing_analysis.recording import format_summary, load_timeline_csv, write_report
from breathing_analysis.visualization import render_analysis


def timeline_to_csv(timeline, path, drop_columns=()):
    rows = [
        {"frame": frame.index, "timestamp_ms": frame.timestamp_ms, "landmark": lm.name,
         "x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility}
        for frame in timeline
        for lm in frame.landmarks.values()
    ]
    df = pd.DataFrame(rows).drop(columns=list(drop_columns))
    df.to_csv(path, index=False)
    return str(path)


@pytest.fixture(scope="module")
def hold_csv(tmp_path_factory, breath_hold_timeline):
    path = tmp_path_factory.mktemp("recordings") / "session.csv"
    return timeline_to_csv(breath_hold_timeline, path)


@pytest.fixture(scope="module")
def hold_analysis(breath_hold_timeline):
    return analyze(breath_hold_timeline, 15.0)


class TestLoadTimeline:

    def test_frames_and_landmarks(self, hold_csv, breath_hold_timeline):
        timeline = load_timeline_csv(hold_csv)

        assert len(timeline) == len(breath_hold_timeline)
        first = timeline[0]
        assert first.index == 0
        assert first.timestamp_ms == pytest.approx(0.0)
        assert set(first.landmarks) == set(breath_hold_timeline[0].landmarks)
        assert timeline[-1].timestamp_ms == pytest.approx(breath_hold_timeline[-1].timestamp_ms)

    def test_loaded_timeline_analyzes_the_same(self, hold_csv, hold_analysis):
        analysis = analyze(load_timeline_csv(hold_csv), 15.0)
        assert analysis.rate_estimate.rate_bpm == pytest.approx(hold_analysis.rate_estimate.rate_bpm)
        assert len(analysis.fatigue_windows) == len(hold_analysis.fatigue_windows)

    def test_visibility_is_optional(self, tmp_path, breathing_timeline):
        path = timeline_to_csv(breathing_timeline[:20], tmp_path / "t.csv",
                               drop_columns=["visibility"])
        timeline = load_timeline_csv(path)
        assert timeline[0].get("left_shoulder").visibility == 1.0

    def test_missing_column(self, tmp_path, breathing_timeline):
        path = timeline_to_csv(breathing_timeline[:20], tmp_path / "t.csv", drop_columns=["z"])
        with pytest.raises(ValueError, match="z"):
            load_timeline_csv(path)

    def test_unordered_rows(self, tmp_path, breathing_timeline):
        path = timeline_to_csv(breathing_timeline[:20], tmp_path / "t.csv")
        df = pd.read_csv(path)
        df.iloc[::-1].to_csv(path, index=False)

        timeline = load_timeline_csv(path)

        assert [f.index for f in timeline] == list(range(20))


class TestReport:

    def test_files_written(self, tmp_path, hold_analysis):
        paths = write_report(hold_analysis, str(tmp_path / "out" / "session"))

        assert set(paths) == {"signal", "windows", "insights", "summary"}
        for path in paths.values():
            assert os.path.exists(path)

        signal = pd.read_csv(paths["signal"])
        assert list(signal.columns) == ["timestamp_ms", "motion"]
        assert len(signal) == len(hold_analysis.signal)

        windows = pd.read_csv(paths["windows"])
        assert len(windows) == 1
        assert windows["start_ms"][0] == hold_analysis.fatigue_windows[0].start_ms

        insights = pd.read_csv(paths["insights"])
        assert list(insights["title"]) == [i.title for i in hold_analysis.insights]

    def test_summary(self, hold_analysis):
        summary = format_summary(hold_analysis)
        assert "Respiratory rate:" in summary
        assert "Fatigue windows: 1" in summary
        assert "Breath disruption at 00:45" in summary

    def test_summary_without_rate(self):
        summary = format_summary(analyze([], 15.0))
        assert "Respiratory rate: n/a" in summary
        assert "Fatigue windows: 0" in summary

    def test_summary_with_baseline(self, breathing_timeline):
        summary = format_summary(analyze(breathing_timeline, 15.0, baseline=BreathingBaseline(20.0)))
        assert "Change from baseline: +" in summary


class TestVisualization:

    def test_two_panels(self, hold_analysis):
        fig = render_analysis(hold_analysis, 15.0, title="session")
        try:
            assert len(fig.axes) == 2
            assert fig.axes[1].get_xlabel() == "Breaths per minute"
        finally:
            plt.close(fig)

    def test_empty_analysis(self):
        fig = render_analysis(analyze([], 15.0), 15.0)
        plt.close(fig)


class TestCommandLine:

    def test_report_without_plot(self, hold_csv, tmp_path, capsys):
        base = str(tmp_path / "report")
        assert cli.main([hold_csv, "--no-plot", "--out", base]) == 0

        assert os.path.exists(base + "_summary.txt")
        assert not os.path.exists(base + "_analysis.png")
        assert "Fatigue windows: 1" in capsys.readouterr().out

    def test_plot_saved(self, hold_csv, tmp_path):
        base = str(tmp_path / "report")
        assert cli.main([hold_csv, "--no-show", "--out", base, "--baseline-rate", "18"]) == 0
        assert os.path.exists(base + "_analysis.png")

    def test_missing_file(self, tmp_path):
        assert cli.main([str(tmp_path / "nope.csv"), "--no-plot"]) == 1

    @pytest.mark.parametrize("threshold", ["0", "-0.2"])
    def test_invalid_fatigue_threshold(self, hold_csv, tmp_path, threshold):
        base = str(tmp_path / "report")
        assert cli.main([hold_csv, "--no-plot", "--out", base, "--fatigue-threshold", threshold]) == 1
        assert not os.path.exists(base + "_summary.txt")

    def test_bad_csv(self, tmp_path, breathing_timeline):
        path = timeline_to_csv(breathing_timeline[:20], tmp_path / "t.csv", drop_columns=["x"])
        assert cli.main([path, "--no-plot"]) == 1
