#!/usr/bin/env python3
"""
Analysis script for recorded pose landmark timelines

Usage:
    python analyze.py recordings/session.csv --fps 15
    python analyze.py recordings/session.csv --out reports/session --no-show
"""

import argparse
import logging
import os
import sys

from breathing_analysis import BreathingBaseline, BreathingPipeline, Config
from breathing_analysis.recording import format_summary, load_timeline_csv, write_report


def parse_args(argv=None):
    """Parses command line arguments"""
    parser = argparse.ArgumentParser(
        description="Breathing rate and fatigue analysis from pose landmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python analyze.py session.csv                     # 15 FPS timeline
  python analyze.py session.csv --fps 30            # 30 FPS timeline
  python analyze.py session.csv --baseline-rate 16  # Compare to personal baseline
        """
    )

    parser.add_argument('timeline', type=str,
                        help='Landmark CSV (frame,timestamp_ms,landmark,x,y,z[,visibility])')

    parser.add_argument('--fps', type=float, default=15.0,
                        help='Frames per second of the timeline (default: 15)')

    parser.add_argument('--out', type=str, default=None,
                        help='Base path for report files (default: next to the CSV)')

    parser.add_argument('--baseline-rate', type=float, default=None,
                        help='Personal typical breathing rate in bpm')

    parser.add_argument('--fatigue-threshold', type=float, default=None,
                        help='Fatigue threshold as fraction of mean amplitude (default: 0.3)')

    parser.add_argument('--no-plot', action='store_true',
                        help='Skip the analysis plot')

    parser.add_argument('--no-show', action='store_true',
                        help='Save the plot without opening a window')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main function"""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )
    log = logging.getLogger("analyze")

    try:
        timeline = load_timeline_csv(args.timeline)
    except (OSError, ValueError) as e:
        log.error("Could not load timeline: %s", e)
        return 1

    config = Config()
    if args.fatigue_threshold is not None:
        config.fatigue_threshold_fraction = args.fatigue_threshold

    baseline = None
    if args.baseline_rate is not None:
        baseline = BreathingBaseline(typical_rate_bpm=args.baseline_rate)

    try:
        pipeline = BreathingPipeline(config)
    except ValueError as e:
        log.error("Invalid settings: %s", e)
        return 1

    analysis = pipeline.analyze(timeline, args.fps, baseline=baseline)

    print(f"Recording: {args.timeline}")
    print(format_summary(analysis), end="")

    base_path = args.out or os.path.splitext(args.timeline)[0]
    paths = write_report(analysis, base_path)
    log.info("Report saved: %s", paths["summary"])

    if not args.no_plot:
        import matplotlib.pyplot as plt
        from breathing_analysis.visualization import render_analysis

        fig = render_analysis(analysis, args.fps, config,
                              title=f"Breathing analysis: {os.path.basename(base_path)}")
        plot_path = f"{base_path}_analysis.png"
        fig.savefig(plot_path, dpi=150, bbox_inches='tight')
        log.info("Plot saved: %s", plot_path)
        if not args.no_show:
            plt.show()
        plt.close(fig)

    return 0


if __name__ == "__main__":
    sys.exit(main())
