#!/usr/bin/env python3
"""
PPG Monitor – main entry point.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --resolution WxH          Frame resolution fed to the pipeline (default: 320x240)
    --fps INT                 Nominal frame rate (default: 30)
    --window FLOAT            Analysis window in seconds (default: 20)
    --min-bpm / --max-bpm     Heart-rate search band (default: 45 – 200)
    --alpha FLOAT             Low-pass smoothing factor (default: 0.5)
    --motion-threshold FLOAT  Max red-average jump between frames (default: 4)
    --coverage-threshold FLOAT  Max red std-dev of a covered lens (default: 16)
    --no-flip                 Disable horizontal mirror
    --camera-index INT        OpenCV camera index (default: 0)
    --save PATH               Save annotated video to file (optional)
    --headless                Run without display window (log BPM to stdout)

Keyboard shortcuts (when a window is open)
------------------------------------------
    q / ESC  – quit
    r        – restart monitoring (clears all signal state)
    s        – save a single annotated frame as PNG
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import cv2

from ppg_monitor import config as defaults
from ppg_monitor.camera import Camera
from ppg_monitor.config import MonitorConfig
from ppg_monitor.session import MonitoringSession
from ppg_monitor.status import format_rate
from ppg_monitor.visualizer import Visualizer

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("ppg_monitor")

WINDOW_TITLE = "PPG Monitor"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fingertip pulse monitor via camera photoplethysmography",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--resolution", default=f"{defaults.FRAME_WIDTH}x{defaults.FRAME_HEIGHT}",
                        help="Frame resolution, e.g. 320x240")
    parser.add_argument("--fps", type=int, default=defaults.FRAME_RATE,
                        help="Nominal capture frame rate")
    parser.add_argument("--window", type=float, default=defaults.WINDOW_SECONDS,
                        help="Analysis window in seconds")
    parser.add_argument("--min-bpm", type=float, default=defaults.MIN_BPM,
                        help="Lowest heart rate searched")
    parser.add_argument("--max-bpm", type=float, default=defaults.MAX_BPM,
                        help="Highest heart rate searched")
    parser.add_argument("--alpha", type=float, default=defaults.LOW_PASS_ALPHA,
                        help="Low-pass filter smoothing factor")
    parser.add_argument("--motion-threshold", type=float, default=defaults.MOTION_THRESHOLD,
                        help="Max red-average change between frames")
    parser.add_argument("--coverage-threshold", type=float,
                        default=defaults.COVERAGE_STD_DEV_THRESHOLD,
                        help="Max red-channel std-dev of a covered lens")
    parser.add_argument("--no-flip", action="store_true",
                        help="Disable horizontal image flip")
    parser.add_argument("--camera-index", type=int, default=0,
                        help="OpenCV VideoCapture index")
    parser.add_argument("--save", type=Path, default=None,
                        help="Save annotated video to this file path")
    parser.add_argument("--headless", action="store_true",
                        help="No display window; log BPM to stdout only")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MonitorConfig:
    """Translate CLI arguments into a :class:`MonitorConfig`."""
    try:
        res_w, res_h = (int(v) for v in args.resolution.lower().split("x"))
    except ValueError:
        raise ValueError("Invalid --resolution format.  Use WxH, e.g. 320x240.")

    return MonitorConfig(
        resolution=(res_w, res_h),
        nominal_frame_rate=args.fps,
        window_seconds=args.window,
        min_bpm=args.min_bpm,
        max_bpm=args.max_bpm,
        low_pass_alpha=args.alpha,
        motion_threshold=args.motion_threshold,
        coverage_std_threshold=args.coverage_threshold,
    )


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace | None = None) -> int:
    if args is None:
        args = parse_args()

    try:
        config = build_config(args)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    res_w, res_h = config.resolution
    camera = Camera(
        resolution=config.resolution,
        fps=config.nominal_frame_rate,
        flip_horizontal=not args.no_flip,
        camera_index=args.camera_index,
    )
    session = MonitoringSession(config, camera)
    vis = Visualizer(resolution=config.resolution)

    if not session.start():
        logger.error("%s", session.error)
        return 1

    # Optional video writer
    writer: cv2.VideoWriter | None = None
    if args.save:
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        writer = cv2.VideoWriter(str(args.save), fourcc, config.nominal_frame_rate,
                                 config.resolution)
        logger.info("Saving video to %s", args.save)

    logger.info("Starting PPG monitor.  Press 'q' or ESC to quit.")

    if not args.headless:
        cv2.namedWindow(WINDOW_TITLE, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(WINDOW_TITLE, res_w * 2, res_h * 2)

    frame_idx = 0
    log_interval = config.nominal_frame_rate  # log to stdout every ~1 second

    try:
        while session.active:
            result = session.tick()
            if session.stalled:
                logger.error("Camera returned %d consecutive empty frames – aborting.",
                             session.empty_reads)
                break

            annotated = None
            if not session.skipped:
                annotated = vis.draw(cv2.cvtColor(session.frame, cv2.COLOR_RGBA2BGR), result)

                if writer is not None:
                    writer.write(annotated)

                if args.headless and frame_idx % log_interval == 0:
                    ts = time.strftime("%H:%M:%S")
                    print(f"[{ts}] BPM={format_rate(result.heart_rate, result.status)}  "
                          f"status={result.message}")
                frame_idx += 1

            if args.headless:
                if session.skipped:
                    time.sleep(1.0 / config.nominal_frame_rate)
                continue

            # Poll keys on every pass so the window stays responsive without frames
            if annotated is not None:
                cv2.imshow(WINDOW_TITLE, annotated)
            key = cv2.waitKey(1 if annotated is not None else 30) & 0xFF
            if key in (ord("q"), 27):          # q or ESC
                logger.info("Quit requested by user.")
                break
            elif key == ord("r"):
                if not session.restart():
                    logger.error("%s", session.error)
                    break
                logger.info("Monitoring restarted.")
            elif key == ord("s") and annotated is not None:
                fname = f"snapshot_{int(time.time())}.png"
                cv2.imwrite(fname, annotated)
                logger.info("Saved snapshot: %s", fname)

    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        session.stop()
        if writer is not None:
            writer.release()
        if not args.headless:
            cv2.destroyAllWindows()

    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(run(parse_args()))
