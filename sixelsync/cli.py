"""
SixelSync - Command Line
=========================
Usage::

    sixelsync --frames-dir frames --audio bgm.aac --fps 30 --end 6570
"""

import argparse
import os
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from sixelsync.config import DEFAULT_FPS, PlaybackConfig
from sixelsync.errors import PlaybackError
from sixelsync.playback.player import PlaybackLoop
from sixelsync.terminal import TerminalOutput


def build_parser() -> argparse.ArgumentParser:
    defaults = PlaybackConfig()
    parser = argparse.ArgumentParser(
        prog="sixelsync",
        description="Play a PNG sequence as sixel graphics in sync with an audio track."
    )
    parser.add_argument("--frames-dir", type=Path, default=defaults.frames_dir,
                        help="Directory holding the numbered frames")
    parser.add_argument("--prefix", default=defaults.frame_prefix,
                        help="Frame file name prefix")
    parser.add_argument("--suffix", default=defaults.frame_suffix,
                        help="Frame file name suffix")
    parser.add_argument("--digits", type=int, default=defaults.frame_number_width,
                        help="Zero-padded width of the frame number")
    parser.add_argument("--audio", type=Path, default=defaults.audio_path,
                        help="Audio track to play alongside the frames")
    parser.add_argument("--fps", type=float, default=defaults.fps)
    parser.add_argument("--start", type=int, default=defaults.start_frame,
                        help="First frame index")
    parser.add_argument("--end", type=int, default=defaults.end_frame,
                        help="Last frame index (inclusive)")
    parser.add_argument("--prefetch", type=int, default=None,
                        help=f"Frames decoded ahead (default: 3 x fps, {defaults.prefetch_frames} at {DEFAULT_FPS} fps)")
    parser.add_argument("--initial-buffer", type=int, default=None,
                        help="Frames decoded before playback starts (default: fps)")
    parser.add_argument("--lag-tolerance", type=float, default=defaults.frame_lag_tolerance,
                        help="Frame lag ignored before catching up")
    parser.add_argument("--max-catchup", type=float, default=defaults.max_catchup_frames,
                        help="Max frames recovered per frame")
    parser.add_argument("--decode-timeout", type=float, default=None,
                        help="Seconds to wait for a single frame before failing")
    parser.add_argument("--audio-timeout", type=float, default=None,
                        help="Seconds to wait for audio to start before failing")
    parser.add_argument("--no-wait-audio", action="store_true",
                        help="Exit after the last frame instead of when the audio ends")
    return parser


def config_from_args(args: argparse.Namespace) -> PlaybackConfig:
    """
    Build the run configuration from parsed arguments.

    Raises:
        ValueError: If the combination of values is invalid
    """
    fps_frames = max(1, round(args.fps))
    return PlaybackConfig(
        frames_dir=args.frames_dir,
        frame_prefix=args.prefix,
        frame_suffix=args.suffix,
        frame_number_width=args.digits,
        start_frame=args.start,
        end_frame=args.end,
        audio_path=args.audio,
        audio_start_timeout=args.audio_timeout,
        wait_for_audio_end=not args.no_wait_audio,
        fps=args.fps,
        frame_lag_tolerance=args.lag_tolerance,
        max_catchup_frames=args.max_catchup,
        prefetch_frames=args.prefetch if args.prefetch is not None else fps_frames * 3,
        initial_buffer_frames=(
            args.initial_buffer if args.initial_buffer is not None else fps_frames
        ),
        decode_timeout=args.decode_timeout,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    sink = TerminalOutput()
    try:
        player = PlaybackLoop.from_config(config, sink=sink)
        player.run()
    except KeyboardInterrupt:
        sink.show_cursor()
        print("\n[Info] Interrupted by user", file=sys.stderr)
        return 130
    except PlaybackError as e:
        sink.show_cursor()
        print(f"\n[Error] Playback failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        sink.show_cursor()
        print(f"\n[Error] Playback failed: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1

    return 0


def run(argv: Optional[List[str]] = None):
    """
    Console entry point.

    A decode stuck past its timeout still occupies a pool thread, and the
    interpreter joins pool threads on exit. Failed runs therefore end the
    process directly once output is flushed.
    """
    code = main(argv)
    if code != 0:
        sys.stdout.flush()
        sys.stderr.flush()
        os._exit(code)
    sys.exit(code)


if __name__ == "__main__":
    run()
