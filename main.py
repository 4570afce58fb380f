#!/usr/bin/env python3
"""
Fourier Epicycle Renderer CLI
Animate a stereo WAV clip as a chain of rotating Fourier vectors.

Usage:
    python main.py clip.wav
    python main.py clip.wav --waveform --raw-vectors
    python main.py clip.wav --export-dir frames --headless
    python main.py clip.wav --harmonics 200 --scale 4 --speed 0.05
"""

import argparse
import logging
import signal
import sys
import time
from typing import Optional

from tqdm import tqdm

from application.dto.render_dto import RenderSettingsDTO
from epicycles.clock import CancellationToken
from epicycles.core import render_epicycles
from epicycles.errors import EpicycleError
from epicycles.printer import OutputPrinter
from epicycles.utils import DEFAULT_PARAMS

LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="epicycles",
        description="Render a WAV clip as animated Fourier epicycles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py clip.wav
  python main.py clip.wav --waveform --raw-vectors
  python main.py clip.wav --export-dir frames --headless

Encoding exported frames:
  ffmpeg -framerate 60 -i frames/%06d.png -c:v libx264 -pix_fmt yuv420p out.mp4

Parameter guide:
  --speed     0.02 = 50x slow motion | 1.0 = real time
  --harmonics 50   = smooth outline  | 1000 = fine detail
  --scale     2.0  = default zoom    | 8.0  = quiet clips
        """,
    )

    parser.add_argument(
        "input",
        metavar="INPUT",
        help="Path to a 2-channel, 44.1 kHz integer PCM WAV file.",
    )

    anim_group = parser.add_argument_group("Animation Parameters")
    anim_group.add_argument(
        "--harmonics",
        "-n",
        type=int,
        default=DEFAULT_PARAMS["harmonics"],
        metavar="COUNT",
        help=f"Number of positive harmonics to chain (default: {DEFAULT_PARAMS['harmonics']}).",
    )
    anim_group.add_argument(
        "--scale",
        "-z",
        type=float,
        default=DEFAULT_PARAMS["scale"],
        metavar="ZOOM",
        help=f"Zoom factor applied to every vector (default: {DEFAULT_PARAMS['scale']}).",
    )
    anim_group.add_argument(
        "--speed",
        "-s",
        type=float,
        default=DEFAULT_PARAMS["speed"],
        metavar="FACTOR",
        help=f"Playback speed relative to real time (default: {DEFAULT_PARAMS['speed']}).",
    )
    anim_group.add_argument(
        "--fps",
        type=float,
        default=DEFAULT_PARAMS["fps"],
        metavar="FPS",
        help=f"Target frames per second (default: {DEFAULT_PARAMS['fps']:g}).",
    )

    draw_group = parser.add_argument_group("Drawing Options")
    draw_group.add_argument(
        "--waveform",
        "-w",
        action="store_true",
        help="Draw the clip's waveform with a playback cursor along the bottom.",
    )
    draw_group.add_argument(
        "--raw-vectors",
        "-r",
        action="store_true",
        help="Draw every positive harmonic from the origin in the background.",
    )
    draw_group.add_argument(
        "--width",
        type=int,
        default=DEFAULT_PARAMS["width"],
        help=f"Canvas width in pixels (default: {DEFAULT_PARAMS['width']}).",
    )
    draw_group.add_argument(
        "--height",
        type=int,
        default=DEFAULT_PARAMS["height"],
        help=f"Canvas height in pixels (default: {DEFAULT_PARAMS['height']}).",
    )
    draw_group.add_argument(
        "--font",
        type=str,
        default=None,
        metavar="TTF",
        help="TrueType font for the time label (default: pygame's built-in font).",
    )

    out_group = parser.add_argument_group("Output Options")
    out_group.add_argument(
        "--export-dir",
        "-e",
        type=str,
        default=None,
        metavar="DIR",
        help="Write every frame as DIR/NNNNNN.png instead of pacing in real time.",
    )
    out_group.add_argument(
        "--headless",
        action="store_true",
        help="Render off-screen (no window). Useful together with --export-dir.",
    )
    out_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress all output except errors.",
    )
    out_group.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output (also auto-disabled when NO_COLOR env var is set).",
    )
    out_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log decoding, spectrum and per-frame details.",
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> RenderSettingsDTO:
    return RenderSettingsDTO(
        harmonics=args.harmonics,
        scale=args.scale,
        speed=args.speed,
        fps=args.fps,
        width=args.width,
        height=args.height,
        draw_waveform=args.waveform,
        raw_vectors=args.raw_vectors,
        export_dir=args.export_dir,
        font_path=args.font,
        headless=args.headless,
    )


def install_interrupt_handler(token: CancellationToken) -> None:
    """Ctrl-C (and SIGTERM) stop the animation after the current frame."""

    def _handler(signum, frame) -> None:
        token.cancel()

    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)


def main(argv: Optional[list[str]] = None) -> None:
    parser: argparse.ArgumentParser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    printer: OutputPrinter = OutputPrinter(quiet=args.quiet, no_color=args.no_color)
    settings: RenderSettingsDTO = settings_from_args(args)

    token = CancellationToken()
    install_interrupt_handler(token)

    bar: Optional[tqdm] = None

    def frame_callback(done: int, expected: int) -> None:
        nonlocal bar
        if args.quiet or not settings.export_mode:
            return
        if bar is None:
            bar = tqdm(total=expected, desc="Rendering", unit="frame")
        bar.update(1)

    def progress_callback(step_idx: int, total_steps: int, name: str) -> None:
        if args.verbose:
            printer.step(step_idx, total_steps, name)

    start_time = time.time()
    try:
        result = render_epicycles(
            args.input,
            settings,
            token=token,
            progress_callback=progress_callback,
            frame_callback=frame_callback,
        )
    except (EpicycleError, FileNotFoundError, ValueError) as exc:
        printer.error(str(exc))
        sys.exit(1)
    except OSError as exc:
        printer.error(f"Unexpected I/O failure: {exc}")
        sys.exit(1)
    finally:
        if bar is not None:
            bar.close()

    printer.render_summary(args.input, result, time.time() - start_time)


if __name__ == "__main__":
    main()
