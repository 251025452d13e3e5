"""Command-line interface for wavescope."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from . import __version__
from .doctor import render_report, run_doctor
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import OUTPUT_BACKENDS, normalize_output_backend, resolve_log_level
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wavescope",
        description="Terminal audio player with a live spectrum and waveform scope.",
        epilog=build_help_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("path", nargs="?", help="Audio file to load at startup")
    parser.add_argument(
        "--output",
        choices=OUTPUT_BACKENDS,
        help="Audio output to use (sounddevice or fake).",
    )
    parser.add_argument("--fps", type=int, help="Scope frame rate (2-60).")
    parser.add_argument(
        "--fft-size", type=int, help="Analysis window size (power of two)."
    )
    parser.add_argument(
        "--smoothing", type=float, help="Spectrum smoothing constant in [0, 1)."
    )
    parser.add_argument(
        "--autoplay",
        action="store_true",
        default=None,
        help="Start playback as soon as a file finishes loading.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Check audio output and decoder readiness, then exit.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    if args.doctor:
        report = run_doctor(normalize_output_backend(args.output))
        print(render_report(report))
        return report.exit_code
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        logger.info("Starting wavescope TUI")
        # Imported late so --doctor and --help never pay for Textual startup.
        from .app import LaunchOverrides, WaveScopeApp

        overrides = LaunchOverrides(
            output_backend=args.output,
            visualizer_fps=args.fps,
            fft_size=args.fft_size,
            smoothing=args.smoothing,
            autoplay=args.autoplay,
        )
        initial_path = Path(args.path).expanduser() if args.path else None
        WaveScopeApp(initial_path=initial_path, overrides=overrides).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify audio output/settings/log paths and re-run "
            "with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
