"""
CLI Interface for the Face Metrics Tool

Replays recorded detector output through the metrics pipeline and prints
per-frame status and metrics, and writes sample configuration files.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional, TextIO

from .. import __version__
from ..extractor import select_primary
from ..pipeline import FramePipeline, FrameResult
from ..report import format_metrics_report, status_message
from ..types import RawDetection
from ..utils.logging_config import get_logger, level_from_name, setup_cli_logging
from .config import AppConfig, create_sample_config, get_preset_config, load_config, PRESETS


def parse_detection_entry(entry: Any) -> Optional[RawDetection]:
    """
    Convert one recorded frame into the detection to process.

    Args:
        entry: ``null`` (no face), a detection object, or a list of
            detection objects from which the primary face is selected

    Returns:
        RawDetection or None

    Raises:
        ValueError: If the entry is malformed
    """
    if entry is None:
        return None
    if isinstance(entry, list):
        return select_primary([RawDetection.from_dict(item) for item in entry])
    if isinstance(entry, dict):
        return RawDetection.from_dict(entry)
    raise ValueError(f"Unsupported frame entry: {entry!r}")


def load_detections(path: str) -> List[Optional[RawDetection]]:
    """
    Load recorded detections from a JSON array or JSON-lines file.

    Raises:
        ValueError: If the file cannot be parsed
        FileNotFoundError: If the file doesn't exist
    """
    input_file = Path(path)
    if not input_file.exists():
        raise FileNotFoundError(f"Detections file not found: {path}")

    text = input_file.read_text(encoding='utf-8')
    try:
        if text.lstrip().startswith('['):
            entries = json.loads(text)
        else:
            entries = [
                json.loads(line)
                for line in text.splitlines()
                if line.strip()
            ]
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid detections file: {e}") from e

    detections = []
    for index, entry in enumerate(entries):
        try:
            detections.append(parse_detection_entry(entry))
        except ValueError as e:
            raise ValueError(f"Frame {index}: {e}") from e
    return detections


def format_result_line(result: FrameResult) -> str:
    """One-line text summary of a processed frame."""
    line = f"{result.frame_index:5d}  {result.status.value:<10}"
    if result.metrics.is_face:
        smoothed = result.smoothed
        range_text = f"{result.range_estimate:.1f}" if result.range_estimate is not None else "-"
        line += (f"  quality={smoothed.quality_score:.2f}"
                 f"  range={range_text}"
                 f"  pos=({smoothed.face_position.x:+.3f},{smoothed.face_position.y:+.3f})"
                 f"  ypr=({smoothed.yaw:.1f},{smoothed.pitch:.1f},{smoothed.roll:.1f})")
    return line


class CLIApp:
    """
    Main CLI application class for face metrics.

    Handles argument parsing, configuration and drives the frame pipeline
    over recorded detections.
    """

    def __init__(self, stdout: Optional[TextIO] = None):
        """Initialize CLI application."""
        self.config = AppConfig()
        self.logger = get_logger(__name__)
        self.stdout = stdout or sys.stdout
        self.pipeline: Optional[FramePipeline] = None

    def setup_logging(self, verbose: bool = False, quiet: bool = False) -> None:
        """
        Setup logging configuration.

        Args:
            verbose: Enable verbose logging
            quiet: Enable quiet mode (errors only)
        """
        setup_cli_logging(
            verbose=verbose,
            quiet=quiet,
            log_file=self.config.log_file,
            default_level=level_from_name(self.config.log_level),
        )

    def create_argument_parser(self) -> argparse.ArgumentParser:
        """
        Create and configure argument parser.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog='face-metrics',
            description='Face Metrics Tool - per-frame face metrics from detector output',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog='''
Examples:
  %(prog)s replay detections.json
  %(prog)s replay detections.jsonl --preset strict --format json
  %(prog)s replay detections.json --rotation 90 --mirrored --detailed
  %(prog)s sample-config face_metrics.yaml
            '''
        )
        parser.add_argument(
            '--version',
            action='version',
            version=f'%(prog)s {__version__}'
        )

        subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
        subparsers.required = True

        replay = subparsers.add_parser(
            'replay',
            help='Run recorded detections through the metrics pipeline'
        )
        replay.add_argument(
            'detections',
            type=str,
            metavar='DETECTIONS',
            help='JSON array or JSON-lines file of detections (null = no face)'
        )

        config = replay.add_argument_group('configuration')
        config.add_argument(
            '--config',
            type=str,
            metavar='FILE',
            help='Configuration file path (.yaml, .yml or .json)'
        )
        config.add_argument(
            '--preset',
            choices=sorted(PRESETS.keys()),
            help='Configuration preset'
        )
        config.add_argument(
            '--rotation',
            type=int,
            metavar='DEGREES',
            help='Sensor rotation, a multiple of 90 (default: from config)'
        )
        config.add_argument(
            '--mirrored',
            action='store_true',
            default=None,
            help='Mirror the overlay (front camera)'
        )
        config.add_argument(
            '--window-size',
            type=int,
            metavar='FRAMES',
            help='Smoothing window size (default: from config)'
        )

        output = replay.add_argument_group('output options')
        output.add_argument(
            '--format',
            choices=['text', 'json'],
            default='text',
            help='Per-frame output format (default: text)'
        )
        output.add_argument(
            '--detailed',
            action='store_true',
            help='Print a full metrics report per frame (text format only)'
        )
        output.add_argument(
            '--verbose', '-v',
            action='store_true',
            help='Enable verbose output'
        )
        output.add_argument(
            '--quiet', '-q',
            action='store_true',
            help='Only log errors'
        )

        sample = subparsers.add_parser(
            'sample-config',
            help='Write a sample configuration file'
        )
        sample.add_argument(
            'path',
            type=str,
            metavar='PATH',
            help='Output path (.yaml/.yml for YAML, anything else for JSON)'
        )

        return parser

    def validate_arguments(self, args: argparse.Namespace) -> None:
        """
        Validate command line arguments.

        Raises:
            ValueError: If validation fails
        """
        if args.verbose and args.quiet:
            raise ValueError("Cannot use --verbose and --quiet together")
        if args.config and args.preset:
            raise ValueError("Cannot use --config and --preset together")
        if args.window_size is not None and args.window_size < 1:
            raise ValueError("Window size must be at least 1")
        if args.rotation is not None and args.rotation % 90 != 0:
            raise ValueError(f"Rotation must be a multiple of 90 degrees (got {args.rotation})")

    def load_configuration(self, args: argparse.Namespace) -> None:
        """
        Resolve the effective configuration from file, preset and overrides.

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        if args.config:
            self.config = load_config(args.config)
        elif args.preset:
            self.config = get_preset_config(args.preset)

        if args.rotation is not None:
            self.config.rotation_degrees = args.rotation
        if args.mirrored:
            self.config.mirrored = True
        if args.window_size is not None:
            self.config.window_size = args.window_size

        self.config.validate()

    def run_replay(self, args: argparse.Namespace) -> int:
        """
        Replay recorded detections through a fresh pipeline.

        Returns:
            Exit code
        """
        detections = load_detections(args.detections)
        self.logger.info(f"Loaded {len(detections)} frames from: {args.detections}")

        self.pipeline = FramePipeline(
            settings=self.config.to_pipeline_settings(),
            mirrored=self.config.mirrored,
            rotation_degrees=self.config.rotation_degrees,
        )

        for detection in detections:
            result = self.pipeline.process(detection)
            if result is None:
                continue
            self.write_result(result, args)

        stats = self.pipeline.stats
        self.logger.info(
            f"Processed {stats.processed_frames} frames "
            f"({stats.face_frames} with a face, {stats.dropped_frames} dropped), "
            f"average {stats.average_processing_time * 1000:.2f} ms/frame"
        )
        return 0

    def write_result(self, result: FrameResult, args: argparse.Namespace) -> None:
        if args.format == 'json':
            print(json.dumps(result.to_dict()), file=self.stdout)
        elif args.detailed:
            print(f"Frame {result.frame_index}", file=self.stdout)
            print(format_metrics_report(result.smoothed, result.status), file=self.stdout)
        else:
            print(f"{format_result_line(result)}  # {status_message(result.status)}",
                  file=self.stdout)

    def run(self, argv: Optional[list] = None) -> int:
        """
        Main entry point for CLI application.

        Args:
            argv: Command line arguments (default: sys.argv)

        Returns:
            Exit code (0 for success, 1 for error, 130 if interrupted)
        """
        parser = self.create_argument_parser()
        args = parser.parse_args(argv)
        quiet = getattr(args, 'quiet', False)

        try:
            if args.command == 'sample-config':
                self.setup_logging()
                create_sample_config(args.path)
                return 0

            self.validate_arguments(args)
            self.load_configuration(args)
            self.setup_logging(args.verbose, args.quiet)
            return self.run_replay(args)

        except (ValueError, FileNotFoundError) as e:
            if not quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            if not quiet:
                print("\nOperation cancelled by user", file=sys.stderr)
            return 130
        except Exception as e:
            self.logger.exception(f"Unexpected error: {e}")
            return 1


def main() -> int:
    """Main entry point for command line interface."""
    app = CLIApp()
    return app.run()


if __name__ == '__main__':
    sys.exit(main())
