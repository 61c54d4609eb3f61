"""Main module for the webp-derivatives CLI."""

import sys
import json
import argparse
from typing import Any, Dict, List, Optional

from . import __version__
from .core import ChangeRecord, ConfigurationError, DerivativeConfig, get_logger
from .core.factories import ProcessingPipelineFactory


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="webp-derivatives",
        description="Generate multi-resolution WebP derivatives for images stored in S3",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate derivatives for one object
  webp-derivatives process --bucket my-bucket --key photos/cat.jpg

  # Replay a saved S3 notification event
  webp-derivatives process --event event.json --concurrency 4

  # Show version
  webp-derivatives version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Generate derivatives for S3 objects"
    )
    process_parser.add_argument("--bucket", help="Source S3 bucket")
    process_parser.add_argument(
        "--key",
        action="append",
        default=[],
        help="Source S3 key (repeatable, already decoded)",
    )
    process_parser.add_argument(
        "--event", help="Path to an S3 notification event JSON file"
    )
    process_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Records processed in parallel (default: DERIVATIVE_CONCURRENCY or 1)",
    )
    process_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")
    return parser


def load_event(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the command-line interface.

    Returns 0 once a batch has been processed, whatever the per-record
    outcomes, matching the Lambda handler's fixed completion result.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print("webp-derivatives")
        print(f"Version {__version__}")
        return 0

    if args.command != "process":
        parser.print_help()
        return 1

    if bool(args.event) == bool(args.bucket and args.key):
        parser.error("provide either --event or --bucket with at least one --key")

    logger = get_logger("cli")
    overrides: Dict[str, Any] = {"debug": args.debug}
    if args.concurrency is not None:
        overrides["concurrency"] = args.concurrency
    try:
        config = DerivativeConfig.from_env(**overrides)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    processor = ProcessingPipelineFactory.create_processor(config=config)

    if args.event:
        report = processor.process_event(load_event(args.event))
    else:
        records = [ChangeRecord(source_bucket=args.bucket, source_key=key) for key in args.key]
        report = processor.process(records)

    print(json.dumps(report.summary(), indent=2))
    for outcome in report.outcomes:
        if outcome.status == "failed":
            print(f"FAILED {outcome.source_key}: {outcome.error_type}: {outcome.error}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
