"""Main CLI entry point for tagwire."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .. import __version__
from ..exceptions import TagwireError
from .analyze import analyze_file
from .dump import dump_bytes, read_payload


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the tagwire CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        prog="tagwire",
        description="tagwire: schema-driven protocol-buffer wire codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tagwire --analyze messages.py          Show field layout of message schema
  tagwire --dump payload.bin             List fields of an encoded payload
  tagwire --dump payload.txt --hex       Same, reading hex text
  tagwire --version                      Show version
        """,
    )

    parser.add_argument(
        "--analyze",
        metavar="FILE",
        type=str,
        help="Analyze message schema and show field tags, types and keys",
    )

    parser.add_argument(
        "--dump",
        metavar="FILE",
        type=str,
        help="List tag, wire type and value of each field in an encoded payload",
    )

    parser.add_argument(
        "--hex",
        action="store_true",
        help="Read the --dump input as hex text instead of raw bytes",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=2,
        help="How deep --dump descends into nested payloads (default: 2)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"tagwire {__version__}",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    # Handle --analyze
    if args.analyze:
        file_path = Path(args.analyze)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        try:
            analyze_file(file_path)
            return 0
        except Exception as e:
            print(f"Error analyzing file: {e}", file=sys.stderr)
            return 1

    # Handle --dump
    if args.dump:
        file_path = Path(args.dump)
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            return 1

        try:
            data = read_payload(file_path.read_bytes(), args.hex)
            for line in dump_bytes(data, max_depth=args.max_depth):
                print(line)
            return 0
        except (TagwireError, ValueError) as e:
            print(f"Error dumping file: {e}", file=sys.stderr)
            return 1

    # If no command specified, show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
