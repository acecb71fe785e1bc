"""Command-line entry point for CIFF/CAFF to JPEG conversion."""

import argparse
import sys
from pathlib import Path

from caffconverter.core import ConversionMode
from caffconverter.main import configure_logging, run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="caff2jpg",
        description="Convert a CIFF image or the first frame of a CAFF animation into a JPEG.",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "-ciff",
        dest="mode",
        action="store_const",
        const=ConversionMode.CIFF,
        help="Treat the input as a standalone .ciff image",
    )
    mode.add_argument(
        "-caff",
        dest="mode",
        action="store_const",
        const=ConversionMode.CAFF,
        help="Treat the input as a .caff animation container",
    )
    parser.add_argument("input", type=Path, help="Path to the .ciff or .caff file")
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Write the JPEG here instead of next to the input",
    )
    parser.add_argument(
        "--quality",
        type=int,
        help="JPEG quality between 1 and 95 (default: 90 or CAFF_JPEG_QUALITY)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log decoded header fields and tags",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    return run(args.input, args.mode, jpeg_quality=args.quality, output_dir=args.output_dir)


if __name__ == "__main__":
    sys.exit(main())
