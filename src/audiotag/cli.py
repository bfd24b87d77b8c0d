"""audiotag CLI - print audio file metadata from the command line."""
import sys
import json
import argparse
import logging
from typing import Any, Dict, List, Optional

from .core import SUPPORTED_EXT, AudiotagError, managed_tag
from .utils import (
    Config,
    setup_logging,
    join_for_printing,
    EXIT_CODE_SUCCESS,
    EXIT_CODE_ERROR,
    EXIT_CODE_USAGE,
    EXIT_CODE_NO_FILES,
    EXIT_CODE_INTERRUPTED
)

logger = logging.getLogger(__name__)

# (display name, attribute) in print order
DISPLAY_FIELDS = [
    ('Title', 'title'),
    ('Artist', 'artist'),
    ('Album', 'album'),
    ('AlbumArtist', 'albumartist'),
    ('Composer', 'composer'),
    ('Genre', 'genre'),
    ('Year', 'year'),
    ('Comments', 'comments'),
    ('Track', 'track'),
    ('TotalTracks', 'track_total'),
    ('Disc', 'disc'),
    ('TotalDiscs', 'disc_total'),
    ('Images', 'images'),
    ('Duration', 'duration'),
    ('Bitrate', 'bitrate'),
    ('SampleRate', 'sample_rate'),
    ('FileSize', 'file_size'),
]

UNITS = {'duration': 's', 'bitrate': 'kbps', 'sample_rate': 'Hz', 'file_size': 'bytes'}

def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="audiotag",
        description="audiotag - read audio metadata from binary header blocks"
    )
    parser.add_argument("paths", nargs='*', help="Audio files to read")
    parser.add_argument("--json", action='store_true', help="Print metadata as JSON")
    parser.add_argument("--no-images", action='store_true',
                        help="Do not load embedded pictures (overrides AUDIOTAG_LOAD_IMAGES)")
    parser.add_argument("--verbose", action='store_true', default=None,
                        help="Enable verbose logging (overrides AUDIOTAG_VERBOSE env var)")
    return parser

def format_value(attr: str, value: Any) -> str:
    """Format one attribute value for display."""
    if isinstance(value, list):
        return join_for_printing([str(v) for v in value])
    if value is None:
        return '(unknown)'
    unit = UNITS.get(attr)
    return f"{value} {unit}" if unit else str(value)

def print_metadata(name: str, metadata: Dict[str, Any]) -> None:
    """Print metadata of one file in a consistent format."""
    print(f"=== {name} ===")
    for display_name, attr in DISPLAY_FIELDS:
        print(f"    {display_name}: {format_value(attr, metadata.get(attr))}")

def read_file(path: str) -> Dict[str, Any]:
    """Read one file and return its metadata dict."""
    with managed_tag(path) as tag:
        return tag.to_dict()

def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Configuration precedence: CLI flag > environment variable > default
    try:
        Config.load_from_env()
        if args.no_images:
            Config.LOAD_IMAGES = False
        Config.validate()
    except ValueError as e:
        print(f"Error: Configuration validation failed: {e}", file=sys.stderr)
        return EXIT_CODE_USAGE

    if args.verbose is None:
        args.verbose = Config.DEFAULT_VERBOSE
    # stdout carries the JSON document, so log lines must not go there
    setup_logging(args.verbose, stream=sys.stderr if args.json else None)

    if not args.paths:
        print(f"No files given. Supported formats: {', '.join(sorted(SUPPORTED_EXT))}",
              file=sys.stderr)
        return EXIT_CODE_NO_FILES

    results = {}
    failed = 0
    try:
        for path in args.paths:
            try:
                results[path] = read_file(path)
            except (AudiotagError, OSError) as e:
                failed += 1
                print(f"Error: {path}: {e}", file=sys.stderr)
                continue
            if not args.json:
                print_metadata(path, results[path])
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
        return EXIT_CODE_INTERRUPTED

    if args.json:
        print(json.dumps(results, ensure_ascii=False, indent=2))

    if failed:
        logger.error(f"{failed} of {len(args.paths)} file(s) could not be read")
        return EXIT_CODE_ERROR
    return EXIT_CODE_SUCCESS


if __name__ == '__main__':
    sys.exit(main())
