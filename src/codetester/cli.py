"""
codetester CLI entry point.

Usage
-----
    codetester markers A.scala B.sc     # list the markers of fixture files
    codetester --version
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='codetester',
        description='Marker-driven test harness for language servers.',
    )
    p.add_argument(
        '--version',
        action='store_true',
        default=False,
        help='Print the codetester version and exit',
    )
    p.add_argument(
        '--log-level',
        metavar='LEVEL',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level written to stderr (default: from config, else WARNING)',
    )
    p.add_argument(
        '--root',
        metavar='DIR',
        default=None,
        help='Directory holding .codetester.toml (default: current directory)',
    )
    sub = p.add_subparsers(dest='command')
    markers = sub.add_parser(
        'markers',
        help='List the markers of fixture files and check their names are unique',
    )
    markers.add_argument('files', nargs='+', metavar='FILE', help='Annotated fixture file')
    return p


def _markers(files: list[str], config) -> int:
    from codetester.fixture import code, worksheet
    from codetester.positions import DuplicateMarkerError, VirtualFile, build_position_context

    vfiles = []
    for name in files:
        path = Path(name)
        try:
            raw = path.read_text(encoding='utf-8')
        except OSError as e:
            print(f'codetester: cannot read {name}: {e.strerror or e}', file=sys.stderr)
            return 1
        fixture = worksheet(raw) if path.suffix == config.worksheet_suffix else code(raw)
        vfiles.append(VirtualFile(name=path.name, uri=path.resolve().as_uri(), fixture=fixture))

    try:
        positions = build_position_context(vfiles)
    except DuplicateMarkerError as e:
        print(f'codetester: {e}', file=sys.stderr)
        return 1
    for marker in positions:
        print(f'{marker.name}\t{positions[marker]}')
    return 0


def codetester() -> None:
    """Entry point for the ``codetester`` command."""
    import logging
    from codetester import __version__
    from codetester.config import ConfigError, load_config

    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f'codetester {__version__}')
        sys.exit(0)

    try:
        config = load_config(args.root)
    except ConfigError as e:
        parser.error(str(e))
    logging.basicConfig(
        level=getattr(logging, args.log_level or config.log_level),
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if args.command == 'markers':
        sys.exit(_markers(args.files, config))
    parser.print_help()
    sys.exit(2)


if __name__ == '__main__':
    codetester()
