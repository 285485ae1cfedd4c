"""Print the metadata read from a media file."""

from __future__ import annotations

import sys

from .assets import Metadata
from .exif import metadata_from_direct_read


def run(path: str) -> Metadata:
    """Read the metadata of the file at `path`, print it to stderr and return it."""
    with open(path, "rb") as f:
        md = metadata_from_direct_read(f, path, None)
    print(f"INFO Metadata m={md.log_value()}", file=sys.stderr)
    return md


def main(argv: list[str] | None = None) -> int:
    """Entry point: expects exactly one file name."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: reader <file>")
        return 0
    try:
        run(args[0])
    except (OSError, ValueError) as exc:
        print(exc)
    return 0