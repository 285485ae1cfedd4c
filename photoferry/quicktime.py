"""Decoding of the movie header (mvhd) atom of QuickTime and MP4 files."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import IO, Union

from .search import SliceReader

# Seconds from 1904-01-01, the QuickTime epoch, to 1970-01-01.
EPOCH_OFFSET = 2082844800
_EPOCH_1904 = datetime(1904, 1, 1, tzinfo=timezone.utc)


@dataclass
class MvhdAtom:
    """The fields of an mvhd atom this package uses."""

    marker: bytes
    version: int
    flags: bytes
    creation_time: datetime
    modification_time: datetime


def decode_mvhd_atom(stream: Union[IO[bytes], SliceReader]) -> MvhdAtom:
    """Decode an mvhd atom starting at its 'mvhd' marker; raises EOFError when truncated."""
    reader = stream if isinstance(stream, SliceReader) else SliceReader(stream)
    marker = reader.read_slice(4)
    version = reader.read_byte()
    flags = reader.read_slice(3)
    if version == 0:
        modification = convert_time32(struct.unpack(">I", reader.read_slice(4))[0])
        creation = convert_time32(struct.unpack(">I", reader.read_slice(4))[0])
    else:
        modification = convert_time64(struct.unpack(">Q", reader.read_slice(8))[0])
        creation = convert_time64(struct.unpack(">Q", reader.read_slice(8))[0])
    return MvhdAtom(
        marker=marker,
        version=version,
        flags=flags,
        creation_time=creation,
        modification_time=modification,
    )


def convert_time32(timestamp: int) -> datetime:
    """Convert a 32-bit count of seconds since 1904 to a UTC datetime."""
    return _EPOCH_1904 + timedelta(seconds=timestamp)


def convert_time64(timestamp: int) -> datetime:
    """Convert a 64-bit time stamp, whose upper 32 bits count seconds since 1904."""
    return _EPOCH_1904 + timedelta(seconds=timestamp >> 32)