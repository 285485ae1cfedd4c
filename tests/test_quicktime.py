import io
import struct
from datetime import datetime, timezone

import pytest

from photoferry.quicktime import (
    EPOCH_OFFSET,
    MvhdAtom,
    convert_time32,
    convert_time64,
    decode_mvhd_atom,
)
from photoferry.search import SliceReader

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_convert_time32_unix_epoch():
    assert convert_time32(2082844800) == UNIX_EPOCH


def test_convert_time32_known_date():
    assert convert_time32(EPOCH_OFFSET + 1658697056) == datetime(
        2022, 7, 24, 21, 10, 56, tzinfo=timezone.utc
    )


def test_convert_time64_uses_upper_bits():
    assert convert_time64(EPOCH_OFFSET << 32) == UNIX_EPOCH
    value = (EPOCH_OFFSET + 1658697056) << 32
    assert convert_time64(value | 0xFFFF) == convert_time64(value)
    assert convert_time64(value) == convert_time32(EPOCH_OFFSET + 1658697056)


def test_decode_version0():
    data = b"mvhd" + b"\x00" + b"\x00\x00\x01" + struct.pack(">II", 100, 200) + b"extra"
    atom = decode_mvhd_atom(io.BytesIO(data))
    assert isinstance(atom, MvhdAtom)
    assert atom.marker == b"mvhd"
    assert atom.version == 0
    assert atom.flags == b"\x00\x00\x01"
    assert atom.modification_time == convert_time32(100)
    assert atom.creation_time == convert_time32(200)


def test_decode_version1():
    first = (EPOCH_OFFSET + 10) << 32
    second = (EPOCH_OFFSET + 20) << 32
    data = b"mvhd" + b"\x01" + b"\x00\x00\x00" + struct.pack(">QQ", first, second)
    atom = decode_mvhd_atom(SliceReader(io.BytesIO(data)))
    assert atom.version == 1
    assert atom.modification_time == convert_time64(first)
    assert atom.creation_time == convert_time64(second)
    assert atom.creation_time > atom.modification_time


def test_decode_truncated():
    with pytest.raises(EOFError):
        decode_mvhd_atom(io.BytesIO(b"mvhd\x00\x00\x00\x00\x00\x00"))