"""Read the capture date and location embedded in media files."""

from __future__ import annotations

import re
import struct
from datetime import datetime, tzinfo
from typing import IO, Any, Union

from .assets import Metadata
from .quicktime import decode_mvhd_atom
from .search import SEARCH_BUFFER_SIZE, SliceReader, search_pattern

_Readable = Union[IO[bytes], SliceReader]

_EXIF_HEADER = b"Exif\x00\x00"

# TIFF tags
_TAG_DATE_TIME = 0x0132
_TAG_EXIF_IFD = 0x8769
_TAG_GPS_IFD = 0x8825
_TAG_DATE_TIME_ORIGINAL = 0x9003
_TAG_SUB_SEC_TIME = 0x9290
_TAG_SUB_SEC_TIME_ORIGINAL = 0x9291
_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4

_TYPE_SIZES = {1: 1, 2: 1, 3: 2, 4: 4, 5: 8, 6: 1, 7: 1, 8: 2, 9: 4, 10: 8, 11: 4, 12: 8, 13: 4}


class _ExifError(ValueError):
    """EXIF data missing or unreadable."""


def _read_exact(stream: Any, n: int) -> bytes:
    out = bytearray()
    while len(out) < n:
        chunk = stream.read(n - len(out))
        if not chunk:
            break
        out += chunk
    return bytes(out)


class _Recorder:
    """Wraps a stream and keeps a copy of every byte read through it."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self.consumed = bytearray()

    def read(self, size: int | None = -1) -> bytes:
        data = self._stream.read(size) if size is not None and size >= 0 else self._stream.read()
        data = data or b""
        self.consumed += data
        return data


class _Exif:
    """Tags of a decoded TIFF structure: main (IFD0 + Exif IFD) and GPS."""

    def __init__(
        self,
        order: str,
        main: dict[int, tuple[int, int, bytes]],
        gps: dict[int, tuple[int, int, bytes]],
    ) -> None:
        self._order = order
        self._main = main
        self._gps = gps

    @staticmethod
    def _string_of(entry: tuple[int, int, bytes] | None, tag: int) -> str:
        if entry is None:
            raise _ExifError(f"tag {tag:#06x} not present")
        typ, _count, raw = entry
        if typ not in (1, 2, 7):
            raise _ExifError(f"tag {tag:#06x} is not text")
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace").strip('"')

    def string(self, tag: int) -> str:
        return self._string_of(self._main.get(tag), tag)

    def _gps_string(self, tag: int) -> str:
        return self._string_of(self._gps.get(tag), tag)

    def _degrees(self, tag: int) -> float:
        entry = self._gps.get(tag)
        if entry is None:
            raise _ExifError(f"GPS tag {tag} not present")
        typ, count, raw = entry
        if typ not in (5, 10) or count != 3:
            raise _ExifError(f"GPS tag {tag} is not three rationals")
        fmt = self._order + ("II" if typ == 5 else "ii")
        values = []
        for num, den in struct.iter_unpack(fmt, raw):
            if den == 0:
                raise _ExifError(f"GPS tag {tag}: zero denominator")
            values.append(num / den)
        deg, minutes, seconds = values
        return deg + minutes / 60 + seconds / 3600

    def lat_long(self) -> tuple[float, float]:
        lon = self._degrees(_GPS_LONGITUDE)
        lat = self._degrees(_GPS_LATITUDE)
        if self._gps_string(_GPS_LONGITUDE_REF) == "W":
            lon = -lon
        if self._gps_string(_GPS_LATITUDE_REF) == "S":
            lat = -lat
        return lat, lon


def _read_ifd(data: bytes, offset: int, order: str) -> dict[int, tuple[int, int, bytes]]:
    if offset < 0 or offset + 2 > len(data):
        raise _ExifError("IFD offset out of range")
    (count,) = struct.unpack_from(order + "H", data, offset)
    entries: dict[int, tuple[int, int, bytes]] = {}
    for i in range(count):
        pos = offset + 2 + 12 * i
        if pos + 12 > len(data):
            raise _ExifError("truncated IFD")
        tag, typ, n = struct.unpack_from(order + "HHI", data, pos)
        size = _TYPE_SIZES.get(typ)
        if size is None:
            continue
        nbytes = size * n
        if nbytes <= 4:
            raw = data[pos + 8 : pos + 8 + nbytes]
        else:
            (value_offset,) = struct.unpack_from(order + "I", data, pos + 8)
            if value_offset + nbytes > len(data):
                continue
            raw = data[value_offset : value_offset + nbytes]
        entries[tag] = (typ, n, raw)
    return entries


def _sub_ifd(
    data: bytes, entries: dict[int, tuple[int, int, bytes]], tag: int, order: str
) -> dict[int, tuple[int, int, bytes]]:
    entry = entries.get(tag)
    if entry is None or len(entry[2]) < 4:
        return {}
    (offset,) = struct.unpack(order + "I", entry[2][:4])
    try:
        return _read_ifd(data, offset, order)
    except (_ExifError, struct.error):
        return {}


def _parse_tiff(data: bytes) -> _Exif:
    if len(data) < 8:
        raise _ExifError("truncated TIFF header")
    if data[:2] == b"II":
        order = "<"
    elif data[:2] == b"MM":
        order = ">"
    else:
        raise _ExifError("invalid TIFF byte order")
    magic, offset = struct.unpack_from(order + "HI", data, 2)
    if magic != 42:
        raise _ExifError("invalid TIFF magic number")
    try:
        ifd0 = _read_ifd(data, offset, order)
    except struct.error as exc:
        raise _ExifError(f"invalid IFD0: {exc}") from exc
    main = dict(ifd0)
    main.update(_sub_ifd(data, ifd0, _TAG_EXIF_IFD, order))
    gps = _sub_ifd(data, ifd0, _TAG_GPS_IFD, order)
    return _Exif(order, main, gps)


def _decode(stream: Any) -> _Exif:
    """Decode EXIF data from a JPEG, a TIFF or a raw 'Exif' block."""
    head = _read_exact(stream, 2)
    if head == b"\xff\xd8":
        return _decode_jpeg(stream)
    head += _read_exact(stream, 6)
    if head.startswith(_EXIF_HEADER):
        return _parse_tiff(head[6:] + (stream.read() or b""))
    if head[:4] in (b"II*\x00", b"MM\x00*"):
        return _parse_tiff(head + (stream.read() or b""))
    raise _ExifError("no EXIF data found")


def _decode_jpeg(stream: Any) -> _Exif:
    while True:
        byte = _read_exact(stream, 1)
        if not byte:
            raise _ExifError("no EXIF segment in JPEG")
        if byte != b"\xff":
            raise _ExifError("invalid JPEG marker")
        marker = _read_exact(stream, 1)
        while marker == b"\xff":
            marker = _read_exact(stream, 1)
        if not marker:
            raise _ExifError("truncated JPEG")
        code = marker[0]
        if code == 0x01 or 0xD0 <= code <= 0xD8:
            continue
        if code in (0xD9, 0xDA):
            raise _ExifError("no EXIF segment in JPEG")
        length_bytes = _read_exact(stream, 2)
        if len(length_bytes) < 2:
            raise _ExifError("truncated JPEG")
        (length,) = struct.unpack(">H", length_bytes)
        if length < 2:
            raise _ExifError("invalid JPEG segment length")
        payload = _read_exact(stream, length - 2)
        if len(payload) < length - 2:
            raise _ExifError("truncated JPEG segment")
        if code == 0xE1 and payload.startswith(_EXIF_HEADER):
            return _parse_tiff(payload[6:])


_DATE = re.compile(r"(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})")
_DATE_MS = re.compile(r"(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})\.(\d{3})")


def _parse_exif_date(text: str, with_ms: bool, tz: tzinfo | None) -> datetime:
    match = (_DATE_MS if with_ms else _DATE).fullmatch(text)
    if match is None:
        raise _ExifError(f"cannot parse date {text!r}")
    parts = [int(p) for p in match.groups()]
    ms = parts[6] if with_ms else 0
    try:
        if tz is None:
            return datetime(*parts[:6], ms * 1000).astimezone()
        return datetime(*parts[:6], ms * 1000, tzinfo=tz)
    except (ValueError, OverflowError) as exc:
        raise _ExifError(f"cannot parse date {text!r}: {exc}") from exc


def _read_date_time(x: _Exif, date_tag: int, sub_sec_tag: int, tz: tzinfo | None) -> datetime:
    date = x.string(date_tag)
    try:
        sub_sec = x.string(sub_sec_tag)
    except _ExifError:
        return _parse_exif_date(date, False, tz)
    return _parse_exif_date(date + "." + (sub_sec + "000")[:3], True, tz)


def _get_exif_metadata(x: _Exif, tz: tzinfo | None) -> Metadata:
    try:
        taken = _read_date_time(x, _TAG_DATE_TIME_ORIGINAL, _TAG_SUB_SEC_TIME_ORIGINAL, tz)
    except _ExifError:
        taken = _read_date_time(x, _TAG_DATE_TIME, _TAG_SUB_SEC_TIME, tz)
    md = Metadata(date_taken=taken)
    try:
        md.latitude, md.longitude = x.lat_long()
    except _ExifError:
        pass
    return md


def _read_exif_metadata(stream: _Readable, tz: tzinfo | None) -> Metadata:
    recorder = _Recorder(stream)
    try:
        x = _decode(recorder)
    except _ExifError:
        rest = SliceReader(stream, prefix=bytes(recorder.consumed))
        reader = search_pattern(rest, _EXIF_HEADER, SEARCH_BUFFER_SIZE)
        x = _decode(reader)
    return _get_exif_metadata(x, tz)


def _read_heif_metadata(stream: _Readable, tz: tzinfo | None) -> Metadata:
    reader = search_pattern(stream, _EXIF_HEADER + b"MM", SEARCH_BUFFER_SIZE)
    reader.read_slice(6)
    return _get_exif_metadata(_decode(reader), tz)


def _read_mp4_metadata(stream: _Readable) -> Metadata:
    reader = search_pattern(stream, b"mvhd", SEARCH_BUFFER_SIZE)
    atom = decode_mvhd_atom(reader)
    taken: datetime | None = atom.creation_time
    if taken.year < 2000:
        taken = atom.modification_time
    if taken.year < 2000:
        taken = None
    return Metadata(date_taken=taken)


def _read_cr3_metadata(stream: _Readable, tz: tzinfo | None) -> Metadata:
    reader = search_pattern(stream, b"CMT1", SEARCH_BUFFER_SIZE)
    reader.read_slice(4)
    return _get_exif_metadata(_decode(reader), tz)


def _ext(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    i = base.rfind(".")
    return base[i:] if i >= 0 else ""


def metadata_from_direct_read(
    stream: _Readable, name: str, local_tz: tzinfo | None = None
) -> Metadata:
    """Read the capture date (and GPS position when present) from a media stream.

    The format is chosen from the extension of `name`. Dates without a zone are
    taken in `local_tz`, or in the local zone when it is None. Raises ValueError
    when the format is not supported or the data cannot be read.
    """
    ext = _ext(name).lower()
    try:
        if ext in (".heic", ".heif"):
            return _read_heif_metadata(stream, local_tz)
        if ext in (".jpg", ".jpeg", ".dng", ".cr2", ".arw", ".raf", ".nef"):
            return _read_exif_metadata(stream, local_tz)
        if ext in (".mp4", ".mov"):
            return _read_mp4_metadata(stream)
        if ext == ".cr3":
            return _read_cr3_metadata(stream, local_tz)
    except (ValueError, EOFError, struct.error) as exc:
        raise ValueError(f"can't read metadata: {exc}") from exc
    raise ValueError(f"can't read metadata for this format '{ext}'")


def get_metadata(stream: _Readable, name: str, local_tz: tzinfo | None = None) -> Metadata:
    """Read the metadata embedded in an asset file."""
    return metadata_from_direct_read(stream, name, local_tz)