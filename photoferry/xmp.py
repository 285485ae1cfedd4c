"""Values and metadata read from XMP sidecar files."""

from __future__ import annotations

import math
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone, tzinfo
from typing import IO, Any, Union

from .assets import Metadata, Tag, _path_base

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def bool_to_string(value: bool) -> str:
    return "True" if value else "False"


def string_to_bool(value: str) -> bool:
    return value.lower() == "true"


def gps_float_to_string(coordinate: float, is_latitude: bool) -> str:
    """Format a coordinate as 'DDD,MM.mmmmmk', for instance '48,24.50256N'."""
    negative = coordinate < 0
    if negative:
        coordinate = -coordinate
    degrees = int(math.floor(coordinate))
    minutes = (coordinate - degrees) * 60
    if negative:
        direction = "S" if is_latitude else "W"
    else:
        direction = "N" if is_latitude else "E"
    return f"{degrees},{minutes:08.5f}{direction}"


_GPS = re.compile(r"\s*([+-]?\d+),\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def gps_string_to_float(coordinate: str) -> float:
    """Parse 'DDD,MM.mmk' into signed decimal degrees; raises ValueError when malformed."""
    direction = ""
    if coordinate:
        direction = coordinate[-1]
        coordinate = coordinate[:-1]
    match = _GPS.match(coordinate)
    if match is None:
        raise ValueError(f"invalid GPS coordinate: {coordinate!r}")
    decimal = int(match.group(1)) + float(match.group(2)) / 60
    if direction in ("S", "W"):
        decimal = -decimal
    return decimal


def int_to_string(value: int) -> str:
    return str(value)


_INTEGER = re.compile(r"[+-]?\d+")


def string_to_int(value: str) -> int:
    """Parse a decimal integer; 0 when the text is not one, clamped to 64 bits."""
    if not _INTEGER.fullmatch(value):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(value)))


def string_to_byte(value: str) -> int:
    """Parse an integer in 0..255; anything else gives 0."""
    i = string_to_int(value)
    if i < 0 or i > 255:
        return 0
    return i


_XMP_TIME = re.compile(r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z")


def time_string_to_time(value: str, tz: tzinfo | None = timezone.utc) -> datetime:
    """Parse 'YYYY-MM-DDThh:mm:ssZ', taking the time in `tz`."""
    match = _XMP_TIME.fullmatch(value)
    if match is None:
        raise ValueError(f"cannot parse XMP time {value!r}")
    parts = [int(p) for p in match.groups()]
    return datetime(*parts, tzinfo=tz if tz is not None else timezone.utc)


def time_to_string(value: datetime) -> str:
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}Z"
    )


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def _element_value(element: ET.Element) -> Any:
    """Turn an element into a string or a dict ('-attr', '#text', children)."""
    text = (element.text or "").strip()
    children = list(element)
    if not children and not element.attrib:
        return text
    out: dict[str, Any] = {}
    for key, value in element.attrib.items():
        out["-" + _local(key)] = value
    repeated: set[str] = set()
    for child in children:
        key = _local(child.tag)
        value = _element_value(child)
        if key not in out:
            out[key] = value
        elif key in repeated:
            out[key].append(value)
        else:
            out[key] = [out[key], value]
            repeated.add(key)
    if text:
        out["#text"] = text
    return out


_DESCRIPTION = re.compile(r"/xmpmeta/RDF/Description\[\d+\]/")


def _apply(md: Metadata, path: str, value: str) -> None:
    path = _DESCRIPTION.sub("", path)
    if path == "DateTimeOriginal":
        try:
            md.date_taken = time_string_to_time(value, timezone.utc)
        except ValueError:
            pass
    elif path == "ImageDescription/Alt/li/#text":
        md.description = value
    elif path == "Rating":
        md.rating = string_to_byte(value)
    elif path == "TagsList/Seq/li":
        md.tags.append(Tag(name=_path_base(value), value=value))
    elif path == "/xmpmeta/RDF/Description/GPSLatitude":
        try:
            md.latitude = gps_string_to_float(value)
        except ValueError:
            pass
    elif path == "/xmpmeta/RDF/Description/GPSLongitude":
        try:
            md.longitude = gps_string_to_float(value)
        except ValueError:
            pass


def _walk(node: dict[str, Any], md: Metadata, path: str) -> None:
    for key, value in node.items():
        here = f"{path}/{key}"
        if isinstance(value, dict):
            _walk(value, md, here)
        elif isinstance(value, list):
            for i, item in enumerate(value):
                p = f"{here}[{i}]"
                if isinstance(item, dict):
                    _walk(item, md, p)
                else:
                    _apply(md, p, item)
        else:
            _apply(md, here, value)


def read_xmp(stream: Union[IO[bytes], IO[str]], md: Metadata) -> None:
    """Fill `md` from an XMP document; raises ValueError when the XML is malformed."""
    data = stream.read()
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"invalid XMP: {exc}") from exc
    _walk({_local(root.tag): _element_value(root)}, md, "")