"""Assets, albums, tags, metadata and groups of related assets."""

from __future__ import annotations

import base64
import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import IO, Any, Protocol


def _path_base(p: str) -> str:
    """Last element of a slash separated path, with the conventions of POSIX basename."""
    if p == "":
        return "."
    p = p.rstrip("/")
    if p == "":
        return "/"
    return p.rsplit("/", 1)[-1]


def _format_time(dt: datetime) -> str:
    text = dt.isoformat()
    offset = dt.utcoffset()
    if offset is not None and offset.total_seconds() == 0 and text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


_FRACTION = re.compile(r"\.(\d+)")


def _parse_time(text: str) -> datetime:
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


class OpenableFile(Protocol):
    """Anything that can open a binary stream on a file."""

    def open(self) -> IO[bytes]: ...


@dataclass
class Album:
    """An album an asset belongs to."""

    id: str = ""
    title: str = ""
    description: str = ""
    latitude: float = 0.0
    longitude: float = 0.0

    def log_value(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title:
            out["title"] = self.title
        if self.description:
            out["description"] = self.description
        if self.latitude:
            out["latitude"] = self.latitude
        if self.longitude:
            out["longitude"] = self.longitude
        return out


@dataclass
class Tag:
    """A tag: `value` is the full path, `name` its leaf."""

    id: str = ""
    name: str = ""
    value: str = ""

    def log_value(self) -> str:
        return self.value


def _tags_add(tags: list[Tag], tag: str) -> None:
    if any(t.value == tag for t in tags):
        return
    tags.append(Tag(name=_path_base(tag), value=tag))


@dataclass
class Metadata:
    """Metadata of an asset, taken from a sidecar, the file itself or an application."""

    file: Any = None
    file_name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    file_date: datetime | None = None
    date_taken: datetime | None = None
    description: str = ""
    albums: list[Album] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    rating: int = 0
    trashed: bool = False
    archived: bool = False
    favorited: bool = False
    from_partner: bool = False

    def log_value(self) -> dict[str, Any]:
        gps = None
        if self.latitude != 0 or self.longitude != 0:
            gps = {
                "latitude": f"{self.latitude:.0f}.xxxx",
                "longitude": f"{self.longitude:.0f}.xxxx",
            }
        return {
            "GPS coordinates": gps,
            "fileName": self.file,
            "dateTaken": self.date_taken,
            "description": self.description,
            "rating": self.rating,
            "trashed": self.trashed,
            "archived": self.archived,
            "favorited": self.favorited,
            "fromPartner": self.from_partner,
            "albums": [a.log_value() for a in self.albums],
            "tags": [t.log_value() for t in self.tags],
        }

    def is_set(self) -> bool:
        return (
            self.description != ""
            or self.date_taken is not None
            or self.latitude != 0
            or self.longitude != 0
        )

    def add_tag(self, tag: str) -> None:
        _tags_add(self.tags, tag)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; empty values are left out."""
        out: dict[str, Any] = {}
        if self.file_name:
            out["fileName"] = self.file_name
        if self.latitude:
            out["latitude"] = self.latitude
        if self.longitude:
            out["longitude"] = self.longitude
        if self.file_date is not None:
            out["fileDate"] = _format_time(self.file_date)
        if self.date_taken is not None:
            out["dateTaken"] = _format_time(self.date_taken)
        if self.description:
            out["description"] = self.description
        if self.albums:
            out["albums"] = [a.to_dict() for a in self.albums]
        if self.tags:
            out["tags"] = [{"value": t.value} if t.value else {} for t in self.tags]
        if self.rating:
            out["rating"] = self.rating
        if self.trashed:
            out["trashed"] = True
        if self.archived:
            out["archived"] = True
        if self.favorited:
            out["favorited"] = True
        if self.from_partner:
            out["fromPartner"] = True
        return out


def metadata_from_dict(data: dict[str, Any]) -> Metadata:
    """Build a Metadata from its JSON-ready form."""
    rating = int(data.get("rating", 0) or 0)
    if not 0 <= rating <= 255:
        raise ValueError(f"rating out of range: {rating}")
    file_date = data.get("fileDate")
    date_taken = data.get("dateTaken")
    return Metadata(
        file_name=data.get("fileName", "") or "",
        latitude=float(data.get("latitude", 0) or 0),
        longitude=float(data.get("longitude", 0) or 0),
        file_date=_parse_time(file_date) if file_date else None,
        date_taken=_parse_time(date_taken) if date_taken else None,
        description=data.get("description", "") or "",
        albums=[
            Album(
                title=a.get("title", "") or "",
                description=a.get("description", "") or "",
                latitude=float(a.get("latitude", 0) or 0),
                longitude=float(a.get("longitude", 0) or 0),
            )
            for a in data.get("albums") or []
        ],
        tags=[Tag(value=t.get("value", "") or "") for t in data.get("tags") or []],
        rating=rating,
        trashed=bool(data.get("trashed", False)),
        archived=bool(data.get("archived", False)),
        favorited=bool(data.get("favorited", False)),
        from_partner=bool(data.get("fromPartner", False)),
    )


def unmarshal_metadata(data: bytes | str) -> Metadata:
    """Decode metadata from JSON; raises ValueError on malformed input."""
    decoded = json.loads(data)
    if not isinstance(decoded, dict):
        raise ValueError("metadata must be a JSON object")
    return metadata_from_dict(decoded)


class Kind(IntEnum):
    """The probable kind of series an image belongs to."""

    NONE = 0
    BURST = 1
    EDITED = 2
    PORTRAIT = 3
    NIGHT = 4
    MOTION = 5
    LONG_EXPOSURE = 6


@dataclass
class NameInfo:
    """Information inferred from a file name."""

    base: str = ""
    ext: str = ""
    radical: str = ""
    type: str = ""
    kind: Kind = Kind.NONE
    index: int = 0
    taken: datetime | None = None
    is_cover: bool = False
    is_modified: bool = False


@dataclass
class Asset:
    """A media file with the information needed to send it to the server."""

    file: OpenableFile | None = None
    file_date: datetime | None = None
    id: str = ""
    checksum: str = ""
    original_file_name: str = ""
    description: str = ""
    file_size: int = 0
    capture_date: datetime | None = None
    trashed: bool = False
    archived: bool = False
    from_partner: bool = False
    favorite: bool = False
    rating: int = 0
    albums: list[Album] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    name_info: NameInfo = field(default_factory=NameInfo)
    from_sidecar: Metadata | None = None
    from_source_file: Metadata | None = None
    from_application: Metadata | None = None
    latitude: float = 0.0
    longitude: float = 0.0

    def use_metadata(self, md: Metadata | None) -> Metadata | None:
        """Copy the metadata into the asset and return it."""
        if md is None:
            return None
        self.description = md.description
        self.latitude = md.latitude
        self.longitude = md.longitude
        self.capture_date = md.date_taken
        self.from_partner = md.from_partner
        self.trashed = md.trashed
        self.archived = md.archived
        self.favorite = md.favorited
        self.rating = int(md.rating)
        self.merge_albums(md.albums)
        self.merge_tags(md.tags)
        return md

    def device_asset_id(self) -> str:
        return f"{_path_base(self.original_file_name)}-{self.file_size}"

    def log_value(self) -> dict[str, Any]:
        return {
            "FileName": self.file,
            "FileDate": self.file_date,
            "Description": self.description,
            "Title": self.original_file_name,
            "FileSize": self.file_size,
            "ID": self.id,
            "CaptureDate": self.capture_date,
            "Trashed": self.trashed,
            "Archived": self.archived,
            "FromPartner": self.from_partner,
            "Favorite": self.favorite,
            "Stars": self.rating,
            "Latitude": f"{self.latitude:.0f}.xxxxx",
            "Longitude": f"{self.longitude:.0f}.xxxxx",
        }

    def merge_albums(self, albums: list[Album]) -> None:
        for album in albums:
            if not any(existing.title == album.title for existing in self.albums):
                self.albums.append(album)

    def merge_tags(self, tags: list[Tag]) -> None:
        for tag in tags:
            if not any(existing.name == tag.name for existing in self.tags):
                self.tags.append(tag)

    def add_tag(self, tag: str) -> None:
        _tags_add(self.tags, tag)

    def get_checksum(self) -> str:
        """Return the base64 SHA-1 of the file, computing it once."""
        if self.checksum:
            return self.checksum
        if self.file is None:
            raise ValueError("no file to compute checksum")
        digest = hashlib.sha1()
        with self.file.open() as stream:
            for chunk in iter(lambda: stream.read(64 * 1024), b""):
                digest.update(chunk)
        self.checksum = base64.b64encode(digest.digest()).decode("ascii")
        return self.checksum


class GroupBy(IntEnum):
    """Why assets were grouped together."""

    NONE = 0
    BURST = 1
    RAW_JPG = 2
    HEIC_JPG = 3
    OTHER = 4


@dataclass
class RemovedAsset:
    """An asset taken out of a group, with the reason."""

    asset: Asset
    reason: str


@dataclass
class Group:
    """A set of assets handled together, such as a burst or a RAW/JPEG pair."""

    grouping: GroupBy = GroupBy.NONE
    assets: list[Asset] = field(default_factory=list)
    removed: list[RemovedAsset] = field(default_factory=list)
    cover_index: int = 0

    def add_asset(self, asset: Asset) -> None:
        self.assets.append(asset)

    def remove_asset(self, asset: Asset, reason: str) -> None:
        for i, candidate in enumerate(self.assets):
            if candidate is asset:
                self.removed.append(RemovedAsset(asset=candidate, reason=reason))
                del self.assets[i]
                return

    def set_cover(self, index: int) -> Group:
        self.cover_index = index
        return self

    def validate(self) -> None:
        """Raise ValueError when the group is not usable."""
        if not self.assets:
            raise ValueError("empty group")
        if any(a is None for a in self.assets):
            raise ValueError("nil asset in group")
        if self.cover_index < 0 or self.cover_index > len(self.assets):
            raise ValueError("cover index out of range")