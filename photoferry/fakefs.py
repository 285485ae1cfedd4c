"""A simulated file system built from archive listings such as ``unzip -l`` output.

Files hold no real data: JSON sidecars are generated on the fly and other
files return random bytes of their listed size.
"""

from __future__ import annotations

import io
import os
import posixpath
import re
import stat as stat_mod
import zipfile
from dataclasses import dataclass, field, replace
from datetime import datetime
from string import Template
from typing import IO, Iterable, Iterator

from .assets import _path_base

_DIR_MODE = stat_mod.S_IFDIR | 0o777
_FILE_MODE = 0o777

_ALBUM_TEMPLATE = Template(
    """{
  "title": "$title",
  "description": "",
  "access": "",
  "date": {
    "timestamp": "0",
    "formatted": "1 janv. 1970, 00:00:00 UTC"
  },
  "geoData": {
    "latitude": 0.0,
    "longitude": 0.0,
    "altitude": 0.0,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  }
}"""
)

_PICTURE_TEMPLATE = Template(
    """{
  "title": "$title",
  "description": "",
  "imageViews": "50",
  "creationTime": {
    "timestamp": "$timestamp"
  },
  "photoTakenTime": {
    "timestamp": "$timestamp"
  },
  "geoData": {
    "latitude": 48.0,
    "longitude": 1.0,
    "altitude": 102.86,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  },
  "geoDataExif": {
    "latitude": 48.0,
    "longitude": 1.0,
    "altitude": 102.86,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  },
  "url": "https://photos.example.com/photo/placeholder",
  "googlePhotosOrigin": {
    "webUpload": {
      "computerUpload": {
      }
    }
  }
}"""
)

_FAKE_JSON = """{
  "Nothing": ""
}"""

_ALBUM_METADATA_NAMES = frozenset(
    {"métadonnées.json", "metadata.json", "metadati.json", "metadáta.json", "Metadaten.json"}
)
_SPECIAL_JSON_NAMES = frozenset(
    {"print-subscriptions.json", "shared_album_comments.json", "user-generated-memory-titles.json"}
)


def _text_stream(text: str) -> tuple[IO[bytes], int]:
    data = text.encode("utf-8")
    return io.BytesIO(data), len(data)


def _fake_album_data(name: str) -> tuple[IO[bytes], int]:
    return _text_stream(_ALBUM_TEMPLATE.substitute(title=name))


def _fake_photo_data(name: str, capture_date: datetime) -> tuple[IO[bytes], int]:
    return _text_stream(
        _PICTURE_TEMPLATE.substitute(title=name, timestamp=int(capture_date.timestamp()))
    )


def _fake_json() -> tuple[IO[bytes], int]:
    return _text_stream(_FAKE_JSON)


class _RandomStream:
    """An endless stream of random bytes."""

    def read(self, size: int = -1) -> bytes:
        return os.urandom(max(size, 0))


def _ext(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    i = base.rfind(".")
    return base[i:] if i >= 0 else ""


def _split(name: str) -> tuple[str, str]:
    """Split into directory (without trailing slash) and base name."""
    head, sep, base = name.rpartition("/")
    return head if sep else "", base


def _normalize_name(name: str) -> str:
    if name != "." and not name.startswith("./"):
        return "./" + name
    return name


@dataclass
class FakeDirEntry:
    """A file or directory of a fake file system."""

    path: str
    size: int = 0
    mode: int = _FILE_MODE
    mod_time: datetime | None = None

    @property
    def name(self) -> str:
        return _path_base(self.path)

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)


class FakeFile:
    """An open fake file; reads stop at the listed size."""

    def __init__(self, info: FakeDirEntry, stream: IO[bytes] | _RandomStream) -> None:
        self._info = info
        self._stream = stream
        self._pos = 0

    def stat(self) -> FakeDirEntry:
        return self._info

    def read(self, size: int = -1) -> bytes:
        remaining = self._info.size - self._pos
        if remaining <= 0:
            return b""
        n = remaining if size is None or size < 0 else min(size, remaining)
        data = self._stream.read(n) or b""
        self._pos += len(data)
        return data

    def close(self) -> None:
        self._pos = 0

    def __enter__(self) -> FakeFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass
class FakeFS:
    """A file system holding the entries of one archive listing."""

    name: str
    files: dict[str, dict[str, FakeDirEntry]] = field(default_factory=dict)

    def stat(self, name: str) -> FakeDirEntry:
        """Return the entry for `name`; raise FileNotFoundError when absent."""
        name = _normalize_name(name)
        directory, base = _split(name)
        if directory == "":
            directory = "."
        entries = self.files.get(directory)
        if not entries:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist")
        entry = entries.get(base)
        if entry is None:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist")
        return entry

    def open(self, name: str) -> FakeFile:
        """Open a file: JSON files get generated content, others random bytes."""
        name = _normalize_name(name)
        info = replace(self.stat(name))
        stream: IO[bytes] | _RandomStream
        if _ext(name).lower() == ".json":
            base = posixpath.basename(name)
            if base in _ALBUM_METADATA_NAMES:
                album = posixpath.basename(posixpath.dirname(name))
                stream, info.size = _fake_album_data(album)
            elif base in _SPECIAL_JSON_NAMES:
                stream, info.size = _fake_json()
            else:
                taken = info.mod_time or datetime.fromtimestamp(0)
                ext = _ext(base)
                title = base[: -len(ext)] if ext else base
                stream, info.size = _fake_photo_data(title, taken)
        else:
            stream = _RandomStream()
        return FakeFile(info, stream)

    def read_dir(self, name: str) -> list[FakeDirEntry]:
        """List a directory's entries sorted by name."""
        name = _normalize_name(name)
        info = self.stat(name)
        if not info.is_dir:
            raise FileNotFoundError(f"{self.name}:{name}: not a directory")
        entries = self.files.get(name)
        if not entries:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist")
        return [entries[k] for k in sorted(entries) if k != "."]

    def walk(self) -> Iterator[tuple[str, FakeDirEntry]]:
        """Yield (path, entry) for the root and everything below, depth first, in name order."""
        yield ".", self.stat(".")
        yield from self._walk_dir(".")

    def _walk_dir(self, directory: str) -> Iterator[tuple[str, FakeDirEntry]]:
        for entry in self.read_dir(directory):
            p = entry.name if directory == "." else f"{directory}/{entry.name}"
            yield p, entry
            if entry.is_dir:
                yield from self._walk_dir(p)

    def add_file(self, name: str, size: int, mod_time: datetime | None) -> None:
        """Add a file, creating its parent directories."""
        name = _normalize_name(name)
        directory, base = _split(name)
        parts = directory.split("/")
        for i, part in enumerate(parts):
            if i == 0:
                if "." not in self.files:
                    self.files["."] = {
                        ".": FakeDirEntry(".", 0, _DIR_MODE, datetime.now())
                    }
                continue
            parent = "/".join(parts[:i])
            sub = f"{parent}/{part}"
            self.files[parent].setdefault(
                part, FakeDirEntry(sub, 0, _DIR_MODE, datetime.now())
            )
            if sub not in self.files:
                self.files[sub] = {
                    ".": FakeDirEntry(sub + "/.", 0, _DIR_MODE, datetime.now())
                }
        self.files[directory][base] = FakeDirEntry(name, size, _FILE_MODE, mod_time)


_ZIP_LIST = re.compile(r"(-rw-r--r-- 0/0\s+)?(\d+)\s+(.{16})\s+(.*)$")
_FILE_COUNT_LINE = re.compile(r"^(\d+)\s+(\d+)\s+files$")


def read_file_line(line: str, date_format: str) -> tuple[str, int, datetime | None]:
    """Parse one listing line into (name, size, modification time).

    `date_format` is a strptime format such as '%Y-%m-%d %H:%M'. Lines that are
    not file lines give ('', 0, None); an unparsable date gives None.
    """
    if len(line.encode("utf-8")) < 30:
        return "", 0, None
    match = _ZIP_LIST.search(line)
    if match is None:
        return "", 0, None
    size = int(match.group(2))
    try:
        mod_time: datetime | None = datetime.strptime(match.group(3), date_format)
    except ValueError:
        mod_time = None
    return match.group(4), size, mod_time


def scan_string_list(date_format: str, text: str) -> list[FakeFS]:
    return scan_file_list_reader(io.StringIO(text), date_format)


def scan_file_list(name: str, date_format: str) -> list[FakeFS]:
    """Read a listing file; a .zip file is read from its first member."""
    if posixpath.splitext(name)[1].lower() == ".zip" or name.lower().endswith(".zip"):
        with zipfile.ZipFile(name) as archive:
            members = archive.infolist()
            if not members:
                raise ValueError("zip file is empty")
            with archive.open(members[0]) as raw:
                return scan_file_list_reader(
                    io.TextIOWrapper(raw, encoding="utf-8", errors="replace"), date_format
                )
    with open(name, encoding="utf-8", errors="replace") as f:
        return scan_file_list_reader(f, date_format)


def scan_file_list_reader(
    stream: Iterable[str] | Iterable[bytes], date_format: str
) -> list[FakeFS]:
    """Build one FakeFS per archive named in the listing, sorted by archive name."""
    systems: dict[str, FakeFS] = {}
    current: FakeFS | None = None
    for raw in stream:
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        line = line.rstrip("\n").rstrip("\r")
        header = None
        for prefix in ("Part:", "Archive:"):
            if line.startswith(prefix):
                header = line[len(prefix):].strip()
                break
        if header is not None:
            current = systems.setdefault(header, FakeFS(header))
            continue
        if _FILE_COUNT_LINE.match(line):
            continue
        name, size, mod_time = read_file_line(line, date_format)
        if name:
            if current is None:
                raise ValueError(f"file listed before any archive: {name}")
            current.add_file(name, size, mod_time)
    return [systems[k] for k in sorted(systems)]