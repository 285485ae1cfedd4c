"""Command line flag values: date methods, date ranges, server error policy, extension filters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Mapping

TYPE_IMAGE = "image"
TYPE_VIDEO = "video"
TYPE_SIDECAR = "sidecar"


class DateMethod(str, Enum):
    """Where to take the capture date from."""

    NONE = "NONE"
    NAME = "FILENAME"
    EXIF = "EXIF"
    NAME_THEN_EXIF = "FILENAME-EXIF"
    EXIF_THEN_NAME = "EXIF-FILENAME"

    def __str__(self) -> str:
        return self.value


def parse_date_method(value: str) -> DateMethod:
    """Parse a date method name, case-insensitively; empty means NONE."""
    text = value.upper().strip()
    if text == "":
        text = DateMethod.NONE.value
    try:
        return DateMethod(text)
    except ValueError:
        raise ValueError(
            f"invalid DateMethod: {text}, expecting NONE|FILENAME|EXIF|FILENAME-EXIF|EXIF-FILENAME"
        ) from None


_YEAR = re.compile(r"(\d{4})")
_MONTH = re.compile(r"(\d{4})-(\d{2})")
_DAY = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def _parse(pattern: re.Pattern[str], text: str, tz: tzinfo | None) -> datetime:
    match = pattern.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid date range:{text}")
    parts = [int(p) for p in match.groups()] + [1, 1]
    year, month, day = parts[:3]
    try:
        return datetime(year, month, day, tzinfo=tz)
    except ValueError as exc:
        raise ValueError(f"invalid date range:{exc}") from exc


def _next_month(d: datetime) -> datetime:
    if d.month == 12:
        return d.replace(year=d.year + 1, month=1)
    return d.replace(month=d.month + 1)


def _fmt_day(d: datetime) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


class DateRange:
    """A range of capture dates: a day, a month, a year or two inclusive days.

    Accepted forms: ``2022``, ``2022-01``, ``2022-01-01``, ``2022-01-01,2022-12-31``.
    With no time zone, dates are naive local times.
    """

    def __init__(self, value: str | None = None, tz: tzinfo | None = None) -> None:
        self.tz = tz
        self.after: datetime | None = None
        self.before: datetime | None = None
        self._kind = ""
        self._text = ""
        self._set = False
        if value is not None:
            self.set(value)

    @property
    def is_set(self) -> bool:
        return self._set

    def __str__(self) -> str:
        if not self._set or self.after is None or self.before is None:
            return "unset"
        if self._kind == "day":
            return _fmt_day(self.after)
        if self._kind == "month":
            return f"{self.after.year:04d}-{self.after.month:02d}"
        if self._kind == "year":
            return f"{self.after.year:04d}"
        return _fmt_day(self.after) + "," + _fmt_day(self.before - timedelta(days=1))

    def set_tz(self, tz: tzinfo | None) -> None:
        """Change the time zone, recomputing the bounds if the range is set."""
        self.tz = tz
        if self._set:
            self.set(self._text)

    def set(self, value: str) -> None:
        """Parse a range; raises ValueError when the text is not a valid range."""
        n = len(value)
        if n == 4:
            after = _parse(_YEAR, value, self.tz)
            before = after.replace(year=after.year + 1)
            kind = "year"
        elif n == 7:
            after = _parse(_MONTH, value, self.tz)
            before = _next_month(after)
            kind = "month"
        elif n == 10:
            after = _parse(_DAY, value, self.tz)
            before = after + timedelta(days=1)
            kind = "day"
        elif n == 21:
            after = _parse(_DAY, value[:10], self.tz)
            before = _parse(_DAY, value[11:], self.tz) + timedelta(days=1)
            kind = "range"
        else:
            self._set = False
            raise ValueError(f"invalid date range:{value}")
        self.after, self.before, self._kind = after, before, kind
        self._text = value
        self._set = True

    def in_range(self, when: datetime) -> bool:
        """True if the date lies in [after, before), or if the range is unset."""
        if not self._set or self.after is None or self.before is None:
            return True
        return self.after <= when < self.before


ON_SERVER_ERRORS_STOP = 0
ON_SERVER_ERRORS_STOP_AFTER = 1
ON_SERVER_ERRORS_NEVER_STOP = -1

_INTEGER = re.compile(r"[+-]?\d+")


def parse_on_server_errors(value: str) -> int:
    """Parse 'stop', 'continue' or a number of errors to tolerate."""
    lowered = value.lower()
    if lowered == "stop":
        return ON_SERVER_ERRORS_STOP
    if lowered == "continue":
        return ON_SERVER_ERRORS_NEVER_STOP
    if not _INTEGER.fullmatch(value):
        raise ValueError(f"invalid value for on-server-errors: {value}")
    return int(value)


def describe_on_server_errors(value: int) -> str:
    if value == ON_SERVER_ERRORS_STOP:
        return "stop"
    if value == ON_SERVER_ERRORS_NEVER_STOP:
        return "continue"
    if value >= ON_SERVER_ERRORS_STOP_AFTER:
        return f"stop after {value} errors"
    return "unknown"


class IncludeType(str, Enum):
    """A family of file types to include."""

    ALL = ""
    VIDEO = "VIDEO"
    IMAGE = "IMAGE"

    def __str__(self) -> str:
        return self.value


def parse_include_type(value: str) -> IncludeType:
    """Parse VIDEO or IMAGE, case-insensitively."""
    text = value.upper().strip()
    if text in (IncludeType.VIDEO.value, IncludeType.IMAGE.value):
        return IncludeType(text)
    raise ValueError(
        f"invalid value for include type, expected {IncludeType.VIDEO} or {IncludeType.IMAGE}"
    )


class ExtensionList(list):
    """A list of file extensions such as '.jpg'."""

    def validate(self) -> ExtensionList:
        """Return the list lower-cased, trimmed, each extension starting with a dot."""
        out = ExtensionList()
        for ext in self:
            ext = ext.strip().lower()
            if not ext.startswith("."):
                ext = "." + ext
            out.append(ext)
        return out

    def include(self, ext: str) -> bool:
        """True if the list is empty or holds the extension."""
        if not self:
            return True
        return ext.lower() in self

    def exclude(self, ext: str) -> bool:
        """True if the list is not empty and holds the extension."""
        if not self:
            return False
        return ext.lower() in self

    def add(self, value: str) -> None:
        """Append the non-empty items of a comma separated list."""
        self.extend(part.strip() for part in value.split(",") if part.strip())

    def __str__(self) -> str:
        return ", ".join(self)


@dataclass
class InclusionFlags:
    """Filters on which files to take."""

    excluded_extensions: ExtensionList = field(default_factory=ExtensionList)
    included_extensions: ExtensionList = field(default_factory=ExtensionList)
    included_type: IncludeType = IncludeType.ALL
    date_range: DateRange = field(default_factory=DateRange)

    def validate(self) -> None:
        self.excluded_extensions = ExtensionList(self.excluded_extensions).validate()
        self.included_extensions = ExtensionList(self.included_extensions).validate()

    def set_include_type_extensions(
        self, media_to_extensions: Mapping[str, Iterable[str]]
    ) -> None:
        """Add the extensions of the included type, and the sidecar extensions."""
        if not isinstance(self.included_extensions, ExtensionList):
            self.included_extensions = ExtensionList(self.included_extensions)
        if self.included_type == IncludeType.VIDEO:
            self.included_extensions.extend(media_to_extensions.get(TYPE_VIDEO, ()))
        elif self.included_type == IncludeType.IMAGE:
            self.included_extensions.extend(media_to_extensions.get(TYPE_IMAGE, ()))
        self.included_extensions.extend(media_to_extensions.get(TYPE_SIDECAR, ()))