"""Record and report what happened to each file during processing."""

from __future__ import annotations

import logging
import threading
from enum import IntEnum
from typing import Any


class Code(IntEnum):
    """Kinds of events recorded for a file."""

    NOT_HANDLED = 0
    DISCOVERED_IMAGE = 1
    DISCOVERED_VIDEO = 2
    DISCOVERED_SIDECAR = 3
    DISCOVERED_DISCARDED = 4
    DISCOVERED_UNSUPPORTED = 5
    DISCOVERED_USELESS = 6
    ANALYSIS_ASSOCIATED_METADATA = 7
    ANALYSIS_MISSING_ASSOCIATED_METADATA = 8
    ANALYSIS_LOCAL_DUPLICATE = 9
    UPLOAD_NOT_SELECTED = 10
    UPLOAD_UPGRADED = 11
    UPLOAD_SERVER_DUPLICATE = 12
    UPLOAD_SERVER_BETTER = 13
    UPLOAD_ALBUM_CREATED = 14
    UPLOAD_ADD_TO_ALBUM = 15
    UPLOAD_LI = 16
    UPLOAD_SERVER_ERROR = 17
    UPLOADED = 18
    STACKED = 19
    LIVE_PHOTO = 20
    METADATA = 21
    INFO = 22
    WRITTEN = 23
    TAGGED = 24
    ERROR = 25
    MAX_CODE = 26

    def __str__(self) -> str:
        text = _DESCRIPTIONS.get(self)
        if text is None:
            return f"unknown event code: {int(self)}"
        return text


_DESCRIPTIONS = {
    Code.NOT_HANDLED: "Not handled",
    Code.DISCOVERED_IMAGE: "scanned image file",
    Code.DISCOVERED_VIDEO: "scanned video file",
    Code.DISCOVERED_SIDECAR: "scanned sidecar file",
    Code.DISCOVERED_DISCARDED: "discarded file",
    Code.DISCOVERED_UNSUPPORTED: "unsupported file",
    Code.DISCOVERED_USELESS: "useless file",
    Code.ANALYSIS_ASSOCIATED_METADATA: "associated metadata file",
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA: "missing associated metadata file",
    Code.ANALYSIS_LOCAL_DUPLICATE: "file duplicated in the input",
    Code.UPLOAD_NOT_SELECTED: "file not selected",
    Code.UPLOAD_UPGRADED: "server's asset upgraded with the input",
    Code.UPLOAD_ADD_TO_ALBUM: "added to an album",
    Code.UPLOAD_SERVER_DUPLICATE: "server has same asset",
    Code.UPLOAD_SERVER_BETTER: "server has a better asset",
    Code.UPLOAD_ALBUM_CREATED: "album created/updated",
    Code.UPLOAD_SERVER_ERROR: "upload error",
    Code.UPLOADED: "uploaded",
    Code.STACKED: "Stacked",
    Code.LIVE_PHOTO: "Live photo",
    Code.METADATA: "Metadata files",
    Code.INFO: "Info",
    Code.WRITTEN: "Written",
    Code.TAGGED: "Tagged",
    Code.ERROR: "error",
}

_LOG_LEVELS = {
    Code.DISCOVERED_IMAGE: logging.INFO,
    Code.DISCOVERED_VIDEO: logging.INFO,
    Code.DISCOVERED_DISCARDED: logging.WARNING,
    Code.DISCOVERED_UNSUPPORTED: logging.WARNING,
    Code.DISCOVERED_USELESS: logging.WARNING,
    Code.ANALYSIS_ASSOCIATED_METADATA: logging.INFO,
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA: logging.WARNING,
    Code.ANALYSIS_LOCAL_DUPLICATE: logging.WARNING,
    Code.UPLOAD_NOT_SELECTED: logging.WARNING,
    Code.UPLOAD_UPGRADED: logging.INFO,
    Code.UPLOAD_SERVER_BETTER: logging.INFO,
    Code.UPLOAD_ALBUM_CREATED: logging.INFO,
    Code.UPLOAD_SERVER_ERROR: logging.ERROR,
    Code.UPLOADED: logging.INFO,
    Code.STACKED: logging.INFO,
    Code.LIVE_PHOTO: logging.INFO,
    Code.METADATA: logging.INFO,
    Code.INFO: logging.INFO,
    Code.WRITTEN: logging.INFO,
    Code.TAGGED: logging.INFO,
    Code.ERROR: logging.ERROR,
}

_ANALYSIS_CODES = (
    Code.DISCOVERED_IMAGE,
    Code.DISCOVERED_VIDEO,
    Code.DISCOVERED_SIDECAR,
    Code.DISCOVERED_DISCARDED,
    Code.DISCOVERED_UNSUPPORTED,
    Code.ANALYSIS_LOCAL_DUPLICATE,
    Code.ANALYSIS_ASSOCIATED_METADATA,
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA,
)

_UPLOAD_CODES = (
    Code.UPLOADED,
    Code.UPLOAD_SERVER_ERROR,
    Code.UPLOAD_NOT_SELECTED,
    Code.UPLOAD_UPGRADED,
    Code.UPLOAD_SERVER_DUPLICATE,
    Code.UPLOAD_SERVER_BETTER,
)


def _format_args(args: tuple[Any, ...]) -> str:
    parts = []
    for i in range(0, len(args) - 1, 2):
        parts.append(f"{args[i]}={args[i + 1]}")
    if len(args) % 2:
        parts.append(f"!BADKEY={args[-1]}")
    return " ".join(parts)


class Recorder:
    """Counts events per code and logs them; safe to use from several threads."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log
        self._counts = [0] * int(Code.MAX_CODE)
        self._lock = threading.Lock()

    def record(self, code: Code, file: Any, *args: Any) -> None:
        """Count an event; `args` are alternating keys and values for the log line.

        A value equal to "error" or "warning" among them raises the log level.
        """
        with self._lock:
            self._counts[code] += 1
        if self.log is None:
            return
        level = _LOG_LEVELS.get(code, logging.INFO)
        if file is not None:
            args = ("file", file.log_value()) + args
        for a in args:
            if isinstance(a, str) and a == "error":
                level = logging.ERROR
                break
            if isinstance(a, str) and a == "warning":
                level = logging.WARNING
                break
        extra = _format_args(args)
        message = f"{code} {extra}" if extra else str(code)
        self.log.log(level, "%s", message)

    def report(self) -> str:
        """Build the summary; print it when there were uploads, log it line by line."""
        counts = self.get_counts()
        lines: list[str] = []
        count_analysis = sum(counts[c] for c in _ANALYSIS_CODES)
        if count_analysis > 0:
            lines += ["", "Input analysis:", "---------------"]
            lines += [f"{str(c):<40}: {counts[c]:7d}" for c in _ANALYSIS_CODES]
            lines.append("")
        count_upload = sum(counts[c] for c in _UPLOAD_CODES)
        if count_upload > 0:
            lines += ["Uploading:", "----------"]
            lines += [f"{str(c):<40}: {counts[c]:7d}" for c in _UPLOAD_CODES]
        text = "".join(line + "\n" for line in lines)
        if count_upload > 0:
            print(text)
        if (count_upload > 0 or count_analysis > 0) and self.log is not None:
            for line in text.split("\n"):
                self.log.info("%s", line)
        return text

    def get_counts(self) -> list[int]:
        with self._lock:
            return list(self._counts)

    def total_assets(self) -> int:
        counts = self.get_counts()
        return counts[Code.DISCOVERED_IMAGE] + counts[Code.DISCOVERED_VIDEO]

    def total_processed_gp(self) -> int:
        counts = self.get_counts()
        return (
            counts[Code.ANALYSIS_ASSOCIATED_METADATA]
            + counts[Code.ANALYSIS_MISSING_ASSOCIATED_METADATA]
            + counts[Code.DISCOVERED_DISCARDED]
        )

    def total_processed(self, forced_missing_json: bool) -> int:
        counts = self.get_counts()
        total = sum(counts[c] for c in _UPLOAD_CODES)
        total += counts[Code.DISCOVERED_DISCARDED] + counts[Code.ANALYSIS_LOCAL_DUPLICATE]
        if not forced_missing_json:
            total += counts[Code.ANALYSIS_MISSING_ASSOCIATED_METADATA]
        return total


def new_counts(**kwargs: int) -> list[int]:
    """A list of counts indexed by code, set from keyword arguments named after codes."""
    counts = [0] * int(Code.MAX_CODE)
    for name, value in kwargs.items():
        try:
            code = Code[name.upper()]
        except KeyError:
            raise ValueError(f"unknown event code: {name}") from None
        if code == Code.MAX_CODE:
            raise ValueError(f"unknown event code: {name}")
        counts[code] = value
    return counts