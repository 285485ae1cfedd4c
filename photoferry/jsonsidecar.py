"""JSON sidecar files holding an asset's metadata."""

from __future__ import annotations

import json
from typing import IO, Any

from .assets import Metadata, metadata_from_dict


def write_sidecar(md: Metadata, stream: IO[str], software: str) -> None:
    """Write the metadata, tagged with the writing software, as indented JSON."""
    document: dict[str, Any] = {"software": software}
    document.update(md.to_dict())
    stream.write(json.dumps(document, indent=2, ensure_ascii=False) + "\n")


def read_sidecar(stream: IO[Any]) -> Metadata:
    """Read the first JSON value of the stream as metadata; raises ValueError on bad input."""
    data = stream.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    decoded, _ = json.JSONDecoder().raw_decode(data.lstrip())
    if not isinstance(decoded, dict):
        raise ValueError("sidecar must hold a JSON object")
    return metadata_from_dict(decoded)