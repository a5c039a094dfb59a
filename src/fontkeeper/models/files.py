from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class FontFormat(StrEnum):
    TRUETYPE = "truetype"
    OPENTYPE = "opentype"
    WOFF = "woff"
    WOFF2 = "woff2"
    UNKNOWN = "unknown"


class FileInfo(BaseModel):
    """Cheap-to-compute metadata for one font file on disk."""

    model_config = ConfigDict(frozen=True)

    path: str
    filename: str
    file_size: int
    file_mtime: int  # Whole seconds
    signature: str  # sha256 of the first 1KB
    format: FontFormat = FontFormat.UNKNOWN
