from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FontRecord(BaseModel):
    """One installed font style. Identity is ``path``."""

    model_config = ConfigDict(frozen=True)

    family_name: str
    style: str
    full_name: str
    postscript_name: str | None = None
    path: str
    source_path: str | None = None  # Original name when renamed on extraction
