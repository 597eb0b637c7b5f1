from __future__ import annotations

from collections.abc import Callable
import mimetypes
from pathlib import PurePath
from typing import Tuple

from . import pdf, txt

Extractor = Callable[[bytes], Tuple[str, dict]]

_TEXT_SUFFIXES = {".txt", ".md", ".markdown", ".csv", ".json", ".log"}
_TEXT_TYPES = {"application/json", "application/x-ndjson"}


def pick_extractor(name: str, media_type: str | None) -> Extractor | None:
    """
    Choose how an upload becomes UTF-8 text.

    The declared media type wins; browsers often send application/octet-stream
    for .md files, so the filename suffix is the fallback.
    """
    mt = (media_type or "").split(";")[0].strip().lower()
    if not mt or mt == "application/octet-stream":
        mt = (mimetypes.guess_type(name)[0] or "").lower()

    if mt == "application/pdf":
        return pdf.extract_text
    if mt.startswith("text/") or mt in _TEXT_TYPES:
        return txt.extract_text

    suffix = PurePath(name).suffix.lower()
    if suffix == ".pdf":
        return pdf.extract_text
    if suffix in _TEXT_SUFFIXES:
        return txt.extract_text
    return None
