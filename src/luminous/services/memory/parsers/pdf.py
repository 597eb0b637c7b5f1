from __future__ import annotations
import io
from typing import Tuple
from pypdf import PdfReader
from pypdf.errors import PdfReadError


def extract_text(data: bytes) -> Tuple[str, dict]:
    try:
        reader = PdfReader(io.BytesIO(data))
    except (PdfReadError, ValueError, OSError) as exc:
        raise ValueError(f"not a readable PDF: {exc}") from exc
    texts = []
    for page in reader.pages:
        try:
            texts.append(page.extract_text() or "")
        except Exception:  # noqa: BLE001 - one bad page should not drop the document
            continue
    return "\n\n".join(texts), {"pages": len(reader.pages)}
