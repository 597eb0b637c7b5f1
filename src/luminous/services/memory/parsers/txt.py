from __future__ import annotations
from typing import Tuple


def extract_text(data: bytes) -> Tuple[str, dict]:
    txt = data.decode("utf-8", errors="replace")
    if txt.startswith("\ufeff"):
        txt = txt[1:]
    return txt, {}
