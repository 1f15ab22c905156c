from __future__ import annotations

import os
import re
import time
from pathlib import Path
from typing import Union


def now_stamp() -> str:
    """Return a YYYYMMDD_HHMMSS timestamp."""
    return time.strftime("%Y%m%d_%H%M%S")


def ensure_directory(path: Union[str, Path]) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def safe_filename(filename: str, max_length: int = 255) -> str:
    """Strip characters that are unsafe in file names and cap the length, keeping the extension."""
    if not filename:
        return f"untitled_{now_stamp()}"

    name, ext = os.path.splitext(filename.strip())
    name = re.sub(r"[\\/:*?\"<>|]", "_", name)
    name = re.sub(r"\s+", " ", name).strip().strip(".")
    ext = re.sub(r"\s+", "", ext)

    if not name:
        name = f"untitled_{now_stamp()}"

    if len(name) + len(ext) > max_length:
        name = name[: max(1, max_length - len(ext))]

    return f"{name}{ext}"


def truncate(text: str, max_length: int = 100) -> str:
    if text is None:
        return "N/A"
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
