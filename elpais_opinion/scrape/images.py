from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlparse

import requests

from elpais_opinion.core.utils import ensure_directory
from elpais_opinion.infra.logging import get_unified_logger, log_file_operation

DEFAULT_EXTENSION = ".jpg"
MAX_EXTENSION_LENGTH = 5

_HTTP_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; elpais-opinion/1.0)"}

_log = get_unified_logger("scrape", "images")


def image_filename(index: int, url: str) -> str:
    """``article_<index>_image<ext>``; odd or missing extensions become ``.jpg``."""
    ext = os.path.splitext(urlparse(url).path)[1].lower()
    if len(ext) < 2 or len(ext) > MAX_EXTENSION_LENGTH:
        ext = DEFAULT_EXTENSION
    return f"article_{index}_image{ext}"


def download_to(
    url: str,
    path: Union[str, Path],
    timeouts: Tuple[float, float] = (5, 5),
    session: Optional[requests.Session] = None,
) -> bool:
    """Stream ``url`` into ``path``. Returns False (and removes any partial file) on failure."""
    target = Path(path)
    t0 = time.time()
    http = session or requests
    try:
        with http.get(url, headers=_HTTP_HEADERS, timeout=timeouts, stream=True) as r:
            r.raise_for_status()
            with target.open("wb") as fh:
                for chunk in r.iter_content(chunk_size=8192):
                    if chunk:
                        fh.write(chunk)
    except (requests.RequestException, OSError) as e:
        _log.warning("image download failed: %s | %s", url, e)
        try:
            target.unlink()
        except OSError:
            pass
        log_file_operation("scrape", "images", "download", str(target), 0, time.time() - t0, "failed")
        return False
    size = target.stat().st_size
    log_file_operation("scrape", "images", "download", str(target), size, time.time() - t0, "success")
    return True


class ImageStore:
    """Saves article images under one directory, named after the article ordinal."""

    def __init__(self, directory: Union[str, Path], timeout: float = 5) -> None:
        self.directory = Path(directory)
        self.timeout = timeout

    def save(self, url: str, index: int) -> Optional[str]:
        try:
            ensure_directory(self.directory)
        except OSError as e:
            _log.warning("cannot create image directory %s: %s", self.directory, e)
            return None
        path = self.directory / image_filename(index, url)
        if download_to(url, path, (self.timeout, self.timeout)):
            return str(path)
        return None
