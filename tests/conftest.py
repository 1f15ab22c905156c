# -*- coding: utf-8 -*-
from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, Optional

import pytest
import requests


def pytest_sessionstart(session) -> None:
    # Ensure project root is importable for tests
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


HOME_HTML = """
<html lang="es"><body>
  <nav><a href="/espana/">España</a> <a href="/opinion/">Opinión</a></nav>
  <p>Noticias de política y economía</p>
</body></html>
"""

OPINION_HTML = """
<html lang="es"><body>
  <article>
    <h2><a href="/opinion/a1">La economía de España</a></h2>
    <p>Un análisis largo sobre la economía española actual.</p>
    <img src="https://imgs.elpais.com/a1.jpg">
  </article>
  <article>
    <a title="La política del agua" href="/opinion/a2"></a>
    <p>Corto</p>
    <p>Este segundo párrafo es largo pero nunca se lee.</p>
  </article>
  <article>
    <h3>Opinión: el futuro de España</h3>
    <div class="entradilla">Una entradilla suficientemente larga para pasar.</div>
    <img src="data:image/gif;base64,R0lGOD" data-src="https://imgs.elpais.com/c.webp">
  </article>
</body></html>
"""


class FakeResponse:
    def __init__(self, text: str, url: str, status_code: int = 200) -> None:
        self.text = text
        self.url = url
        self.status_code = status_code
        self.encoding: Optional[str] = "utf-8"
        self.apparent_encoding = "utf-8"

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}")


class FakeHttp:
    """Serves canned pages by URL; anything else is a connection error."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.requested = []
        self.closed = False

    def get(self, url, headers=None, timeout=None, **kwargs):
        self.requested.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"no route to {url}")
        return FakeResponse(self.pages[url], url)

    def close(self) -> None:
        self.closed = True


class FakeTranslator:
    def __init__(self, mapping: Optional[Dict[str, str]] = None) -> None:
        self.mapping = mapping or {}
        self.calls = []
        self.closed = False

    def translate(self, text):
        self.calls.append(text)
        return self.mapping.get(text, text)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def site_pages() -> Dict[str, str]:
    return {
        "https://elpais.com": HOME_HTML,
        "https://elpais.com/opinion/": OPINION_HTML,
    }


@pytest.fixture(autouse=True)
def _no_credentials(monkeypatch):
    for name in ("BROWSERSTACK_USERNAME", "BROWSERSTACK_ACCESS_KEY", "BROWSERSTACK_HUB_URL"):
        monkeypatch.delenv(name, raising=False)
