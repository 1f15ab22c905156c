from __future__ import annotations

from typing import List, Optional

import pytest
from bs4 import BeautifulSoup
from conftest import OPINION_HTML

from elpais_opinion.core.errors import ExtractionError
from elpais_opinion.core.models import CONTENT_NOT_AVAILABLE, TITLE_NOT_FOUND
from elpais_opinion.scrape.extractor import build_article, extract_field, find_containers
from elpais_opinion.scrape.handles import ElementHandle, SoupHandle
from elpais_opinion.scrape.selectors import CONTENT_CHAIN, IMAGE_CHAIN, TITLE_CHAIN


def _cards(html: str = OPINION_HTML) -> List[SoupHandle]:
    soup = BeautifulSoup(html, "html.parser")
    return [SoupHandle(t) for t in soup.select("article")]


class _Vanished(ElementHandle):
    def select_first(self, selector: str) -> Optional[ElementHandle]:
        raise ExtractionError("container detached")


class _Flaky(ElementHandle):
    """Raises on one selector and delegates the rest."""

    def __init__(self, inner: ElementHandle, bad_selector: str) -> None:
        self.inner = inner
        self.bad_selector = bad_selector

    def select_first(self, selector: str) -> Optional[ElementHandle]:
        if selector == self.bad_selector:
            raise RuntimeError("driver hiccup")
        return self.inner.select_first(selector)


class _FakeStore:
    def __init__(self, result: Optional[str]) -> None:
        self.result = result
        self.saved = []

    def save(self, url: str, index: int) -> Optional[str]:
        self.saved.append((url, index))
        return self.result


def test_first_rule_wins() -> None:
    first = _cards()[0]
    assert extract_field(first, TITLE_CHAIN) == "La economía de España"
    assert extract_field(first, CONTENT_CHAIN) == "Un análisis largo sobre la economía española actual."
    assert extract_field(first, IMAGE_CHAIN) == "https://imgs.elpais.com/a1.jpg"


def test_title_attribute_fallback_and_short_content_default() -> None:
    second = _cards()[1]
    assert extract_field(second, TITLE_CHAIN) == "La política del agua"
    # only the first <p> of a selector is looked at
    assert extract_field(second, CONTENT_CHAIN) == CONTENT_NOT_AVAILABLE
    assert extract_field(second, IMAGE_CHAIN) is None


def test_later_rules_and_data_src() -> None:
    third = _cards()[2]
    assert extract_field(third, TITLE_CHAIN) == "Opinión: el futuro de España"
    assert extract_field(third, CONTENT_CHAIN).startswith("Una entradilla")
    assert extract_field(third, IMAGE_CHAIN) == "https://imgs.elpais.com/c.webp"


def test_defaults_when_nothing_matches() -> None:
    empty = _cards("<article><span></span></article>")[0]
    assert extract_field(empty, TITLE_CHAIN) == TITLE_NOT_FOUND
    assert extract_field(empty, CONTENT_CHAIN) == CONTENT_NOT_AVAILABLE
    assert extract_field(empty, IMAGE_CHAIN) is None


def test_rule_error_moves_to_next_rule() -> None:
    flaky = _Flaky(_cards()[0], "h2")
    # nothing but the broken h2 holds a title in this card
    assert extract_field(flaky, TITLE_CHAIN) == TITLE_NOT_FOUND
    assert extract_field(_Flaky(_cards()[2], "h2"), TITLE_CHAIN) == "Opinión: el futuro de España"


def test_vanished_container_propagates() -> None:
    with pytest.raises(ExtractionError):
        extract_field(_Vanished(), TITLE_CHAIN)


def test_build_article_uses_image_store() -> None:
    store = _FakeStore("downloads/article_1_image.jpg")
    article = build_article(_cards()[0], 1, image_store=store)
    assert article.index == 1
    assert article.title == "La economía de España"
    assert article.image_path == "downloads/article_1_image.jpg"
    assert store.saved == [("https://imgs.elpais.com/a1.jpg", 1)]

    failing = _FakeStore(None)
    article = build_article(_cards()[0], 1, image_store=failing)
    assert article.image_url == "https://imgs.elpais.com/a1.jpg"
    assert article.image_path is None

    no_image = build_article(_cards()[1], 2, image_store=store)
    assert no_image.image_url is None
    assert len(store.saved) == 1


class _Session:
    def __init__(self, by_selector) -> None:
        self.by_selector = by_selector

    def find_elements(self, selector: str):
        value = self.by_selector.get(selector, [])
        if isinstance(value, Exception):
            raise value
        return value


def test_find_containers_first_matching_selector() -> None:
    cards = _cards()
    session = _Session({"article": RuntimeError("boom"), ".c_t": [], ".story": cards[:2], ".articulo-item": []})
    assert find_containers(session, ("article", ".c_t", ".articulo-item", ".story")) == cards[:2]
    assert find_containers(_Session({}), ("article", ".story")) == []
