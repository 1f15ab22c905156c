from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

from elpais_opinion.core.errors import ExtractionError
from elpais_opinion.core.models import Article
from elpais_opinion.infra.logging import get_unified_logger
from elpais_opinion.scrape.handles import ElementHandle
from elpais_opinion.scrape.selectors import (
    ATTRIBUTE,
    DEFAULT_SELECTORS,
    SelectorChain,
    SelectorRule,
    SelectorSet,
)

_log = get_unified_logger("scrape", "extract")


def _candidates(element: ElementHandle, rule: SelectorRule) -> Iterator[str]:
    if rule.mode == ATTRIBUTE:
        for name in rule.attributes:
            value = element.attribute(name)
            if value:
                yield value.strip()
        return
    text = (element.text() or "").strip()
    if text:
        yield text
        return
    for name in rule.attributes:
        value = element.attribute(name)
        if value and value.strip():
            yield value.strip()


def extract_field(container: ElementHandle, chain: SelectorChain) -> Optional[str]:
    """Return the first candidate accepted by ``chain``, or the chain default.

    A rule that finds nothing, or fails to look up, just hands over to the
    next rule. ExtractionError (the container itself is gone) propagates.
    """
    for rule in chain.rules:
        try:
            element = container.select_first(rule.selector)
            if element is None:
                continue
            for value in _candidates(element, rule):
                if chain.accept(value):
                    return value
        except ExtractionError:
            raise
        except Exception as e:  # selector miss or driver hiccup on this rule only
            _log.debug("%s rule %r skipped: %s", chain.field, rule.selector, e)
            continue
    return chain.default


def find_containers(session, selectors: Sequence[str]) -> List[ElementHandle]:
    """Containers from the first selector that matches anything; [] if none does."""
    for selector in selectors:
        try:
            elements = session.find_elements(selector)
        except Exception as e:
            _log.debug("container selector %r failed: %s", selector, e)
            continue
        if elements:
            _log.info("found %d containers using selector: %s", len(elements), selector)
            return list(elements)
    _log.warning("no container selector matched the page")
    return []


def build_article(
    container: ElementHandle,
    index: int,
    selectors: SelectorSet = DEFAULT_SELECTORS,
    image_store=None,
) -> Article:
    """Assemble one Article from a container.

    ``image_store`` (optional) persists the accepted image URL; a failed
    download leaves ``image_path`` unset.
    """
    title = extract_field(container, selectors.title)
    content = extract_field(container, selectors.content)
    image_url = extract_field(container, selectors.image)
    image_path = None
    if image_url and image_store is not None:
        image_path = image_store.save(image_url, index)
    return Article(
        index=index,
        title=title,
        content=content,
        image_url=image_url,
        image_path=image_path,
    )
