"""Selector chains: ordered fallback rules for each field of an article card."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import yaml

from elpais_opinion.core.models import CONTENT_NOT_AVAILABLE, TITLE_NOT_FOUND

TEXT = "text"
ATTRIBUTE = "attribute"

MIN_CONTENT_LENGTH = 20

FIELDS = ("containers", "title", "content", "image")


@dataclass(frozen=True)
class SelectorRule:
    """One lookup: a CSS selector plus how to read the matched element.

    ``text`` mode reads visible text and falls back to ``attributes`` when the
    text is empty; ``attribute`` mode reads ``attributes`` in order.
    """

    selector: str
    mode: str = TEXT
    attributes: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.mode not in (TEXT, ATTRIBUTE):
            raise ValueError(f"unknown extraction mode: {self.mode}")
        if self.mode == ATTRIBUTE and not self.attributes:
            raise ValueError(f"attribute rule needs attribute names: {self.selector}")


def text_rule(selector: str, *fallback_attributes: str) -> SelectorRule:
    return SelectorRule(selector, TEXT, tuple(fallback_attributes))


def attribute_rule(selector: str, *attributes: str) -> SelectorRule:
    return SelectorRule(selector, ATTRIBUTE, tuple(attributes))


def _non_empty(value: str) -> bool:
    return bool(value.strip())


def _long_enough(value: str) -> bool:
    return len(value.strip()) > MIN_CONTENT_LENGTH


def _absolute_url(value: str) -> bool:
    return value.strip().startswith("http")


@dataclass(frozen=True)
class SelectorChain:
    field: str
    rules: Tuple[SelectorRule, ...]
    accept: Callable[[str], bool]
    default: Optional[str] = None

    def selectors(self) -> List[str]:
        return [r.selector for r in self.rules]

    def extended(self, selectors: Iterable[str]) -> "SelectorChain":
        """Append selectors not already in the chain, reusing the last rule's read mode."""
        template = self.rules[-1] if self.rules else text_rule("*")
        known = set(self.selectors())
        extra = []
        for sel in selectors:
            if sel not in known:
                known.add(sel)
                extra.append(replace(template, selector=sel))
        return replace(self, rules=self.rules + tuple(extra))


CONTAINER_SELECTORS: Tuple[str, ...] = (
    "article",
    ".c_t",
    ".articulo-item",
    ".story",
    "[data-dtm-region='articulo_portada']",
    ".elemento-multimedia",
)

TITLE_CHAIN = SelectorChain(
    "title",
    tuple(
        text_rule(sel, "title")
        for sel in ("h2", "h1", "h3", ".titulo", ".headline", ".title", "a[title]", ".c_t_a", ".story-title")
    ),
    _non_empty,
    TITLE_NOT_FOUND,
)

CONTENT_CHAIN = SelectorChain(
    "content",
    tuple(
        text_rule(sel)
        for sel in ("p", ".entradilla", ".summary", ".excerpt", ".description", ".c_e", ".story-excerpt")
    ),
    _long_enough,
    CONTENT_NOT_AVAILABLE,
)

IMAGE_CHAIN = SelectorChain(
    "image",
    tuple(
        attribute_rule(sel, "src", "data-src")
        for sel in ("img", ".imagen img", ".photo img", ".c_m_e img")
    ),
    _absolute_url,
    None,
)


@dataclass(frozen=True)
class SelectorSet:
    containers: Tuple[str, ...] = CONTAINER_SELECTORS
    title: SelectorChain = TITLE_CHAIN
    content: SelectorChain = CONTENT_CHAIN
    image: SelectorChain = IMAGE_CHAIN


DEFAULT_SELECTORS = SelectorSet()


def load_selector_overrides(path: str | Path) -> Dict[str, List[str]]:
    """Read extra selectors per field from a YAML or JSON file.

    Expected shape: ``{"title": ["h2.new"], "containers": [...], ...}``.
    Unknown fields and non-string entries are dropped.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yml", ".yaml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    out: Dict[str, List[str]] = {}
    if not isinstance(data, dict):
        return out
    for key in FIELDS:
        v = data.get(key)
        if isinstance(v, list):
            sels = [str(x).strip() for x in v if isinstance(x, str) and x.strip()]
            if sels:
                out[key] = sels
    return out


def merge_selectors(base: SelectorSet, overrides: Dict[str, List[str]]) -> SelectorSet:
    containers = list(base.containers)
    containers += [s for s in overrides.get("containers", []) if s not in containers]
    return SelectorSet(
        containers=tuple(containers),
        title=base.title.extended(overrides.get("title", [])),
        content=base.content.extended(overrides.get("content", [])),
        image=base.image.extended(overrides.get("image", [])),
    )


def selectors_from_file(path: Optional[str | Path]) -> SelectorSet:
    if not path:
        return DEFAULT_SELECTORS
    return merge_selectors(DEFAULT_SELECTORS, load_selector_overrides(path))
