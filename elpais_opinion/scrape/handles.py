"""Uniform element view used by the extraction engine.

The engine only needs three operations on an article container: find the
first descendant matching a CSS selector, read visible text, read an
attribute. ``SoupHandle`` provides them over BeautifulSoup tags; the Selenium
flavour lives next to the browser session.
"""

from __future__ import annotations

from typing import Optional

from bs4 import Tag


class ElementHandle:
    def select_first(self, selector: str) -> Optional["ElementHandle"]:
        """First descendant matching ``selector`` or None.

        Raises ExtractionError only when this element itself is no longer usable.
        """
        raise NotImplementedError

    def text(self) -> str:
        raise NotImplementedError

    def attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError


class SoupHandle(ElementHandle):
    def __init__(self, tag: Tag) -> None:
        self.tag = tag

    def select_first(self, selector: str) -> Optional["SoupHandle"]:
        node = self.tag.select_one(selector)
        return SoupHandle(node) if node is not None else None

    def text(self) -> str:
        return self.tag.get_text(" ", strip=True)

    def attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def __repr__(self) -> str:
        return f"SoupHandle(<{self.tag.name}>)"
