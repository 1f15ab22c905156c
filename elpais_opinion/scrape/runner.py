from __future__ import annotations

import time
from typing import List, Optional

from elpais_opinion.browser.session import BrowserSession
from elpais_opinion.core.config import RunConfig
from elpais_opinion.core.errors import NavigationError
from elpais_opinion.core.models import Article
from elpais_opinion.infra.logging import (
    get_unified_logger,
    log_error,
    log_task_end,
    log_task_start,
)
from elpais_opinion.scrape.extractor import build_article, find_containers
from elpais_opinion.scrape.images import ImageStore
from elpais_opinion.scrape.selectors import DEFAULT_SELECTORS, SelectorSet

OPINION_LINK_TEXTS = ("Opinión", "Opinion")
SPANISH_MARKERS = ("opinión", "política", "españa")


class OpinionScraper:
    """Drives one session through the home page and the Opinion section and reads article cards."""

    def __init__(
        self,
        session: BrowserSession,
        cfg: RunConfig,
        selectors: SelectorSet = DEFAULT_SELECTORS,
        image_store: Optional[ImageStore] = None,
    ) -> None:
        self.session = session
        self.cfg = cfg
        self.selectors = selectors
        self.image_store = image_store
        self._log = get_unified_logger("scrape", "runner")

    def navigate_home(self) -> None:
        url = self.cfg.base_url
        self._log.info("%s: navigating to %s", self.session.label, url)
        try:
            self.session.navigate(url)
        except NavigationError as e:
            # the page is often usable even when the load times out
            self._log.warning("%s: page load issue, proceeding: %s", self.session.label, e)
            self.session.stop_loading()
        self.session.wait_for("body", self.cfg.explicit_wait)
        source = self.session.page_source.lower()
        if any(m in source for m in SPANISH_MARKERS):
            self._log.info("%s: website is displaying content in Spanish", self.session.label)
        else:
            self._log.warning("%s: website might not be in Spanish", self.session.label)

    def navigate_to_opinion(self) -> None:
        """Click the Opinion link, else open the section URL directly.

        Any failure gets one more direct attempt; if that fails too the
        NavigationError is raised to the caller.
        """
        url = self.cfg.opinion_url
        try:
            if self.session.follow_link(OPINION_LINK_TEXTS):
                self._log.info("%s: clicked Opinion section link", self.session.label)
            else:
                self.session.navigate(url)
                self._log.info("%s: navigated directly to %s", self.session.label, url)
            if not self.session.wait_for("article", self.cfg.explicit_wait):
                raise NavigationError(f"no article element on {self.session.current_url}")
        except Exception as e:
            self._log.warning("%s: opinion navigation failed (%s), retrying %s", self.session.label, e, url)
            self.session.navigate(url)
            self._log.info("%s: fallback navigation to Opinion section done", self.session.label)

    def scrape_articles(self, max_articles: int) -> List[Article]:
        t0 = time.time()
        log_task_start("scrape", "articles", {"session": self.session.label, "max": max_articles})
        containers = find_containers(self.session, self.selectors.containers)
        articles: List[Article] = []
        for i, container in enumerate(containers[: max(0, max_articles)], start=1):
            try:
                article = build_article(container, i, self.selectors, self.image_store)
            except Exception as e:
                log_error("scrape", "articles", e, context=f"{self.session.label}: article {i} skipped")
                continue
            if article.title and article.title.strip():
                articles.append(article)
                self._log.info("%s: scraped article %d: %s", self.session.label, i, article.title)
        log_task_end(
            "scrape",
            "articles",
            True,
            {
                "session": self.session.label,
                "containers": len(containers),
                "articles": len(articles),
                "elapsed": round(time.time() - t0, 3),
            },
        )
        return articles

    def run(self, max_articles: int) -> List[Article]:
        self.navigate_home()
        self.navigate_to_opinion()
        return self.scrape_articles(max_articles)
