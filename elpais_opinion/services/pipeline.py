from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, List, Optional

from elpais_opinion.browser.capabilities import session_label
from elpais_opinion.browser.session import BrowserSession, open_session
from elpais_opinion.core.config import RunConfig
from elpais_opinion.core.models import Article, BrowserConfiguration, ExecutionResult, Success
from elpais_opinion.core.utils import safe_filename
from elpais_opinion.infra.logging import get_unified_logger, log_performance
from elpais_opinion.process.analyzer import analyze
from elpais_opinion.process.translation import Translator
from elpais_opinion.scrape.images import ImageStore
from elpais_opinion.scrape.runner import OpinionScraper
from elpais_opinion.scrape.selectors import SelectorSet, selectors_from_file

SessionFactory = Callable[[BrowserConfiguration, RunConfig], BrowserSession]
TranslatorFactory = Callable[[RunConfig], Translator]


def translate_articles(articles: List[Article], translator: Translator) -> List[Article]:
    """Attach an English title to every article (the original text when translation fails)."""
    return [a.with_translation(translator.translate(a.title)) for a in articles]


class SessionPipeline:
    """Scrape, translate and optionally analyse, for one browser configuration.

    Instances are shared by all harness workers but keep no per-run state:
    every call opens its own session, translator and image directory.
    """

    def __init__(
        self,
        cfg: RunConfig,
        max_articles: Optional[int] = None,
        *,
        translate: bool = True,
        analyze_titles: bool = True,
        download_images: bool = True,
        selectors: Optional[SelectorSet] = None,
        session_factory: SessionFactory = open_session,
        translator_factory: TranslatorFactory = Translator.from_config,
        per_session_images: bool = True,
    ) -> None:
        self.cfg = cfg
        self.max_articles = max_articles if max_articles is not None else cfg.max_articles
        self.translate = translate
        self.analyze_titles = analyze_titles and translate
        self.download_images = download_images
        self.selectors = selectors or selectors_from_file(cfg.selectors_file)
        self.session_factory = session_factory
        self.translator_factory = translator_factory
        self.per_session_images = per_session_images
        self._log = get_unified_logger("pipeline", "session")

    def _image_store(self, label: str) -> Optional[ImageStore]:
        if not self.download_images:
            return None
        directory = Path(self.cfg.download_directory)
        if self.per_session_images:
            directory = directory / safe_filename(label.replace(" ", "_"))
        return ImageStore(directory, timeout=self.cfg.image_timeout)

    def __call__(self, config: BrowserConfiguration) -> ExecutionResult:
        label = session_label(config)
        t0 = time.time()
        with self.session_factory(config, self.cfg) as session:
            scraper = OpinionScraper(session, self.cfg, self.selectors, self._image_store(label))
            articles = scraper.run(self.max_articles)
        self._log.info("%s: scraped %d articles", label, len(articles))

        analysis = None
        if self.translate and articles:
            translator = self.translator_factory(self.cfg)
            try:
                articles = translate_articles(articles, translator)
            finally:
                translator.close()
            if self.analyze_titles:
                analysis = analyze([a.translated_title for a in articles])
        elapsed = time.time() - t0
        log_performance(
            "pipeline",
            "session",
            "session_seconds",
            round(elapsed, 3),
            {"session": label, "articles": len(articles)},
        )
        return ExecutionResult(label, Success(tuple(articles), analysis), elapsed)
