from __future__ import annotations

from pathlib import Path

from conftest import FakeHttp, FakeTranslator

from elpais_opinion.browser.capabilities import local_configuration
from elpais_opinion.browser.session import StaticSession
from elpais_opinion.core.config import RunConfig
from elpais_opinion.core.models import (
    CONTENT_NOT_AVAILABLE,
    Article,
    BrowserConfiguration,
    Failure,
    Success,
)
from elpais_opinion.scrape import images as img
from elpais_opinion.scrape.runner import OpinionScraper
from elpais_opinion.services.harness import order_by_configuration, run_all
from elpais_opinion.services.pipeline import SessionPipeline, translate_articles

TITLES_EN = {
    "La economía de España": "The economy of Spain",
    "La política del agua": "The water policy of Spain",
    "Opinión: el futuro de España": "Opinion: the future of Spain",
}


def _factory(pages, sessions):
    def make(config: BrowserConfiguration, cfg: RunConfig) -> StaticSession:
        s = StaticSession(label=config.label, http=FakeHttp(pages))
        sessions.append(s)
        return s

    return make


def test_scraper_follows_opinion_link(site_pages) -> None:
    http = FakeHttp(site_pages)
    session = StaticSession("t", http=http)
    articles = OpinionScraper(session, RunConfig()).run(5)
    assert http.requested == ["https://elpais.com", "https://elpais.com/opinion/"]
    assert [a.index for a in articles] == [1, 2, 3]
    assert articles[1].content == CONTENT_NOT_AVAILABLE
    assert articles[2].image_url == "https://imgs.elpais.com/c.webp"


def test_scraper_falls_back_to_direct_url(site_pages) -> None:
    # home page fails to load, so there is no link to follow
    pages = {"https://elpais.com/opinion/": site_pages["https://elpais.com/opinion/"]}
    http = FakeHttp(pages)
    articles = OpinionScraper(StaticSession("t", http=http), RunConfig()).run(2)
    assert [a.title for a in articles] == ["La economía de España", "La política del agua"]


def test_pipeline_translates_and_analyzes(site_pages) -> None:
    sessions = []
    translator = FakeTranslator(TITLES_EN)
    pipeline = SessionPipeline(
        RunConfig(),
        download_images=False,
        session_factory=_factory(site_pages, sessions),
        translator_factory=lambda cfg: translator,
    )
    result = pipeline(local_configuration("static"))
    assert result.ok
    assert result.label == "Local Static"
    outcome = result.outcome
    assert isinstance(outcome, Success)
    assert [a.translated_title for a in outcome.articles] == list(TITLES_EN.values())
    assert [a.title for a in outcome.articles] == list(TITLES_EN)
    assert outcome.analysis is not None
    assert outcome.analysis.as_dict() == {"spain": 3}
    assert translator.closed
    assert sessions[0]._http.closed


def test_pipeline_without_translation(site_pages) -> None:
    pipeline = SessionPipeline(
        RunConfig(),
        max_articles=1,
        translate=False,
        download_images=False,
        session_factory=_factory(site_pages, []),
    )
    outcome = pipeline(local_configuration("static")).outcome
    assert len(outcome.articles) == 1
    assert outcome.articles[0].translated_title is None
    assert outcome.analysis is None


def test_translate_articles_sets_title_once() -> None:
    arts = [Article(1, "Hola", "x"), Article(2, "Adiós", "y")]
    out = translate_articles(arts, FakeTranslator({"Hola": "Hello"}))
    assert [a.translated_title for a in out] == ["Hello", "Adiós"]
    assert arts[0].translated_title is None


def test_unreachable_site_becomes_failure_and_closes_session() -> None:
    sessions = []
    configs = [BrowserConfiguration("A", {"browserName": "chrome"}), BrowserConfiguration("B", {"browserName": "edge"})]
    pipeline = SessionPipeline(
        RunConfig(),
        download_images=False,
        session_factory=_factory({}, sessions),
        translator_factory=lambda cfg: FakeTranslator(),
    )
    results = order_by_configuration(run_all(configs, 2, pipeline), configs)
    assert [r.ok for r in results] == [False, False]
    assert all(isinstance(r.outcome, Failure) for r in results)
    assert "NavigationError" in results[0].outcome.message
    assert all(s._http.closed for s in sessions)


def test_images_go_to_per_session_directory(site_pages, tmp_path, monkeypatch) -> None:
    saved = []

    def fake_download(url, path, timeouts=(5, 5), session=None):
        saved.append(str(path))
        return True

    monkeypatch.setattr(img, "download_to", fake_download)
    cfg = RunConfig(download_directory=str(tmp_path / "downloads"))
    pipeline = SessionPipeline(
        cfg,
        translate=False,
        session_factory=_factory(site_pages, []),
    )
    outcome = pipeline(BrowserConfiguration("Chrome Desktop", {"browserName": "chrome"})).outcome
    assert [a.image_path for a in outcome.articles if a.image_url] == saved
    assert Path(saved[0]) == tmp_path / "downloads" / "Chrome_Desktop" / "article_1_image.jpg"
    assert Path(saved[1]).name == "article_3_image.webp"
