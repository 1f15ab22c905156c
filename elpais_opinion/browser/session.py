"""Browser sessions: Selenium (local or remote hub) and a static requests/bs4 variant.

Both expose the small surface the scraper needs: navigate, look up elements by
CSS selector, follow a link by its text, wait for an element, close.
"""

from __future__ import annotations

from typing import List, Optional, Sequence
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.by import By
from selenium.webdriver.edge.options import Options as EdgeOptions
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.safari.options import Options as SafariOptions
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from elpais_opinion.browser.capabilities import session_label
from elpais_opinion.core.config import RunConfig
from elpais_opinion.core.errors import ExtractionError, NavigationError, SessionInitError
from elpais_opinion.core.models import BrowserConfiguration
from elpais_opinion.infra.logging import get_unified_logger
from elpais_opinion.scrape.handles import ElementHandle, SoupHandle

_log = get_unified_logger("browser", "session")

_OPTIONS = {
    "chrome": ChromeOptions,
    "firefox": FirefoxOptions,
    "edge": EdgeOptions,
    "microsoftedge": EdgeOptions,
    "safari": SafariOptions,
}

_SPANISH_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept-Language": "es-ES,es;q=0.9",
}


class SeleniumHandle(ElementHandle):
    def __init__(self, element) -> None:
        self.element = element

    def select_first(self, selector: str) -> Optional["SeleniumHandle"]:
        try:
            return SeleniumHandle(self.element.find_element(By.CSS_SELECTOR, selector))
        except NoSuchElementException:
            return None
        except StaleElementReferenceException as e:
            raise ExtractionError("article container is no longer attached to the page") from e

    def text(self) -> str:
        return self.element.text or ""

    def attribute(self, name: str) -> Optional[str]:
        return self.element.get_attribute(name)


class BrowserSession:
    label: str = "session"

    def navigate(self, url: str) -> None:
        raise NotImplementedError

    def stop_loading(self) -> None:
        """Abort whatever the page is still loading (best effort)."""

    @property
    def page_source(self) -> str:
        raise NotImplementedError

    @property
    def current_url(self) -> str:
        raise NotImplementedError

    def find_elements(self, selector: str) -> List[ElementHandle]:
        raise NotImplementedError

    def follow_link(self, texts: Sequence[str]) -> bool:
        """Open the first link whose text contains one of ``texts``; False if none exists."""
        raise NotImplementedError

    def wait_for(self, selector: str, timeout: float) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class SeleniumSession(BrowserSession):
    def __init__(self, driver, label: str) -> None:
        self.driver = driver
        self.label = label

    def navigate(self, url: str) -> None:
        try:
            self.driver.get(url)
        except WebDriverException as e:
            raise NavigationError(f"could not load {url}: {e.msg or e}") from e

    def stop_loading(self) -> None:
        try:
            self.driver.execute_script("window.stop();")
        except WebDriverException as e:
            _log.debug("window.stop() failed: %s", e)

    @property
    def page_source(self) -> str:
        return self.driver.page_source or ""

    @property
    def current_url(self) -> str:
        return self.driver.current_url

    def find_elements(self, selector: str) -> List[ElementHandle]:
        return [SeleniumHandle(e) for e in self.driver.find_elements(By.CSS_SELECTOR, selector)]

    def follow_link(self, texts: Sequence[str]) -> bool:
        for text in texts:
            links = self.driver.find_elements(By.PARTIAL_LINK_TEXT, text)
            if links:
                links[0].click()
                return True
        return False

    def wait_for(self, selector: str, timeout: float) -> bool:
        try:
            WebDriverWait(self.driver, timeout).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )
            return True
        except TimeoutException:
            return False
        except WebDriverException as e:
            raise NavigationError(f"waiting for {selector!r} failed: {e.msg or e}") from e

    def close(self) -> None:
        try:
            self.driver.quit()
            _log.info("%s: WebDriver closed", self.label)
        except WebDriverException as e:
            _log.warning("%s: error closing WebDriver: %s", self.label, e)


class StaticSession(BrowserSession):
    """Fetches pages with requests and queries them with BeautifulSoup; no JavaScript."""

    def __init__(self, label: str = "static", timeout: float = 30, http=None) -> None:
        self.label = label
        self.timeout = timeout
        self._http = http or requests.Session()
        self._soup: Optional[BeautifulSoup] = None
        self._html = ""
        self._url = ""

    def load_html(self, html: str, url: str = "") -> None:
        self._html = html
        self._url = url
        self._soup = BeautifulSoup(html, "html.parser")

    def navigate(self, url: str) -> None:
        try:
            r = self._http.get(url, headers=_SPANISH_HEADERS, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise NavigationError(f"could not load {url}: {e}") from e
        r.encoding = r.apparent_encoding or r.encoding or "utf-8"
        self.load_html(r.text, r.url or url)

    @property
    def page_source(self) -> str:
        return self._html

    @property
    def current_url(self) -> str:
        return self._url

    def find_elements(self, selector: str) -> List[ElementHandle]:
        if self._soup is None:
            return []
        return [SoupHandle(t) for t in self._soup.select(selector)]

    def follow_link(self, texts: Sequence[str]) -> bool:
        if self._soup is None:
            return False
        for text in texts:
            for a in self._soup.find_all("a", href=True):
                if text in a.get_text():
                    self.navigate(urljoin(self._url, a["href"]))
                    return True
        return False

    def wait_for(self, selector: str, timeout: float) -> bool:
        return self._soup is not None and self._soup.select_one(selector) is not None

    def close(self) -> None:
        self._http.close()


def _local_driver(browser: str, cfg: RunConfig):
    if browser == "firefox":
        opts = FirefoxOptions()
        opts.add_argument("-headless")
        opts.set_preference("intl.accept_languages", "es-ES, es")
        opts.page_load_strategy = "eager"
        driver = webdriver.Firefox(options=opts)
    else:
        opts = ChromeOptions()
        opts.page_load_strategy = "eager"
        for arg in (
            "--headless=new",
            "--no-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--window-size=1920,1080",
            "--lang=es",
        ):
            opts.add_argument(arg)
        opts.add_experimental_option("prefs", {"intl.accept_languages": "es,es-ES"})
        driver = webdriver.Chrome(options=opts)
    driver.implicitly_wait(cfg.implicit_wait)
    driver.set_page_load_timeout(cfg.page_load_timeout)
    return driver


def _remote_driver(config: BrowserConfiguration, cfg: RunConfig):
    if not cfg.has_credentials:
        raise SessionInitError(
            "BrowserStack credentials are missing; set browserstack_username/browserstack_access_key"
        )
    creds = config.with_credentials(cfg.browserstack_username, cfg.browserstack_access_key)
    options = _OPTIONS.get(creds.browser_name, ChromeOptions)()
    for key, value in creds.capabilities.items():
        if key != "browserName":
            options.set_capability(key, value)
    driver = webdriver.Remote(command_executor=cfg.browserstack_hub_url, options=options)
    driver.implicitly_wait(cfg.implicit_wait)
    return driver


def open_session(config: BrowserConfiguration, cfg: RunConfig) -> BrowserSession:
    """Create the session described by ``config``; any failure becomes SessionInitError."""
    label = session_label(config)
    if not config.remote and config.browser_name == "static":
        return StaticSession(label=label, timeout=cfg.page_load_timeout)
    try:
        if config.remote:
            driver = _remote_driver(config, cfg)
        else:
            driver = _local_driver(config.browser_name, cfg)
    except SessionInitError:
        raise
    except Exception as e:
        raise SessionInitError(f"{label}: failed to start WebDriver: {e}") from e
    _log.info("%s: WebDriver initialized (%s)", label, "remote" if config.remote else "local")
    return SeleniumSession(driver, label)
