"""Default BrowserStack browser/device matrix: three desktop browsers, two real phones."""

from __future__ import annotations

from typing import Any, Dict, List

from elpais_opinion.core.models import BrowserConfiguration

PROJECT_NAME = "El Pais Opinion Scraper"
BUILD_NAME = "Build 1.0"


def _bstack(session_name: str, **extra: Any) -> Dict[str, Any]:
    opts: Dict[str, Any] = {
        "projectName": PROJECT_NAME,
        "buildName": BUILD_NAME,
        "sessionName": session_name,
    }
    opts.update(extra)
    return opts


def _desktop(browser: str, label: str) -> BrowserConfiguration:
    caps: Dict[str, Any] = {
        "browserName": browser,
        "browserVersion": "latest",
        "bstack:options": _bstack(
            f"El Pais Scraping - {label}", os="Windows", osVersion="11", resolution="1920x1080"
        ),
    }
    return BrowserConfiguration(label=label, capabilities=caps)


def _mobile(browser: str, label: str, device: str, os_version: str) -> BrowserConfiguration:
    caps: Dict[str, Any] = {
        "browserName": browser,
        "bstack:options": _bstack(
            f"El Pais Scraping - {label}", deviceName=device, osVersion=os_version, realMobile="true"
        ),
    }
    return BrowserConfiguration(label=label, capabilities=caps)


def default_configurations() -> List[BrowserConfiguration]:
    return [
        _desktop("chrome", "Chrome Desktop"),
        _desktop("firefox", "Firefox Desktop"),
        _desktop("edge", "Edge Desktop"),
        _mobile("chrome", "Chrome Mobile", "Samsung Galaxy S22", "12.0"),
        _mobile("safari", "Safari Mobile", "iPhone 14", "16"),
    ]


def local_configuration(engine: str = "chrome") -> BrowserConfiguration:
    return BrowserConfiguration(
        label=f"Local {engine.capitalize()}",
        capabilities={"browserName": engine},
        remote=False,
    )


def session_label(config: BrowserConfiguration) -> str:
    """Report label: explicit label, then sessionName, then browserName."""
    if config.label:
        return config.label
    caps = config.capabilities
    if caps.get("name"):
        return str(caps["name"])
    opts = caps.get("bstack:options")
    if isinstance(opts, dict) and opts.get("sessionName"):
        return str(opts["sessionName"])
    return str(caps.get("browserName") or "BrowserStack Session")
