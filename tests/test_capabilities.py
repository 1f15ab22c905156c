from __future__ import annotations

from elpais_opinion.browser.capabilities import (
    default_configurations,
    local_configuration,
    session_label,
)
from elpais_opinion.core.models import BrowserConfiguration


def test_default_matrix() -> None:
    configs = default_configurations()
    assert [c.label for c in configs] == [
        "Chrome Desktop",
        "Firefox Desktop",
        "Edge Desktop",
        "Chrome Mobile",
        "Safari Mobile",
    ]
    assert all(c.remote for c in configs)
    desktop = configs[0].capabilities
    assert desktop["browserName"] == "chrome"
    assert desktop["bstack:options"]["os"] == "Windows"
    assert desktop["bstack:options"]["osVersion"] == "11"
    iphone = configs[-1].capabilities["bstack:options"]
    assert iphone["deviceName"] == "iPhone 14"
    assert iphone["realMobile"] == "true"
    assert configs[-1].describe() == "iPhone 14 (16)"
    assert configs[1].describe() == "Windows 11"


def test_with_credentials_does_not_touch_the_original() -> None:
    base = default_configurations()[0]
    creds = base.with_credentials("alice", "k3y")
    assert creds.capabilities["bstack:options"]["userName"] == "alice"
    assert creds.capabilities["bstack:options"]["accessKey"] == "k3y"
    assert "userName" not in base.capabilities["bstack:options"]
    assert creds.label == base.label


def test_local_configuration() -> None:
    cfg = local_configuration("firefox")
    assert not cfg.remote
    assert cfg.browser_name == "firefox"
    assert cfg.label == "Local Firefox"
    assert cfg.describe() == "local"


def test_session_label_fallbacks() -> None:
    assert session_label(BrowserConfiguration("Mine", {"browserName": "edge"})) == "Mine"
    assert session_label(BrowserConfiguration("", {"name": "Named", "browserName": "edge"})) == "Named"
    assert (
        session_label(BrowserConfiguration("", {"bstack:options": {"sessionName": "S1"}, "browserName": "edge"}))
        == "S1"
    )
    assert session_label(BrowserConfiguration("", {"browserName": "edge"})) == "edge"
    assert session_label(BrowserConfiguration("", {})) == "BrowserStack Session"
