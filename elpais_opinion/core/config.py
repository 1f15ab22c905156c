from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_BASE_URL = "https://elpais.com"
DEFAULT_OPINION_SECTION = "/opinion/"
DEFAULT_TRANSLATION_API_URL = "https://api.mymemory.translated.net/get"
DEFAULT_HUB_URL = "https://hub-cloud.browserstack.com/wd/hub"

# Java-style property names (config.properties) mapped to RunConfig keys
_PROPERTY_ALIASES = {
    "elpais_base_url": "base_url",
    "elpais_opinion_section": "opinion_section",
    "browserstack_accesskey": "browserstack_access_key",
}

_ENV_CREDENTIALS = {
    "BROWSERSTACK_USERNAME": "browserstack_username",
    "BROWSERSTACK_ACCESS_KEY": "browserstack_access_key",
    "BROWSERSTACK_HUB_URL": "browserstack_hub_url",
}


@dataclass(frozen=True)
class RunConfig:
    """Immutable run parameters, built once per process and passed down explicitly."""

    base_url: str = DEFAULT_BASE_URL
    opinion_section: str = DEFAULT_OPINION_SECTION
    max_articles: int = 5
    remote_max_articles: int = 2
    parallel_threads: int = 5
    implicit_wait: int = 10
    page_load_timeout: int = 30
    explicit_wait: int = 15
    download_directory: str = "downloads"
    image_timeout: int = 5
    translation_api_url: str = DEFAULT_TRANSLATION_API_URL
    translation_langpair: str = "es|en"
    translation_timeout: int = 10
    translation_attempts: int = 3
    browserstack_username: Optional[str] = None
    browserstack_access_key: Optional[str] = None
    browserstack_hub_url: str = DEFAULT_HUB_URL
    selectors_file: Optional[str] = None
    runs_dir: str = "runs"

    @property
    def opinion_url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.opinion_section.lstrip("/")

    @property
    def has_credentials(self) -> bool:
        user = self.browserstack_username or ""
        key = self.browserstack_access_key or ""
        return bool(user and key and "YOUR_" not in user and "YOUR_" not in key)

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        d = asdict(self)
        if redact and d.get("browserstack_access_key"):
            d["browserstack_access_key"] = "***"
        return d


def _normalize_key(key: str) -> str:
    k = str(key).strip().lower().replace(".", "_").replace("-", "_")
    return _PROPERTY_ALIASES.get(k, k)


def _load_properties(text: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", "!")):
            continue
        sep = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
        if sep < 0:
            continue
        out[line[:sep].strip()] = line[sep + 1 :].strip()
    return out


def load_config_file(path: Optional[str | Path]) -> Dict[str, Any]:
    """Load a YAML/JSON/.properties config file into a dict with RunConfig-style keys."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}

    text = p.read_text(encoding="utf-8")
    suffix = p.suffix.lower()
    if suffix in (".yml", ".yaml"):
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text) or {}
    elif suffix == ".properties":
        data = _load_properties(text)
    else:
        raise ValueError(f"unsupported config format: {p.name}")
    if not isinstance(data, dict):
        raise ValueError(f"config root must be a mapping: {p}")
    return {_normalize_key(k): v for k, v in data.items()}


def load_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect overrides from BROWSERSTACK_* and EPO_<KEY> environment variables."""
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    for name, key in _ENV_CREDENTIALS.items():
        if env.get(name):
            out[key] = env[name]
    for f in fields(RunConfig):
        v = env.get(f"EPO_{f.name.upper()}")
        if v not in (None, ""):
            out[f.name] = v
    return out


def merge_config(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge dicts left to right; later non-None values win."""
    out: Dict[str, Any] = {}
    for layer in layers:
        for k, v in (layer or {}).items():
            if v is not None:
                out[k] = v
    return out


def build_run_config(conf: Mapping[str, Any]) -> RunConfig:
    """Coerce a merged mapping into a RunConfig; unknown keys are ignored."""
    kwargs: Dict[str, Any] = {}
    for f in fields(RunConfig):
        if f.name not in conf or conf[f.name] is None:
            continue
        v = conf[f.name]
        if f.type == "int":
            try:
                v = int(v)
            except (TypeError, ValueError):
                raise ValueError(f"{f.name} must be an integer, got {v!r}") from None
            if v < 1:
                raise ValueError(f"{f.name} must be >= 1, got {v}")
        else:
            v = str(v).strip()
        kwargs[f.name] = v
    return RunConfig(**kwargs)


def load_run_config(
    path: Optional[str | Path] = None, overrides: Optional[Mapping[str, Any]] = None
) -> RunConfig:
    """File, then environment, then explicit overrides (CLI options)."""
    return build_run_config(merge_config(load_config_file(path), load_env(), overrides))
