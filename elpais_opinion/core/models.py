from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

TITLE_NOT_FOUND = "Title not found"
CONTENT_NOT_AVAILABLE = "Content preview not available"


def repetition_rate(repeated: int, unique: int) -> Optional[float]:
    """Percentage of unique words that are repeated; None when nothing was counted."""
    if unique <= 0:
        return None
    return repeated * 100.0 / unique


@dataclass(frozen=True)
class Article:
    index: int
    title: str
    content: str
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    translated_title: Optional[str] = None

    def with_translation(self, translated_title: str) -> "Article":
        """Return a copy carrying the translated title; an article is translated once."""
        if self.translated_title is not None:
            raise ValueError(f"article {self.index} already has a translated title")
        return replace(self, translated_title=translated_title)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BrowserConfiguration:
    """A capability set for one browser/device plus the label used in reports.

    ``capabilities`` follows the W3C layout, with vendor options under
    ``bstack:options``. Treat instances as read-only; ``with_credentials``
    returns a deep copy.
    """

    label: str
    capabilities: Dict[str, Any] = field(default_factory=dict)
    remote: bool = True

    @property
    def browser_name(self) -> str:
        return str(self.capabilities.get("browserName") or "chrome").lower()

    def with_credentials(self, username: str, access_key: str) -> "BrowserConfiguration":
        caps = copy.deepcopy(self.capabilities)
        opts = caps.get("bstack:options")
        if not isinstance(opts, dict):
            opts = {}
        opts["userName"] = username
        opts["accessKey"] = access_key
        caps["bstack:options"] = opts
        return replace(self, capabilities=caps)

    def describe(self) -> str:
        opts = self.capabilities.get("bstack:options") or {}
        if opts.get("deviceName"):
            return f"{opts['deviceName']} ({opts.get('osVersion', '?')})"
        if opts.get("os"):
            return f"{opts['os']} {opts.get('osVersion', '')}".strip()
        return "local"


@dataclass(frozen=True)
class Success:
    articles: Tuple[Article, ...] = ()
    analysis: Optional["WordFrequencyTable"] = None

    ok = True


@dataclass(frozen=True)
class Failure:
    cause: BaseException

    ok = False

    @property
    def message(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class ExecutionResult:
    label: str
    outcome: Outcome
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"label": self.label, "ok": self.ok, "elapsed": round(self.elapsed, 3)}
        if isinstance(self.outcome, Success):
            d["articles"] = [a.to_dict() for a in self.outcome.articles]
            if self.outcome.analysis is not None:
                d["analysis"] = self.outcome.analysis.to_dict()
        else:
            d["error"] = self.outcome.message
        return d


@dataclass(frozen=True)
class WordFrequencyTable:
    """Repeated words (count > 2), most frequent first, plus the stats of the same pass."""

    entries: Tuple[Tuple[str, int], ...] = ()
    headers_analyzed: int = 0
    total_words: int = 0
    unique_words: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __contains__(self, word: object) -> bool:
        return any(w == word for w, _ in self.entries)

    def __getitem__(self, word: str) -> int:
        for w, c in self.entries:
            if w == word:
                return c
        raise KeyError(word)

    @property
    def repeated_words(self) -> int:
        return len(self.entries)

    @property
    def repetition_rate(self) -> Optional[float]:
        return repetition_rate(self.repeated_words, self.unique_words)

    def as_dict(self) -> Dict[str, int]:
        return dict(self.entries)

    def words(self) -> List[str]:
        return [w for w, _ in self.entries]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repeated": [{"word": w, "count": c} for w, c in self.entries],
            "headers_analyzed": self.headers_analyzed,
            "total_words": self.total_words,
            "unique_words": self.unique_words,
            "repeated_words": self.repeated_words,
            "repetition_rate": self.repetition_rate,
        }
