"""Spanish to English headline translation through the MyMemory HTTP API.

``Translator.translate`` never raises: any failure returns the input text.
"""

from __future__ import annotations

import re
import time
from typing import Any, Dict, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from elpais_opinion.core.config import RunConfig
from elpais_opinion.infra.logging import get_unified_logger, log_api_call

_HTTP_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json,text/plain,*/*",
}


class TranslationError(RuntimeError):
    pass


class Translator:
    def __init__(
        self,
        api_url: str,
        langpair: str = "es|en",
        timeout: int = 10,
        attempts: int = 3,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.langpair = langpair
        self.timeout = timeout
        self.attempts = max(1, int(attempts))
        self._http = session or requests.Session()
        self._log = get_unified_logger("translate", "mymemory")

    @classmethod
    def from_config(cls, cfg: RunConfig) -> "Translator":
        return cls(
            cfg.translation_api_url,
            langpair=cfg.translation_langpair,
            timeout=cfg.translation_timeout,
            attempts=cfg.translation_attempts,
        )

    def _request(self, text: str) -> Dict[str, Any]:
        params = {"q": text, "langpair": self.langpair}
        t0 = time.time()
        r = self._http.get(self.api_url, params=params, headers=_HTTP_HEADERS, timeout=self.timeout)
        log_api_call(
            "translate",
            "mymemory",
            "mymemory",
            self.api_url,
            params,
            r.text[:200],
            time.time() - t0,
            r.status_code,
        )
        r.raise_for_status()
        return r.json()

    @staticmethod
    def _parse(data: Any) -> str:
        if not isinstance(data, dict):
            raise TranslationError("unexpected response payload")
        status = data.get("responseStatus", 200)
        try:
            status = int(status)
        except (TypeError, ValueError):
            status = 0
        if status != 200:
            raise TranslationError(f"responseStatus {status}: {data.get('responseDetails')}")
        response_data = data.get("responseData")
        if not isinstance(response_data, dict):
            raise TranslationError(f"unexpected responseData: {response_data!r}")
        translated = response_data.get("translatedText")
        if not isinstance(translated, str) or not translated.strip():
            raise TranslationError("missing translatedText")
        return translated.strip()

    def translate(self, spanish_text: Optional[str]) -> str:
        """English for ``spanish_text``; the input itself when translation fails.

        None and whitespace-only input count as empty and give ``""``.
        """
        if spanish_text is None or not spanish_text.strip():
            return ""
        clean = re.sub(r"\s+", " ", spanish_text.strip())
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.attempts),
                wait=wait_exponential(multiplier=0.5, max=4),
                retry=retry_if_exception_type(requests.RequestException),
                reraise=True,
            ):
                with attempt:
                    data = self._request(clean)
            translated = self._parse(data)
        except (requests.RequestException, ValueError, TranslationError) as e:
            self._log.warning("translation failed, keeping original: %s | %s", clean, e)
            return spanish_text
        self._log.info("translated: %r -> %r", clean, translated)
        return translated

    def close(self) -> None:
        self._http.close()
