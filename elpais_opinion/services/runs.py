from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from elpais_opinion.core.config import RunConfig
from elpais_opinion.core.models import Article, ExecutionResult, WordFrequencyTable
from elpais_opinion.core.utils import ensure_directory, now_stamp
from elpais_opinion.infra.logging import unified_print


def runs_base_dir(cfg: Optional[RunConfig] = None) -> Path:
    return Path(cfg.runs_dir if cfg else "runs")


def new_run_dir(base: Optional[Path] = None) -> Path:
    return ensure_directory((base or Path("runs")) / now_stamp())


def clean_runs(base: Path, keep: int) -> List[Path]:
    """Delete all but the ``keep`` most recent run directories; returns what was deleted."""
    if not base.exists():
        return []
    runs = sorted((p for p in base.iterdir() if p.is_dir()), key=lambda p: p.stat().st_mtime, reverse=True)
    deleted: List[Path] = []
    for p in runs[max(0, keep) :]:
        shutil.rmtree(p)
        deleted.append(p)
    return deleted


def _write_json(path: Path, payload: Dict[str, Any]) -> Path:
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    unified_print(f"saved: {path}", "runs", "save")
    return path


def save_local_run(
    run_dir: Path, articles: Sequence[Article], analysis: Optional[WordFrequencyTable]
) -> Path:
    payload = {
        "metadata": {"kind": "local", "saved_at": now_stamp(), "articles": len(articles)},
        "articles": [a.to_dict() for a in articles],
        "analysis": analysis.to_dict() if analysis is not None else None,
    }
    return _write_json(run_dir / "local.json", payload)


def save_remote_run(run_dir: Path, results: Sequence[ExecutionResult]) -> Path:
    ok = sum(1 for r in results if r.ok)
    payload = {
        "metadata": {
            "kind": "remote",
            "saved_at": now_stamp(),
            "sessions": len(results),
            "succeeded": ok,
            "failed": len(results) - ok,
        },
        "results": [r.to_dict() for r in results],
    }
    return _write_json(run_dir / "remote.json", payload)
