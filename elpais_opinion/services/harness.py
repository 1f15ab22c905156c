"""Run one pipeline per browser configuration on a fixed-size thread pool.

Every configuration yields exactly one ExecutionResult. An exception inside a
task is turned into a Failure for that configuration and never reaches the
other tasks or the caller. Results arrive in completion order; use
``order_by_configuration`` for stable reports.
"""

from __future__ import annotations

import queue
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable, List, Sequence

from elpais_opinion.browser.capabilities import session_label
from elpais_opinion.core.models import BrowserConfiguration, ExecutionResult, Failure
from elpais_opinion.infra.logging import (
    log_batch_processing,
    log_error,
    log_task_end,
    log_task_start,
    mdc_clear,
    mdc_put,
)

Pipeline = Callable[[BrowserConfiguration], ExecutionResult]


def effective_parallelism(requested: int, n_tasks: int) -> int:
    return max(1, min(int(requested), n_tasks))


def _run_task(
    config: BrowserConfiguration, pipeline: Pipeline, sink: "queue.Queue[ExecutionResult]"
) -> None:
    label = config.label or "session"
    t0 = time.time()
    try:
        label = session_label(config)
        mdc_put("session", label)
        log_task_start("harness", "task", {"session": label})
        result = pipeline(config)
    except Exception as e:
        log_error("harness", "task", e, context=f"{label} failed")
        result = ExecutionResult(label, Failure(e), time.time() - t0)
    try:
        sink.put(result)
        log_task_end("harness", "task", result.ok, {"session": label, "elapsed": round(result.elapsed, 3)})
    finally:
        mdc_clear()


def run_all(
    configurations: Iterable[BrowserConfiguration], parallelism: int, pipeline: Pipeline
) -> List[ExecutionResult]:
    """Dispatch every configuration and block until all of them have reported."""
    configs = list(configurations)
    if not configs:
        return []
    workers = effective_parallelism(parallelism, len(configs))
    sink: "queue.Queue[ExecutionResult]" = queue.Queue()
    t0 = time.time()
    log_task_start("harness", "run", {"tasks": len(configs), "workers": workers})
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="session") as ex:
        futures = [ex.submit(_run_task, cfg, pipeline, sink) for cfg in configs]
        wait(futures)
    results: List[ExecutionResult] = []
    while not sink.empty():
        results.append(sink.get_nowait())
    ok = sum(1 for r in results if r.ok)
    log_batch_processing(
        "harness",
        "run",
        "run_all",
        len(configs),
        ok,
        len(results) - ok,
        time.time() - t0,
        "success" if ok == len(results) else "partial",
        {"workers": workers},
    )
    return results


def order_by_configuration(
    results: Iterable[ExecutionResult], configurations: Sequence[BrowserConfiguration]
) -> List[ExecutionResult]:
    """Sort results into the order their configurations were dispatched."""
    rank = {}
    for i, cfg in enumerate(configurations):
        rank.setdefault(session_label(cfg), i)
    return sorted(results, key=lambda r: rank.get(r.label, len(rank)))
