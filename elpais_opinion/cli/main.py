from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests
import typer

from elpais_opinion.browser.capabilities import default_configurations, local_configuration
from elpais_opinion.cli.report import (
    print_analysis,
    print_articles,
    print_configurations,
    print_results,
)
from elpais_opinion.core.config import RunConfig, load_run_config
from elpais_opinion.core.errors import ScrapeError
from elpais_opinion.core.models import Article, ExecutionResult, Success, WordFrequencyTable
from elpais_opinion.infra.logging import attach_file_handler, init_logging
from elpais_opinion.process.analyzer import analyze as analyze_headers
from elpais_opinion.services.harness import order_by_configuration, run_all
from elpais_opinion.services.pipeline import SessionPipeline
from elpais_opinion.services.runs import (
    clean_runs as svc_clean_runs,
    new_run_dir,
    runs_base_dir,
    save_local_run,
    save_remote_run,
)

app = typer.Typer(help="El País Opinion scraper: scrape, translate headlines, count repeated words")

ENGINES = ("chrome", "firefox", "static")

ConfigOption = typer.Option(
    None, "--config", exists=True, dir_okay=False, readable=True, help="YAML, JSON or .properties file"
)


def _echo(s: str) -> None:
    typer.echo(s)


@app.callback()
def _setup(
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
) -> None:
    init_logging()
    if log_file is not None:
        attach_file_handler(str(log_file))


def _check_engine(engine: str) -> str:
    engine = engine.lower()
    if engine not in ENGINES:
        typer.secho(f"Unknown engine {engine!r}; choose one of {', '.join(ENGINES)}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return engine


def _load_cfg(config: Optional[Path], overrides: Optional[Dict[str, Any]] = None) -> RunConfig:
    try:
        return load_run_config(config, overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)


def _run_local(
    cfg: RunConfig, engine: str, images: bool, translate: bool
) -> Tuple[List[Article], Optional[WordFrequencyTable]]:
    pipeline = SessionPipeline(
        cfg, translate=translate, download_images=images, per_session_images=False
    )
    try:
        result: ExecutionResult = pipeline(local_configuration(engine))
    except ScrapeError as e:
        typer.secho(f"Local run failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(result.outcome, Success):
        typer.secho(f"Local run failed: {result.outcome.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return list(result.outcome.articles), result.outcome.analysis


def _run_remote(cfg: RunConfig, images: bool) -> List[ExecutionResult]:
    configs = default_configurations()
    print_configurations(configs)
    pipeline = SessionPipeline(cfg, cfg.remote_max_articles, download_images=images)
    _echo(f"Running {len(configs)} sessions on up to {cfg.parallel_threads} parallel threads...")
    results = run_all(configs, cfg.parallel_threads, pipeline)
    return order_by_configuration(results, configs)


@app.command()
def local(
    engine: str = typer.Option("chrome", "--engine", help="chrome | firefox | static"),
    max_articles: Optional[int] = typer.Option(None, "--max-articles", min=1),
    images: bool = typer.Option(True, "--images/--no-images", help="Download cover images"),
    translate: bool = typer.Option(True, "--translate/--no-translate"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write runs/<id>/local.json"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Scrape the Opinion section once on this machine, translate titles and analyse them."""
    engine = _check_engine(engine)
    cfg = _load_cfg(config, {"max_articles": max_articles})
    articles, analysis = _run_local(cfg, engine, images, translate)
    print_articles(articles)
    if analysis is not None:
        print_analysis(analysis)
    if not articles:
        typer.secho("No articles found.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    if save:
        path = save_local_run(new_run_dir(runs_base_dir(cfg)), articles, analysis)
        _echo(f"Saved local run: {path}")


@app.command()
def remote(
    parallel: Optional[int] = typer.Option(None, "--parallel", min=1, help="Worker threads"),
    max_articles: Optional[int] = typer.Option(None, "--max-articles", min=1),
    images: bool = typer.Option(False, "--images/--no-images", help="Download cover images"),
    save: bool = typer.Option(True, "--save/--no-save", help="Write runs/<id>/remote.json"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Repeat the capture on every default BrowserStack configuration in parallel."""
    cfg = _load_cfg(config, {"parallel_threads": parallel, "remote_max_articles": max_articles})
    if not cfg.has_credentials:
        typer.secho(
            "BrowserStack credentials not configured (BROWSERSTACK_USERNAME / BROWSERSTACK_ACCESS_KEY).",
            fg=typer.colors.YELLOW,
        )
        raise typer.Exit(code=2)
    results = _run_remote(cfg, images)
    print_results(results)
    if save:
        path = save_remote_run(new_run_dir(runs_base_dir(cfg)), results)
        _echo(f"Saved remote run: {path}")
    if results and not any(r.ok for r in results):
        raise typer.Exit(code=1)


@app.command()
def run(
    engine: str = typer.Option("chrome", "--engine", help="Local engine: chrome | firefox | static"),
    images: bool = typer.Option(True, "--images/--no-images"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Local scrape + translation + analysis, then the parallel BrowserStack sessions."""
    engine = _check_engine(engine)
    cfg = _load_cfg(config)
    _echo("STEP 1: local scrape, translation and analysis")
    articles, analysis = _run_local(cfg, engine, images, True)
    print_articles(articles)
    if not articles:
        typer.secho("No articles found. Exiting.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    if analysis is not None:
        print_analysis(analysis)
    run_dir = new_run_dir(runs_base_dir(cfg))
    save_local_run(run_dir, articles, analysis)

    _echo("STEP 2: BrowserStack parallel sessions")
    if not cfg.has_credentials:
        typer.secho("BrowserStack credentials not configured; skipping remote sessions.", fg=typer.colors.YELLOW)
        return
    results = _run_remote(cfg, False)
    print_results(results)
    save_remote_run(run_dir, results)


@app.command()
def analyze(
    headers_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    as_json: bool = typer.Option(False, "--json", help="Print the table as JSON"),
) -> None:
    """Count repeated words in a file of headlines (one per line)."""
    headers = headers_file.read_text(encoding="utf-8").splitlines()
    table = analyze_headers(headers)
    if as_json:
        _echo(json.dumps(table.to_dict(), ensure_ascii=False, indent=2))
        return
    print_analysis(table)


@app.command()
def configs() -> None:
    """List the default browser/device configurations."""
    print_configurations(default_configurations())


@app.command()
def doctor(config: Optional[Path] = ConfigOption) -> None:
    """Check credentials and endpoint reachability."""
    cfg = _load_cfg(config)
    ok = True
    if cfg.has_credentials:
        _echo(f"BrowserStack user: {cfg.browserstack_username}")
    else:
        ok = False
        typer.secho("BrowserStack credentials are not set (env or config)", fg=typer.colors.YELLOW)

    # any HTTP response (even 4xx/5xx) counts as reachable
    for name, url in (
        ("El País", cfg.base_url),
        ("Translation API", cfg.translation_api_url),
        ("WebDriver hub", cfg.browserstack_hub_url),
    ):
        try:
            r = requests.get(url, timeout=5)
            _echo(f"{name} reachable: {r.status_code}")
        except requests.RequestException as e:
            ok = False
            typer.secho(f"{name} unreachable: {e}", fg=typer.colors.RED)

    if ok:
        typer.secho("Health check passed", fg=typer.colors.GREEN)
    else:
        typer.secho("Health check failed; see messages above", fg=typer.colors.RED)


@app.command()
def clean(
    keep: int = typer.Option(3, "--keep", min=0, help="Keep the latest N run directories"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Remove old run directories, keeping the most recent N."""
    cfg = _load_cfg(config)
    for p in svc_clean_runs(runs_base_dir(cfg), keep):
        _echo(f"Deleted {p}")


def main() -> None:  # console_scripts entrypoint wrapper
    app()


if __name__ == "__main__":
    main()
