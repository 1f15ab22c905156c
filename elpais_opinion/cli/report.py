from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from elpais_opinion.core.models import (
    Article,
    BrowserConfiguration,
    ExecutionResult,
    Success,
    WordFrequencyTable,
)
from elpais_opinion.core.utils import truncate

console = Console(highlight=False)


def print_articles(articles: Sequence[Article]) -> None:
    if not articles:
        console.print("[yellow]No articles were scraped.[/]")
        return
    for a in articles:
        lines = [
            f"[bold]Title:[/] {escape(a.title)}",
            f"[bold]Content:[/] {escape(truncate(a.content, 100))}",
            f"[bold]Image URL:[/] {escape(a.image_url or 'No image')}",
            f"[bold]Image Path:[/] {escape(a.image_path or 'Not downloaded')}",
        ]
        if a.translated_title is not None:
            lines.insert(1, f"[bold]English:[/] {escape(a.translated_title)}")
        console.print(Panel.fit("\n".join(lines), title=f"Article {a.index}"))


def print_analysis(table: WordFrequencyTable) -> None:
    if not len(table):
        console.print("No words found that are repeated more than twice.")
    else:
        t = Table(title="Words repeated more than twice")
        t.add_column("#", justify="right")
        t.add_column("Word")
        t.add_column("Occurrences", justify="right")
        for rank, (word, count) in enumerate(table, start=1):
            t.add_row(str(rank), word, str(count))
        console.print(t)

    rate = table.repetition_rate
    console.print(
        Panel.fit(
            "\n".join(
                [
                    f"Headers analyzed: {table.headers_analyzed}",
                    f"Total valid words: {table.total_words}",
                    f"Total unique words: {table.unique_words}",
                    f"Words repeated more than twice: {table.repeated_words}",
                    f"Repetition rate: {rate:.2f}%" if rate is not None else "Repetition rate: n/a",
                ]
            ),
            title="Summary statistics",
        )
    )


def print_results(results: Sequence[ExecutionResult]) -> None:
    t = Table(title="Browser sessions")
    t.add_column("Session")
    t.add_column("Status")
    t.add_column("Articles", justify="right")
    t.add_column("First title (EN)")
    t.add_column("Seconds", justify="right")
    for r in results:
        if isinstance(r.outcome, Success):
            arts = r.outcome.articles
            first = (arts[0].translated_title or arts[0].title) if arts else "-"
            t.add_row(escape(r.label), "[green]ok[/]", str(len(arts)), escape(truncate(first, 60)), f"{r.elapsed:.1f}")
        else:
            t.add_row(escape(r.label), "[red]failed[/]", "-", escape(truncate(r.outcome.message, 60)), f"{r.elapsed:.1f}")
    console.print(t)


def print_configurations(configs: Sequence[BrowserConfiguration]) -> None:
    t = Table(title="Available browser configurations")
    t.add_column("#", justify="right")
    t.add_column("Label")
    t.add_column("Browser")
    t.add_column("Platform")
    for i, c in enumerate(configs, start=1):
        t.add_row(str(i), c.label, c.browser_name, c.describe())
    console.print(t)
