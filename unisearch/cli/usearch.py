#!/usr/bin/env python3
"""
Command-line front end for unisearch.

Usage:
    usearch search "query" --data items.json     - Search a JSON data set
    usearch suggest "qu" --data items.json       - Autocomplete suggestions
    usearch history list                         - Show recent searches
    usearch history popular                      - Show most frequent searches
    usearch history remove <id>                  - Forget one search
    usearch history clear                        - Forget all searches
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import click
import yaml
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..engine.config import SearchConfig
from ..engine.filters import parse_filter
from ..engine.history import SearchHistoryManager
from ..engine.search import SearchResponse, UniversalSearch
from ..engine.storage import JsonFileStore

console = Console()


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level
    )


def load_config(config_path: Optional[str]) -> SearchConfig:
    try:
        if config_path:
            return SearchConfig.load(Path(config_path))
        return SearchConfig.load()
    except FileNotFoundError:
        if config_path:
            raise
        logger.debug("No config file found, using defaults")
        return SearchConfig()


def load_data(path: str) -> List[Any]:
    """Read records from a JSON file holding a list or an ``{"items": [...]}`` object."""
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        raise click.ClickException(f"{path} does not contain a list of records")
    return payload


def open_history(config: SearchConfig) -> SearchHistoryManager:
    return SearchHistoryManager(JsonFileStore(config.history_dir), storage_key=config.storage_key)


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(), help="Config file path")
@click.option("--history-dir", type=click.Path(file_okay=False), help="Override history directory")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path: Optional[str], history_dir: Optional[str], verbose: bool):
    """unisearch - universal search CLI."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        ctx.exit(1)

    if history_dir:
        config = config.model_copy(update={"history_dir": Path(history_dir)})

    setup_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = config


def _open_data(data_path: str) -> List[Any]:
    try:
        return load_data(data_path)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Cannot read data file:[/red] {escape(str(e))}")
        sys.exit(1)


@cli.command()
@click.argument("query")
@click.option("--data", "-d", "data_path", required=True, type=click.Path(), help="JSON file of records")
@click.option("--field", "-f", help="Record field to match against")
@click.option("--limit", "-l", default=10, help="Max results")
@click.option("--filter", "filters", multiple=True, help="Facet filter such as category:hvac")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.pass_obj
def search(
    config: SearchConfig,
    query: str,
    data_path: str,
    field: Optional[str],
    limit: int,
    filters: Tuple[str, ...],
    as_json: bool,
):
    """Search a data set."""
    if field:
        config = config.model_copy(update={"match_field": field})

    engine = UniversalSearch(_open_data(data_path), config=config, history=open_history(config))
    for text in filters:
        engine.add_filter(parse_filter(text))

    response = engine.search(query)
    if as_json:
        click.echo(json.dumps(
            [r.to_dict() for r in response.results[:limit]],
            default=str,
            ensure_ascii=False,
            indent=2,
        ))
    else:
        display_search_results(response, limit)


def display_search_results(response: SearchResponse, limit: int):
    """Display search results in a table."""
    if not response.results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(title=f"Search Results ({response.latency_ms:.1f}ms)")
    table.add_column("Title", style="cyan", no_wrap=False)
    table.add_column("Category", style="magenta")
    table.add_column("Type")
    table.add_column("Score", justify="right")
    table.add_column("Matched by", style="dim")

    for r in response.results[:limit]:
        table.add_row(
            escape(r.title or "Untitled"),
            escape(r.category),
            escape(r.type),
            f"{r.relevance_score:.2f}",
            r.source,
        )

    console.print(table)

    if response.parsed.has_logic:
        console.print(f"\n[bold]Logic:[/bold] {response.parsed.logic}")
    if response.filters:
        console.print(f"[bold]Filters:[/bold] {', '.join(f.label for f in response.filters)}")


@cli.command()
@click.argument("query", default="")
@click.option("--data", "-d", "data_path", required=True, type=click.Path(), help="JSON file of records")
@click.option("--limit", "-l", type=int, help="Max suggestions")
@click.pass_obj
def suggest(config: SearchConfig, query: str, data_path: str, limit: Optional[int]):
    """Show autocomplete suggestions for a partial query."""
    engine = UniversalSearch(_open_data(data_path), config=config, history=open_history(config))
    suggestions = engine.get_suggestions(query, limit)

    if not suggestions:
        console.print("[yellow]No suggestions[/yellow]")
        return

    for i, s in enumerate(suggestions, 1):
        console.print(f"{i}. [cyan]{escape(s.category)}[/cyan] [dim]({s.kind.value})[/dim]: {escape(s.text)}")


@cli.group()
def history():
    """Inspect and manage search history."""
    pass


@history.command(name="list")
@click.option("--limit", "-l", default=10, help="Max entries")
@click.pass_obj
def list_history(config: SearchConfig, limit: int):
    """Show recent searches."""
    entries = open_history(config).get_history()[:limit]
    if not entries:
        console.print("[yellow]No search history[/yellow]")
        return

    table = Table(title="Search History")
    table.add_column("ID", style="dim")
    table.add_column("Query", style="cyan")
    table.add_column("Results", justify="right")
    table.add_column("When")

    for entry in entries:
        table.add_row(
            entry.id,
            escape(entry.query),
            str(entry.results_count),
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)


@history.command()
@click.option("--limit", "-l", default=5, help="Max queries")
@click.pass_obj
def popular(config: SearchConfig, limit: int):
    """Show the most frequent searches."""
    queries = open_history(config).get_popular_queries(limit)
    if not queries:
        console.print("[yellow]No search history[/yellow]")
        return
    for i, query in enumerate(queries, 1):
        console.print(f"{i}. {escape(query)}")


@history.command()
@click.argument("entry_id")
@click.pass_obj
def remove(config: SearchConfig, entry_id: str):
    """Forget one search by id."""
    if open_history(config).remove_history_item(entry_id):
        console.print(f"[green]Removed {entry_id}[/green]")
    else:
        console.print(f"[yellow]No history entry {entry_id}[/yellow]")


@history.command()
@click.option("--yes", is_flag=True, help="Don't ask for confirmation")
@click.pass_obj
def clear(config: SearchConfig, yes: bool):
    """Forget all searches."""
    if not yes and not click.confirm("Clear all search history?"):
        return
    open_history(config).clear_history()
    console.print("[green]Search history cleared[/green]")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
