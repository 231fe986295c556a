"""Insight generation and cache administration commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from memento_insights.errors import InsightError

logger = logging.getLogger(__name__)
console = Console()


def get_pipeline():
    """Get the configured pipeline."""
    from memento_insights.insights.pipeline import get_pipeline as _get_pipeline
    return _get_pipeline()


def get_cache_provider():
    """Get the configured insight cache provider."""
    from memento_insights.config import settings
    from memento_insights.providers import InsightCacheProviderFactory
    return InsightCacheProviderFactory.create(settings)


def get_settings():
    """Get settings lazily."""
    from memento_insights.config import settings
    return settings


@click.command()
@click.argument('entries_file', type=click.Path(exists=True, path_type=Path))
@click.option('--user-id', '-u', required=True, help='User the insight is generated for')
@click.option('--force-refresh', is_flag=True, help='Skip the cache and always call the model')
@click.option('--pretty', is_flag=True, help='Pretty-print JSON output')
def generate(entries_file: Path, user_id: str, force_refresh: bool, pretty: bool):
    """
    Generate insights for the entries in a JSON file.

    ENTRIES_FILE holds either a list of entries or {"entries": [...]}.
    Authentication is skipped; USER_ID is trusted as given.

    Examples:
        memento-insights generate week.json --user-id 7f3c...
        memento-insights generate week.json -u 7f3c... --force-refresh --pretty
    """
    from memento_insights.providers import UserIdentity

    data = json.loads(entries_file.read_text(encoding='utf-8'))
    if isinstance(data, list):
        data = {"entries": data}
    if force_refresh:
        data["force_refresh"] = True

    pipeline = get_pipeline()
    try:
        request = pipeline.gate.parse_request(json.dumps(data))
        result = asyncio.run(pipeline.generate(UserIdentity(id=user_id), request))
    except InsightError as e:
        console.print(f"[red]{e.code.value}: {e.message}[/red]")
        if e.diagnostic:
            console.print(f"[dim]{e.diagnostic}[/dim]")
        sys.exit(1)

    indent = 2 if pretty else None
    click.echo(json.dumps(result.body, indent=indent, ensure_ascii=False))


@click.command()
@click.argument('user_id')
@click.option('--insight-type', '-t', default=None, help='Insight type (default: from settings)')
def cache_show(user_id: str, insight_type: str | None):
    """Show the cached insight currently served for a user."""
    insight_type = insight_type or get_settings().insight_type
    record = get_cache_provider().get_latest(user_id, insight_type)

    if record is None:
        console.print(f"[yellow]No valid cached insight for {user_id}[/yellow]")
        return

    table = Table(title=f"Cached {insight_type}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("id", record.id)
    table.add_row("generated_at", record.generated_at.isoformat())
    table.add_row("expires_at", record.expires_at.isoformat() if record.expires_at else "-")
    table.add_row("entries_analyzed", str(record.entries_analyzed_count))
    table.add_row("model", record.model_version or "-")
    table.add_row("summary", str(record.content.get("summary", "")))
    themes = record.content.get("themes") or []
    table.add_row("themes", ", ".join(str(t.get("name", "")) for t in themes if isinstance(t, dict)))

    console.print(table)


@click.command()
@click.argument('user_id')
@click.option('--insight-type', '-t', default=None, help='Only invalidate this insight type')
def cache_invalidate(user_id: str, insight_type: str | None):
    """Invalidate a user's cached insights so the next request regenerates."""
    count = get_cache_provider().invalidate(user_id, insight_type)
    console.print(f"[green]Invalidated {count} cached insight(s)[/green]")


@click.command()
def cache_cleanup():
    """Delete expired cached insights."""
    count = get_cache_provider().cleanup_expired()
    console.print(f"[green]Deleted {count} expired insight(s)[/green]")
