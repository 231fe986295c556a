"""Providers diagnostic command"""

import click
from rich.console import Console
from rich.table import Table

from memento_insights.providers import plugin_loader

console = Console()


@click.command()
def providers():
    """List all discovered providers"""
    table = Table(title="Memento Insights Provider Discovery")
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Module", style="dim")

    total = 0
    for provider_type in plugin_loader.PROVIDER_GROUPS:
        discovered = plugin_loader.get_providers(provider_type)
        total += len(discovered)
        for name, cls in sorted(discovered.items()):
            table.add_row(provider_type, name, cls.__module__)

    console.print(table)
    console.print(f"Total: {total} providers discovered")
