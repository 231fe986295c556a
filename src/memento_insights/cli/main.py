"""Main CLI entry point"""

from pathlib import Path

import click
from dotenv import load_dotenv

from memento_insights import __version__

# Load .env file from current working directory before importing anything else
# This ensures environment variables are set before pydantic-settings reads them
_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


@click.group()
@click.version_option(version=__version__, prog_name='memento-insights')
def cli():
    """Memento Insights CLI - Insight generation and cache management"""
    pass


def setup_cli():
    """Register all CLI commands"""
    from .insights_cmd import cache_cleanup, cache_invalidate, cache_show, generate
    from .providers_cmd import providers

    cli.add_command(generate, name='generate')
    cli.add_command(cache_show, name='cache-show')
    cli.add_command(cache_invalidate, name='cache-invalidate')
    cli.add_command(cache_cleanup, name='cache-cleanup')
    cli.add_command(providers, name='providers')


# Setup commands when module is imported
setup_cli()
