"""gitscope clear-cache command - remove cached snapshots."""

import asyncio

import click

from gitscope.cli.utils import load_cli_config, stderr_console
from gitscope.core.formatting import pluralize
from gitscope.ingest.cache import SnapshotCache
from gitscope.ingest.store import FileSnapshotStore


@click.command()
def clear_cache_command() -> None:
    """Delete every cached snapshot.

    Working copies are left in place and reused on the next request.
    """
    config = load_cli_config()
    store = FileSnapshotStore(config.cache.directory)
    try:
        removed = asyncio.run(SnapshotCache(store).clear())
    except OSError as e:
        raise click.ClickException(f"Failed to clear {store.directory}: {e}") from e
    stderr_console.print(
        f"[green]✓[/green] Removed {pluralize(removed, 'cache entry', 'cache entries')}"
        f" from {store.directory}",
        highlight=False,
    )
