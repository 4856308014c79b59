"""gitscope CLI - gitscope command."""

import click

from gitscope import __version__
from gitscope.cli.clear import clear_cache_command
from gitscope.cli.query import (
    diff_command,
    read_command,
    search_command,
    summary_command,
    tree_command,
)
from gitscope.cli.serve import serve_command
from gitscope.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="gitscope")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """gitscope - Repository introspection for AI agents over MCP."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(serve_command, name="serve")
cli.add_command(summary_command, name="summary")
cli.add_command(tree_command, name="tree")
cli.add_command(read_command, name="read")
cli.add_command(search_command, name="search")
cli.add_command(diff_command, name="diff")
cli.add_command(clear_cache_command, name="clear-cache")


if __name__ == "__main__":
    cli()
