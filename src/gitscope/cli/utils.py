"""CLI utilities."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import click
from rich.console import Console

from gitscope.config import GitScopeConfig, load_config
from gitscope.core.errors import ConfigError, GitScopeError
from gitscope.core.logging import bind_reference, set_request_id
from gitscope.ingest import IngestContext, Reference, RepositoryIngester

T = TypeVar("T")

# Results go to stdout, everything else to stderr
stderr_console = Console(stderr=True)


def load_cli_config() -> GitScopeConfig:
    """Load configuration, turning config errors into a clean CLI failure."""
    try:
        return load_config()
    except ConfigError as e:
        raise click.ClickException(e.message) from e


def parse_reference(repository: str, branch: str | None) -> Reference:
    """Parse REPOSITORY as a URL, owner/repo shorthand or local path."""
    try:
        return Reference.parse(repository, ref=branch)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="REPOSITORY") from e


def run_ingester(
    reference: Reference,
    message: str,
    operation: Callable[[RepositoryIngester], Awaitable[T]],
) -> T:
    """Run one ingester operation under a spinner.

    Raises:
        click.ClickException: The operation failed with a GitScopeError.
    """
    config = load_cli_config()

    async def main() -> T:
        set_request_id()
        context = IngestContext.create(config)
        try:
            with bind_reference(reference.repository, reference.ref):
                return await operation(RepositoryIngester(reference, context))
        finally:
            await context.aclose()

    try:
        with stderr_console.status(message, spinner="dots"):
            return asyncio.run(main())
    except GitScopeError as e:
        raise click.ClickException(e.message) from e
