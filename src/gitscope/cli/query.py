"""Read-only repository commands: summary, tree, read, search, diff."""

import json

import click

from gitscope.cli.utils import parse_reference, run_ingester
from gitscope.core.formatting import format_search_results, truncate_query

_branch_option = click.option("-b", "--branch", default=None, help="Branch, tag or commit")


@click.command()
@click.argument("repository")
@_branch_option
@click.option("--metadata", is_flag=True, help="Include stars, forks and description")
def summary_command(repository: str, branch: str | None, metadata: bool) -> None:
    """Show a repository summary and its README.

    REPOSITORY is a URL, owner/repo shorthand or local path.
    """
    reference = parse_reference(repository, branch)
    text = run_ingester(
        reference,
        f"Summarizing {reference.repository}",
        lambda ingester: ingester.render_summary(include_metadata=metadata),
    )
    click.echo(text)


@click.command()
@click.argument("repository")
@_branch_option
def tree_command(repository: str, branch: str | None) -> None:
    """Show the directory tree of a repository."""
    reference = parse_reference(repository, branch)
    snapshot = run_ingester(
        reference,
        f"Fetching {reference.repository}",
        lambda ingester: ingester.fetch_snapshot(),
    )
    click.echo(snapshot.tree, nl=False)


@click.command()
@click.argument("repository")
@click.argument("paths", nargs=-1, required=True)
@_branch_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def read_command(repository: str, paths: tuple[str, ...], branch: str | None, as_json: bool) -> None:
    """Print the content of files in a repository.

    PATHS may be full relative paths or bare file names.
    """
    reference = parse_reference(repository, branch)
    files = run_ingester(
        reference,
        f"Reading {len(paths)} file(s) from {reference.repository}",
        lambda ingester: ingester.get_files_as_objects(list(paths)),
    )
    if not files:
        raise click.ClickException("None of the requested files were found in the repository")
    if as_json:
        click.echo(json.dumps([f.model_dump() for f in files], indent=2))
        return
    for f in files:
        click.echo(click.style(f"==> {f.path} <==", bold=True))
        click.echo(f.content)


@click.command()
@click.argument("repository")
@click.argument("query")
@_branch_option
@click.option("-n", "--max-results", default=10, show_default=True, help="Maximum results")
def search_command(repository: str, query: str, branch: str | None, max_results: int) -> None:
    """Search repository content for a regular expression."""
    reference = parse_reference(repository, branch)
    results = run_ingester(
        reference,
        f"Searching for {truncate_query(query)!r}",
        lambda ingester: ingester.search(query, max_results),
    )
    click.echo(format_search_results(query, reference.repository, results), nl=False)


@click.command()
@click.argument("repository")
@click.argument("base")
@click.argument("head")
def diff_command(repository: str, base: str, head: str) -> None:
    """Show the diff between two branches or commits."""
    reference = parse_reference(repository, None)
    text = run_ingester(
        reference,
        f"Comparing {base}...{head}",
        lambda ingester: ingester.diff(base, head),
    )
    click.echo(text)
