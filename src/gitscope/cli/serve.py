"""gitscope serve command - run the MCP server."""

import click

from gitscope.cli.utils import load_cli_config


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default="stdio",
    show_default=True,
    help="MCP transport",
)
@click.option("--host", default=None, help="Bind address for the http transport")
@click.option("--port", type=int, default=None, help="Port for the http transport")
def serve_command(transport: str, host: str | None, port: int | None) -> None:
    """Run the gitscope MCP server.

    With the stdio transport, stdout carries the protocol and all logs go
    to stderr or log files.
    """
    from gitscope.core.logging import configure_logging
    from gitscope.mcp.server import run_server

    config = load_cli_config()
    logs_to_stdout = any(o.destination == "stdout" for o in config.logging.outputs)
    if transport == "stdio" and logs_to_stdout:
        raise click.ClickException("stdout logging cannot be used with the stdio transport")
    configure_logging(config=config.logging)
    run_server(config, transport=transport, host=host, port=port)  # type: ignore[arg-type]
