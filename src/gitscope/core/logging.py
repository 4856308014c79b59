"""Structured logging for ingestion and the MCP server.

Every event can carry two pieces of correlation:
- ``request_id``: one per MCP tool call or CLI command
- ``repository`` / ``ref``: the reference being ingested

Console output always goes to stderr or a file: stdout is reserved for the
stdio MCP transport.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from gitscope.config.models import LoggingConfig, LogOutputConfig

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Per-request chatter from the MCP SDK and the HTTP client
_NOISY_LOGGERS = (
    "mcp.server.lowlevel.server",
    "fastmcp.server.context.to_client",
    "httpx",
    "httpcore",
)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set or generate the correlation ID for the current call."""
    rid = request_id or uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def clear_request_id() -> None:
    _request_id.set(None)


@contextmanager
def bind_reference(repository: str, ref: str | None = None) -> Iterator[None]:
    """Attach the repository (and ref, when pinned) to events logged inside the block."""
    fields: dict[str, Any] = {"repository": repository}
    if ref:
        fields["ref"] = ref
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def _add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_request_id():
        event_dict["request_id"] = rid
    return event_dict


def _level(name: str | None, default: int = logging.INFO) -> int:
    if name is None:
        return default
    return _LEVELS.get(name.upper(), default)


def _build_handler(output: LogOutputConfig, fallback_level: str) -> logging.Handler:
    destination = output.destination
    if destination == "stderr":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    elif destination == "stdout":
        handler = logging.StreamHandler(sys.stdout)
    else:
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="a")
    handler.setLevel(_level(output.level or fallback_level))
    return handler


def _build_renderer(output: LogOutputConfig) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    colors = output.destination == "stderr" and sys.stderr.isatty()
    return structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        config: Logging configuration with one handler per output. When
            given, ``json_format`` and ``level`` are ignored.
        json_format: Render a single stderr output as JSON.
        level: Level for the single stderr output.
    """
    from gitscope.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _level(config.level)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_request_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Uncached so a second configure_logging() call takes effect
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in root.handlers:
        old.close()
    root.handlers.clear()
    root.setLevel(root_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _build_handler(output, config.level)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_build_renderer(output),
                foreign_pre_chain=pre_chain,
            )
        )
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
