"""Ordered fallback chains: the first strategy that succeeds wins."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from gitscope.core.errors import GitScopeError, InternalError

log = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Strategy(Generic[T]):
    """A named way of producing a value."""

    name: str
    run: Callable[[], Awaitable[T]]


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Result of one strategy: a value or the error it failed with."""

    strategy: str
    value: T | None = None
    error: GitScopeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def attempt(strategy: Strategy[T]) -> Outcome[T]:
    """Run a strategy, capturing a GitScopeError as a failed outcome.

    Anything else is a bug and propagates.
    """
    try:
        return Outcome(strategy.name, value=await strategy.run())
    except GitScopeError as e:
        return Outcome(strategy.name, error=e)


async def first_success(strategies: Sequence[Strategy[T]]) -> T:
    """Value of the first strategy that succeeds.

    Raises:
        GitScopeError: The error of the last strategy when all fail.
    """
    last: GitScopeError | None = None
    for strategy in strategies:
        outcome = await attempt(strategy)
        if outcome.ok:
            if last is not None:
                log.info("strategy_fallback_succeeded", strategy=strategy.name)
            return outcome.value  # type: ignore[return-value]
        last = outcome.error
        log.warning(
            "strategy_failed",
            strategy=strategy.name,
            error=outcome.error.error_name if outcome.error else None,
            message=outcome.error.message if outcome.error else None,
        )
    if last is None:
        raise InternalError.unexpected("no strategies to run")
    raise last
