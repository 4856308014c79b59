"""Decision planners that separate "what to do" from "how to do it"."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

import pygit2

from gitscope.git._internal.access import RepoAccess
from gitscope.git.errors import RefNotFoundError


class CheckoutType(Enum):
    """Types of checkout operations."""

    DETACH = auto()
    ALREADY_CURRENT = auto()


@dataclass(frozen=True, slots=True)
class CheckoutPlan:
    """Plan for executing a checkout operation."""

    checkout_type: CheckoutType
    ref: str
    commit: pygit2.Commit


class CheckoutPlanner:
    """Plans and executes read-only checkouts.

    Working copies are never committed to, so every checkout lands on a
    detached HEAD at the resolved commit. This keeps a reused copy in step
    with the remote without rewriting local branches.
    """

    def __init__(self, access: RepoAccess) -> None:
        self._access = access

    def plan(self, ref: str) -> CheckoutPlan:
        """Resolve the ref up front - fail early with RefNotFoundError."""
        commit = self._access.resolve_commit(ref)
        head = self._access.head_commit()
        if head is not None and head.id == commit.id:
            return CheckoutPlan(CheckoutType.ALREADY_CURRENT, ref, commit)
        return CheckoutPlan(CheckoutType.DETACH, ref, commit)

    def execute(self, plan: CheckoutPlan) -> None:
        if plan.checkout_type == CheckoutType.ALREADY_CURRENT:
            return
        self._access.checkout_detached(plan.commit)


@dataclass(frozen=True, slots=True)
class DiffPlan:
    """Plan for a ref-to-ref diff with both sides resolved."""

    base: str
    head: str
    base_commit: pygit2.Commit
    head_commit: pygit2.Commit


class DiffPlanner:
    """Plans and executes ref-to-ref diffs."""

    def __init__(self, access: RepoAccess) -> None:
        self._access = access

    def plan(self, base: str, head: str) -> DiffPlan:
        if not base or not head:
            raise RefNotFoundError(base or head or "<empty>")
        return DiffPlan(
            base=base,
            head=head,
            base_commit=self._access.resolve_commit(base),
            head_commit=self._access.resolve_commit(head),
        )

    def execute(self, plan: DiffPlan) -> pygit2.Diff:
        return self._access.diff_commits(plan.base_commit, plan.head_commit)
