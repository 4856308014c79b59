"""Internal pygit2 plumbing for gitscope.git."""

from gitscope.git._internal.access import DEFAULT_REMOTE, RepoAccess, must_commit
from gitscope.git._internal.planners import (
    CheckoutPlan,
    CheckoutPlanner,
    CheckoutType,
    DiffPlan,
    DiffPlanner,
)

__all__ = [
    "DEFAULT_REMOTE",
    "RepoAccess",
    "must_commit",
    "CheckoutPlan",
    "CheckoutPlanner",
    "CheckoutType",
    "DiffPlan",
    "DiffPlanner",
]
