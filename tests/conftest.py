"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from dataclasses import dataclass
from pathlib import Path

import pygit2
import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local gitscope package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of gitscope modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("gitscope"):
        del sys.modules[module_name]

from gitscope.core.errors import RemoteAPIError  # noqa: E402
from gitscope.ingest.models import (  # noqa: E402
    RepositoryMetadata,
    SearchResult,
    Snapshot,
    Summary,
)
from gitscope.ingest.scanner import format_block  # noqa: E402


# =============================================================================
# Shared git fixtures
# =============================================================================

SIGNATURE = pygit2.Signature("Test User", "test@example.com")


def _commit_files(
    repo: pygit2.Repository,
    files: dict[str, str],
    message: str,
    ref: str = "refs/heads/main",
) -> pygit2.Oid:
    """Write files into the work tree, stage them and commit onto ref."""
    workdir = Path(repo.workdir)
    for name, text in files.items():
        target = workdir / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text)
        repo.index.add(name)
    repo.index.write()
    tree = repo.index.write_tree()
    parents = [repo.references[ref].target] if ref in repo.references else []
    return repo.create_commit(ref, SIGNATURE, SIGNATURE, message, tree, parents)


@dataclass
class RemoteFixture:
    """A working repo pushed to a bare 'remote' with main and feature branches."""

    source: pygit2.Repository
    url: str
    main: pygit2.Oid
    feature: pygit2.Oid

    def commit(self, files: dict[str, str], message: str, branch: str = "main") -> pygit2.Oid:
        """Commit onto branch in the source repo and push it."""
        oid = _commit_files(self.source, files, message, f"refs/heads/{branch}")
        self.push(branch)
        return oid

    def push(self, *branches: str) -> None:
        specs = [f"refs/heads/{b}:refs/heads/{b}" for b in branches]
        self.source.remotes["origin"].push(specs)


@pytest.fixture
def temp_repo(tmp_path: Path) -> pygit2.Repository:
    """Create a temporary git repository with initial commit on main."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"
    _commit_files(
        repo,
        {"README.md": "# Test Repo\n", "src/app.py": "def main():\n    return 42\n"},
        "Initial commit",
    )
    repo.set_head("refs/heads/main")
    return repo


@pytest.fixture
def remote(tmp_path: Path, temp_repo: pygit2.Repository) -> RemoteFixture:
    """Bare remote holding main plus a feature branch one commit ahead."""
    main = temp_repo.references["refs/heads/main"].target
    temp_repo.branches.local.create("feature", temp_repo[main])
    feature = _commit_files(
        temp_repo, {"feature.txt": "feature work\n"}, "Add feature", "refs/heads/feature"
    )
    # Put the index and work tree back on main
    temp_repo.index.read_tree(temp_repo[main].tree)
    temp_repo.index.write()
    (Path(temp_repo.workdir) / "feature.txt").unlink()

    bare_path = tmp_path / "remote.git"
    pygit2.init_repository(str(bare_path), bare=True, initial_head="main")
    temp_repo.remotes.create("origin", str(bare_path))

    fixture = RemoteFixture(source=temp_repo, url=str(bare_path), main=main, feature=feature)
    fixture.push("main", "feature")
    return fixture


# =============================================================================
# Ingest doubles
# =============================================================================


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemote:
    """RemoteClient double that records calls and only serves github.com."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.closed = False
        self.metadata = RepositoryMetadata(
            stars=7, forks=2, description="Remote description", last_updated="2024-05-01"
        )

    def _check(self, reference, op: str) -> str:
        self.calls.append(op)
        if reference.github_slug is None:
            raise RemoteAPIError.unsupported(reference.url)
        return "/".join(reference.github_slug)

    async def fetch_metadata(self, reference) -> RepositoryMetadata:
        self._check(reference, "fetch_metadata")
        return self.metadata

    async def fetch_snapshot(self, reference, *, captured_at: float) -> Snapshot:
        name = self._check(reference, "fetch_snapshot")
        return Snapshot(
            summary=Summary(
                repository=name,
                file_count=1,
                description=self.metadata.description,
                stars=self.metadata.stars,
                forks=self.metadata.forks,
            ),
            tree="└── README.md\n",
            content=format_block("README.md", "# Remote readme\n"),
            captured_at=captured_at,
        )

    async def search(self, reference, query: str, max_results: int = 10) -> list[SearchResult]:
        name = self._check(reference, "search")
        return [
            SearchResult(
                path="README.md",
                line=1,
                content=f"remote {query}",
                url=f"https://github.com/{name}/blob/main/README.md",
                repository=name,
            )
        ][:max_results]

    async def diff(self, reference, base: str, head: str) -> str:
        self._check(reference, "diff")
        return f"Comparing {base}...{head}\n"

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()
