"""Repository ingestion: cache, working copies, scanning and remote fallback."""

from gitscope.ingest.cache import SnapshotCache
from gitscope.ingest.context import IngestContext
from gitscope.ingest.models import (
    FileContent,
    Reference,
    RepositoryMetadata,
    ScanResult,
    SearchResult,
    Snapshot,
    Summary,
)
from gitscope.ingest.pipeline import RepositoryIngester
from gitscope.ingest.remote import RemoteClient
from gitscope.ingest.store import FileSnapshotStore, MemorySnapshotStore, SnapshotStore
from gitscope.ingest.workspace import WorkingCopyManager

__all__ = [
    # Pipeline
    "RepositoryIngester",
    "IngestContext",
    # Services
    "SnapshotCache",
    "SnapshotStore",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "WorkingCopyManager",
    "RemoteClient",
    # Models
    "Reference",
    "Snapshot",
    "Summary",
    "RepositoryMetadata",
    "FileContent",
    "SearchResult",
    "ScanResult",
]
