"""Type definitions for better code clarity and IDE support."""
from typing import FrozenSet, NamedTuple, Optional


class ResolvedBuild(NamedTuple):
    """Concrete build a descriptor resolves to."""
    build_id: str
    components: FrozenSet


class DiffResult(NamedTuple):
    """Disjoint groups produced by comparing two component sets."""
    to_remove: FrozenSet
    to_clear: FrozenSet
    to_download: FrozenSet


class DownloadResult(NamedTuple):
    """Result of an archive download."""
    path: Optional[str]
    bytes_written: int


class ComponentResult(NamedTuple):
    """Outcome of one per-component task run in a worker pool."""
    name: str
    ok: bool
    paths: FrozenSet = frozenset()
    error: Optional[Exception] = None
