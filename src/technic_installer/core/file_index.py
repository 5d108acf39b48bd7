"""Record of which component placed which file under the install root."""
from typing import Dict, FrozenSet, Iterable, List, Optional

from .errors import CorruptStateError, FileOwnershipConflict


class InstalledFileIndex:
    """Maps an owner name to the relative paths it installed.

    Paths are POSIX-style and relative to the install root. No path may be
    owned by two owners; record_files() enforces that so deleting one
    component never removes another component's files.
    """

    def __init__(self, entries: Optional[Dict[str, Iterable[str]]] = None):
        self._files: Dict[str, FrozenSet[str]] = {}
        self._owners: Dict[str, str] = {}
        for owner, paths in (entries or {}).items():
            self.record_files(owner, paths)

    def record_files(self, owner: str, paths: Iterable[str]) -> None:
        """Replace owner's entry with paths.

        Raises:
            FileOwnershipConflict: a path already belongs to another owner;
                the index is left unchanged
        """
        paths = frozenset(paths)
        conflicts = {
            p: self._owners[p]
            for p in paths
            if p in self._owners and self._owners[p] != owner
        }
        if conflicts:
            raise FileOwnershipConflict(owner, conflicts)

        for p in self._files.get(owner, frozenset()):
            self._owners.pop(p, None)
        self._files[owner] = paths
        for p in paths:
            self._owners[p] = owner

    def files_of(self, owner: str) -> FrozenSet[str]:
        return self._files.get(owner, frozenset())

    def forget(self, owner: str) -> None:
        for p in self._files.pop(owner, frozenset()):
            self._owners.pop(p, None)

    def owner_of(self, path: str) -> Optional[str]:
        return self._owners.get(path)

    def owners(self) -> FrozenSet[str]:
        return frozenset(self._files)

    def __contains__(self, owner):
        return owner in self._files

    def __len__(self):
        return len(self._files)

    def to_dict(self) -> Dict[str, List[str]]:
        return {owner: sorted(paths) for owner, paths in sorted(self._files.items())}

    @classmethod
    def from_dict(cls, data) -> 'InstalledFileIndex':
        if not isinstance(data, dict):
            raise CorruptStateError("file index is not an object")
        for owner, paths in data.items():
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                raise CorruptStateError(f"file index entry for {owner!r} is not a list of paths")
        try:
            return cls(data)
        except FileOwnershipConflict as e:
            raise CorruptStateError(f"file index overlaps: {e}") from e
