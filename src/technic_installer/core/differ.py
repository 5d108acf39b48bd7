"""Compare the installed component set against a freshly resolved one."""
from typing import Iterable

from .constants import PACKAGE_OWNER
from .descriptor import Component
from ..model_types import DiffResult


def diff_components(old: Iterable[Component], new: Iterable[Component]) -> DiffResult:
    """Split old and new component sets into remove/clear/download groups.

    Components are matched by name. A component present in both with a
    different version string is removed in its old version and downloaded in
    its new one; there is no in-place patching. Versions are compared as plain
    strings, so "1.0" and "1.0.0" count as a change.

    to_remove and to_clear hold the old records, to_download the new ones.
    """
    old_by_name = {c.name: c for c in old}
    new_by_name = {c.name: c for c in new}

    removed = {c for name, c in old_by_name.items() if name not in new_by_name}
    added = {c for name, c in new_by_name.items() if name not in old_by_name}
    changed = {
        name for name in old_by_name.keys() & new_by_name.keys()
        if old_by_name[name].version != new_by_name[name].version
    }

    to_remove = frozenset(removed | {old_by_name[n] for n in changed})
    to_download = frozenset(added | {new_by_name[n] for n in changed})
    return DiffResult(to_remove=to_remove, to_clear=to_remove, to_download=to_download)


def diff_package(updatable: bool) -> DiffResult:
    """Diff for a monolithic pack: the whole package or nothing."""
    if not updatable:
        return DiffResult(frozenset(), frozenset(), frozenset())
    package = frozenset([Component(PACKAGE_OWNER, '')])
    return DiffResult(to_remove=package, to_clear=package, to_download=package)
