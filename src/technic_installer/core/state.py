"""Installation state machine.

NOT_INSTALLED  - no snapshot exists yet; stays so until an install completes
UP_TO_DATE     - installed build equals the freshly resolved target build
UPDATABLE      - they differ, or the last install left components pending
                 (pending installs are retried even when the build ids match)
"""
from enum import Enum
from typing import Iterable, Optional

from .descriptor import Component, PackDescriptor
from .errors import InvalidStateError
from .file_index import InstalledFileIndex
from ..model_types import ResolvedBuild


class InstallState(str, Enum):
    NOT_INSTALLED = "not_installed"
    UP_TO_DATE = "up_to_date"
    UPDATABLE = "updatable"


class InstallationSnapshot:
    """Everything known about one installation, persisted between runs."""

    def __init__(self, descriptor: PackDescriptor, components: Iterable[Component] = (),
                 file_index: Optional[InstalledFileIndex] = None,
                 state: InstallState = InstallState.NOT_INSTALLED,
                 installed_build: Optional[str] = None, pending: bool = False):
        self.descriptor = descriptor
        self.components = frozenset(components)
        self.file_index = file_index if file_index is not None else InstalledFileIndex()
        self._state = InstallState(state)
        self._installed_build = installed_build
        self._pending = pending

    @property
    def state(self) -> InstallState:
        return self._state

    @property
    def installed_build(self) -> Optional[str]:
        return self._installed_build

    @property
    def pending(self) -> bool:
        """Last install attempt left components missing."""
        return self._pending

    @property
    def needs_install(self) -> bool:
        return self._state is not InstallState.UP_TO_DATE

    def update(self, descriptor: PackDescriptor, target_build: str) -> InstallState:
        """Merge a freshly fetched descriptor and decide UP_TO_DATE vs UPDATABLE.

        Raises:
            InvalidStateError: nothing is installed yet, there is nothing to
                compare against
        """
        if self._state is InstallState.NOT_INSTALLED:
            raise InvalidStateError("update() called on a pack that is not installed")

        self.descriptor = descriptor
        if not self._pending and self._installed_build is not None and target_build == self._installed_build:
            self._state = InstallState.UP_TO_DATE
        else:
            self._state = InstallState.UPDATABLE
        return self._state

    def mark_installed(self, build_id: str, components: Iterable[Component]) -> None:
        """Every component of build_id is in place."""
        self.components = frozenset(components)
        self._installed_build = build_id
        self._pending = False
        self._state = InstallState.UP_TO_DATE

    def mark_incomplete(self, components: Iterable[Component]) -> None:
        """Some components failed; keep the old build id so the next run retries them."""
        self.components = frozenset(components)
        self._pending = True
        self._state = InstallState.UPDATABLE

    def __repr__(self):
        return (f"InstallationSnapshot(pack={self.descriptor.name!r}, state={self._state.value}, "
                f"installed_build={self._installed_build!r}, components={len(self.components)})")


def resolve_target(descriptor: PackDescriptor, resolver, build_preference: str) -> ResolvedBuild:
    """Target build for a descriptor.

    A monolithic pack's target is its declared version. A componentized pack
    asks the Solder resolver to turn the user's preference into a build id
    and its component list.
    """
    if descriptor.is_monolithic:
        return ResolvedBuild(descriptor.version, frozenset())
    build_id, components = resolver.resolve(descriptor.solder, descriptor.name, build_preference)
    return ResolvedBuild(str(build_id), frozenset(components))
