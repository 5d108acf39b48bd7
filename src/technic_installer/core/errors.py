"""Exception taxonomy for the installer.

Fatal errors (bad descriptor, state machine contract violations) abort a run.
Per-component errors (transfer, extraction, filesystem) are contained to the
component that raised them and reported.
"""


class InstallerError(Exception):
    """Base class for all installer errors."""


class MalformedSourceError(InstallerError):
    """Catalog payload is missing required fields or is not a descriptor."""


class NotADescriptorError(MalformedSourceError):
    """Catalog endpoint answered with something other than JSON."""


class InvalidReferenceError(InstallerError):
    """A URL inside the descriptor cannot be parsed."""


class InvalidStateError(InstallerError):
    """State machine operation called in a state that does not allow it."""


class TransferError(InstallerError):
    """Download of a single artifact failed."""

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class ExtractError(InstallerError):
    """Archive could not be unpacked."""


class CorruptStateError(InstallerError):
    """Persisted snapshot cannot be read back."""


class SchemaMismatchError(CorruptStateError):
    """Persisted snapshot was written with another schema version."""

    def __init__(self, found, expected):
        super().__init__(f"state schema {found!r} does not match expected {expected!r}")
        self.found = found
        self.expected = expected


class FilesystemError(InstallerError):
    """Deleting or creating files under the install root failed."""

    def __init__(self, message, paths=()):
        super().__init__(message)
        self.paths = frozenset(paths)


class FileOwnershipConflict(InstallerError):
    """A path is claimed by more than one component."""

    def __init__(self, owner, conflicts):
        # conflicts: {path: current_owner}
        self.owner = owner
        self.conflicts = dict(conflicts)
        sample = ", ".join(f"{p} ({o})" for p, o in sorted(self.conflicts.items())[:3])
        super().__init__(f"{owner} claims {len(self.conflicts)} path(s) owned by other components: {sample}")


class ModLoaderError(InstallerError):
    """Mod-loader conversion step failed."""
