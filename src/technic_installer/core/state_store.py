"""Durable storage of the installation snapshot with atomic writes."""
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from .constants import SCHEMA_VERSION
from .descriptor import Component, parse_descriptor
from .errors import CorruptStateError, InstallerError, SchemaMismatchError
from .file_index import InstalledFileIndex
from .state import InstallationSnapshot, InstallState
from ..utils.symbols import LogSymbols


class StateStore:
    """Loads and saves the snapshot as a versioned JSON document."""

    def __init__(self, path, log_callback=None):
        self.path = Path(path)
        self.log_callback = log_callback

    def _log(self, message, **kwargs):
        if self.log_callback:
            self.log_callback(message, **kwargs)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[InstallationSnapshot]:
        """Read the snapshot, None if there is none.

        Raises:
            SchemaMismatchError: written by another schema version
            CorruptStateError: unreadable or structurally invalid
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptStateError(f"{self.path.name} is not valid JSON: {e}") from e
        except OSError as e:
            raise CorruptStateError(f"{self.path.name} cannot be read: {e}") from e
        return self.decode(document)

    def load_or_discard(self) -> Optional[InstallationSnapshot]:
        """Load, or delete an unreadable snapshot so the run starts as a fresh install."""
        try:
            return self.load()
        except CorruptStateError as e:
            self._log(f"{LogSymbols.ERROR} State file invalid, discarding it: {e}", error=True)
            self._log(f"  {LogSymbols.INFO} The modpack will be reinstalled from scratch", warning=True)
            self.clear()
            return None

    def save(self, snapshot: InstallationSnapshot) -> None:
        """Atomic write: temp file in the same directory + replace."""
        document = self.encode(snapshot)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f'.tmp_{self.path.stem}_',
            suffix='.json'
        )
        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        self._log(f"Saved installation state to {self.path.name}", debug=True)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    @staticmethod
    def encode(snapshot: InstallationSnapshot) -> dict:
        return {
            'schema': SCHEMA_VERSION,
            'state': snapshot.state.value,
            'installed_build': snapshot.installed_build,
            'pending': snapshot.pending,
            'descriptor': snapshot.descriptor.to_payload(),
            'components': [c.to_payload() for c in sorted(snapshot.components, key=lambda c: c.name)],
            'files': snapshot.file_index.to_dict(),
        }

    @staticmethod
    def decode(document) -> InstallationSnapshot:
        if not isinstance(document, dict):
            raise CorruptStateError("state document is not an object")
        schema = document.get('schema')
        if schema != SCHEMA_VERSION:
            raise SchemaMismatchError(schema, SCHEMA_VERSION)

        try:
            state = InstallState(document['state'])
            installed_build = document.get('installed_build')
            if installed_build is not None and not isinstance(installed_build, str):
                raise CorruptStateError("installed_build is not a string")
            components = document.get('components') or []
            if not isinstance(components, list):
                raise CorruptStateError("components is not a list")
            return InstallationSnapshot(
                descriptor=parse_descriptor(document['descriptor']),
                components=[Component.from_payload(c) for c in components],
                file_index=InstalledFileIndex.from_dict(document.get('files') or {}),
                state=state,
                installed_build=installed_build,
                pending=bool(document.get('pending', False)),
            )
        except CorruptStateError:
            raise
        except (KeyError, ValueError, TypeError, InstallerError) as e:
            raise CorruptStateError(f"state document does not match schema {SCHEMA_VERSION}: {e}") from e
