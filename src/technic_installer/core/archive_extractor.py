import zipfile
from pathlib import Path, PurePosixPath
from typing import FrozenSet

import py7zr

from .errors import ExtractError


SEVEN_ZIP_MAGIC = b"7z\xbc\xaf\x27\x1c"


def is_7z_archive(path) -> bool:
    try:
        with open(path, 'rb') as f:
            return f.read(len(SEVEN_ZIP_MAGIC)) == SEVEN_ZIP_MAGIC
    except OSError:
        return False


class ArchiveExtractor:
    """Unpacks zip and 7z archives into the install root.

    extract() returns the relative POSIX paths of every file it wrote; that set
    is what the installed-file index records for the owning component.
    list_members() returns the same set without writing anything, so ownership
    can be checked before a single file lands on disk.
    """

    def list_members(self, archive_path) -> FrozenSet[str]:
        """Relative paths of the files extract() would write.

        Raises:
            ExtractError: archive is corrupt, empty or unreadable
        """
        archive_path = Path(archive_path)
        try:
            if is_7z_archive(archive_path):
                with py7zr.SevenZipFile(archive_path, 'r') as archive:
                    _, members = self._members_7z(archive.getnames(), archive_path)
            else:
                with zipfile.ZipFile(archive_path, 'r') as zip_ref:
                    _, members = self._members_zip(zip_ref.namelist(), archive_path)
        except zipfile.BadZipFile as e:
            raise ExtractError(f"corrupted zip file {archive_path.name}") from e
        except py7zr.Bad7zFile as e:
            raise ExtractError(f"corrupted 7z file {archive_path.name}") from e
        except OSError as e:
            raise ExtractError(f"cannot read {archive_path.name}: {e}") from e
        return frozenset(self._normalize(m) for m in members)

    def extract(self, archive_path, dest_root) -> FrozenSet[str]:
        """Extract archive_path into dest_root.

        Raises:
            ExtractError: archive is corrupt, empty, escapes dest_root or
                cannot be written
        """
        archive_path = Path(archive_path)
        dest_root = Path(dest_root)
        try:
            dest_root.mkdir(parents=True, exist_ok=True)
            if is_7z_archive(archive_path):
                return self._extract_7z(archive_path, dest_root)
            return self._extract_zip(archive_path, dest_root)
        except ExtractError:
            raise
        except PermissionError as e:
            raise ExtractError(f"permission denied while extracting {archive_path.name}: {e}") from e
        except OSError as e:
            if 'No space left' in str(e) or 'Disk full' in str(e):
                raise ExtractError(f"disk full while extracting {archive_path.name}") from e
            raise ExtractError(f"cannot extract {archive_path.name}: {e}") from e

    def _check_members(self, names, dest_root):
        # Zip-slip protection: every member must stay inside dest_root
        dest_resolved = dest_root.resolve()
        for member in names:
            member_path = (dest_root / member).resolve()
            try:
                member_path.relative_to(dest_resolved)
            except ValueError:
                raise ExtractError(f"path traversal detected in archive member {member!r} (blocked)")

    def _prepare_dirs(self, names, dest_root):
        # Several archives may be extracted into the same tree at once; creating
        # shared directories up front keeps extractall() from racing on mkdir
        for member in names:
            target = dest_root / member
            directory = target if member.endswith("/") else target.parent
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _file_members(names):
        return [m for m in names if m and not m.endswith('/')]

    @staticmethod
    def _normalize(member) -> str:
        return str(PurePosixPath(member.replace('\\', '/')))

    def _members_zip(self, names, archive_path):
        members = self._file_members(names)
        if not members:
            raise ExtractError(f"{archive_path.name} is empty")
        return names, members

    def _members_7z(self, names, archive_path):
        # py7zr lists directories without a trailing slash
        dirs = {PurePosixPath(n).parent.as_posix() for n in names}
        members = [m for m in self._file_members(names) if m not in dirs]
        if not members:
            raise ExtractError(f"{archive_path.name} is empty")
        return names, members

    def _extract_zip(self, archive_path, dest_root):
        try:
            with zipfile.ZipFile(archive_path, 'r') as zip_ref:
                names, members = self._members_zip(zip_ref.namelist(), archive_path)
                self._check_members(names, dest_root)
                self._prepare_dirs(names, dest_root)
                zip_ref.extractall(dest_root)
        except zipfile.BadZipFile as e:
            raise ExtractError(f"corrupted zip file {archive_path.name}") from e
        return frozenset(self._normalize(m) for m in members)

    def _extract_7z(self, archive_path, dest_root):
        try:
            with py7zr.SevenZipFile(archive_path, 'r') as archive:
                names, members = self._members_7z(archive.getnames(), archive_path)
                self._check_members(names, dest_root)
                self._prepare_dirs(members, dest_root)
                archive.extractall(path=dest_root)
        except py7zr.Bad7zFile as e:
            raise ExtractError(f"corrupted 7z file {archive_path.name}") from e
        return frozenset(self._normalize(m) for m in members)
