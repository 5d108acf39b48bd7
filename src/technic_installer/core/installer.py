"""Install/update workflow: clear stale files, download, extract, re-index."""

import concurrent.futures
import shutil
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import (
    CACHE_DIR_NAME,
    MAX_DELETE_WORKERS,
    MAX_DOWNLOAD_WORKERS,
    MODS_DIR_NAME,
    PACKAGE_OWNER,
    SERVER_ICON_NAME,
)
from .archive_extractor import ArchiveExtractor
from .descriptor import Component
from .differ import diff_components, diff_package
from .errors import (
    FileOwnershipConflict,
    FilesystemError,
    InstallerError,
    ModLoaderError,
    TransferError,
)
from .file_index import InstalledFileIndex
from .installation_report import InstallationReport
from .state import InstallationSnapshot, InstallState
from ..model_types import ComponentResult, ResolvedBuild
from ..utils.client_mods import clean_client_mods, is_client_only
from ..utils.error_messages import get_user_friendly_error, suggest_fix_for_error
from ..utils.symbols import LogSymbols


class PackInstaller:
    """Runs one install or update cycle against an install root.

    Per-component work runs in thread pools; workers only return a
    ComponentResult, the calling thread applies it to the snapshot, the file
    index and the report. Phases never overlap: clear, download, extract,
    mod loader, client cleanup.
    """

    def __init__(self, install_root, log_callback, downloader, extractor=None, converter=None,
                 client_classifier=is_client_only, max_workers=MAX_DOWNLOAD_WORKERS):
        self.install_root = Path(install_root)
        self.log = log_callback
        self.downloader = downloader
        self.extractor = extractor or ArchiveExtractor()
        self.converter = converter
        self.client_classifier = client_classifier
        self.max_workers = max_workers

    @property
    def cache_dir(self) -> Path:
        return self.install_root / CACHE_DIR_NAME

    # ============================================================================
    # Workflow
    # ============================================================================

    def install(self, snapshot: InstallationSnapshot, target: ResolvedBuild, force: bool = False) -> InstallationReport:
        """Bring the install root to target. Mutates snapshot, does not persist it.

        An UP_TO_DATE snapshot is left alone and yields an empty report unless
        force is set, in which case every owner is wiped and reinstalled.
        """
        descriptor = snapshot.descriptor
        report = InstallationReport(descriptor.display_name, target.build_id)
        if snapshot.state is InstallState.UP_TO_DATE and not force:
            self.log(f"{LogSymbols.SUCCESS} {descriptor.display_name} is already up to date", success=True)
            return report

        self.log(f"\nInstalling {descriptor.display_name} build {target.build_id}...")
        self.log(LogSymbols.SEPARATOR * 60)

        if descriptor.is_monolithic:
            package = Component(PACKAGE_OWNER, descriptor.version, descriptor.url or '')
            wanted = frozenset([package])
            old_by_name = {PACKAGE_OWNER: Component(PACKAGE_OWNER, snapshot.installed_build or '')}
        else:
            wanted = target.components
            old_by_name = {c.name: c for c in snapshot.components}

        to_clear, to_download = self._plan(snapshot, wanted, force)

        cleared = {}
        if to_clear:
            self.log(f"Removing {len(to_clear)} outdated or removed component(s)...")
            cleared = self._clear(snapshot.file_index, to_clear, report, old_by_name, {c.name for c in to_download})

        results = {}
        if to_download:
            self.log(f"\nStarting parallel downloads (workers={self.max_workers})...")
            downloaded = self._download_all(to_download, report)
            if downloaded:
                self.log(f"\nExtracting {len(downloaded)} archive(s)...")
                results = self._extract_all(downloaded, snapshot.file_index, report)
        else:
            self.log(f"{LogSymbols.SUCCESS} All components are already in place")

        failed = {c.name for c in to_download} - set(results)
        for component in sorted(to_download, key=lambda c: c.name):
            if component.name in failed:
                continue
            old = old_by_name.get(component.name)
            if old is not None and old.version and old.version != component.version:
                report.add_updated(component.name, old.version, component.version)
            else:
                report.add_installed(component.name, component.version)
        wanted_names = {c.name for c in wanted}
        for name in sorted(to_clear - wanted_names):
            old = old_by_name.get(name)
            report.add_removed(name, old.version if old else None, cleared.get(name, 0))

        installed = frozenset(c for c in target.components if c.name not in failed)
        # Undeletable files sit under owners that are never wanted, see _clear()
        leftovers = snapshot.file_index.owners() - wanted_names
        incomplete = failed | leftovers | report.failed_names(phase='remove')
        if incomplete:
            pending = len(incomplete)
            self.log(f"{LogSymbols.WARNING} {pending} component(s) are incomplete and will be retried on the next run", warning=True)
            snapshot.mark_incomplete(installed)
        else:
            snapshot.mark_installed(target.build_id, installed)

        self._convert(snapshot, report)
        self._clean_client_mods(report)
        self._download_icon(snapshot, report)
        return report

    def _plan(self, snapshot: InstallationSnapshot, wanted: Iterable[Component], force: bool = False) -> Tuple[set, frozenset]:
        """Owners to clear and components to download."""
        index = snapshot.file_index
        wanted = frozenset(wanted)
        wanted_names = {c.name for c in wanted}
        # Owners left behind by an earlier incomplete cleanup
        stale = set(index.owners() - wanted_names)

        if snapshot.state is InstallState.NOT_INSTALLED:
            return stale, wanted

        if snapshot.state is InstallState.UP_TO_DATE:
            if not force:
                return set(), frozenset()
            return set(index.owners()), wanted

        if snapshot.descriptor.is_monolithic:
            diff = diff_package(True)
            return {c.name for c in diff.to_clear} | stale, wanted

        diff = diff_components(snapshot.components, wanted)
        for component in sorted(diff.to_download, key=lambda c: c.name):
            self.log(f"  {LogSymbols.ARROW_RIGHT} Will install: '{component}'", debug=True)
        for component in sorted(diff.to_remove, key=lambda c: c.name):
            self.log(f"  {LogSymbols.ARROW_RIGHT} Will remove: '{component}'", debug=True)
        return {c.name for c in diff.to_clear} | stale, diff.to_download

    # ============================================================================
    # Phase 1: clear
    # ============================================================================

    @staticmethod
    def _leftover_owner(name: str, old: Optional[Component]) -> str:
        # "<name>@<old version>", never a wanted component name
        return f"{name}@{old.version if old else ''}"

    @staticmethod
    def _is_own_leftover(owner: str, name: str) -> bool:
        return owner.startswith(f"{name}@")

    def _clear(self, index: InstalledFileIndex, owners: Iterable[str], report: InstallationReport,
               old_by_name=None, reinstalling=frozenset()) -> Dict[str, int]:
        """Delete the files of owners. Returns {owner: deleted file count}.

        Files that cannot be deleted stay indexed so the next run retries them.
        For an owner about to be reinstalled they move to a separate leftover
        owner, keeping them apart from the files of the new version.
        """
        old_by_name = old_by_name or {}
        removed_paths = []
        counts = {}
        moved = {}
        with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_DELETE_WORKERS) as executor:
            futures = {
                executor.submit(self._delete_files, owner, index.files_of(owner)): owner
                for owner in sorted(owners)
            }
            for future in concurrent.futures.as_completed(futures):
                owner = futures[future]
                result = future.result()
                deleted = index.files_of(owner) - result.paths
                removed_paths.extend(deleted)
                counts[owner] = len(deleted)
                if result.ok:
                    index.forget(owner)
                    self.log(f"  {LogSymbols.TRASH} Cleared {owner} ({len(deleted)} files)", debug=True)
                    continue
                if owner in reinstalling:
                    index.forget(owner)
                    moved[self._leftover_owner(owner, old_by_name.get(owner))] = result.paths
                else:
                    index.record_files(owner, result.paths)
                self.log(f"  {LogSymbols.ERROR} Could not fully remove {owner}: {result.error}", error=True)
                report.add_error(owner, result.error, phase='remove')
        # Applied after every result so a leftover owner cleared in this run is not overwritten
        for leftover, paths in moved.items():
            index.record_files(leftover, paths | index.files_of(leftover))
        self._prune_empty_dirs(removed_paths)
        return counts

    def _delete_files(self, owner: str, paths: Iterable[str]) -> ComponentResult:
        failed = set()
        errors = []
        for rel in paths:
            target = self._inside_root(rel)
            if target is None:
                failed.add(rel)
                errors.append(f"{rel}: outside the install root")
                continue
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                failed.add(rel)
                errors.append(f"{rel}: {e.strerror or e}")
        if failed:
            error = FilesystemError(f"{len(failed)} file(s) could not be deleted ({'; '.join(errors[:3])})", failed)
            return ComponentResult(owner, False, frozenset(failed), error)
        return ComponentResult(owner, True)

    def _inside_root(self, rel: str) -> Optional[Path]:
        root = self.install_root.resolve()
        target = (self.install_root / rel)
        try:
            target.resolve().relative_to(root)
        except ValueError:
            return None
        return target

    def _prune_empty_dirs(self, removed_paths: Iterable[str]) -> None:
        root = self.install_root.resolve()
        parents = set()
        for rel in removed_paths:
            parents.update(p for p in (self.install_root / rel).parents)
        # Deepest first so a directory is checked after its children
        for directory in sorted(parents, key=lambda p: len(p.parts), reverse=True):
            try:
                if directory.resolve() == root or root not in directory.resolve().parents:
                    continue
                directory.rmdir()
            except OSError:
                continue

    # ============================================================================
    # Phase 2: download
    # ============================================================================

    def _archive_path(self, component: Component) -> Path:
        if component.name == PACKAGE_OWNER:
            return self.cache_dir / "package.zip"
        return self.cache_dir / component.archive_name

    def _download_one(self, component: Component) -> ComponentResult:
        try:
            result = self.downloader.download(component.url, self._archive_path(component), component.md5)
            return ComponentResult(component.name, True, frozenset([result.path]))
        except TransferError as e:
            return ComponentResult(component.name, False, error=e)
        except Exception as e:
            return ComponentResult(component.name, False, error=TransferError(f"unexpected download error: {e}", component.url))

    def _download_all(self, components: Iterable[Component], report: InstallationReport) -> List[Tuple[Component, Path]]:
        components = sorted(components, key=lambda c: c.name)
        downloaded = []
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_component = {executor.submit(self._download_one, c): c for c in components}
            for future in concurrent.futures.as_completed(future_to_component):
                component = future_to_component[future]
                result = future.result()
                if result.ok:
                    downloaded.append((component, Path(next(iter(result.paths)))))
                    self.log(f"  {LogSymbols.DOWNLOADING} Downloaded: {component}")
                else:
                    self._report_failure(component, result.error, 'download', report)
        return sorted(downloaded, key=lambda item: item[0].name)

    # ============================================================================
    # Phase 3: extract
    # ============================================================================

    def _extract_one(self, component: Component, archive: Path) -> ComponentResult:
        try:
            paths = self.extractor.extract(archive, self.install_root)
            return ComponentResult(component.name, True, frozenset(paths))
        except InstallerError as e:
            return ComponentResult(component.name, False, error=e)

    def _claim_paths(self, downloaded, index: InstalledFileIndex, report: InstallationReport) -> List[Tuple[Component, Path]]:
        """Check every archive's members against the index before writing.

        Runs on the calling thread in name order. A component whose members
        belong to another owner, or to a component claimed earlier in this
        run, fails with FileOwnershipConflict and nothing of it is written.
        """
        claimed = {}
        accepted = []
        for component, archive in downloaded:
            try:
                members = self.extractor.list_members(archive)
            except InstallerError as e:
                self._report_failure(component, e, 'extract', report)
                continue
            conflicts = {}
            for path in members:
                owner = claimed.get(path) or index.owner_of(path)
                if owner is None or owner == component.name or self._is_own_leftover(owner, component.name):
                    continue
                conflicts[path] = owner
            if conflicts:
                self._report_failure(component, FileOwnershipConflict(component.name, conflicts), 'extract', report)
                continue
            claimed.update(dict.fromkeys(members, component.name))
            accepted.append((component, archive))
        return accepted

    def _extract_all(self, downloaded, index: InstalledFileIndex, report: InstallationReport) -> Dict[str, int]:
        """Extract archives, record their files. Returns {name: file count} of successes."""
        extracted = {}
        accepted = self._claim_paths(downloaded, index, report)
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_item = {executor.submit(self._extract_one, c, a): (c, a) for c, a in accepted}
            for future in concurrent.futures.as_completed(future_to_item):
                component, archive = future_to_item[future]
                result = future.result()
                if not result.ok:
                    self._report_failure(component, result.error, 'extract', report)
                    continue
                self._reclaim_leftovers(index, component.name, result.paths)
                try:
                    index.record_files(component.name, result.paths)
                except FileOwnershipConflict as e:
                    self._report_failure(component, e, 'extract', report)
                    continue
                extracted[component.name] = len(result.paths)
                self.log(f"  {LogSymbols.EXTRACTING} {LogSymbols.SUCCESS} {component} installed ({len(result.paths)} files)", success=True)
                try:
                    archive.unlink()
                except OSError:
                    pass
        return extracted

    def _reclaim_leftovers(self, index: InstalledFileIndex, name: str, paths) -> None:
        # Leftovers of an older version overwritten by the new one now belong to it
        for owner in sorted(index.owners()):
            if not self._is_own_leftover(owner, name):
                continue
            remaining = index.files_of(owner) - paths
            if remaining:
                index.record_files(owner, remaining)
            else:
                index.forget(owner)

    def _report_failure(self, component: Component, error: Exception, phase: str, report: InstallationReport) -> None:
        self.log(f"  {LogSymbols.ERROR} {phase.capitalize()} failed for {component.name}: {error}", error=True)
        error_type = suggest_fix_for_error(error)
        if error_type:
            self.log(f"\n{get_user_friendly_error(error_type)}", debug=True)
        report.add_error(component.name, error, component.url or None, phase=phase)

    # ============================================================================
    # Post-install steps, run once per install
    # ============================================================================

    def _convert(self, snapshot: InstallationSnapshot, report: InstallationReport) -> None:
        if self.converter is None:
            return
        self.log("\nConverting client modpack to a server...")
        try:
            self.converter.convert(self.install_root, snapshot.descriptor)
            report.add_step('mod loader', True)
        except ModLoaderError as e:
            self.log(f"{LogSymbols.ERROR} Mod loader installation failed: {e}", error=True)
            self.log(f"\n{get_user_friendly_error('mod_loader')}", error=True)
            report.add_step('mod loader', False, str(e))

    def _clean_client_mods(self, report: InstallationReport) -> None:
        self.log("Removing client-only mods...")
        removed = clean_client_mods(self.install_root / MODS_DIR_NAME, self.log, self.client_classifier)
        report.add_step('client cleanup', True, f"{len(removed)} removed")

    def _download_icon(self, snapshot: InstallationSnapshot, report: InstallationReport) -> None:
        icon = snapshot.descriptor.icon
        if icon is None:
            return
        self.log("Downloading server icon", debug=True)
        try:
            self.downloader.download(icon.url, self.install_root / SERVER_ICON_NAME)
        except TransferError as e:
            self.log(f"{LogSymbols.WARNING} Icon download failed: {e}", warning=True)
