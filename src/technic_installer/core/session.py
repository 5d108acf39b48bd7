"""One run of the installer: load state, fetch, decide, install, persist."""
import time
from typing import Optional

from .installation_report import InstallationReport
from .state import InstallationSnapshot, InstallState, resolve_target
from ..model_types import ResolvedBuild
from ..utils.symbols import AnsiColors, LogSymbols


class InstallSession:
    """Wires the collaborators of one run together.

    prepare() merges the freshly fetched descriptor into the stored snapshot
    and decides the state; run() acts on that decision.
    """

    def __init__(self, config, log_callback, catalog, resolver, store, installer, sleep=time.sleep):
        self.config = config
        self.log = log_callback
        self.catalog = catalog
        self.resolver = resolver
        self.store = store
        self.installer = installer
        self.sleep = sleep
        self.snapshot: Optional[InstallationSnapshot] = None
        self.target: Optional[ResolvedBuild] = None

    def prepare(self) -> InstallationSnapshot:
        """Fetch the descriptor, resolve the target build and merge it into the stored state.

        Raises:
            MalformedSourceError, InvalidReferenceError, TransferError: the
                descriptor or build could not be obtained; the run must stop
        """
        self.log(f"Reading modpack from {self.config.api_url}")
        descriptor = self.catalog.fetch_descriptor(self.config.api_url)
        if self.config.minecraft_version:
            self.log(f"Overriding Minecraft version {descriptor.minecraft} {LogSymbols.ARROW_RIGHT} "
                     f"{self.config.minecraft_version}", info=True)
            descriptor = descriptor.with_minecraft(self.config.minecraft_version)

        self.log(f"Identified modpack '{descriptor.display_name}' ({descriptor.name}) by {descriptor.user}")
        if descriptor.is_monolithic:
            self.log("Modpack isn't using the Solder API", debug=True)
        else:
            self.log(f"Modpack is using the Solder API @ {descriptor.solder}", debug=True)

        self.target = resolve_target(descriptor, self.resolver, self.config.build)

        snapshot = self.store.load_or_discard()
        if snapshot is None or snapshot.state is InstallState.NOT_INSTALLED:
            self.log("No previous installation found", debug=True)
            snapshot = InstallationSnapshot(descriptor)
        else:
            self.log(f"Loaded previous state: build {snapshot.installed_build}", debug=True)
            snapshot.update(descriptor, self.target.build_id)

        self.snapshot = snapshot
        self._log_decision()
        return snapshot

    def _log_decision(self):
        state = self.snapshot.state
        if state is InstallState.NOT_INSTALLED:
            self.log(f"{LogSymbols.NOT_INSTALLED} Modpack not installed yet, target build {self.target.build_id}")
        elif state is InstallState.UP_TO_DATE:
            self.log(f"{LogSymbols.SUCCESS} Modpack is up to date (build {self.snapshot.installed_build})", success=True)
        else:
            self.log(f"{LogSymbols.UPDATED} Update available: {self.snapshot.installed_build} "
                     f"{LogSymbols.ARROW_RIGHT} {self.target.build_id}", info=True)

    def run(self, force: bool = False) -> Optional[InstallationReport]:
        """Install or update when needed. Returns the report, None if nothing was done."""
        if self.snapshot is None:
            self.prepare()
        state = self.snapshot.state

        if state is InstallState.UP_TO_DATE and not force:
            return None

        if state is InstallState.UPDATABLE and not (force or self.config.autoupdate):
            self.log(f"{AnsiColors.RED}MODPACK UPDATE AVAILABLE, BUT AUTOUPDATE IS DISABLED. "
                     f"{AnsiColors.YELLOW_BACKGROUND}START WITH \"update\" AS PARAMETER OR SET "
                     f"\"autoupdate\" TO true{AnsiColors.RESET}", warning=True)
            self.log(f"sleeping {self.config.update_message_sleep} sec.", debug=True)
            self.sleep(self.config.update_message_sleep)
            return None

        report = self.installer.install(self.snapshot, self.target, force=force)
        self.store.save(self.snapshot)
        self.log("\n" + report.generate_summary())
        return report
