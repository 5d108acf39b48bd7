"""
Installation progress tracking and reporting.
Collects the per-component results of one install or update run.
"""

import time
from datetime import datetime

from ..utils.symbols import LogSymbols


class InstallationReport:
    """Tracks installation progress and results for detailed reporting."""

    def __init__(self, pack_name=None, build_id=None):
        self.pack_name = pack_name
        self.build_id = build_id
        self.errors = []
        self.installed = []
        self.updated = []
        self.removed = []
        self.steps = []
        self.start_time = time.time()

    def add_error(self, mod_name, error, url=None, phase=None):
        """Record a failure; error may be an exception or a message."""
        self.errors.append({
            'mod': mod_name,
            'error': str(error),
            'kind': type(error).__name__ if isinstance(error, Exception) else None,
            'url': url,
            'phase': phase,
            'timestamp': datetime.now().strftime('%H:%M:%S')
        })

    def add_installed(self, mod_name, version=None):
        self.installed.append({'mod': mod_name, 'version': version})

    def add_updated(self, mod_name, old_version, new_version):
        self.updated.append({'mod': mod_name, 'old_version': old_version, 'new_version': new_version})

    def add_removed(self, mod_name, version=None, files=0):
        self.removed.append({'mod': mod_name, 'version': version, 'files': files})

    def add_step(self, step, ok, detail=None):
        """Record a one-off post-install step (mod loader, client cleanup, icon)."""
        self.steps.append({'step': step, 'ok': ok, 'detail': detail})

    def failed_names(self, phase=None):
        return {item['mod'] for item in self.errors if phase is None or item['phase'] == phase}

    def get_duration(self):
        """Get installation duration in seconds."""
        return time.time() - self.start_time

    def generate_summary(self):
        """Generate a formatted summary report."""
        duration = self.get_duration()
        minutes, seconds = divmod(int(duration), 60)
        title = f"{self.pack_name} build {self.build_id}" if self.pack_name else "Installation"

        summary = [
            "\n" + LogSymbols.SEPARATOR * 60,
            f"{LogSymbols.SUCCESS} {title} finished ({minutes}m {seconds}s)",
            LogSymbols.SEPARATOR * 60,
            f"{LogSymbols.SUCCESS} {len(self.installed)} installed | "
            f"{LogSymbols.UPDATED} {len(self.updated)} updated | "
            f"{LogSymbols.TRASH} {len(self.removed)} removed | "
            f"{LogSymbols.ERROR} {len(self.errors)} errors"
        ]

        if self.installed:
            summary.append("\nNewly Installed:")
            for item in self.installed:
                version = f" v{item['version']}" if item['version'] else ""
                summary.append(f"  {LogSymbols.SUCCESS} {item['mod']}{version}")

        if self.updated:
            summary.append("\nUpdated:")
            for item in self.updated:
                summary.append(f"  {LogSymbols.UPDATED} {item['mod']}: {item['old_version']} {LogSymbols.ARROW_RIGHT} {item['new_version']}")

        if self.removed:
            summary.append("\nRemoved:")
            for item in self.removed:
                summary.append(f"  {LogSymbols.TRASH} {item['mod']} ({item['files']} files)")

        if self.errors:
            summary.append("\nErrors:")
            for item in self.errors:
                phase = f" [{item['phase']}]" if item['phase'] else ""
                summary.append(f"  {LogSymbols.ERROR} {item['mod']}{phase}: {item['error']}")
                if item['url']:
                    summary.append(f"    URL: {item['url']}")

        failed_steps = [s for s in self.steps if not s['ok']]
        if failed_steps:
            summary.append("\nPost-install steps failed:")
            for item in failed_steps:
                summary.append(f"  {LogSymbols.ERROR} {item['step']}: {item['detail']}")

        return "\n".join(summary)

    def has_errors(self):
        """Check if any component failed."""
        return len(self.errors) > 0

    def has_failed_steps(self):
        return any(not s['ok'] for s in self.steps)
