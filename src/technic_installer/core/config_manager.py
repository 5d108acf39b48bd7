"""User configuration file management with atomic writes to prevent corruption."""
import json
import os
import tempfile
from pathlib import Path
from typing import NamedTuple, Optional

from .constants import (
    BUILD_RECOMMENDED,
    CONFIG_FILE_NAME,
    DEFAULT_API_URL,
    MAX_DOWNLOAD_WORKERS,
    UPDATE_MESSAGE_SLEEP_SECONDS,
)


class InstallerConfig(NamedTuple):
    """Settings for one run; passed explicitly to every component that needs them."""
    install_root: Path
    api_url: str = DEFAULT_API_URL
    build: str = BUILD_RECOMMENDED
    autoupdate: bool = True
    minecraft_version: Optional[str] = None
    download_workers: int = MAX_DOWNLOAD_WORKERS
    log_level: str = 'INFO'
    update_message_sleep: float = UPDATE_MESSAGE_SLEEP_SECONDS

    def to_dict(self):
        data = self._asdict()
        data.pop('install_root')
        return data


DEFAULT_SETTINGS = InstallerConfig(install_root=Path('.')).to_dict()


class ConfigManager:
    """Loads and saves technicserver.json in the install root."""

    def __init__(self, install_root, log_callback=None):
        self.install_root = Path(install_root)
        self.config_file = self.install_root / CONFIG_FILE_NAME
        self.log_callback = log_callback

    def _log(self, message, **kwargs):
        if self.log_callback:
            self.log_callback(message, **kwargs)

    def _atomic_save_json(self, file_path, data, indent=2, ensure_ascii=False):
        """Atomic write: temp file + replace to prevent corruption on crash."""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=file_path.parent,
                prefix=f'.tmp_{file_path.stem}_',
                suffix='.json'
            )
            try:
                with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)
                os.replace(temp_path, file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise
        except OSError as e:
            self._log(f"Error saving {file_path.name}: {e}", error=True)

    def load_settings(self):
        """Load raw settings, writing defaults if the file is missing or corrupt."""
        if not self.config_file.exists():
            return self.reset_to_default()
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self._log(f"Error loading {self.config_file.name}: {e}", error=True)
            return self.reset_to_default()
        if not isinstance(data, dict):
            self._log(f"{self.config_file.name} is not an object, using defaults", error=True)
            return self.reset_to_default()
        return {**DEFAULT_SETTINGS, **data}

    def save_settings(self, data):
        self._atomic_save_json(self.config_file, data)

    def reset_to_default(self):
        """Reset settings to default and save."""
        default_settings = dict(DEFAULT_SETTINGS)
        self.save_settings(default_settings)
        return default_settings

    def load_config(self, **overrides) -> InstallerConfig:
        """Typed configuration; keyword overrides (e.g. from the command line) win."""
        settings = self.load_settings()
        settings.update({k: v for k, v in overrides.items() if v is not None})

        try:
            workers = max(1, int(settings.get('download_workers') or MAX_DOWNLOAD_WORKERS))
        except (TypeError, ValueError):
            self._log(f"Invalid download_workers {settings.get('download_workers')!r}, using {MAX_DOWNLOAD_WORKERS}", warning=True)
            workers = MAX_DOWNLOAD_WORKERS
        try:
            sleep = float(settings.get('update_message_sleep', UPDATE_MESSAGE_SLEEP_SECONDS))
        except (TypeError, ValueError):
            sleep = UPDATE_MESSAGE_SLEEP_SECONDS

        autoupdate = settings.get('autoupdate', True)
        if isinstance(autoupdate, str):
            autoupdate = autoupdate.strip().lower() in ('yes', 'true', '1', 'on')

        return InstallerConfig(
            install_root=self.install_root,
            api_url=str(settings.get('api_url') or ''),
            build=str(settings.get('build') or BUILD_RECOMMENDED),
            autoupdate=bool(autoupdate),
            minecraft_version=settings.get('minecraft_version') or None,
            download_workers=workers,
            log_level=str(settings.get('log_level') or 'INFO').upper(),
            update_message_sleep=sleep,
        )
