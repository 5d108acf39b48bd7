"""Turns an installed client modpack into a runnable Forge server."""
import json
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Optional

from ..core.constants import CACHE_DIR_NAME, FORGE_INSTALLER_URL, MODPACK_JAR
from ..core.errors import ModLoaderError, TransferError
from .symbols import LogSymbols


FORGE_LIBRARY_PREFIXES = ("net.minecraftforge:forge:", "net.minecraftforge:minecraftforge:")


def read_forge_version(modpack_jar) -> Optional[str]:
    """Forge version from the version.json inside bin/modpack.jar, None if absent."""
    try:
        with zipfile.ZipFile(modpack_jar) as jar:
            with jar.open('version.json') as f:
                version_info = json.loads(f.read().decode('utf-8'))
    except KeyError:
        return None
    except (OSError, zipfile.BadZipFile, ValueError) as e:
        raise ModLoaderError(f"cannot read version.json from {modpack_jar}: {e}") from e

    for library in version_info.get('libraries', []):
        name = library.get('name', '') if isinstance(library, dict) else ''
        for prefix in FORGE_LIBRARY_PREFIXES:
            if name.startswith(prefix):
                return name[len(prefix):]
    return None


class ForgeConverter:
    """Installs the Forge server matching the pack's modpack.jar."""

    def __init__(self, downloader, log_callback=None, java='java', runner=subprocess.run):
        self.downloader = downloader
        self.log_callback = log_callback
        self.java = java
        self.runner = runner

    def _log(self, message, **kwargs):
        if self.log_callback:
            self.log_callback(message, **kwargs)

    def convert(self, install_root, descriptor) -> None:
        """Install Forge and the vanilla server jar into install_root.

        Raises:
            ModLoaderError: any step failed
        """
        install_root = Path(install_root)
        modpack_jar = install_root / MODPACK_JAR
        if not modpack_jar.exists():
            raise ModLoaderError(f"{MODPACK_JAR} not found, the pack does not ship a mod loader")

        forge_version = read_forge_version(modpack_jar)
        if not forge_version:
            raise ModLoaderError(f"no Forge library listed in {MODPACK_JAR}!version.json")
        self._log(f"Installing Forge {forge_version}...")

        installer = install_root / CACHE_DIR_NAME / f"forge-{forge_version}-installer.jar"
        try:
            self.downloader.download(FORGE_INSTALLER_URL.format(version=forge_version), installer)
        except TransferError as e:
            raise ModLoaderError(f"could not download the Forge installer: {e}") from e

        try:
            result = self.runner(
                [self.java, '-jar', str(installer), '--installServer'],
                cwd=str(install_root),
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise ModLoaderError(f"could not run {self.java}: {e}") from e
        if result.returncode != 0:
            tail = (result.stdout or '').strip().splitlines()[-5:]
            raise ModLoaderError(f"Forge installer exited with {result.returncode}: {' | '.join(tail)}")

        try:
            shutil.copyfile(modpack_jar, install_root / MODPACK_JAR.name)
        except OSError as e:
            raise ModLoaderError(f"could not copy {MODPACK_JAR}: {e}") from e

        minecraft = descriptor.minecraft
        server_jar = install_root / minecraft.server_jar_name
        if not server_jar.exists():
            self._log(f"Downloading Minecraft server {minecraft}...")
            try:
                self.downloader.download(minecraft.server_jar_url, server_jar)
            except TransferError as e:
                raise ModLoaderError(f"could not download the Minecraft {minecraft} server: {e}") from e

        self._log(f"{LogSymbols.SUCCESS} Forge Mod Loader successfully installed", success=True)
