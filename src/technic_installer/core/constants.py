# -*- coding: utf-8 -*-
"""Application constants: file names, network timeouts, worker pools."""
from pathlib import Path


# Files inside the install root
CONFIG_FILE_NAME = "technicserver.json"
STATE_FILE_NAME = "modpack.state.json"
LOG_FILE_NAME = "technic_installer.log"
CACHE_DIR_NAME = "cache"
MODS_DIR_NAME = "mods"
SERVER_ICON_NAME = "server-icon.png"
MODPACK_JAR = Path("bin") / "modpack.jar"

# Pseudo-component owning every file of a monolithic pack
PACKAGE_OWNER = "package"

# Persisted snapshot
SCHEMA_VERSION = 1

# Technic platform
DEFAULT_API_URL = ""
LAUNCHER_BUILD_ID = "999"
BUILD_RECOMMENDED = "recommended"
BUILD_LATEST = "latest"

# Network timeouts & download
REQUEST_TIMEOUT = 30
CHUNK_SIZE = 8192

# Retry & backoff
MAX_RETRIES = 3
RETRY_DELAY = 2
BACKOFF_MULTIPLIER = 2

# Thread pools
MAX_DOWNLOAD_WORKERS = 3
MAX_DELETE_WORKERS = 4

# Shown when an update is available but autoupdate is disabled
UPDATE_MESSAGE_SLEEP_SECONDS = 10

# Mod loader
FORGE_INSTALLER_URL = (
    "https://maven.minecraftforge.net/net/minecraftforge/forge/"
    "{version}/forge-{version}-installer.jar"
)
MINECRAFT_SERVER_URL = (
    "https://s3.amazonaws.com/Minecraft.Download/versions/"
    "{version}/minecraft_server.{version}.jar"
)
