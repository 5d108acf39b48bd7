"""
Technic Server Installer - Entry point
Installs or updates a Technic modpack as a Minecraft server.
"""

import argparse
import sys
from pathlib import Path

from .core.config_manager import ConfigManager
from .core.constants import CONFIG_FILE_NAME, LOG_FILE_NAME, STATE_FILE_NAME
from .core.errors import InstallerError, InvalidStateError
from .core.installer import PackInstaller
from .core.session import InstallSession
from .core.state_store import StateStore
from .utils.catalog_client import TechnicCatalogClient
from .utils.console_log import ConsoleLog
from .utils.error_messages import get_user_friendly_error, suggest_fix_for_error
from .utils.forge import ForgeConverter
from .utils.network_utils import Downloader
from .utils.solder import SolderResolver
from .utils.symbols import LogSymbols

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INCOMPLETE = 2


def build_parser():
    parser = argparse.ArgumentParser(
        prog="technic-installer",
        description="Install and update a Technic modpack as a Minecraft server.",
    )
    parser.add_argument("command", nargs="?", choices=("run", "update"), default="run",
                        help="'update' installs even when autoupdate is disabled or the pack is up to date")
    parser.add_argument("--root", default=".", help="server directory (default: current directory)")
    parser.add_argument("--api-url", help="Technic API URL of the modpack")
    parser.add_argument("--build", help="'recommended', 'latest' or a build id")
    parser.add_argument("--no-forge", action="store_true", help="skip the Forge server installation")
    parser.add_argument("--debug", action="store_true", help="verbose output")
    return parser


def create_session(config, log, with_forge=True):
    downloader = Downloader()
    converter = ForgeConverter(downloader, log) if with_forge else None
    installer = PackInstaller(
        config.install_root, log, downloader,
        converter=converter,
        max_workers=config.download_workers,
    )
    return InstallSession(
        config, log,
        catalog=TechnicCatalogClient(),
        resolver=SolderResolver(),
        store=StateStore(config.install_root / STATE_FILE_NAME, log),
        installer=installer,
    )


def main(argv=None):
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    root = Path(args.root).resolve()
    root.mkdir(parents=True, exist_ok=True)

    bootstrap_log = ConsoleLog(root / LOG_FILE_NAME, 'DEBUG' if args.debug else 'INFO')
    config = ConfigManager(root, bootstrap_log).load_config(
        api_url=args.api_url,
        build=args.build,
        log_level='DEBUG' if args.debug else None,
    )
    log = ConsoleLog(root / LOG_FILE_NAME, config.log_level)

    if not config.api_url:
        log(f"{LogSymbols.ERROR_BOLD} No api_url configured. Set it in {root / CONFIG_FILE_NAME} "
            f"or pass --api-url", error=True)
        return EXIT_FATAL

    session = create_session(config, log, with_forge=not args.no_forge)
    try:
        report = session.run(force=args.command == "update")
    except InvalidStateError as e:
        log(f"{LogSymbols.ERROR_BOLD} Internal state error: {e}", error=True)
        return EXIT_FATAL
    except (InstallerError, OSError) as e:
        log(f"{LogSymbols.ERROR_BOLD} {type(e).__name__}: {e}", error=True)
        error_type = suggest_fix_for_error(e)
        log(f"\n{get_user_friendly_error(error_type, str(e))}", error=True)
        return EXIT_FATAL

    if report is None:
        return EXIT_OK
    if report.has_errors() or report.has_failed_steps():
        return EXIT_INCOMPLETE
    log(f"{LogSymbols.SUCCESS} Installation complete!", success=True)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
