"""User-friendly error message templates."""

import requests

from ..core.errors import (
    CorruptStateError,
    ExtractError,
    FileOwnershipConflict,
    InvalidReferenceError,
    MalformedSourceError,
    ModLoaderError,
    NotADescriptorError,
)
from .symbols import LogSymbols


def get_user_friendly_error(error_type, error_details=""):
    """Convert error type to user-friendly message with actionable steps."""
    messages = {
        'network_timeout': (
            f"{LogSymbols.ERROR_BOLD} Connection timeout\n\n"
            "The download took too long to respond.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Check the server's internet connection\n"
            f"{LogSymbols.BULLET} Try again later (the mirror might be busy)\n"
            f"{LogSymbols.BULLET} Check if a firewall is blocking outgoing connections"
        ),
        
        'network_404': (
            f"{LogSymbols.ERROR_BOLD} File not found (404)\n\n"
            "The download link is broken or the build was removed.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Check that the build still exists on the Solder server\n"
            f"{LogSymbols.BULLET} Pick another build in technicserver.json\n"
            f"{LogSymbols.BULLET} Contact the modpack author"
        ),
        
        'disk_space': (
            f"{LogSymbols.ERROR_BOLD} Not enough disk space\n\n"
            "The drive doesn't have enough free space for the modpack.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Free up space on the server\n"
            f"{LogSymbols.BULLET} Empty the cache folder\n"
            f"{LogSymbols.BULLET} Install to a different drive"
        ),
        
        'permission_denied': (
            f"{LogSymbols.ERROR_BOLD} Permission denied\n\n"
            "The installer can't write to the server folder.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Check folder ownership and permissions\n"
            f"{LogSymbols.BULLET} Stop the Minecraft server before updating"
        ),
        
        'corrupted_archive': (
            f"{LogSymbols.ERROR_BOLD} Corrupted download\n\n"
            "The downloaded file is damaged or incomplete.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Run the installer again (failed mods are retried)\n"
            f"{LogSymbols.BULLET} Check your internet connection stability"
        ),
        
        'not_an_api_url': (
            f"{LogSymbols.ERROR_BOLD} Not a Technic API URL\n\n"
            "The configured api_url did not return a modpack description.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Use a link of the form https://api.technicpack.net/modpack/<slug>\n"
            f"{LogSymbols.BULLET} Check api_url in technicserver.json"
        ),
        
        'malformed_descriptor': (
            f"{LogSymbols.ERROR_BOLD} Invalid modpack description\n\n"
            "The Technic API returned an incomplete or broken modpack entry.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Try again later\n"
            f"{LogSymbols.BULLET} Contact the modpack author"
        ),
        
        'corrupt_state': (
            LogSymbols.WARNING + " Installation state unreadable\n\n"
            "The saved state was discarded. The modpack will be reinstalled.\n\n"
            "Files of the previous installation may remain in the server folder."
        ),
        
        'file_conflict': (
            LogSymbols.WARNING + " Overlapping mod files\n\n"
            "Two mods ship the same file. The second one was not recorded\n"
            "so removing one mod never deletes the other one's files.\n\n"
            "Report this to the modpack author."
        ),
        
        'mod_loader': (
            f"{LogSymbols.ERROR_BOLD} Forge installation failed\n\n"
            "The modpack files are in place but the server can't start without Forge.\n\n"
            "Try:\n"
            f"{LogSymbols.BULLET} Make sure Java is installed and on PATH\n"
            f"{LogSymbols.BULLET} Run the installer again with the 'update' argument"
        ),
    }
    
    default_message = (
        f"{LogSymbols.ERROR_BOLD} An error occurred\n\n"
        f"Technical details: {error_details}\n\n"
        f"Try:\n"
        f"{LogSymbols.BULLET} Check the log for more information\n"
        f"{LogSymbols.BULLET} Run the installer again"
    )
    
    return messages.get(error_type, default_message)


def suggest_fix_for_error(exception):
    # Installer errors first, they may wrap network errors
    if isinstance(exception, NotADescriptorError):
        return 'not_an_api_url'
    elif isinstance(exception, (MalformedSourceError, InvalidReferenceError)):
        return 'malformed_descriptor'
    elif isinstance(exception, CorruptStateError):
        return 'corrupt_state'
    elif isinstance(exception, FileOwnershipConflict):
        return 'file_conflict'
    elif isinstance(exception, ModLoaderError):
        return 'mod_loader'
    elif isinstance(exception, ExtractError):
        return 'corrupted_archive'
    
    cause = exception.__cause__ or exception
    
    # Network errors
    if isinstance(cause, requests.exceptions.Timeout):
        return 'network_timeout'
    elif isinstance(cause, requests.exceptions.ConnectionError):
        return 'network_timeout'
    elif isinstance(cause, requests.exceptions.HTTPError):
        if cause.response is not None and cause.response.status_code == 404:
            return 'network_404'
    
    # File system errors
    elif isinstance(cause, PermissionError):
        return 'permission_denied'
    elif isinstance(cause, OSError):
        if 'No space left' in str(cause):
            return 'disk_space'
        return 'permission_denied'
    
    return None  # Use default message
