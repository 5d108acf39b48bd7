"""Technic Server Installer: install and update Technic modpacks as Minecraft servers."""

__version__ = "1.0.0"
