"""Collaborators of the installer core: network clients, mod loader, console output."""
