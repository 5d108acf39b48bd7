"""Installation/update engine."""

from .descriptor import CatalogEndpoint, Component, PackDescriptor, parse_descriptor
from .differ import diff_components, diff_package
from .file_index import InstalledFileIndex
from .state import InstallationSnapshot, InstallState, resolve_target

__all__ = [
    'CatalogEndpoint', 'Component', 'PackDescriptor', 'parse_descriptor',
    'diff_components', 'diff_package', 'InstalledFileIndex',
    'InstallationSnapshot', 'InstallState', 'resolve_target',
]
