"""Value types for a Technic modpack descriptor and its components.

Descriptors are parsed from the JSON payload served by the Technic platform
API. They are immutable: a new descriptor replaces the previous one on every
run instead of being patched field by field.
"""
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin, urlparse

from .constants import MINECRAFT_SERVER_URL
from .errors import InvalidReferenceError, MalformedSourceError


REQUIRED_FIELDS = ('id', 'name', 'minecraft', 'version')


def validate_url(value: str, field_name: str) -> str:
    """Return value if it is an absolute http(s) URL, raise InvalidReferenceError otherwise."""
    if not isinstance(value, str):
        raise InvalidReferenceError(f"{field_name}: expected a URL string, got {type(value).__name__}")
    try:
        parsed = urlparse(value.strip())
    except ValueError as e:
        raise InvalidReferenceError(f"{field_name}: {e}") from e
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise InvalidReferenceError(f"{field_name}: not an absolute http(s) URL: {value!r}")
    return value.strip()


@dataclass(frozen=True)
class Resource:
    """Icon or logo image referenced by a descriptor."""
    url: str
    md5: Optional[str] = None

    @classmethod
    def from_payload(cls, data, field_name):
        if not data:
            return None
        if not isinstance(data, dict):
            raise MalformedSourceError(f"{field_name}: expected an object")
        url = data.get('url')
        if not url:
            return None
        return cls(validate_url(url, f"{field_name}.url"), data.get('md5') or None)

    def to_payload(self) -> Dict[str, Any]:
        return {'url': self.url, 'md5': self.md5}


@dataclass(frozen=True)
class GameVersion:
    """Minecraft version a pack targets."""
    version: str

    @property
    def server_jar_url(self) -> str:
        return MINECRAFT_SERVER_URL.format(version=self.version)

    @property
    def server_jar_name(self) -> str:
        return f"minecraft_server.{self.version}.jar"

    def __str__(self):
        return self.version


@dataclass(frozen=True)
class CatalogEndpoint:
    """Base URL of a Solder API serving per-component builds."""
    url: str

    def __post_init__(self):
        # Solder API roots always end with a slash so relative joins work
        if not self.url.endswith('/'):
            object.__setattr__(self, 'url', self.url + '/')

    def modpack_url(self, slug: str) -> str:
        return urljoin(self.url, f"modpack/{slug}")

    def build_url(self, slug: str, build: str) -> str:
        return urljoin(self.url, f"modpack/{slug}/{build}")

    def __str__(self):
        return self.url


@dataclass(frozen=True)
class Component:
    """One mod of a componentized pack.

    Identity is the name alone: two records with the same name and different
    versions are the same component in two versions, so sets of components
    never hold both.
    """
    name: str
    version: str = field(compare=False)
    url: str = field(default='', compare=False)
    md5: Optional[str] = field(default=None, compare=False)

    @property
    def archive_name(self) -> str:
        # Percent-encoding never emits '@' or '/', so distinct pairs never share a file
        return f"{quote(self.name, safe='')}@{quote(self.version, safe='')}.zip"

    def to_payload(self) -> Dict[str, Any]:
        return {'name': self.name, 'version': self.version, 'url': self.url, 'md5': self.md5}

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> 'Component':
        try:
            name = data['name']
            version = data['version']
        except (KeyError, TypeError) as e:
            raise MalformedSourceError(f"component entry missing field: {e}") from e
        url = data.get('url') or ''
        if url:
            url = validate_url(url, f"mods[{name}].url")
        return cls(str(name), str(version), url, data.get('md5') or None)

    def __str__(self):
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class PackDescriptor:
    """A modpack as described by the Technic platform API."""
    id: int
    name: str
    display_name: str
    user: str
    minecraft: GameVersion
    version: str
    url: Optional[str] = None
    icon: Optional[Resource] = None
    logo: Optional[Resource] = None
    solder: Optional[CatalogEndpoint] = None

    @property
    def is_monolithic(self) -> bool:
        """Single archive pack, no per-component resolution."""
        return self.solder is None

    def with_minecraft(self, version: str) -> 'PackDescriptor':
        return replace(self, minecraft=GameVersion(version))

    def to_payload(self) -> Dict[str, Any]:
        """Render back into the shape parse_descriptor() accepts."""
        return {
            'id': self.id,
            'name': self.name,
            'displayName': self.display_name,
            'user': self.user,
            'url': self.url or '',
            'minecraft': self.minecraft.version,
            'version': self.version,
            'icon': self.icon.to_payload() if self.icon else None,
            'logo': self.logo.to_payload() if self.logo else None,
            'solder': self.solder.url if self.solder else '',
        }


def parse_descriptor(payload: Dict[str, Any]) -> PackDescriptor:
    """Build a PackDescriptor from a decoded catalog payload.

    Raises:
        MalformedSourceError: required fields are missing or have the wrong shape
        InvalidReferenceError: a contained URL cannot be parsed
    """
    if not isinstance(payload, dict):
        raise MalformedSourceError("descriptor payload is not a JSON object")

    missing = [f for f in REQUIRED_FIELDS if payload.get(f) in (None, '')]
    if missing:
        raise MalformedSourceError(f"descriptor is missing required field(s): {', '.join(missing)}")

    try:
        pack_id = int(payload['id'])
    except (TypeError, ValueError) as e:
        raise MalformedSourceError(f"descriptor id is not an integer: {payload['id']!r}") from e

    name = str(payload['name'])
    url = payload.get('url') or None
    if url:
        url = validate_url(url, 'url')

    solder_url = payload.get('solder') or None
    solder = CatalogEndpoint(validate_url(solder_url, 'solder')) if solder_url else None

    if solder is None and not url:
        raise MalformedSourceError(f"pack '{name}' has neither a Solder endpoint nor a download url")

    return PackDescriptor(
        id=pack_id,
        name=name,
        display_name=str(payload.get('displayName') or name),
        user=str(payload.get('user') or ''),
        minecraft=GameVersion(str(payload['minecraft'])),
        version=str(payload['version']),
        url=url,
        icon=Resource.from_payload(payload.get('icon'), 'icon'),
        logo=Resource.from_payload(payload.get('logo'), 'logo'),
        solder=solder,
    )


def parse_descriptor_bytes(raw: bytes) -> PackDescriptor:
    """Decode raw catalog bytes and parse them."""
    try:
        payload = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedSourceError(f"descriptor is not valid JSON: {e}") from e
    return parse_descriptor(payload)
