"""Solder API client turning a build preference into a concrete component list."""
from typing import FrozenSet, Tuple

import requests

from ..core.constants import BUILD_LATEST, BUILD_RECOMMENDED, REQUEST_TIMEOUT
from ..core.descriptor import CatalogEndpoint, Component
from ..core.errors import MalformedSourceError, TransferError
from .network_utils import retry_with_backoff


class SolderResolver:
    """Resolves 'recommended', 'latest' or a literal build id against a Solder server.

    GET <solder>modpack/<slug>          -> {"recommended": .., "latest": .., "builds": [..]}
    GET <solder>modpack/<slug>/<build>  -> {"minecraft": .., "mods": [{name, version, url, md5}]}
    """

    def __init__(self, session=None, timeout=REQUEST_TIMEOUT, max_retries=3):
        self.session = session or requests
        self.timeout = timeout
        self.max_retries = max_retries
        self._cache = {}

    def _get_json(self, url):
        if url in self._cache:
            return self._cache[url]

        def attempt():
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            response = retry_with_backoff(attempt, max_retries=self.max_retries)
        except requests.exceptions.RequestException as e:
            raise TransferError(f"Solder request failed: {e}", url) from e
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedSourceError(f"Solder answered with invalid JSON at {url}") from e
        if not isinstance(data, dict):
            raise MalformedSourceError(f"Solder answered with a non-object at {url}")
        if data.get('error'):
            raise MalformedSourceError(f"Solder error at {url}: {data['error']}")
        self._cache[url] = data
        return data

    def build_id(self, endpoint: CatalogEndpoint, slug: str, preference: str) -> str:
        info = self._get_json(endpoint.modpack_url(slug))
        preference = (preference or BUILD_RECOMMENDED).strip()

        if preference.lower() in (BUILD_RECOMMENDED, BUILD_LATEST):
            build = info.get(preference.lower())
            if not build:
                raise MalformedSourceError(f"modpack '{slug}' has no {preference.lower()} build")
            return str(build)

        builds = [str(b) for b in info.get('builds', [])]
        if builds and preference not in builds:
            raise MalformedSourceError(f"build '{preference}' does not exist for modpack '{slug}'")
        return preference

    def resolve(self, endpoint: CatalogEndpoint, slug: str, preference: str) -> Tuple[str, FrozenSet[Component]]:
        """Build id and components for the preferred build."""
        build = self.build_id(endpoint, slug, preference)
        details = self._get_json(endpoint.build_url(slug, build))
        mods = details.get('mods')
        if not isinstance(mods, list):
            raise MalformedSourceError(f"build '{build}' of '{slug}' has no mod list")

        components = {}
        for entry in mods:
            component = Component.from_payload(entry)
            if not component.url:
                raise MalformedSourceError(f"mod '{component.name}' in build '{build}' has no download url")
            if component.name in components:
                raise MalformedSourceError(f"mod '{component.name}' listed twice in build '{build}'")
            components[component.name] = component
        return build, frozenset(components.values())

    def clear_cache(self) -> None:
        self._cache.clear()
