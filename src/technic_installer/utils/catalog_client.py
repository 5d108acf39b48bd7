"""Technic platform API client: fetches the modpack descriptor."""
import requests

from ..core.constants import LAUNCHER_BUILD_ID, REQUEST_TIMEOUT
from ..core.descriptor import PackDescriptor, parse_descriptor_bytes, validate_url
from ..core.errors import NotADescriptorError, TransferError
from .network_utils import retry_with_backoff


class TechnicCatalogClient:
    """Reads a modpack entry from api.technicpack.net (or a compatible mirror)."""

    def __init__(self, session=None, timeout=REQUEST_TIMEOUT, launcher_build=LAUNCHER_BUILD_ID, max_retries=3):
        self.session = session or requests
        self.timeout = timeout
        self.launcher_build = launcher_build
        self.max_retries = max_retries

    def fetch(self, api_url: str) -> bytes:
        """Raw descriptor bytes.

        Raises:
            InvalidReferenceError: api_url is not an http(s) URL
            NotADescriptorError: the endpoint did not answer with JSON
            TransferError: the request failed
        """
        api_url = validate_url(api_url, 'api_url')

        def attempt():
            response = self.session.get(api_url, params={'build': self.launcher_build}, timeout=self.timeout)
            response.raise_for_status()
            return response

        try:
            response = retry_with_backoff(attempt, max_retries=self.max_retries)
        except requests.exceptions.RequestException as e:
            raise TransferError(f"catalog request failed: {e}", api_url) from e

        content_type = response.headers.get('Content-Type', '').lower()
        if not content_type.startswith('application/json'):
            raise NotADescriptorError(f"{api_url} answered with {content_type or 'no content type'}, not an API URL")
        return response.content

    def fetch_descriptor(self, api_url: str) -> PackDescriptor:
        return parse_descriptor_bytes(self.fetch(api_url))
