import io
import pathlib
import threading
import zipfile

import pytest

from technic_installer.core.descriptor import parse_descriptor
from technic_installer.core.errors import TransferError
from technic_installer.model_types import DownloadResult


class Logger:
    def __init__(self):
        self.messages = []
    def __call__(self, msg, error=False, **kwargs):
        self.messages.append((msg, error))
    def errors(self):
        return [m for m, is_error in self.messages if is_error]
    def contains(self, text):
        return any(text in m for m, _ in self.messages)


def make_in_memory_zip(files):
    bio = io.BytesIO()
    with zipfile.ZipFile(bio, mode="w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    bio.seek(0)
    return bio.getvalue()


class FakeResp:
    def __init__(self, body=b"", status_code=200, content_type="application/zip", json_data=None):
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}
        self.content = body
        self._json = json_data
    def iter_content(self, chunk_size=8192):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]
    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)
    def json(self):
        if self._json is None:
            raise ValueError("no json")
        return self._json


class FakeDownloader:
    """Serves in-memory bodies by URL; URLs in `failing` raise TransferError."""

    def __init__(self, bodies=None, failing=()):
        self.bodies = dict(bodies or {})
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def download(self, url, dest, md5=None):
        with self._lock:
            self.calls.append(url)
        if url in self.failing:
            raise TransferError("HTTP 404", url)
        dest = pathlib.Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        body = self.bodies.get(url, b"\x89PNG")
        dest.write_bytes(body)
        return DownloadResult(str(dest), len(body))


SOLDER_PAYLOAD = {
    "id": 42,
    "name": "tekkit-legends",
    "displayName": "Tekkit Legends",
    "user": "technic",
    "url": "",
    "minecraft": "1.7.10",
    "version": "1.1.1",
    "icon": {"url": "https://cdn.example.com/icon.png", "md5": "abc"},
    "logo": {"url": "https://cdn.example.com/logo.png"},
    "solder": "https://solder.example.com/api/",
}

PACKAGE_PAYLOAD = {
    "id": 7,
    "name": "simple-pack",
    "displayName": "Simple Pack",
    "user": "someone",
    "url": "https://cdn.example.com/simple-pack.zip",
    "minecraft": "1.12.2",
    "version": "1.0",
    "icon": None,
    "logo": None,
    "solder": "",
}


@pytest.fixture
def logs():
    return Logger()


@pytest.fixture
def solder_descriptor():
    return parse_descriptor(dict(SOLDER_PAYLOAD))


@pytest.fixture
def package_descriptor():
    return parse_descriptor(dict(PACKAGE_PAYLOAD))
