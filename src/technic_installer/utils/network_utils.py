import hashlib
import os
import time
from pathlib import Path
from typing import Optional

import requests

from ..core.constants import (
    BACKOFF_MULTIPLIER,
    CHUNK_SIZE,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
)
from ..core.errors import TransferError
from ..model_types import DownloadResult


def retry_with_backoff(func, max_retries=3, delay=1, backoff=2,
                       exceptions=(requests.exceptions.RequestException,)):
    """Retry function with exponential backoff."""
    last_exception = None
    current_delay = delay

    for attempt in range(max_retries):
        try:
            return func()
        except exceptions as e:
            last_exception = e
            if attempt < max_retries - 1:
                time.sleep(current_delay)
                current_delay *= backoff

    raise last_exception


def file_md5(path) -> str:
    hash_md5 = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hash_md5.update(chunk)
    return hash_md5.hexdigest()


class ChecksumMismatch(ValueError):
    pass


class Downloader:
    """Streams a URL to a file, retrying transient failures.

    The body is written to '<dest>.part' and renamed when complete, so a
    destination path never holds a partial download.
    """

    def __init__(self, session=None, timeout=REQUEST_TIMEOUT, max_retries=MAX_RETRIES, retry_delay=RETRY_DELAY):
        self.session = session or requests
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def download(self, url: str, dest, md5: Optional[str] = None) -> DownloadResult:
        """Download url to dest.

        Args:
            url: Source URL
            dest: Destination file path
            md5: Expected MD5 hex digest, checked when given

        Returns:
            DownloadResult with the destination path and bytes written

        Raises:
            TransferError: all attempts failed or the checksum does not match
        """
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        part = dest.with_name(dest.name + '.part')

        def attempt_download():
            written = 0
            response = self.session.get(url, stream=True, timeout=self.timeout)
            response.raise_for_status()
            with open(part, 'wb') as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)

            if md5 and file_md5(part).lower() != md5.lower():
                part.unlink()
                raise ChecksumMismatch(f"MD5 mismatch for {dest.name}")

            os.replace(part, dest)
            return DownloadResult(str(dest), written)

        try:
            return retry_with_backoff(attempt_download, max_retries=self.max_retries,
                                      delay=self.retry_delay, backoff=BACKOFF_MULTIPLIER,
                                      exceptions=(requests.exceptions.RequestException, ChecksumMismatch))
        except requests.exceptions.RequestException as e:
            raise TransferError(f"download failed after {self.max_retries} attempts: {type(e).__name__}: {e}", url) from e
        except ChecksumMismatch as e:
            raise TransferError(str(e), url) from e
        except OSError as e:
            raise TransferError(f"cannot write {dest}: {e}", url) from e
        finally:
            if part.exists():
                try:
                    part.unlink()
                except OSError:
                    pass
