"""
HTTPX-based fetcher that streams a response body straight to a local file
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from ..config import UpdaterConfig
from ..io.storage import AtomicFileWriter

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A download could not be completed and its destination was not replaced."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class Fetcher:
    """
    Blocking HTTPS downloader.

    TLS certificates are always verified and redirects are followed.
    A single attempt is made per call; there is no retry loop.
    """

    def __init__(self, config: UpdaterConfig, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize fetcher.

        Args:
            config: UpdaterConfig instance
            transport: Optional transport override (used by tests)
        """
        self.config = config
        self.permissions = config.store.permissions

        timeout = httpx.Timeout(
            connect=config.limits.connect_timeout_ms / 1000,
            read=config.limits.read_timeout_ms / 1000,
            write=config.limits.read_timeout_ms / 1000,
            pool=None
        )

        self.base_headers = {
            "User-Agent": config.user_agent,
            "Accept": "*/*",
        }

        self.client = httpx.Client(
            http2=True,
            verify=True,
            timeout=timeout,
            follow_redirects=True,
            max_redirects=config.limits.max_redirects,
            headers=self.base_headers,
            transport=transport
        )

        # Statistics
        self.total_fetches = 0
        self.successful_fetches = 0
        self.failed_fetches = 0
        self.bytes_downloaded = 0

    def fetch(self, url: str, dest_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Download url into dest_path, replacing any previous file.

        Args:
            url: Absolute https:// URL
            dest_path: Local file to create or overwrite

        Returns:
            Result dict with:
            - url: Requested URL
            - final_url: URL after redirects
            - status: HTTP status code
            - bytes: Body size written to disk
            - path: Destination path
            - content_type: Response Content-Type header
            - latency_ms: Time from request to last byte

        Raises:
            FetchError: on transport, TLS, status, length or write failure
        """
        self.total_fetches += 1
        try:
            result = self._download(url, Path(dest_path))
        except FetchError as e:
            self.failed_fetches += 1
            logger.warning(f"Fetch failed for {e.url}: {e.reason}")
            raise

        self.successful_fetches += 1
        self.bytes_downloaded += result["bytes"]
        logger.info(
            f"Fetched {url} -> {result['path']} "
            f"({result['bytes']} bytes, HTTP {result['status']}, {result['latency_ms']:.0f} ms)"
        )
        return result

    def _download(self, url: str, dest_path: Path) -> Dict[str, Any]:
        self._check_url(url)
        start_time = time.time()

        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise FetchError(url, f"HTTP {response.status_code} from {response.url}")

                with AtomicFileWriter(dest_path, self.permissions) as writer:
                    for chunk in response.iter_bytes():
                        writer.write(chunk)
                    # Raising here discards the temp file
                    if writer.bytes_written == 0:
                        raise FetchError(url, "empty response body")
                    self._check_length(url, response, writer.bytes_written)

                latency_ms = (time.time() - start_time) * 1000
                return {
                    "url": url,
                    "final_url": str(response.url),
                    "status": response.status_code,
                    "bytes": writer.bytes_written,
                    "path": str(dest_path),
                    "content_type": response.headers.get("content-type", ""),
                    "latency_ms": latency_ms,
                }

        except httpx.HTTPError as e:
            raise FetchError(url, f"{type(e).__name__}: {e}") from e
        except OSError as e:
            raise FetchError(url, f"cannot write {dest_path}: {e}") from e

    @staticmethod
    def _check_url(url: str) -> None:
        """Reject anything that is not an absolute https:// URL"""
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as e:
            raise FetchError(str(url), f"invalid URL: {e}") from e

        if parsed.scheme != "https" or not parsed.host:
            raise FetchError(url, "only absolute https:// URLs are allowed")

    @staticmethod
    def _check_length(url: str, response: httpx.Response, received: int) -> None:
        """Compare streamed bytes against Content-Length for unencoded bodies"""
        advertised = response.headers.get("content-length")
        # Content-Length counts encoded bytes; decoded sizes differ
        if advertised is None or response.headers.get("content-encoding", "identity") != "identity":
            return
        try:
            expected = int(advertised)
        except ValueError:
            logger.debug(f"Ignoring malformed Content-Length {advertised!r} for {url}")
            return
        if received != expected:
            raise FetchError(url, f"incomplete transfer: received {received} of {expected} bytes")

    def get_stats(self) -> Dict[str, Any]:
        """Get fetcher statistics"""
        return {
            "total_fetches": self.total_fetches,
            "successful": self.successful_fetches,
            "failed": self.failed_fetches,
            "bytes_downloaded": self.bytes_downloaded,
            "success_rate": f"{(self.successful_fetches / self.total_fetches * 100):.1f}%" if self.total_fetches > 0 else "N/A"
        }

    def close(self) -> None:
        """Close HTTP client"""
        self.client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
