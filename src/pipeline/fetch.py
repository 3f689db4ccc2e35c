"""
Source Image Fetching

HTTP retrieval of source images for the sticker pipeline. The fetcher is
injected into the pack builder and export service; nothing in the core
pipeline performs network I/O on its own.
"""

from typing import Optional

import httpx

from src.core.exceptions import FetchError
from src.core.logging import get_logger
from src.core.metrics import record_fetch

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class HttpImageFetcher:
    """GET a URL and return its body; no retries."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._transport = transport

    def __call__(self, url: str) -> bytes:
        return self.fetch(url)

    def fetch(self, url: str) -> bytes:
        logger.debug("fetch_starting", url=url)
        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                with client.stream("GET", url) as response:
                    if not response.is_success:
                        record_fetch("error")
                        logger.warning("fetch_failed", url=url, reason="status", http_status=response.status_code)
                        raise FetchError(
                            f"fetch {url} -> {response.status_code}",
                            url=url,
                            http_status=response.status_code
                        )
                    content = self._read_capped(url, response)
        except httpx.TimeoutException as e:
            record_fetch("timeout")
            logger.warning("fetch_failed", url=url, reason="timeout", timeout=self.timeout)
            raise FetchError(f"Timed out fetching {url}", url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            record_fetch("error")
            logger.warning("fetch_failed", url=url, reason="transport", error=str(e))
            raise FetchError(f"Could not fetch {url}: {e}", url=url) from e

        record_fetch("success")
        logger.debug("fetch_completed", url=url, size_bytes=len(content))
        return content

    def _read_capped(self, url: str, response: httpx.Response) -> bytes:
        """Read the body, stopping as soon as it passes ``max_bytes``."""
        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            raise self._too_large(url, response.status_code, int(declared))

        buffer = bytearray()
        for chunk in response.iter_bytes():
            buffer.extend(chunk)
            if len(buffer) > self.max_bytes:
                raise self._too_large(url, response.status_code, len(buffer))
        return bytes(buffer)

    def _too_large(self, url: str, http_status: int, size_bytes: int) -> FetchError:
        record_fetch("too_large")
        logger.warning("fetch_failed", url=url, reason="too_large", size_bytes=size_bytes)
        return FetchError(
            f"Source image exceeds {self.max_bytes} bytes",
            url=url,
            http_status=http_status,
            details={"size_bytes": size_bytes}
        )
