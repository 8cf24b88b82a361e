"""HTTP client for the Yuque host: share link redirects and asset downloads."""

import logging
from pathlib import Path
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from models import ConversionSettings

logger = logging.getLogger('yuque_obsidian_migrator.client')

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class YuqueClient:
    """Thin ``requests`` session wrapper. Failed requests are never retried."""

    def __init__(
        self,
        host: str,
        user_agent: str,
        timeout: float = 30,
        pool_size: int = 10,
        cookie: Optional[str] = None
    ):
        """
        Initialize client.

        Args:
            host: Platform base URL (e.g., "https://www.yuque.com")
            user_agent: User-Agent header sent with every request
            timeout: HTTP request timeout in seconds
            pool_size: Connection pool size, at least the number of download workers
            cookie: Optional session cookie for private knowledge bases
        """
        self.host = host.rstrip('/')
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers['User-Agent'] = user_agent
        if cookie:
            self.session.headers['Cookie'] = cookie

        # Failed requests are never retried
        retry = Retry(total=0, read=False)
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f"Client configured for {self.host} with timeout={timeout}s, pool_size={pool_size}")

    @classmethod
    def from_settings(cls, settings: ConversionSettings, cookie: Optional[str] = None) -> 'YuqueClient':
        return cls(
            host=settings.host,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
            pool_size=max(settings.download_workers, settings.max_workers),
            cookie=cookie
        )

    def resolve_redirect(self, url: str) -> str:
        """
        Follow the redirect chain of ``url`` and return the final address.

        Args:
            url: Share link

        Returns:
            Final URL after all redirects

        Raises:
            requests.exceptions.RequestException: On connection errors, timeouts
                or an error status at the end of the chain
        """
        try:
            response = self.session.get(url, allow_redirects=True, timeout=self.timeout, stream=True)
            try:
                response.raise_for_status()
                final_url = response.url
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            logger.error(f"Redirect lookup failed for {url}: {e}")
            raise

        logger.debug(f"Resolved {url} -> {final_url}")
        return final_url

    def download(self, url: str, destination: Path) -> int:
        """
        Stream ``url`` into ``destination``, creating parent directories.

        Args:
            url: Remote file URL
            destination: Local file path

        Returns:
            Number of bytes written

        Raises:
            requests.exceptions.RequestException: For HTTP or connection errors
            OSError: If the file cannot be written
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        with self.session.get(url, timeout=self.timeout, stream=True) as response:
            response.raise_for_status()
            with open(destination, 'wb') as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)

        logger.debug(f"Downloaded {url} -> {destination} ({written} bytes)")
        return written

    def close(self) -> None:
        self.session.close()


__all__ = ['YuqueClient']
