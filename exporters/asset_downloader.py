"""Background asset downloader used as a fire-and-forget work queue."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import requests


class AssetDownloader:
    """
    Downloads remote assets on a thread pool.

    ``submit`` never blocks on the transfer and returns nothing, so document
    conversion does not depend on download completion. Failures are logged
    and counted here; they never reach the text pipeline. The orchestrator
    calls ``wait``/``shutdown`` once every document has been converted.
    """

    def __init__(
        self,
        download: Callable[[str, Path], int],
        max_workers: int = 8,
        skip_existing: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the asset downloader.

        Args:
            download: Function writing url to a destination, returning bytes written
            max_workers: Number of concurrent downloads
            skip_existing: Skip destinations that already exist on disk
            logger: Logger instance
        """
        self.download = download
        self.skip_existing = skip_existing
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.exporters.asset_downloader')

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='asset-download')
        self._lock = threading.Lock()
        self._scheduled: Set[Path] = set()
        self._futures: List[Future] = []

        self.stats = {
            'scheduled': 0,
            'downloaded': 0,
            'skipped': 0,
            'failed': 0,
            'total_size_bytes': 0
        }

    def submit(self, url: str, destination: Path) -> None:
        """Enqueue a download of ``url`` to ``destination``."""
        destination = Path(destination)

        with self._lock:
            if destination in self._scheduled:
                self.stats['skipped'] += 1
                return
            self._scheduled.add(destination)
            self.stats['scheduled'] += 1
            self._futures.append(self._executor.submit(self._download_one, url, destination))

    def _download_one(self, url: str, destination: Path) -> None:
        if self.skip_existing and destination.exists():
            self.logger.debug(f"Asset already present, skipping: {destination}")
            self._count('skipped')
            return

        try:
            size = self.download(url, destination)
        except (requests.exceptions.RequestException, OSError) as e:
            self.logger.warning(f"Failed to download asset {url} -> {destination}: {e}")
            self._count('failed')
            return

        self._count('downloaded')
        self._count('total_size_bytes', size or 0)

    def _count(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self.stats[key] += amount

    def wait(self, timeout: Optional[float] = None) -> Dict[str, int]:
        """Block until every scheduled download has finished."""
        with self._lock:
            pending = list(self._futures)
        wait(pending, timeout=timeout)
        return self.get_stats()

    def shutdown(self, wait_for_downloads: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_downloads)

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return dict(self.stats)

    def __enter__(self) -> 'AssetDownloader':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait_for_downloads=True)


__all__ = ['AssetDownloader']
