"""Loads exported document JSON files from the metadata directory."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from models import DocumentMapping, DocumentRecord

DOCS_DIRECTORY = 'docs'
DOCUMENT_SUFFIX = '.json'
MAX_FILENAME_LENGTH = 100

# Characters that are unsafe in file names or meaningful in vault links
UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|#^\[\]\x00-\x1f]')


class FetcherError(Exception):
    """Base exception for document loading errors."""
    pass


class DocumentNotFoundError(FetcherError):
    """Raised when a document JSON file is missing or unreadable."""
    pass


def sanitize_filename(title: str) -> str:
    """
    Convert a document title to a filesystem-safe file name.

    Non-ASCII characters are kept; only path separators and characters
    reserved by common filesystems or by vault link syntax are replaced.

    Args:
        title: Document title

    Returns:
        Sanitized file name, ``untitled`` if nothing usable remains
    """
    if not title:
        return 'untitled'

    sanitized = UNSAFE_FILENAME_CHARS.sub('-', title)
    sanitized = re.sub(r'\s+', ' ', sanitized)
    sanitized = re.sub(r'-+', '-', sanitized)
    sanitized = sanitized.strip(' .-')

    if len(sanitized) > MAX_FILENAME_LENGTH:
        sanitized = sanitized[:MAX_FILENAME_LENGTH].rstrip(' .-')

    return sanitized or 'untitled'


class DocumentLoader:
    """
    Reads ``<meta_dir>/<namespace>/docs/<url>.json`` documents.

    A document file holds the document detail, optionally wrapped in a
    ``data`` envelope as returned by the platform API. The ``body`` field
    carries the source markdown.
    """

    def __init__(self, meta_dir: Path, logger: Optional[logging.Logger] = None):
        """
        Initialize the document loader.

        Args:
            meta_dir: Root of the exported metadata
            logger: Logger instance
        """
        self.meta_dir = Path(meta_dir)
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.fetchers.document_loader')

    def document_path(self, namespace: str, url: str) -> Path:
        return self.meta_dir / namespace / DOCS_DIRECTORY / f"{url}{DOCUMENT_SUFFIX}"

    def read_detail(self, namespace: str, url: str) -> Dict[str, Any]:
        """
        Read the detail record of one document.

        Raises:
            DocumentNotFoundError: If the file is missing, unreadable or not a JSON object
        """
        path = self.document_path(namespace, url)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                detail = json.load(f)
        except FileNotFoundError as e:
            raise DocumentNotFoundError(f"Document not found: {path}") from e
        except (OSError, ValueError) as e:
            raise DocumentNotFoundError(f"Cannot read document {path}: {e}") from e

        if isinstance(detail, dict) and isinstance(detail.get('data'), dict):
            detail = detail['data']
        if not isinstance(detail, dict):
            raise DocumentNotFoundError(f"Document {path} does not contain a JSON object")

        return detail

    def load_body(self, doc: DocumentRecord) -> str:
        """Return the source markdown body of ``doc`` (empty if the body is null)."""
        detail = self.read_detail(doc.namespace, doc.url)
        return detail.get('body') or ''

    def discover(self, namespaces: Optional[Iterable[str]] = None) -> List[DocumentRecord]:
        """
        Find every exported document under the metadata directory.

        The namespace is the path between ``meta_dir`` and the ``docs``
        directory (e.g. ``team/handbook``). Each record's ``file_path`` is
        ``<namespace>/<sanitized title>``, suffixed with ``-<n>`` when two
        titles in the same namespace sanitize to the same name.

        Args:
            namespaces: Optional namespace filter

        Returns:
            Records sorted by namespace and url
        """
        wanted = set(namespaces) if namespaces else None
        records: List[DocumentRecord] = []
        used_paths: Set[str] = set()

        if not self.meta_dir.is_dir():
            self.logger.warning(f"Metadata directory does not exist: {self.meta_dir}")
            return records

        for path in sorted(self.meta_dir.glob(f"**/{DOCS_DIRECTORY}/*{DOCUMENT_SUFFIX}")):
            namespace = path.parent.parent.relative_to(self.meta_dir).as_posix()
            if namespace == '.':
                continue
            if wanted is not None and namespace not in wanted:
                continue

            url = path.stem
            try:
                title = self.read_detail(namespace, url).get('title') or url
            except DocumentNotFoundError as e:
                self.logger.warning(f"Skipping unreadable document: {e}")
                continue

            file_path = self._unique_file_path(namespace, sanitize_filename(title), used_paths)
            records.append(DocumentRecord(namespace=namespace, url=url, file_path=file_path, title=title))

        self.logger.info(f"Discovered {len(records)} documents in {self.meta_dir}")
        return records

    def _unique_file_path(self, namespace: str, name: str, used_paths: Set[str]) -> str:
        candidate = f"{namespace}/{name}"
        counter = 2
        while candidate.lower() in used_paths:
            candidate = f"{namespace}/{name}-{counter}"
            counter += 1
        used_paths.add(candidate.lower())
        return candidate


def build_mapping(records: Iterable[DocumentRecord]) -> DocumentMapping:
    """
    Build the ``<namespace>/<url>`` lookup used for link resolution.

    Raises:
        ValueError: If two records share a key
    """
    mapping: DocumentMapping = {}
    for record in records:
        if record.key in mapping:
            raise ValueError(f"Duplicate document key: {record.key}")
        mapping[record.key] = record
    return mapping


__all__ = [
    'DocumentLoader',
    'DocumentNotFoundError',
    'FetcherError',
    'build_mapping',
    'sanitize_filename'
]
