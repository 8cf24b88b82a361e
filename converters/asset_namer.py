"""Deterministic local names for remote document assets."""

import hashlib
import posixpath
from pathlib import Path
from urllib.parse import urlparse

from models import DocumentRecord

ASSETS_DIRECTORY = 'assets'


class AssetNamer:
    """
    Derives local asset locations from a document and a remote asset URL.

    Assets are grouped per document url, so two documents embedding files
    with the same remote name never collide:

        relative name:  <document-url>/<remote-filename>
        destination:    <output-dir>/<namespace>/assets/<relative name>
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    @staticmethod
    def remote_filename(source_url: str) -> str:
        """
        Last segment of the URL path.

        URLs whose path ends with a slash have no file name; they are named
        after a hash of the full URL instead.
        """
        name = urlparse(source_url).path.split('/')[-1]
        return name or hashlib.sha256(source_url.encode('utf-8')).hexdigest()[:16]

    def relative_name(self, doc: DocumentRecord, source_url: str) -> str:
        """Asset name used in the rewritten embed link."""
        return f"{doc.url}/{self.remote_filename(source_url)}"

    def assets_directory(self, doc: DocumentRecord) -> str:
        """Namespace-scoped assets directory, relative to the output directory."""
        return posixpath.join(doc.namespace, ASSETS_DIRECTORY)

    def destination(self, doc: DocumentRecord, source_url: str) -> Path:
        """Absolute file path the asset bytes are written to."""
        return self.output_dir / self.assets_directory(doc) / self.relative_name(doc, source_url)


__all__ = ['AssetNamer', 'ASSETS_DIRECTORY']
