"""Export package writing converted documents and their assets into the vault.

Package Structure:
- markdown_exporter: Writes converted documents to ``<output_dir>/<file_path>.md``
- asset_downloader: Background download queue for remote images
"""

from .asset_downloader import AssetDownloader
from .markdown_exporter import MarkdownExporter, format_bytes

__all__ = [
    'AssetDownloader',
    'MarkdownExporter',
    'format_bytes'
]
