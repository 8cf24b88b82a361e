"""Writes converted documents into the vault directory."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from models import DocumentRecord

MARKDOWN_EXTENSION = '.md'


class MarkdownExporter:
    """Writes ``doc.content`` to ``<output_dir>/<file_path>.md``."""

    def __init__(self, output_dir: Path, dry_run: bool = False, logger: Optional[logging.Logger] = None):
        """
        Initialize the markdown exporter.

        Args:
            output_dir: Vault root directory
            dry_run: Log target paths without writing anything
            logger: Logger instance
        """
        self.output_directory = Path(output_dir)
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.exporters.markdown_exporter')

        self.stats = {
            'documents_exported': 0,
            'documents_unchanged': 0,
            'total_size_bytes': 0
        }

    def target_path(self, doc: DocumentRecord) -> Path:
        return self.output_directory / f"{doc.file_path}{MARKDOWN_EXTENSION}"

    def export(self, doc: DocumentRecord) -> Path:
        """
        Write one converted document.

        Files whose content is already identical are left untouched.

        Returns:
            Path of the markdown file

        Raises:
            OSError: If the file cannot be written
        """
        target = self.target_path(doc)

        if self.dry_run:
            self.logger.info(f"[dry-run] Would write {target}")
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        data = doc.content.encode('utf-8')

        if target.exists() and target.read_bytes() == data:
            self.logger.debug(f"Unchanged: {target}")
            self.stats['documents_unchanged'] += 1
            return target

        target.write_bytes(data)
        self.stats['documents_exported'] += 1
        self.stats['total_size_bytes'] += len(data)
        self.logger.debug(f"Wrote {target} ({len(data)} bytes)")
        return target

    def get_stats(self) -> Dict[str, Any]:
        return dict(self.stats)


def format_bytes(bytes_val: float) -> str:
    """Format bytes to human-readable string."""
    if bytes_val == 0:
        return "0 B"

    for unit in ['B', 'KB', 'MB', 'GB']:
        if bytes_val < 1024.0:
            return f"{bytes_val:.1f} {unit}"
        bytes_val /= 1024.0

    return f"{bytes_val:.1f} TB"


__all__ = ['MarkdownExporter', 'format_bytes']
