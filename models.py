"""Data models for the Yuque to Obsidian migration pipeline."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from config_loader import get_nested

DEFAULT_HOST = 'https://www.yuque.com'
DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


@dataclass
class DocumentRecord:
    """A single exported document and its output location."""

    namespace: str
    url: str
    file_path: str  # Relative to the output directory, without ".md"
    title: str = ''
    content: str = ''

    @property
    def key(self) -> str:
        """Mapping key: the source pathname without its leading slash."""
        return f"{self.namespace}/{self.url}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize document to dictionary."""
        return {
            'namespace': self.namespace,
            'url': self.url,
            'file_path': self.file_path,
            'title': self.title,
            'content': self.content
        }


# pathname (leading "/" stripped) -> document
DocumentMapping = Dict[str, DocumentRecord]


@dataclass
class AssetReference:
    """A remote image scheduled for download."""

    source_url: str
    local_path: str  # "<document-url>/<remote-filename>"
    destination: Path


@dataclass(frozen=True)
class ConversionSettings:
    """Run-wide settings threaded into every conversion component."""

    host: str = DEFAULT_HOST
    meta_dir: Path = Path('./meta')
    output_dir: Path = Path('./output')
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 30
    max_workers: int = 4
    download_workers: int = 8

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ConversionSettings':
        """Build settings from a loaded configuration dictionary."""
        return cls(
            host=(get_nested(config, 'yuque.host') or DEFAULT_HOST).rstrip('/'),
            meta_dir=Path(get_nested(config, 'export.meta_directory') or './meta'),
            output_dir=Path(get_nested(config, 'export.output_directory') or './output'),
            user_agent=get_nested(config, 'yuque.user_agent') or DEFAULT_USER_AGENT,
            request_timeout=get_nested(config, 'advanced.request_timeout', 30),
            max_workers=get_nested(config, 'advanced.max_workers', 4),
            download_workers=get_nested(config, 'advanced.download_workers', 8)
        )


@dataclass
class MigrationStatus:
    """Tracks conversion outcome of one document for reporting."""

    document_key: str
    title: str
    status: str  # "pending", "converted", "exported", "failed"
    error_message: Optional[str] = None
    links_rewritten: int = 0
    links_unresolved: int = 0
    assets_scheduled: int = 0
    timestamp: Optional[str] = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize status to dictionary."""
        return {
            'document': self.document_key,
            'title': self.title,
            'status': self.status,
            'error_message': self.error_message,
            'links_rewritten': self.links_rewritten,
            'links_unresolved': self.links_unresolved,
            'assets_scheduled': self.assets_scheduled,
            'timestamp': self.timestamp
        }


__all__ = [
    'DocumentRecord',
    'DocumentMapping',
    'AssetReference',
    'ConversionSettings',
    'MigrationStatus',
    'DEFAULT_HOST',
    'DEFAULT_USER_AGENT'
]
