"""YAML frontmatter for converted documents."""

from typing import Any, Dict, Optional

import yaml

from models import ConversionSettings, DocumentRecord

FRONTMATTER_DELIMITER = '---'


class FrontmatterBuilder:
    """Builds the metadata header prepended to every converted document."""

    def __init__(self, settings: ConversionSettings, extra_fields: Optional[Dict[str, Any]] = None):
        """
        Initialize frontmatter builder.

        Args:
            settings: Conversion settings (host)
            extra_fields: Static fields appended after the document's own keys
        """
        self.host = settings.host
        self.extra_fields = extra_fields or {}

    def source_url(self, doc: DocumentRecord) -> str:
        """Canonical address of the document on the source platform."""
        return f"{self.host}/{doc.namespace}/{doc.url}"

    def fields(self, doc: DocumentRecord) -> Dict[str, Any]:
        fields = {'url': self.source_url(doc)}
        for key, value in self.extra_fields.items():
            fields.setdefault(key, value)
        return fields

    def build(self, doc: DocumentRecord) -> str:
        """
        Render the frontmatter block for ``doc``.

        Returns:
            ``---\\n<yaml>---\\n\\n``
        """
        dumped = yaml.safe_dump(
            self.fields(doc),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True
        )
        return f"{FRONTMATTER_DELIMITER}\n{dumped}{FRONTMATTER_DELIMITER}\n\n"


__all__ = ['FrontmatterBuilder']
