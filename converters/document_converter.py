"""Per-document conversion pipeline from source markdown to vault markdown."""

import logging
from pathlib import Path
from typing import Callable, Optional

from models import ConversionSettings, DocumentMapping, DocumentRecord, MigrationStatus

from .frontmatter import FrontmatterBuilder
from .image_extractor import ImageExtractor
from .link_resolver import LinkResolver
from .markdown_tree import parse, serialize
from .regex_post_processor import RegexPostProcessor, unescape_asterisks
from .structural_normalizer import normalize_structure


class DocumentConverter:
    """
    Converts one document body into its final vault text.

    The conversion runs in sequence:
    1. Reference round: parse, resolve links, extract images, serialize
    2. Structure round: reparse with tables, normalize, serialize
    3. Regex post-processing
    4. Frontmatter prepend
    5. Asterisk unescaping

    The document's ``content`` is assigned once, after every step succeeded.
    """

    def __init__(
        self,
        settings: ConversionSettings,
        mapping: DocumentMapping,
        resolve_redirect: Callable[[str], str],
        schedule_download: Callable[[str, Path], None],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the document converter.

        Args:
            settings: Conversion settings
            mapping: Read-only pathname -> document mapping shared by all conversions
            resolve_redirect: Share link redirect lookup
            schedule_download: Fire-and-forget asset download
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.converters.document_converter')
        self.link_resolver = LinkResolver(settings, mapping, resolve_redirect, self.logger)
        self.image_extractor = ImageExtractor(settings, schedule_download, self.logger)
        self.post_processor = RegexPostProcessor()
        self.frontmatter = FrontmatterBuilder(settings)

    def rewrite_references(
        self,
        text: str,
        doc: DocumentRecord,
        status: Optional[MigrationStatus] = None
    ) -> str:
        """
        First round: rewrite links and images that need the document context.

        Args:
            text: Source markdown body
            doc: Document being converted
            status: Optional status record receiving link/asset counts

        Returns:
            Serialized markdown with rewritten links and image placeholders
        """
        tree = parse(text)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Reference tree for '{doc.key}':\n{tree.pretty(indent=2, show_text=True)}")

        rewritten, unresolved = self.link_resolver.resolve(tree, doc)
        assets = self.image_extractor.extract(tree, doc)

        if status is not None:
            status.links_rewritten += rewritten
            status.links_unresolved += len(unresolved)
            status.assets_scheduled += len(assets)

        return serialize(tree, text)

    def convert(
        self,
        doc: DocumentRecord,
        body: str,
        status: Optional[MigrationStatus] = None
    ) -> DocumentRecord:
        """
        Convert ``body`` and store the result in ``doc.content``.

        Args:
            doc: Document being converted
            body: Source markdown body
            status: Optional status record receiving link/asset counts

        Returns:
            The same document, with ``content`` populated

        Raises:
            MathExpressionError: If a math expression is malformed
            requests.exceptions.RequestException: If a share link cannot be resolved
        """
        self.logger.debug(f"Converting document '{doc.key}'")

        text = self.rewrite_references(body or '', doc, status)
        text = normalize_structure(text)
        text = self.post_processor.process(text)
        content = unescape_asterisks(self.frontmatter.build(doc) + text)

        doc.content = content
        return doc


__all__ = ['DocumentConverter']
