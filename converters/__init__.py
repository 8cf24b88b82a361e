"""Converters package turning exported Yuque markdown into Obsidian markdown."""

from .asset_namer import AssetNamer
from .document_converter import DocumentConverter
from .errors import ConversionError, MathExpressionError
from .frontmatter import FrontmatterBuilder
from .image_extractor import ImageExtractor
from .link_resolver import LinkResolver
from .regex_post_processor import RegexPostProcessor
from .structural_normalizer import StructuralNormalizer, normalize_structure


def convert_document(doc, body, settings, mapping, resolve_redirect, schedule_download, logger=None):
    """
    Convenience function to convert a single document.

    Args:
        doc: DocumentRecord to populate
        body: Source markdown body
        settings: ConversionSettings
        mapping: pathname -> DocumentRecord mapping
        resolve_redirect: Share link redirect lookup
        schedule_download: Fire-and-forget asset download
        logger: Optional logger instance

    Returns:
        DocumentRecord: ``doc`` with ``content`` populated

    Example:
        >>> from converters import convert_document
        >>> from models import ConversionSettings, DocumentRecord
        >>> doc = DocumentRecord(namespace='team/book', url='intro', file_path='team/book/Intro')
        >>> convert_document(doc, '# Intro', ConversionSettings(), {}, None, None).content
        '---\\nurl: https://www.yuque.com/team/book/intro\\n---\\n\\n# Intro\\n'
    """
    converter = DocumentConverter(settings, mapping, resolve_redirect, schedule_download, logger=logger)
    return converter.convert(doc, body)


__all__ = [
    'convert_document',
    'AssetNamer',
    'ConversionError',
    'DocumentConverter',
    'FrontmatterBuilder',
    'ImageExtractor',
    'LinkResolver',
    'MathExpressionError',
    'RegexPostProcessor',
    'StructuralNormalizer',
    'normalize_structure'
]
