"""Image extractor turning remote images into math placeholders or local assets."""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import urlparse

from markdown_it.tree import SyntaxTreeNode

from models import AssetReference, ConversionSettings, DocumentRecord

from .asset_namer import AssetNamer
from .errors import MathExpressionError
from .markdown_tree import select_all

# Sentinel alt texts, consumed by the regex post-processor
MATH_ALT = 'MATH'
IMAGE_ALT = 'IMAGE'

# Path marker of images rendered by the platform's formula feature
LATEX_PATH_MARKER = '__latex'
MATH_CODE_PATTERN = re.compile(r'^#card=math&code=(?P<code>.*?)&')


class ImageExtractor:
    """
    Rewrites remote image nodes for the local vault.

    Formula images carry their expression in the URL fragment; the node is
    turned into a math placeholder holding the still percent-encoded
    expression. Every other remote image is downloaded next to the document
    and the node points at the local copy.
    """

    def __init__(
        self,
        settings: ConversionSettings,
        schedule_download: Callable[[str, Path], None],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the image extractor.

        Args:
            settings: Conversion settings (output directory)
            schedule_download: Enqueues a download of url to a destination path,
                without waiting for it
            logger: Logger instance
        """
        self.namer = AssetNamer(settings.output_dir)
        self.schedule_download = schedule_download
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.converters.image_extractor')

    def extract(self, tree: SyntaxTreeNode, doc: DocumentRecord) -> List[AssetReference]:
        """
        Rewrite all remote images in ``tree`` in place.

        Args:
            tree: Parsed document tree
            doc: Document the tree belongs to

        Returns:
            Assets scheduled for download

        Raises:
            MathExpressionError: If a formula image has no extractable expression
        """
        assets = []

        for node in select_all(tree, 'image'):
            src = str(node.attrs.get('src', ''))
            if not src.startswith('https:'):
                continue

            parsed = urlparse(src)
            if LATEX_PATH_MARKER in parsed.path:
                self._rewrite_math(node, src, parsed.fragment)
            else:
                assets.append(self._rewrite_asset(node, src, doc))

        if assets:
            self.logger.debug(f"Scheduled {len(assets)} asset(s) for '{doc.key}'")
        return assets

    def _rewrite_math(self, node: SyntaxTreeNode, src: str, fragment: str) -> None:
        match = MATH_CODE_PATTERN.match(f"#{fragment}")
        if not match:
            raise MathExpressionError(f"No math expression found in image URL: {src}")

        node.token.content = MATH_ALT
        node.attrs['src'] = match.group('code')

    def _rewrite_asset(self, node: SyntaxTreeNode, src: str, doc: DocumentRecord) -> AssetReference:
        asset = AssetReference(
            source_url=src,
            local_path=self.namer.relative_name(doc, src),
            destination=self.namer.destination(doc, src)
        )
        self.schedule_download(asset.source_url, asset.destination)

        node.token.content = IMAGE_ALT
        node.attrs['src'] = asset.local_path
        node.attrs.pop('title', None)
        return asset


__all__ = ['ImageExtractor', 'MATH_ALT', 'IMAGE_ALT', 'MATH_CODE_PATTERN']
