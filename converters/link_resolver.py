"""Link resolver rewriting cross-document links to relative local paths."""

import logging
import posixpath
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from markdown_it.tree import SyntaxTreeNode

from models import ConversionSettings, DocumentMapping, DocumentRecord

from .markdown_tree import select_all

OUTPUT_EXTENSION = '.md'

# Query marker the platform adds to embedded document links
EMBED_VIEW_MARKER = 'view=doc_embed'


class LinkResolver:
    """
    Rewrites links between documents of the export to relative file paths.

    For every link node pointing at the platform host:
    1. Attachment links are left to the image pass
    2. Legacy share links are replaced by their redirect target
    3. The embed-view marker is dropped
    4. The URL path is looked up in the document mapping
    5. Hits are rewritten relative to the current document's file
    """

    def __init__(
        self,
        settings: ConversionSettings,
        mapping: DocumentMapping,
        resolve_redirect: Callable[[str], str],
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the link resolver.

        Args:
            settings: Conversion settings (host)
            mapping: Read-only pathname -> document mapping
            resolve_redirect: Follows a share link's redirect chain, raising on failure
            logger: Logger instance
        """
        self.host = settings.host
        self.mapping = mapping
        self.resolve_redirect = resolve_redirect
        self.logger = logger or logging.getLogger('yuque_obsidian_migrator.converters.link_resolver')

    def resolve(self, tree: SyntaxTreeNode, doc: DocumentRecord) -> Tuple[int, List[str]]:
        """
        Rewrite all document links in ``tree`` in place.

        Args:
            tree: Parsed document tree
            doc: Document the tree belongs to

        Returns:
            Tuple of (rewritten_count, unresolved_urls)

        Raises:
            requests.exceptions.RequestException: If a share link redirect lookup fails
        """
        rewritten = 0
        unresolved = []

        for node in select_all(tree, 'link'):
            url = str(node.attrs.get('href', ''))
            if not self.is_document_link(url):
                continue

            if url.startswith(f"{self.host}/docs/share/"):
                url = self.resolve_redirect(url)
                self.logger.debug(f"Share link redirected to {url}")

            url = url.replace(EMBED_VIEW_MARKER, '', 1)
            node.attrs['href'] = url

            key = self.mapping_key(url)
            target = self.mapping.get(key)
            if target is None:
                self.logger.warning(f"{url}, {key} not found")
                unresolved.append(url)
                continue

            node.attrs['href'] = self.relative_path(doc, target)
            rewritten += 1

        return rewritten, unresolved

    def is_document_link(self, url: str) -> bool:
        """Check whether ``url`` points at a platform document (not an attachment)."""
        if not url or not url.startswith(self.host):
            return False
        if url.startswith(f"{self.host}/attachments/"):
            return False
        return True

    @staticmethod
    def mapping_key(url: str) -> str:
        """URL path with the leading separator stripped."""
        return urlparse(url).path[1:]

    @staticmethod
    def relative_path(doc: DocumentRecord, target: DocumentRecord) -> str:
        """Path of ``target``'s output file relative to ``doc``'s directory."""
        start = posixpath.dirname(doc.file_path) or '.'
        return posixpath.relpath(target.file_path, start) + OUTPUT_EXTENSION


__all__ = ['LinkResolver', 'OUTPUT_EXTENSION', 'EMBED_VIEW_MARKER']
