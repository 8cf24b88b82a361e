"""Markdown syntax tree: parsing, traversal and serialization back to markdown.

Documents are parsed with markdown-it-py into a ``SyntaxTreeNode`` tree that the
rewriting passes mutate in place. ``MarkdownSerializer`` turns the tree back
into markdown text. The serializer is close to lossless:

- link and image destinations are kept exactly as written (no percent
  normalization), so encoded math expressions and non-ASCII relative paths
  survive a parse/serialize round trip;
- backslash escapes and entities are kept as ``text_special`` nodes and
  written back in their source form;
- hard line breaks keep their source form (trailing spaces or backslash);
- tables are written back as their original source lines.
"""

import logging
import re
from typing import Callable, List, Optional

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

logger = logging.getLogger('yuque_obsidian_migrator.converters.markdown_tree')

# Visitor signals
CONTINUE = 'continue'
SKIP = 'skip'

Visitor = Callable[[SyntaxTreeNode, Optional[SyntaxTreeNode]], Optional[str]]

_CONTAINER_PREFIX = re.compile(r'^[ \t]*(?:>[ \t]?)*[ \t]*')

# Hard line break forms
BACKSLASH_BREAK = '\\\n'
SPACES_BREAK = '  \n'


def _keep_destination(url: str) -> str:
    return url


def create_parser(tables: bool = False) -> MarkdownIt:
    """
    Create a markdown-it parser for the source dialect.

    Args:
        tables: Enable GFM table parsing

    Returns:
        Configured MarkdownIt instance
    """
    md = MarkdownIt('commonmark', {'html': True})
    md.enable('strikethrough')
    if tables:
        md.enable('table')

    # Keep escapes/entities as separate text_special tokens
    md.disable('text_join')

    # Destinations are written back verbatim by the serializer
    md.normalizeLink = _keep_destination
    md.normalizeLinkText = _keep_destination
    return md


def parse(text: str, tables: bool = False) -> SyntaxTreeNode:
    """Parse markdown text into a syntax tree."""
    md = create_parser(tables=tables)
    return SyntaxTreeNode(md.parse(text))


def walk(node: SyntaxTreeNode, visitor: Visitor, parent: Optional[SyntaxTreeNode] = None) -> None:
    """
    Depth-first traversal calling ``visitor(node, parent)`` for every node.

    A visitor returning ``SKIP`` prevents descending into that node's children.
    """
    if visitor(node, parent) == SKIP:
        return
    for child in list(node.children):
        walk(child, visitor, node)


def select_all(tree: SyntaxTreeNode, node_type: str) -> List[SyntaxTreeNode]:
    """Return all nodes of ``node_type`` in document order."""
    return [node for node in tree.walk() if node.type == node_type]


def set_text(node: SyntaxTreeNode, value: str) -> None:
    """Turn a leaf node into a plain text node holding ``value``."""
    node.token.type = 'text'
    node.token.content = value


class MarkdownSerializer:
    """Serializes a markdown-it syntax tree back into markdown text."""

    def __init__(self, source: str = ''):
        """
        Initialize serializer.

        Args:
            source: The text the tree was parsed from (used for tables)
        """
        normalized = source.replace('\r\n', '\n').replace('\r', '\n')
        self.source_lines = normalized.split('\n')
        self._breaks = iter(())

    def render(self, tree: SyntaxTreeNode) -> str:
        """Render a full document tree."""
        body = self._render_blocks(tree.children, tight=False, nested=False)
        return body + '\n' if body else ''

    # Block level

    def _render_blocks(self, nodes: List[SyntaxTreeNode], tight: bool, nested: bool) -> str:
        separator = '\n' if tight else '\n\n'
        return separator.join(self._render_block(node, nested) for node in nodes)

    def _render_block(self, node: SyntaxTreeNode, nested: bool) -> str:
        node_type = node.type

        if node_type == 'paragraph':
            self._breaks = iter(self._hardbreak_markers(node))
            return self._render_inlines(node.children)

        if node_type == 'heading':
            level = int(node.tag[1:])
            text = self._render_inlines(node.children)
            return '#' * level + (' ' + text if text else '')

        if node_type == 'blockquote':
            inner = self._render_blocks(node.children, tight=False, nested=True)
            return '\n'.join('> ' + line if line else '>' for line in inner.split('\n'))

        if node_type in ('bullet_list', 'ordered_list'):
            return self._render_list(node)

        if node_type == 'fence':
            content = node.content
            if content and not content.endswith('\n'):
                content += '\n'
            return f"{node.markup}{node.info}\n{content}{node.markup}"

        if node_type == 'code_block':
            lines = node.content.rstrip('\n').split('\n')
            return '\n'.join('    ' + line if line else '' for line in lines)

        if node_type == 'hr':
            return node.markup

        if node_type == 'html_block':
            return node.content.rstrip('\n')

        if node_type == 'table':
            return self._render_table(node, nested)

        if node_type == 'text':
            return node.content

        if node.children:
            return self._render_blocks(node.children, tight=False, nested=nested)

        logger.debug(f"Serializing unknown block node '{node_type}' from its content")
        return node.content

    def _render_list(self, node: SyntaxTreeNode) -> str:
        ordered = node.type == 'ordered_list'
        tight = all(
            child.hidden
            for item in node.children
            for child in item.children
            if child.type == 'paragraph'
        )
        start = int(node.attrs.get('start', 1)) if ordered else 1

        items = []
        for index, item in enumerate(node.children):
            if ordered:
                number = item.info or str(start + index)
                marker = f"{number}{node.markup}"
            else:
                marker = node.markup

            body = self._render_blocks(item.children, tight=tight, nested=True)
            lines = body.split('\n')
            indent = ' ' * (len(marker) + 1)

            first = f"{marker} {lines[0]}" if lines[0] else marker
            rest = [indent + line if line else '' for line in lines[1:]]
            items.append('\n'.join([first] + rest))

        return ('\n' if tight else '\n\n').join(items)

    def _render_table(self, node: SyntaxTreeNode, nested: bool) -> str:
        start, end = node.map
        lines = self.source_lines[start:end]
        if nested:
            # Container prefixes are re-added by the enclosing block
            lines = [_CONTAINER_PREFIX.sub('', line) for line in lines]
        return '\n'.join(lines)

    def _hardbreak_markers(self, node: SyntaxTreeNode) -> List[str]:
        """
        Source form of each hard line break in a paragraph, in order.

        Falls back to backslash breaks when the source lines cannot be
        matched one-to-one with the parsed breaks (e.g. markers inside
        multi-line code spans).
        """
        expected = sum(1 for child in node.walk() if child.type == 'hardbreak')
        if not expected or not node.map:
            return []

        start, end = node.map
        markers = []
        for line in self.source_lines[start:end - 1]:
            backslashes = len(line) - len(line.rstrip('\\'))
            if backslashes % 2:
                markers.append(BACKSLASH_BREAK)
            elif line.endswith('  '):
                markers.append(SPACES_BREAK)

        return markers if len(markers) == expected else []

    # Inline level

    def _render_inlines(self, nodes: List[SyntaxTreeNode]) -> str:
        return ''.join(self._render_inline(node) for node in nodes)

    def _render_inline(self, node: SyntaxTreeNode) -> str:
        node_type = node.type

        if node_type == 'inline':
            return self._render_inlines(node.children)

        if node_type == 'text':
            return node.content

        if node_type == 'text_special':
            return node.markup or node.content

        if node_type == 'softbreak':
            return '\n'

        if node_type == 'hardbreak':
            return next(self._breaks, BACKSLASH_BREAK)

        if node_type == 'code_inline':
            return self._render_code_inline(node)

        if node_type in ('em', 'strong', 's'):
            return node.markup + self._render_inlines(node.children) + node.markup

        if node_type == 'link':
            return self._render_link(node)

        if node_type == 'image':
            title = self._format_title(node.attrs.get('title'))
            src = self._format_destination(str(node.attrs.get('src', '')))
            return f"![{node.content}]({src}{title})"

        if node_type == 'html_inline':
            return node.content

        return node.content

    def _render_link(self, node: SyntaxTreeNode) -> str:
        href = str(node.attrs.get('href', ''))
        text = self._render_inlines(node.children)

        if node.markup == 'autolink' and href in (text, f"mailto:{text}"):
            return f"<{text}>"

        title = self._format_title(node.attrs.get('title'))
        return f"[{text}]({self._format_destination(href)}{title})"

    @staticmethod
    def _render_code_inline(node: SyntaxTreeNode) -> str:
        content = node.content
        fence = node.markup or '`'
        if content.startswith('`') or content.endswith('`') or (
            content.startswith(' ') and content.endswith(' ') and content.strip()
        ):
            content = f" {content} "
        return f"{fence}{content}{fence}"

    @staticmethod
    def _format_destination(url: str) -> str:
        if not url:
            return '<>'
        if any(char in url for char in ' ()<>'):
            return '<' + url.replace('<', '%3C').replace('>', '%3E') + '>'
        return url

    @staticmethod
    def _format_title(title) -> str:
        if not title:
            return ''
        escaped = str(title).replace('"', '\\"')
        return f' "{escaped}"'


def serialize(tree: SyntaxTreeNode, source: str = '') -> str:
    """Serialize a syntax tree parsed from ``source`` back to markdown."""
    return MarkdownSerializer(source).render(tree)


__all__ = [
    'CONTINUE',
    'SKIP',
    'MarkdownSerializer',
    'create_parser',
    'parse',
    'select_all',
    'serialize',
    'set_text',
    'walk'
]
