"""Structural cleanup of the serialized document tree."""

import logging
from typing import Optional

from markdown_it.tree import SyntaxTreeNode

from .markdown_tree import CONTINUE, SKIP, parse, serialize, set_text, walk

logger = logging.getLogger('yuque_obsidian_migrator.converters.structural_normalizer')

# Appended to text inside bold runs that may end at full-width punctuation
ZERO_WIDTH_SPACE = '\u200b'

LINE_BREAK_TAGS = {'<br />', '<br/>'}


class StructuralNormalizer:
    """
    Single depth-first pass over a reparsed document:

    - tables are never entered
    - ``<br />`` markup becomes a line break, named anchors are removed
    - text directly inside bold runs gets a trailing zero-width space
    """

    def normalize(self, tree: SyntaxTreeNode) -> SyntaxTreeNode:
        """Normalize ``tree`` in place and return it."""
        walk(tree, self._visit)
        return tree

    def _visit(self, node: SyntaxTreeNode, parent: Optional[SyntaxTreeNode]) -> str:
        node_type = node.type

        if node_type == 'table':
            return SKIP

        if node_type in ('html_inline', 'html_block'):
            value = node.content.strip()
            if value in LINE_BREAK_TAGS:
                set_text(node, '\n')
            elif '<a name=' in value or value == '</a>':
                set_text(node, '')

        elif node_type == 'text':
            if parent is not None and parent.type == 'strong' and not node.content.endswith(ZERO_WIDTH_SPACE):
                node.token.content = node.content + ZERO_WIDTH_SPACE

        return CONTINUE


def normalize_structure(text: str) -> str:
    """
    Reparse ``text`` with table support, normalize it and serialize it again.

    Args:
        text: Markdown produced by the reference rewriting round

    Returns:
        Normalized markdown text
    """
    tree = parse(text, tables=True)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Structure tree:\n{tree.pretty(indent=2, show_text=True)}")
    StructuralNormalizer().normalize(tree)
    return serialize(tree, text)


__all__ = ['StructuralNormalizer', 'normalize_structure', 'ZERO_WIDTH_SPACE']
