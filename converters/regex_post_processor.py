"""Text-level post-processing for target-dialect syntax the tree cannot express.

The rules run in a fixed order over the whole serialized document. Math
placeholders are resolved first because the later rules (image embeds,
heading spacing) would otherwise see their raw link syntax. Every rule is
anchored on text produced by the serializer, never on text emitted by an
earlier rule.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union
from urllib.parse import unquote

from .errors import MathExpressionError
from .structural_normalizer import ZERO_WIDTH_SPACE

Replacement = Union[str, Callable[[re.Match], str]]


@dataclass(frozen=True)
class RegexRule:
    """A single named whole-document substitution."""

    name: str
    pattern: re.Pattern
    replacement: Replacement

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


# Opening or closing line of a fenced code block, after any container prefix
FENCE_LINE = re.compile(r'^[ \t>]*(?P<marker>`{3,}|~{3,})(?P<info>[^\n]*)$')


def fenced_spans(text: str) -> List[Tuple[int, int]]:
    """
    Character ranges holding the content lines of fenced code blocks.

    Each range starts after the opening fence line and ends at the start of
    the closing fence line (or at the end of ``text`` for an unclosed fence).
    """
    spans = []
    opening = None
    offset = 0

    for line in text.split('\n'):
        match = FENCE_LINE.match(line)
        if opening is None:
            if match and not (match.group('marker')[0] == '`' and '`' in match.group('info')):
                opening = (match.group('marker'), offset + len(line) + 1)
        elif (
            match
            and match.group('marker')[0] == opening[0][0]
            and len(match.group('marker')) >= len(opening[0])
            and not match.group('info').strip()
        ):
            spans.append((opening[1], offset))
            opening = None
        offset += len(line) + 1

    if opening is not None:
        spans.append((opening[1], len(text)))
    return spans


@dataclass(frozen=True)
class FenceAwareRule(RegexRule):
    """A substitution that leaves the content of fenced code blocks untouched."""

    def apply(self, text: str) -> str:
        spans = fenced_spans(text)
        if not spans:
            return super().apply(text)

        def substitute(match: re.Match) -> str:
            if any(start <= match.end() < end for start, end in spans):
                return match.group(0)
            if callable(self.replacement):
                return self.replacement(match)
            return match.expand(self.replacement)

        return self.pattern.sub(substitute, text)


def decode_expression(encoded: str) -> str:
    """
    Percent-decode a math expression.

    Raises:
        MathExpressionError: If the bytes are not valid UTF-8
    """
    try:
        return unquote(encoded, errors='strict')
    except UnicodeDecodeError as e:
        raise MathExpressionError(f"Cannot decode math expression '{encoded}': {e}") from e


def _placeholder_value(match: re.Match, wrapped: str, bare: str) -> str:
    value = match.group(wrapped)
    return value if value is not None else match.group(bare)


def _block_math(match: re.Match) -> str:
    expression = decode_expression(_placeholder_value(match, 'wrapped', 'bare'))
    separator = ',' if match.group('separator') else ''
    return f"{match.group('prefix')}$$\n{expression}{separator}\n$$"


def _inline_math(match: re.Match) -> str:
    expression = decode_expression(_placeholder_value(match, 'wrapped', 'bare'))
    return f" ${expression.replace(chr(10), '')}$ "


def _image_embed(match: re.Match) -> str:
    return f"![[{_placeholder_value(match, 'wrapped', 'bare')}]]"


RULES: List[RegexRule] = [
    # A math placeholder alone on its line becomes a display block
    RegexRule(
        'block_math',
        re.compile(
            r'^(?P<prefix>>? ?)!\[MATH\]\((?:<(?P<wrapped>[^>\n]*?)>|(?P<bare>[^!<\n]*?))\)'
            r'(?P<separator>[,，]?)$',
            re.MULTILINE
        ),
        _block_math
    ),
    RegexRule(
        'inline_math',
        re.compile(r' ?!\[MATH\]\((?:<(?P<wrapped>[^>\n]*?)>|(?P<bare>[^\n]*?))\) ?'),
        _inline_math
    ),
    RegexRule(
        'image_embed',
        re.compile(r'!\[IMAGE\]\((?:<(?P<wrapped>[^>\n]*)>|(?P<bare>[^)\n]*))\)'),
        _image_embed
    ),
    # Exactly one blank line before headings
    FenceAwareRule('heading_spacing', re.compile(r'\n+(?=#{1,6}(?:[ \t]|$))', re.MULTILINE), '\n\n'),
    # Callout markers start a line; list indentation before them is dropped
    RegexRule('callout_open', re.compile(r'^((?:> ?)*)[ \t]*:::([a-z])', re.MULTILINE), r'\1```ad-\2'),
    RegexRule('callout_fence', re.compile(r'^((?:> ?)*)[ \t]*:::', re.MULTILINE), r'\1```'),
    # Bold runs opening right after a full-width parenthesis, across node boundaries
    RegexRule('strong_after_paren', re.compile(r'）\\?\*\\?\*'), f'）{ZERO_WIDTH_SPACE}**'),
    RegexRule('checkbox_escape', re.compile(r'[-*] +\\\['), '- ['),
    RegexRule('nbsp_entity', re.compile(r'&#x20;'), ' '),
]


class RegexPostProcessor:
    """Applies the ordered substitution rules to a serialized document."""

    def __init__(self, rules: Optional[List[RegexRule]] = None):
        self.rules = list(RULES if rules is None else rules)

    def process(self, text: str) -> str:
        """
        Apply every rule in order.

        Raises:
            MathExpressionError: If a math expression cannot be decoded
        """
        for rule in self.rules:
            text = rule.apply(text)
        return text

    def get_rule(self, name: str) -> RegexRule:
        """Look up a rule by name."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        raise KeyError(f"Unknown rule: {name}")


def unescape_asterisks(text: str) -> str:
    """Turn every escaped asterisk back into a literal one."""
    return text.replace('\\*', '*')


__all__ = [
    'FenceAwareRule',
    'RULES',
    'RegexPostProcessor',
    'RegexRule',
    'decode_expression',
    'unescape_asterisks'
]
