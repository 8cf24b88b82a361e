"""Tests for the ordered text substitution rules."""

import unittest

import pytest

from converters.errors import MathExpressionError
from converters.regex_post_processor import (
    RULES,
    RegexPostProcessor,
    decode_expression,
    fenced_spans,
    unescape_asterisks,
)
from converters.structural_normalizer import ZERO_WIDTH_SPACE


def apply_rule(name, text):
    return RegexPostProcessor().get_rule(name).apply(text)


class TestBlockMath(unittest.TestCase):

    def test_placeholder_alone_on_line(self):
        self.assertEqual(apply_rule('block_math', "![MATH](x%5E2)"), "$$\nx^2\n$$")

    def test_inside_paragraph_lines(self):
        text = "before\n![MATH](a%2Bb)\nafter"
        self.assertEqual(apply_rule('block_math', text), "before\n$$\na+b\n$$\nafter")

    def test_quote_prefix_and_fullwidth_comma(self):
        self.assertEqual(apply_rule('block_math', "> ![MATH](a%2Bb)，"), "> $$\na+b,\n$$")

    def test_ascii_comma(self):
        self.assertEqual(apply_rule('block_math', "![MATH](y),"), "$$\ny,\n$$")

    def test_wrapped_destination(self):
        self.assertEqual(apply_rule('block_math', "![MATH](<f(x)%20%3D%201>)"), "$$\nf(x) = 1\n$$")

    def test_not_alone_on_line(self):
        text = "value ![MATH](x) here"
        self.assertEqual(apply_rule('block_math', text), text)


class TestInlineMath(unittest.TestCase):

    def test_surrounding_spaces_normalized(self):
        self.assertEqual(
            apply_rule('inline_math', "area ![MATH](%5Cpi%20r%5E2) here"),
            "area $\\pi r^2$ here"
        )

    def test_without_spaces(self):
        self.assertEqual(apply_rule('inline_math', "a![MATH](x)b"), "a $x$ b")

    def test_newlines_removed_from_expression(self):
        self.assertEqual(apply_rule('inline_math', "![MATH](a%0Ab)"), " $ab$ ")

    def test_wrapped_destination(self):
        self.assertEqual(apply_rule('inline_math', "is ![MATH](<g(y)>) ok"), "is $g(y)$ ok")


class TestImageEmbed(unittest.TestCase):

    def test_bare_path(self):
        self.assertEqual(apply_rule('image_embed', "![IMAGE](intro/a.png)"), "![[intro/a.png]]")

    def test_wrapped_path(self):
        self.assertEqual(apply_rule('image_embed', "![IMAGE](<intro/a b.png>)"), "![[intro/a b.png]]")

    def test_other_images_untouched(self):
        text = "![photo](intro/a.png)"
        self.assertEqual(apply_rule('image_embed', text), text)


class TestHeadingSpacing(unittest.TestCase):

    def test_single_newline_expanded(self):
        self.assertEqual(apply_rule('heading_spacing', "text\n# H"), "text\n\n# H")

    def test_many_newlines_collapsed(self):
        self.assertEqual(apply_rule('heading_spacing', "text\n\n\n\n## H2"), "text\n\n## H2")

    def test_hashtag_untouched(self):
        text = "text\n#tag"
        self.assertEqual(apply_rule('heading_spacing', text), text)

    def test_seven_hashes_untouched(self):
        text = "text\n####### no"
        self.assertEqual(apply_rule('heading_spacing', text), text)

    def test_comment_inside_fence_untouched(self):
        text = "```sh\necho hi\n# comment\n```\ntext\n# H"
        self.assertEqual(
            apply_rule('heading_spacing', text),
            "```sh\necho hi\n# comment\n```\ntext\n\n# H"
        )

    def test_comment_on_first_fence_line_untouched(self):
        text = "~~~~\n# comment\n~~~\nstill code\n~~~~\n# H"
        self.assertEqual(
            apply_rule('heading_spacing', text),
            "~~~~\n# comment\n~~~\nstill code\n~~~~\n\n# H"
        )

    def test_unclosed_fence_runs_to_end(self):
        text = "```\ncode\n# comment"
        self.assertEqual(apply_rule('heading_spacing', text), text)


class TestFencedSpans(unittest.TestCase):

    def test_spans_cover_content_lines(self):
        text = "a\n```py\nx\n```\nb\n"
        start, end = fenced_spans(text)[0]
        self.assertEqual(text[start:end], "x\n")

    def test_inline_backticks_are_not_a_fence(self):
        self.assertEqual(fenced_spans("```code``` here\n# H\n"), [])

    def test_fence_in_blockquote(self):
        text = "> ```\n> # c\n> ```\n"
        start, end = fenced_spans(text)[0]
        self.assertEqual(text[start:end], "> # c\n")


class TestCallouts(unittest.TestCase):

    def test_open_marker(self):
        self.assertEqual(apply_rule('callout_open', ":::tips"), "```ad-tips")

    def test_uppercase_not_an_open_marker(self):
        self.assertEqual(apply_rule('callout_open', ":::Tips"), ":::Tips")

    def test_fence(self):
        self.assertEqual(apply_rule('callout_fence', ":::"), "```")

    def test_full_block(self):
        text = ":::warning\nbe careful\n:::"
        self.assertEqual(RegexPostProcessor().process(text), "```ad-warning\nbe careful\n```")

    def test_indented_closing_marker_starts_line(self):
        text = ":::tips\n\n- a\n  - b\n    :::\n\nafter"
        self.assertEqual(RegexPostProcessor().process(text), "```ad-tips\n\n- a\n  - b\n```\n\nafter")

    def test_quoted_markers_keep_prefix(self):
        self.assertEqual(RegexPostProcessor().process("> :::info\n> x\n>   :::"), "> ```ad-info\n> x\n> ```")

    def test_marker_inside_text_untouched(self):
        self.assertEqual(RegexPostProcessor().process("ratio a:::b"), "ratio a:::b")


class TestInlineFixes(unittest.TestCase):

    def test_strong_after_fullwidth_paren(self):
        self.assertEqual(apply_rule('strong_after_paren', "（注）**粗体"), f"（注）{ZERO_WIDTH_SPACE}**粗体")

    def test_escaped_strong_after_fullwidth_paren(self):
        self.assertEqual(
            apply_rule('strong_after_paren', "（注）\\*\\*粗体"),
            f"（注）{ZERO_WIDTH_SPACE}**粗体"
        )

    def test_checkbox_dash(self):
        self.assertEqual(apply_rule('checkbox_escape', "- \\[ ] todo"), "- [ ] todo")

    def test_checkbox_star_many_spaces(self):
        self.assertEqual(apply_rule('checkbox_escape', "*   \\[x] done"), "- [x] done")

    def test_nbsp_entity(self):
        self.assertEqual(apply_rule('nbsp_entity', "a&#x20;b"), "a b")


class TestRegexPostProcessor:

    def test_rule_order(self):
        assert [rule.name for rule in RULES] == [
            'block_math',
            'inline_math',
            'image_embed',
            'heading_spacing',
            'callout_open',
            'callout_fence',
            'strong_after_paren',
            'checkbox_escape',
            'nbsp_entity',
        ]

    def test_unknown_rule(self):
        with pytest.raises(KeyError):
            RegexPostProcessor().get_rule('nope')

    def test_custom_rules(self):
        processor = RegexPostProcessor(rules=[r for r in RULES if r.name == 'nbsp_entity'])
        assert processor.process(":::&#x20;") == "::: "

    def test_block_math_wins_over_inline(self):
        assert RegexPostProcessor().process("![MATH](x)\n") == "$$\nx\n$$\n"

    def test_undecodable_expression_raises(self):
        with pytest.raises(MathExpressionError):
            RegexPostProcessor().process("value ![MATH](%E4%B8) here")

    def test_decode_expression(self):
        assert decode_expression('%E4%B8%AD') == '中'

    def test_unescape_asterisks(self):
        assert unescape_asterisks("2 \\* 3 \\*\\*") == "2 * 3 **"
