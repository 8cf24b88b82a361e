"""End-to-end tests for the per-document conversion pipeline."""

from unittest.mock import Mock

import pytest
import requests

from converters import DocumentConverter, FrontmatterBuilder, convert_document
from converters.errors import MathExpressionError
from converters.structural_normalizer import ZERO_WIDTH_SPACE
from models import ConversionSettings, DocumentRecord, MigrationStatus

HOST = 'https://www.yuque.com'
FRONTMATTER = f"---\nurl: {HOST}/team/book/intro\n---\n\n"


@pytest.fixture
def settings(tmp_path):
    return ConversionSettings(host=HOST, output_dir=tmp_path)


@pytest.fixture
def mapping():
    target = DocumentRecord(namespace='team/book', url='target', file_path='team/book/Target')
    return {target.key: target}


@pytest.fixture
def doc():
    return DocumentRecord(namespace='team/book', url='intro', file_path='team/book/Intro', title='Intro')


class TestFrontmatterBuilder:

    def test_source_url(self, settings, doc):
        assert FrontmatterBuilder(settings).build(doc) == FRONTMATTER

    def test_unicode_namespace_not_escaped(self, settings):
        doc = DocumentRecord(namespace='团队/手册', url='介绍', file_path='团队/手册/介绍')
        assert FrontmatterBuilder(settings).build(doc) == f"---\nurl: {HOST}/团队/手册/介绍\n---\n\n"

    def test_extra_fields_follow_url(self, settings, doc):
        builder = FrontmatterBuilder(settings, extra_fields={'tags': ['yuque']})
        assert builder.build(doc) == f"---\nurl: {HOST}/team/book/intro\ntags:\n- yuque\n---\n\n"

    def test_extra_fields_cannot_override_url(self, settings, doc):
        builder = FrontmatterBuilder(settings, extra_fields={'url': 'elsewhere'})
        assert builder.fields(doc) == {'url': f"{HOST}/team/book/intro"}


class TestDocumentConverter:

    def make_converter(self, settings, mapping, resolve_redirect=None, schedule=None):
        return DocumentConverter(settings, mapping, resolve_redirect or Mock(), schedule or Mock())

    def test_full_document(self, settings, mapping, doc, tmp_path):
        schedule = Mock()
        converter = self.make_converter(settings, mapping, schedule=schedule)
        body = (
            "# 标题\n"
            "\n"
            f"见 [目标]({HOST}/team/book/target) 与 **重点**。\n"
            "\n"
            "![](https://cdn.nlark.com/yuque/0/2023/png/1/pic.png)\n"
            "\n"
            "![](https://cdn.nlark.com/yuque/__latex/a.svg#card=math&code=E%3Dmc%5E2&id=x)\n"
            "\n"
            ":::tips\n"
            "注意 2 \\* 3\n"
            ":::\n"
        )

        result = converter.convert(doc, body)

        assert result is doc
        assert doc.content == (
            FRONTMATTER
            + "# 标题\n"
            "\n"
            f"见 [目标](Target.md) 与 **重点{ZERO_WIDTH_SPACE}**。\n"
            "\n"
            "![[intro/pic.png]]\n"
            "\n"
            "$$\n"
            "E=mc^2\n"
            "$$\n"
            "\n"
            "```ad-tips\n"
            "注意 2 * 3\n"
            "```\n"
        )
        schedule.assert_called_once_with(
            'https://cdn.nlark.com/yuque/0/2023/png/1/pic.png',
            tmp_path / 'team/book/assets/intro/pic.png'
        )

    def test_inline_math_and_checkbox(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        body = (
            "面积 ![](https://cdn.nlark.com/yuque/__latex/b.svg#card=math&code=%5Cpi%20r%5E2&id=y) 平方米\n"
            "\n"
            "- [ ] todo\n"
        )

        converter.convert(doc, body)

        assert doc.content == FRONTMATTER + "面积 $\\pi r^2$ 平方米\n\n- [ ] todo\n"

    def test_headings_get_blank_line(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        converter.convert(doc, "intro\n# Heading\ntext\n")
        assert doc.content == FRONTMATTER + "intro\n\n# Heading\n\ntext\n"

    def test_callout_around_nested_list_is_closed(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        converter.convert(doc, ":::tips\n- a\n  - b\n:::\n\nafter\n")
        assert doc.content == FRONTMATTER + "```ad-tips\n\n- a\n  - b\n```\n\nafter\n"

    def test_table_with_trailing_spaces_is_byte_identical(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        table = "| a | b |  \n| --- | --- |  \n| 1 | 2 |\n"
        converter.convert(doc, table)
        assert doc.content == FRONTMATTER + table

    def test_code_comments_keep_their_spacing(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        body = "```sh\necho hi\n# comment\n```\n"
        converter.convert(doc, body)
        assert doc.content == FRONTMATTER + body

    def test_status_counts(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        status = MigrationStatus(document_key=doc.key, title=doc.title, status='pending')
        body = (
            f"[a]({HOST}/team/book/target) [b]({HOST}/team/book/missing)\n"
            "\n"
            "![](https://cdn.nlark.com/yuque/0/x.png)\n"
        )

        converter.convert(doc, body, status)

        assert status.links_rewritten == 1
        assert status.links_unresolved == 1
        assert status.assets_scheduled == 1

    def test_empty_body(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        converter.convert(doc, None)
        assert doc.content == FRONTMATTER

    def test_malformed_math_leaves_content_untouched(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        body = "ok\n\n![](https://cdn.nlark.com/yuque/__latex/a.svg#card=math)\n"

        with pytest.raises(MathExpressionError):
            converter.convert(doc, body)
        assert doc.content == ''

    def test_undecodable_math_leaves_content_untouched(self, settings, mapping, doc):
        converter = self.make_converter(settings, mapping)
        body = "![](https://cdn.nlark.com/yuque/__latex/a.svg#card=math&code=%E4%B8&id=1)\n"

        with pytest.raises(MathExpressionError):
            converter.convert(doc, body)
        assert doc.content == ''

    def test_redirect_failure_leaves_content_untouched(self, settings, mapping, doc):
        resolve_redirect = Mock(side_effect=requests.exceptions.Timeout('slow'))
        converter = self.make_converter(settings, mapping, resolve_redirect=resolve_redirect)

        with pytest.raises(requests.exceptions.Timeout):
            converter.convert(doc, f"[s]({HOST}/docs/share/abc)\n")
        assert doc.content == ''


def test_convert_document_helper(doc):
    result = convert_document(doc, '# Intro', ConversionSettings(), {}, None, None)
    assert result.content == FRONTMATTER + "# Intro\n"
