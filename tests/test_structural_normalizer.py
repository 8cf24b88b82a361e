"""Tests for the structural normalization round."""

from converters.structural_normalizer import ZERO_WIDTH_SPACE, normalize_structure


def test_inline_line_break_tag_becomes_newline():
    assert normalize_structure("first<br />second\n") == "first\nsecond\n"


def test_compact_line_break_tag():
    assert normalize_structure("first<br/>second\n") == "first\nsecond\n"


def test_block_line_break_tag_is_removed():
    result = normalize_structure("above\n\n<br/>\n\nbelow\n")
    assert '<br/>' not in result
    assert result.startswith("above\n")
    assert result.endswith("below\n")


def test_named_anchors_are_removed():
    assert normalize_structure('## <a name="intro"></a>Intro\n') == "## Intro\n"


def test_other_html_is_kept():
    source = 'text <span style="color: red">red</span>\n'
    assert normalize_structure(source) == source


def test_strong_text_gets_zero_width_space():
    result = normalize_structure("**注意**：内容\n")
    assert result == f"**注意{ZERO_WIDTH_SPACE}**：内容\n"


def test_every_text_run_in_strong_is_marked():
    result = normalize_structure("**a *b* c**\n")
    assert result == f"**a {ZERO_WIDTH_SPACE}*b* c{ZERO_WIDTH_SPACE}**\n"


def test_normalization_is_idempotent():
    source = "**bold** and<br />more\n\n| **cell** | b |\n| --- | --- |\n| 1 | 2 |\n"
    once = normalize_structure(source)
    assert normalize_structure(once) == once


def test_tables_are_skipped():
    source = '| **a** <br/> | <a name="x"></a> |\n| --- | --- |\n| 1 | 2 |\n'
    assert normalize_structure(source) == source


def test_plain_text_unchanged():
    source = "# Title\n\nParagraph with *emphasis*.\n"
    assert normalize_structure(source) == source
