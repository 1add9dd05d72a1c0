"""Tests for markup-to-plain-text conversion."""

from unittest.mock import patch

import pytest

from docchat.reply.plain_text import normalize

SAMPLES = [
    "**bold**",
    "# Title\n- item",
    "## Methods\n\n1. First step\n2. Second step\n\n> quoted finding",
    "Use `x * y` and **strong *nested* text**",
    "```python\nvalue = a * b\n```",
    "See [the paper](https://example.org) and [12].",
    "| a | b |\n|---|:---:|\n| 1 | 2 |",
    "snake_case_name stays, _italic_ goes",
    "line one\n\n\n\n\nline two",
    "   indented   \n\t* star bullet  ",
    "> > nested quote",
    "## # doubled heading",
    "\\*escaped\\* markers",
    "***",
    "a\r\r\nb",
    "**a**\r\r\n\r\n\r\n\r\nb",
    "",
]


class TestMarkupStripping:
    def test_bold(self) -> None:
        assert normalize("**bold**") == "bold"

    def test_heading_and_list(self) -> None:
        assert normalize("# Title\n- item") == "Title\n- item"

    def test_bare_carriage_returns_become_newlines(self) -> None:
        assert normalize("a\r\r\nb") == "a\n\nb"
        assert normalize("**a**\r\r\n\r\n\r\n\r\nb") == "a\n\nb"

    def test_italic_variants(self) -> None:
        assert normalize("*a* and _b_ and __c__ and ***d***") == "a and b and c and d"

    def test_keeps_snake_case(self) -> None:
        assert normalize("call my_var_name now") == "call my_var_name now"

    def test_keeps_arithmetic_asterisks(self) -> None:
        assert normalize("2 * 3 * 4") == "2 * 3 * 4"

    def test_code_fence_keeps_body(self) -> None:
        assert normalize("```python\nprint(1)\n```") == "print(1)"

    def test_inline_code(self) -> None:
        assert normalize("run `pip install`") == "run pip install"

    def test_bullet_markers_become_dashes(self) -> None:
        assert normalize("* one\n+ two\n- three") == "- one\n- two\n- three"

    def test_numbered_list_becomes_dashes(self) -> None:
        assert normalize("1. first\n2. second") == "- first\n- second"

    def test_block_quote_is_wrapped_in_quotes(self) -> None:
        assert normalize("> a quoted line") == '"a quoted line"'

    def test_link_becomes_text(self) -> None:
        assert normalize("see [docs](http://x.y/z)") == "see docs"

    def test_reference_brackets_removed(self) -> None:
        assert normalize("as shown [3]") == "as shown 3"

    def test_collapses_blank_lines(self) -> None:
        assert normalize("a\n\n\n\nb") == "a\n\nb"

    def test_trims_each_line(self) -> None:
        assert normalize("  a  \n\t b\t") == "a\nb"

    def test_table_rows_flattened(self) -> None:
        assert normalize("| a | b |\n|---|---|\n| 1 | 2 |") == "a | b\n\n1 | 2"

    def test_plain_text_unchanged(self) -> None:
        text = "The authors report a 12% increase.\n\nThey note limitations."
        assert normalize(text) == text

    def test_empty_string(self) -> None:
        assert normalize("") == ""


class TestIdempotence:
    @pytest.mark.parametrize("sample", SAMPLES)
    def test_normalize_twice_equals_once(self, sample: str) -> None:
        once = normalize(sample)
        assert normalize(once) == once


class TestFailureFallback:
    def test_returns_original_on_internal_error(self) -> None:
        with patch(
            "docchat.reply.plain_text._single_pass",
            side_effect=RuntimeError("boom"),
        ):
            assert normalize("**kept**") == "**kept**"
