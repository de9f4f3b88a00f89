"""
Tests for makeit.parse.parser
=============================

Test Organization
-----------------
- TestTextScanning: Plain text, braces and escapes outside blocks
- TestConditions: Ternary expressions
- TestEquals: Equality
- TestNullCheck: Null coalescing
- TestParentheses: Grouping
- TestConcatenation: The + operator
- TestParseErrors: Malformed blocks
- TestRenderFile: Rendering files on disk
"""

import io
from pathlib import Path

import pytest

from makeit.errors import InvalidTokenError, UnclosedBlockError, UnexpectedTokenError
from makeit.parse.ast import Add, Check, Equals, Lit, NullCheck, Var
from makeit.parse.lexer import TokenKind
from makeit.parse.parser import Parser, render, render_file, render_string


def parse_block(text: str):
    """Parse the expression of a single block body (without ``{{``)."""
    parser = Parser(text, {}, io.StringIO())
    expr = parser.parse_expr()
    assert parser.token is not None
    assert parser.token.kind == TokenKind.END
    return expr


# =============================================================================
# Text Scanning Tests
# =============================================================================

class TestTextScanning:
    """Tests for text outside blocks."""

    def test_plain_text_unchanged(self) -> None:
        text = "line one\nline two\r\n\ttabbed"
        assert render_string(text, {}) == text

    def test_empty_text(self) -> None:
        assert render_string("", {}) == ""

    def test_single_brace_passes_through(self) -> None:
        assert render_string("fn main() { x }", {}) == "fn main() { x }"

    def test_brace_at_end(self) -> None:
        assert render_string("open {", {}) == "open {"

    def test_closing_braces_outside_block(self) -> None:
        assert render_string("}} and }", {}) == "}} and }"

    def test_block_is_replaced(self) -> None:
        assert render_string("Hi {{ name }}!", {"name": "Ann"}) == "Hi Ann!"

    def test_block_without_spaces(self) -> None:
        assert render_string("{{name}}", {"name": "Ann"}) == "Ann"

    def test_adjacent_blocks(self) -> None:
        result = render_string("{{ a }}{{ b }}", {"a": "1", "b": "2"})
        assert result == "12"

    def test_unbound_variable_renders_null(self) -> None:
        assert render_string("{{ missing }}", {}) == "null"

    def test_empty_block_renders_null(self) -> None:
        assert render_string("{{}}", {}) == "null"

    def test_escaped_opening_is_literal(self) -> None:
        assert render_string(r"\{{ name }}", {"name": "Ann"}) == "{{ name }}"

    def test_escaped_opening_never_opens_block(self) -> None:
        """Even an invalid block body is left alone after an escape."""
        assert render_string(r"\{{ = }}", {}) == "{{ = }}"

    def test_escaped_opening_then_brace(self) -> None:
        assert render_string(r"\{{{x", {}) == "{{{x"

    def test_other_escapes_pass_through(self) -> None:
        text = r"C:\new\table \n \{x"
        assert render_string(text, {}) == text

    def test_double_backslash_before_block(self) -> None:
        assert render_string(r"\\{{ a }}", {"a": "x"}) == "\\\\x"

    def test_backslash_at_end_is_error(self) -> None:
        with pytest.raises(UnclosedBlockError):
            render_string("trailing \\", {})

    def test_render_to_stream(self) -> None:
        out = io.StringIO()
        render("{{ a }}-{{ b }}", {"a": "x", "b": "y"}, out)
        assert out.getvalue() == "x-y"


# =============================================================================
# Ternary Tests
# =============================================================================

class TestConditions:
    """Tests for ``cond ? then : else``."""

    VARS = {"a": "hello", "b": "test", "c": "test"}

    def test_conditions(self) -> None:
        text = (
            '{{ a ? "a not null" : "a null" }}\n'
            '{{ b == "hello" ? "hello b" : "what" }}\n'
            '{{ test ? "test not null" : "test null" }}\n'
            '{{ a == b ? "equal" : "not equal" }}\n'
            '{{ b == c ? "equal" : "not equal" }}'
        )
        assert render_string(text, self.VARS) == (
            "a not null\nwhat\ntest null\nnot equal\nequal"
        )

    def test_empty_string_is_truthy(self) -> None:
        assert render_string('{{ e ? "yes" : "no" }}', {"e": ""}) == "yes"

    def test_false_is_falsy(self) -> None:
        assert render_string('{{ "x" == "y" ? "yes" : "no" }}', {}) == "no"

    def test_nested_ternary_in_then_branch(self) -> None:
        text = '{{ a ? b ? "both" : "a only" : "none" }}'
        assert render_string(text, {"a": "1", "b": "1"}) == "both"
        assert render_string(text, {"a": "1"}) == "a only"
        assert render_string(text, {}) == "none"

    def test_ternary_in_else_branch(self) -> None:
        text = '{{ a ? "a" : b ? "b" : "neither" }}'
        assert render_string(text, {"b": "1"}) == "b"

    def test_tree_shape(self) -> None:
        assert parse_block('a ? "x" : "y" }}') == Check(Var("a"), Lit("x"), Lit("y"))


# =============================================================================
# Equality Tests
# =============================================================================

class TestEquals:
    """Tests for ``==``."""

    def test_string_equals(self) -> None:
        text = '{{ "test" == "test" }}\n{{ "test" == "hello" }}'
        assert render_string(text, {}) == "true\nfalse"

    def test_var_equals(self) -> None:
        text = (
            "{{ a == b }}\n"
            "{{ a == c }}\n"
            '{{ a == "hello" }}\n'
            '{{ b == "test" }}\n'
            '{{ "test" == c }}'
        )
        variables = {"a": "hello", "b": "test", "c": "test"}
        assert render_string(text, variables) == "false\nfalse\ntrue\ntrue\ntrue"

    def test_two_unbound_variables_are_equal(self) -> None:
        assert render_string("{{ x == y }}", {}) == "true"

    def test_unbound_is_not_null_string(self) -> None:
        assert render_string('{{ x == "null" }}', {}) == "false"

    def test_boolean_is_not_string(self) -> None:
        assert render_string('{{ ("a" == "a") == "true" }}', {}) == "false"

    def test_booleans_compare(self) -> None:
        assert render_string('{{ ("a" == "a") == ("b" == "b") }}', {}) == "true"

    def test_equals_continues_folding(self) -> None:
        """Further operators may follow an equality."""
        assert parse_block('a == b + "x" }}') == Add(Equals(Var("a"), Var("b")), Lit("x"))
        assert render_string('{{ a == b + "x" }}', {"a": "1", "b": "1"}) == "truex"

    def test_missing_right_operand(self) -> None:
        """A missing operand is null."""
        assert render_string("{{ a == }}", {}) == "true"


# =============================================================================
# Null Check Tests
# =============================================================================

class TestNullCheck:
    """Tests for ``??``."""

    def test_null_checks(self) -> None:
        text = (
            '{{ a ?? "a null" }}\n'
            '{{ b ?? "b null" }}\n'
            '{{ test ?? "test null" }}\n'
            "{{ hello ?? c }}\n"
            "{{ name ?? test ?? b }}\n"
            '{{ name ?? a ?? "ops" }}'
        )
        variables = {"a": "a not null", "b": "behave", "c": "test"}
        assert render_string(text, variables) == (
            "a not null\nbehave\ntest null\ntest\nbehave\na not null"
        )

    def test_first_non_null_wins(self) -> None:
        text = '{{ a ?? b ?? "ops" }}'
        assert render_string(text, {"b": "behave"}) == "behave"
        assert render_string(text, {}) == "ops"

    def test_chain_nests_to_the_right(self) -> None:
        assert parse_block("a ?? b ?? c }}") == NullCheck(
            Var("a"), NullCheck(Var("b"), Var("c"))
        )

    def test_empty_string_is_not_null(self) -> None:
        assert render_string('{{ e ?? "fallback" }}', {"e": ""}) == ""

    def test_left_operand_folds_first(self) -> None:
        assert render_string('{{ a + b ?? "x" }}', {}) == "nullnull"


# =============================================================================
# Parentheses Tests
# =============================================================================

class TestParentheses:
    """Tests for grouping."""

    def test_paren(self) -> None:
        text = (
            '{{b==(c?"hello":"test")}}\n'
            '{{ "hello" == (b ? "hello" : "what") }}'
        )
        assert render_string(text, {"b": "test", "c": "test"}) == "false\ntrue"

    def test_group_is_transparent(self) -> None:
        variables = {"a": "x", "b": "x"}
        assert render_string("{{ (a) == (b) }}", variables) == render_string(
            "{{ a == b }}", variables
        )

    def test_leading_group_keeps_folding(self) -> None:
        assert render_string('{{ (a ?? "x") + "y" }}', {}) == "xy"

    def test_group_changes_null_check_scope(self) -> None:
        assert render_string('{{ (a ?? "x") == "x" }}', {}) == "true"
        assert render_string('{{ a ?? "x" == "x" }}', {}) == "true"
        assert render_string('{{ a ?? ("x" == "y") }}', {}) == "false"

    def test_nested_groups(self) -> None:
        assert render_string('{{ ((("deep"))) }}', {}) == "deep"


# =============================================================================
# Concatenation Tests
# =============================================================================

class TestConcatenation:
    """Tests for ``+``."""

    def test_plus(self) -> None:
        text = (
            '{{ a + " " + b == "hello world" }}\n'
            '{{ "this " + b + " " + (c ?? "crazy") }}'
        )
        assert render_string(text, {"a": "hello", "b": "world"}) == (
            "true\nthis world crazy"
        )

    def test_left_associative(self) -> None:
        assert parse_block('a + "-" + b }}') == Add(Add(Var("a"), Lit("-")), Var("b"))

    def test_concatenates_display_text(self) -> None:
        assert render_string('{{ missing + ("a" == "a") }}', {}) == "nulltrue"

    def test_result_is_string(self) -> None:
        assert render_string('{{ x + y ? "yes" : "no" }}', {}) == "yes"


# =============================================================================
# Error Tests
# =============================================================================

class TestParseErrors:
    """Tests for malformed blocks."""

    def test_juxtaposed_identifiers(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string("{{ a b }}", {})

    def test_juxtaposed_literals(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string('{{ "a" "b" }}', {})

    def test_juxtaposed_group(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string("{{ a (b) }}", {})

    def test_ternary_without_colon(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string('{{ a ? "x" }}', {})

    def test_unclosed_paren(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string("{{ (a }}", {})

    def test_stray_colon(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string("{{ a : b }}", {})

    def test_stray_close_paren(self) -> None:
        with pytest.raises(UnexpectedTokenError):
            render_string("{{ a ) }}", {})

    def test_unclosed_block(self) -> None:
        with pytest.raises(UnclosedBlockError):
            render_string("{{ a ", {})

    def test_invalid_token(self) -> None:
        with pytest.raises(InvalidTokenError):
            render_string("{{ a = b }}", {})

    def test_output_before_error_is_written(self) -> None:
        out = io.StringIO()
        with pytest.raises(UnclosedBlockError):
            render("kept {{ a", {}, out)
        assert out.getvalue() == "kept "


# =============================================================================
# File Rendering Tests
# =============================================================================

class TestRenderFile:
    """Tests for render_file."""

    def test_renders_into_destination(self, tmp_path: Path) -> None:
        src = tmp_path / "in.txt"
        dst = tmp_path / "out.txt"
        src.write_text("name = {{ name }}\n")

        render_file(src, dst, {"name": "demo"})

        assert dst.read_text() == "name = demo\n"

    def test_preserves_crlf(self, tmp_path: Path) -> None:
        src = tmp_path / "in.txt"
        dst = tmp_path / "out.txt"
        src.write_bytes(b"a\r\n{{ x }}\r\n")

        render_file(src, dst, {"x": "y"})

        assert dst.read_bytes() == b"a\r\ny\r\n"

    def test_unicode_content(self, tmp_path: Path) -> None:
        src = tmp_path / "in.txt"
        dst = tmp_path / "out.txt"
        src.write_text("héllo {{ wörld }}", encoding="utf-8")

        render_file(src, dst, {"wörld": "✓"})

        assert dst.read_text(encoding="utf-8") == "héllo ✓"
