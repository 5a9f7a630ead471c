import json

import pytest

from folio_text import *
from folio_text.tokens import token_from_dict, tokens_from_json_lines


def stream(*kinds):
    return TokenStream([Token(k, k.name.lower(), i + 1) for i, k in enumerate(kinds)])


def test_peek_next_and_end():
    s = stream(TokenKind.TEXT, TokenKind.SPACE)
    assert s.peek().kind == TokenKind.TEXT
    assert s.peek(1).kind == TokenKind.SPACE
    assert s.peek(2) is None
    assert s.next().kind == TokenKind.TEXT
    assert s.pos == 1
    s.next()
    assert s.at_end()
    with pytest.raises(FolioSyntaxError, match="unexpected end of input"):
        s.next()


def test_expect_and_accept():
    s = stream(TokenKind.LABEL, TokenKind.TEXT)
    assert s.accept(TokenKind.TEXT) is None
    assert s.accept(TokenKind.LABEL).kind == TokenKind.LABEL
    with pytest.raises(FolioSyntaxError, match="expected LABEL or REF, found TEXT") as err_info:
        s.expect(TokenKind.LABEL, TokenKind.REF)
    assert err_info.value.line == 2
    # A failed expect doesn't consume anything
    assert s.pos == 1


def test_error_at_end_uses_last_line():
    s = TokenStream([Token(TokenKind.TEXT, "x", 7)], "ch3.md")
    s.next()
    err = s.error("expected FIGURE_CLOSE")
    assert err.line == 7
    assert str(err) == "ch3.md:7:0: expected FIGURE_CLOSE, found end of input"


def test_blank_line_lookahead():
    s = stream(TokenKind.BLANK_LINE, TokenKind.BLANK_LINE, TokenKind.SECTION)
    assert s.kind_after_blank_lines() == TokenKind.SECTION
    assert s.pos == 0
    assert s.skip_blank_lines() == 2
    # Not at a blank line any more
    assert s.kind_after_blank_lines() is None


def test_blank_lines_at_end():
    s = stream(TokenKind.TEXT, TokenKind.BLANK_LINE)
    s.next()
    assert s.kind_after_blank_lines() is None
    assert s.skip_blank_lines() == 1
    assert s.at_end()


def test_token_from_dict():
    tok = token_from_dict({"kind": "pyfig_open", "text": "[fig1]", "line": 4, "column": 2})
    assert tok == Token(TokenKind.PYFIG_OPEN, "[fig1]", 4, 2)
    assert token_from_dict({"kind": "BLANK_LINE"}) == Token(TokenKind.BLANK_LINE)


def test_token_from_dict_errors():
    with pytest.raises(ValueError, match="Unknown token kind"):
        token_from_dict({"kind": "heading"})
    with pytest.raises(TypeError):
        token_from_dict({"text": "no kind"})


def test_tokens_from_json_lines_skips_comments():
    lines = [
        "# folio-cli chapter=2\n",
        json.dumps({"kind": "chapter", "line": 1}) + "\n",
        "\n",
        json.dumps({"kind": "text", "text": "Intro", "line": 1, "column": 9}) + "\n",
    ]
    assert tokens_from_json_lines(lines) == [
        Token(TokenKind.CHAPTER, "", 1, 0),
        Token(TokenKind.TEXT, "Intro", 1, 9),
    ]
