"""The token contract between an external folio lexer and the chapter parser.

The lexer classifies raw markup into the categories below. Tokens that stand for a
complete inline construct (links, bold, inline equations...) carry their payload in
`text`. Block tags come as open/close pairs, and executable code blocks carry their
bracketed argument payload in the text of the opening token.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from folio_text.errors import FolioSyntaxError


class TokenKind(Enum):
    # Structural keywords
    CHAPTER = "chapter"
    SECTION = "section"
    SUBSECTION = "subsection"
    SUBSUBSECTION = "subsubsection"
    AUTHOR = "author"
    ABSTRACT = "abstract"
    PREABSTRACT = "preabstract"

    # Whitespace
    BLANK_LINE = "blank_line"
    SPACE = "space"
    NEWLINE = "newline"
    TAB = "tab"

    LABEL = "label"

    # Inline markers
    LINK = "link"
    ITALICS = "italics"
    BOLD = "bold"
    QUOTE = "quote"
    LINE_BREAK = "line_break"
    SYMBOL = "symbol"
    FIRST_USE = "first_use"
    TODO = "todo"
    INLINE_CODE = "inline_code"
    EQUATION = "equation"
    BLOCK_EQUATION = "block_equation"
    REF = "ref"
    RAW = "raw"

    # Block tags
    CITATION_OPEN = "citation_open"
    CITATION_CLOSE = "citation_close"
    SITE_OPEN = "site_open"
    SITE_CLOSE = "site_close"
    SIDENOTE_OPEN = "sidenote_open"
    SIDENOTE_CLOSE = "sidenote_close"
    SIDEQUOTE_OPEN = "sidequote_open"
    SIDEQUOTE_CLOSE = "sidequote_close"
    CHAPQUOTE_OPEN = "chapquote_open"
    CHAPQUOTE_CLOSE = "chapquote_close"
    ATTRIBUTION = "attribution"
    SIDEFIG_OPEN = "sidefig_open"
    SIDEFIG_CLOSE = "sidefig_close"
    FIGURE_OPEN = "figure_open"
    FIGURE_CLOSE = "figure_close"
    CALLOUT_OPEN = "callout_open"
    CALLOUT_CLOSE = "callout_close"
    IMAGE = "image"

    # Code blocks
    CODE_OPEN = "code_open"
    CODE_BODY = "code_body"
    CODE_CLOSE = "code_close"
    PYFIG_OPEN = "pyfig_open"
    PYFIG_BODY = "pyfig_body"
    PYFIG_CLOSE = "pyfig_close"
    PYEVAL_OPEN = "pyeval_open"
    PYEVAL_BODY = "pyeval_body"
    PYEVAL_CLOSE = "pyeval_close"

    # Lists and tables
    OL_OPEN = "ol_open"
    OL_CLOSE = "ol_close"
    UL_OPEN = "ul_open"
    UL_CLOSE = "ul_close"
    LIST_ITEM = "list_item"
    TABLE_OPEN = "table_open"
    TABLE_CLOSE = "table_close"
    ROW = "row"
    HEADER_CELL = "header_cell"
    DATA_CELL = "data_cell"

    # Generic embedded tags
    TAG_OPEN = "tag_open"
    ATTR_NAME = "attr_name"
    ATTR_EQUALS = "attr_equals"
    ATTR_VALUE = "attr_value"
    ATTR_NUMBER = "attr_number"
    TAG_END = "tag_end"
    TAG_CLOSE = "tag_close"

    # Catch-all
    TEXT = "text"
    OTHER = "other"
    LITERAL_LT = "literal_lt"
    LITERAL_GT = "literal_gt"


WHITESPACE_KINDS = frozenset({TokenKind.SPACE, TokenKind.NEWLINE, TokenKind.TAB})


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.kind.name}({self.text!r}) at {self.line}:{self.column}"


class TokenStream:
    """A cursor over a finished list of tokens.

    Any mismatch found through `expect()` raises FolioSyntaxError, which aborts the parse."""

    _tokens: List[Token]
    _pos: int
    file_name: str

    def __init__(self, tokens: Iterable[Token], file_name: str = "<tokens>") -> None:
        self._tokens = list(tokens)
        self._pos = 0
        self.file_name = file_name

    @property
    def pos(self) -> int:
        return self._pos

    def peek(self, n: int = 0) -> Optional[Token]:
        i = self._pos + n
        if i < len(self._tokens):
            return self._tokens[i]
        return None

    def at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def at(self, *kinds: TokenKind) -> bool:
        tok = self.peek()
        return tok is not None and tok.kind in kinds

    def next(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise self.error("unexpected end of input")
        self._pos += 1
        return tok

    def expect(self, *kinds: TokenKind) -> Token:
        tok = self.peek()
        if tok is None or tok.kind not in kinds:
            wanted = " or ".join(k.name for k in kinds)
            raise self.error(f"expected {wanted}", tok)
        self._pos += 1
        return tok

    def accept(self, *kinds: TokenKind) -> Optional[Token]:
        if self.at(*kinds):
            return self.next()
        return None

    def skip_blank_lines(self) -> int:
        """Consume a run of BLANK_LINE tokens, returning how many were consumed."""
        n = 0
        while self.at(TokenKind.BLANK_LINE):
            self._pos += 1
            n += 1
        return n

    def kind_after_blank_lines(self) -> Optional[TokenKind]:
        """If the stream is at a blank-line separator, return the kind of the first token after it."""
        i = 0
        while True:
            tok = self.peek(i)
            if tok is None or tok.kind != TokenKind.BLANK_LINE:
                break
            i += 1
        if i == 0:
            return None
        after = self.peek(i)
        return after.kind if after is not None else None

    def last_line(self) -> int:
        if self._tokens:
            return self._tokens[-1].line
        return 0

    def error(self, message: str, tok: Optional[Token] = None) -> FolioSyntaxError:
        if tok is None:
            tok = self.peek()
        if tok is None:
            return FolioSyntaxError(
                f"{message}, found end of input",
                line=self.last_line(),
                column=0,
                file_name=self.file_name,
            )
        return FolioSyntaxError(
            f"{message}, found {tok.kind.name} {tok.text!r}",
            line=tok.line,
            column=tok.column,
            file_name=self.file_name,
        )


def token_from_dict(obj: dict) -> Token:
    if not isinstance(obj, dict) or "kind" not in obj:
        raise TypeError(f"Expected a token object with a 'kind' key, got {obj!r}")
    try:
        kind = TokenKind[str(obj["kind"]).upper()]
    except KeyError:
        raise ValueError(f"Unknown token kind {obj['kind']!r}")
    return Token(
        kind=kind,
        text=str(obj.get("text", "")),
        line=int(obj.get("line", 0)),
        column=int(obj.get("column", 0)),
    )


def tokens_from_json_lines(lines: Sequence[str]) -> List[Token]:
    """Decode a JSON-lines token dump, one object per line.

    Blank lines and lines starting with '#' are skipped."""
    tokens = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        tokens.append(token_from_dict(json.loads(stripped)))
    return tokens
