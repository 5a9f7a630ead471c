"""
The chapter parser turns the token stream of one file into a ChapterDef tree, in a single pass.

    document      = chapter, [blank-line], end-of-input
    chapter       = [blank-line], CHAPTER title-line, [author], [preabstract], [abstract],
                    {section-element | whitespace}, {section}
    section       = blank-line, SECTION title-line, {section-element | whitespace}, {subsection}
    subsection    = blank-line, SUBSECTION title-line, {section-element | whitespace}, {subsubsection}
    subsubsection = blank-line, SUBSUBSECTION title-line, {section-element | whitespace}

A heading is only recognized after a blank line, which is what separates it from the text before it.
Section elements are either blocks (lists, tables, figures, notes, code...) or paragraphs of inline elements.
Lists, tables, tags, figures, notes and callouts hold any mix of section elements up to their closing token.

Numbering, registration and code-block extraction happen as each construct completes,
so the tree, the label registry and the code-block list are all finished when parse() returns.
Anything that doesn't fit the grammar raises FolioSyntaxError and the whole chapter is abandoned.
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from folio_text.diagnostics import DiagnosticSink
from folio_text.doc.entities import (
    ChapterDef,
    CitationDef,
    FigureDef,
    HeadingDef,
    SectionDef,
    SideFigDef,
    SideNoteDef,
    SideQuoteDef,
    SiteDef,
    SubSectionDef,
    SubSubSectionDef,
)
from folio_text.doc.nodes import (
    Callout,
    ChapQuote,
    CodeBlock,
    CrossRef,
    DisplayList,
    Image,
    ListItem,
    Node,
    Paragraph,
    Quoted,
    Span,
    SpanKind,
    Table,
    TableCell,
    TableRow,
    Tag,
)
from folio_text.parse.attrs import parse_tag_attrs
from folio_text.parse.session import ParsedChapter, ParseSession
from folio_text.tokens import WHITESPACE_KINDS, Token, TokenKind, TokenStream

Rule = Callable[[], Node]

SPAN_KINDS: Dict[TokenKind, SpanKind] = {
    TokenKind.TEXT: SpanKind.Text,
    TokenKind.OTHER: SpanKind.Other,
    TokenKind.SPACE: SpanKind.Space,
    TokenKind.NEWLINE: SpanKind.Newline,
    TokenKind.TAB: SpanKind.Tab,
    TokenKind.LINK: SpanKind.Link,
    TokenKind.ITALICS: SpanKind.Italics,
    TokenKind.BOLD: SpanKind.Bold,
    TokenKind.LINE_BREAK: SpanKind.LineBreak,
    TokenKind.SYMBOL: SpanKind.Symbol,
    TokenKind.FIRST_USE: SpanKind.FirstUse,
    TokenKind.TODO: SpanKind.Todo,
    TokenKind.INLINE_CODE: SpanKind.InlineCode,
    TokenKind.EQUATION: SpanKind.Equation,
    TokenKind.BLOCK_EQUATION: SpanKind.BlockEquation,
    TokenKind.RAW: SpanKind.Raw,
    TokenKind.LITERAL_LT: SpanKind.LiteralLt,
    TokenKind.LITERAL_GT: SpanKind.LiteralGt,
}

# Single-token inline elements. Block equations only ever start a block.
INLINE_SPAN_TOKENS = [
    k
    for k in SPAN_KINDS
    if k not in WHITESPACE_KINDS and k != TokenKind.BLOCK_EQUATION
]

HEADING_TOKENS: Dict[Type[HeadingDef], TokenKind] = {
    ChapterDef: TokenKind.CHAPTER,
    SectionDef: TokenKind.SECTION,
    SubSectionDef: TokenKind.SUBSECTION,
    SubSubSectionDef: TokenKind.SUBSUBSECTION,
}

SUBHEADINGS: Dict[Type[HeadingDef], Optional[Type[HeadingDef]]] = {
    ChapterDef: SectionDef,
    SectionDef: SubSectionDef,
    SubSectionDef: SubSubSectionDef,
    SubSubSectionDef: None,
}

ANY_HEADING_TOKEN = frozenset(HEADING_TOKENS.values())

ATTR_TOKENS = frozenset(
    {
        TokenKind.ATTR_NAME,
        TokenKind.ATTR_EQUALS,
        TokenKind.ATTR_VALUE,
        TokenKind.ATTR_NUMBER,
    }
)


def _strip_whitespace(nodes: List[Node]) -> List[Node]:
    def is_ws(n: Node) -> bool:
        return isinstance(n, Span) and n.kind in (
            SpanKind.Space,
            SpanKind.Newline,
            SpanKind.Tab,
        )

    start, end = 0, len(nodes)
    while start < end and is_ws(nodes[start]):
        start += 1
    while end > start and is_ws(nodes[end - 1]):
        end -= 1
    return nodes[start:end]


class ChapterParser:
    session: ParseSession
    stream: TokenStream

    _block_rules: Dict[TokenKind, Rule]
    _inline_rules: Dict[TokenKind, Rule]

    def __init__(
        self,
        tokens: Sequence[Token],
        file_name: str,
        chapter_ordinal: int,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self.session = ParseSession(file_name, chapter_ordinal, diagnostics)
        self.stream = TokenStream(tokens, file_name)

        self._inline_rules = {k: self._span for k in INLINE_SPAN_TOKENS}
        self._inline_rules.update(
            {
                TokenKind.REF: self._ref,
                TokenKind.QUOTE: self._quoted,
                TokenKind.IMAGE: self._image,
                TokenKind.TAG_OPEN: self._tag,
                TokenKind.PYFIG_OPEN: self._pyfig,
                TokenKind.PYEVAL_OPEN: self._pyeval,
            }
        )

        self._block_rules = {
            TokenKind.BLOCK_EQUATION: self._span,
            TokenKind.RAW: self._span,
            TokenKind.OL_OPEN: self._list,
            TokenKind.UL_OPEN: self._list,
            TokenKind.TABLE_OPEN: self._table,
            TokenKind.IMAGE: self._image,
            TokenKind.TAG_OPEN: self._tag,
            TokenKind.CITATION_OPEN: lambda: self._citation(
                CitationDef, TokenKind.CITATION_CLOSE
            ),
            TokenKind.SITE_OPEN: lambda: self._citation(
                SiteDef, TokenKind.SITE_CLOSE
            ),
            TokenKind.SIDENOTE_OPEN: self._sidenote,
            TokenKind.SIDEQUOTE_OPEN: self._sidequote,
            TokenKind.CHAPQUOTE_OPEN: self._chapquote,
            TokenKind.FIGURE_OPEN: lambda: self._figure(
                FigureDef, TokenKind.FIGURE_CLOSE
            ),
            TokenKind.SIDEFIG_OPEN: lambda: self._figure(
                SideFigDef, TokenKind.SIDEFIG_CLOSE
            ),
            TokenKind.CALLOUT_OPEN: self._callout,
            TokenKind.CODE_OPEN: self._code,
            TokenKind.PYFIG_OPEN: self._pyfig,
            TokenKind.PYEVAL_OPEN: self._pyeval,
        }

    def parse(self) -> ParsedChapter:
        chapter = self._chapter()

        self.stream.skip_blank_lines()
        if not self.stream.at_end():
            tok = self.stream.peek()
            assert tok is not None
            if tok.kind == TokenKind.CHAPTER:
                raise self.stream.error("only one chapter is allowed per file", tok)
            if tok.kind in ANY_HEADING_TOKEN:
                raise self.stream.error(
                    f"{tok.kind.name.lower()} heading is not nested inside a heading one level up",
                    tok,
                )
            raise self.stream.error("expected end of input", tok)

        return ParsedChapter(
            chapter=chapter,
            registry=self.session.registry,
            code_blocks=self.session.code.code_blocks,
            counters=self.session.counters,
        )

    # Structure

    def _chapter(self) -> ChapterDef:
        self.stream.skip_blank_lines()
        head = self.stream.expect(TokenKind.CHAPTER)
        label, title = self._inline_line(allow_label=True)
        chapter = ChapterDef(
            label=label,
            line=head.line,
            number=self.session.chapter_ordinal,
            title=title,
        )
        self.session.start_chapter(chapter)

        if self._at_keyword(TokenKind.AUTHOR):
            self.stream.skip_blank_lines()
            self.stream.expect(TokenKind.AUTHOR)
            _, chapter.author = self._inline_line(allow_label=False)
        if self._at_keyword(TokenKind.PREABSTRACT):
            chapter.preabstract = self._abstract_block(TokenKind.PREABSTRACT)
        if self._at_keyword(TokenKind.ABSTRACT):
            chapter.abstract = self._abstract_block(TokenKind.ABSTRACT)

        self._segment_contents(chapter)
        while self._at_heading(SectionDef):
            self._heading(SectionDef)

        self.session.register(chapter)
        return chapter

    def _heading(self, heading_type: Type[HeadingDef]) -> HeadingDef:
        # The blank-line separator has already been seen by _at_heading()
        self.stream.skip_blank_lines()
        head = self.stream.expect(HEADING_TOKENS[heading_type])
        label, title = self._inline_line(allow_label=True)
        heading = self.session.headings.open(heading_type, label, head.line, title)

        self._segment_contents(heading)
        subheading_type = SUBHEADINGS[heading_type]
        if subheading_type is not None:
            while self._at_heading(subheading_type):
                self._heading(subheading_type)

        self.session.register(heading)
        return heading

    def _at_heading(self, heading_type: Type[HeadingDef]) -> bool:
        return self.stream.kind_after_blank_lines() == HEADING_TOKENS[heading_type]

    def _at_keyword(self, kind: TokenKind) -> bool:
        return self.stream.at(kind) or self.stream.kind_after_blank_lines() == kind

    def _segment_contents(self, heading: HeadingDef) -> None:
        """Fill in the contents of a heading up to the next heading, or end of input."""
        while True:
            tok = self.stream.peek()
            if tok is None:
                return
            if tok.kind == TokenKind.BLANK_LINE:
                after = self.stream.kind_after_blank_lines()
                if after is None or after in ANY_HEADING_TOKEN:
                    # Whoever called us decides if the heading is allowed to nest here
                    return
                self.stream.skip_blank_lines()
            elif tok.kind in WHITESPACE_KINDS:
                self.stream.next()
            elif tok.kind in ANY_HEADING_TOKEN:
                raise self.stream.error(
                    "a heading must be separated from the text before it by a blank line",
                    tok,
                )
            else:
                heading.contents.append(self._section_element())

    def _abstract_block(self, kind: TokenKind) -> List[Node]:
        """An abstract or pre-abstract runs from its keyword up to the next blank line."""
        self.stream.skip_blank_lines()
        self.stream.expect(kind)
        contents: List[Node] = []
        while True:
            tok = self.stream.peek()
            if tok is None or tok.kind == TokenKind.BLANK_LINE:
                return contents
            if tok.kind in WHITESPACE_KINDS:
                self.stream.next()
            else:
                contents.append(self._section_element())

    def _inline_line(self, allow_label: bool) -> Tuple[Optional[str], List[Node]]:
        """The rest of a line after a keyword, e.g. a heading title.

        Stops after a NEWLINE, or before a blank line or a token which can't be inline."""
        label: Optional[str] = None
        contents: List[Node] = []
        while True:
            tok = self.stream.peek()
            if tok is None or tok.kind == TokenKind.BLANK_LINE:
                break
            if tok.kind == TokenKind.NEWLINE:
                self.stream.next()
                break
            if tok.kind == TokenKind.LABEL:
                if not allow_label:
                    raise self.stream.error("a label isn't allowed here", tok)
                if label is not None:
                    raise self.stream.error("only one label is allowed per line", tok)
                label = self.stream.next().text
            elif tok.kind in (TokenKind.SPACE, TokenKind.TAB):
                contents.append(self._span())
            elif tok.kind in self._inline_rules:
                contents.append(self._inline_rules[tok.kind]())
            else:
                break
        return label, _strip_whitespace(contents)

    # Section and paragraph elements

    def _section_element(self) -> Node:
        tok = self.stream.peek()
        if tok is None:
            raise self.stream.error("expected a block or paragraph")
        block_rule = self._block_rules.get(tok.kind)
        if block_rule is not None:
            return block_rule()
        if tok.kind in self._inline_rules:
            return self._paragraph()
        raise self.stream.error("unexpected token", tok)

    def _paragraph(self) -> Paragraph:
        contents: List[Node] = []
        while True:
            tok = self.stream.peek()
            if tok is None:
                break
            if tok.kind in WHITESPACE_KINDS:
                contents.append(self._span())
                continue
            rule = self._inline_rules.get(tok.kind)
            if rule is None:
                break
            contents.append(rule())
        return Paragraph(_strip_whitespace(contents))

    def _contents(self, *end_kinds: TokenKind) -> List[Node]:
        """Any mix of section elements, whitespace and blank lines, up to (not including) one of end_kinds."""
        contents: List[Node] = []
        while not self.stream.at(*end_kinds):
            tok = self.stream.peek()
            if tok is None:
                raise self.stream.error(
                    f"expected {' or '.join(k.name for k in end_kinds)}"
                )
            if tok.kind == TokenKind.BLANK_LINE or tok.kind in WHITESPACE_KINDS:
                self.stream.next()
            else:
                contents.append(self._section_element())
        return contents

    def _skip_whitespace(self) -> None:
        while self.stream.at(TokenKind.BLANK_LINE, *WHITESPACE_KINDS):
            self.stream.next()

    def _span(self) -> Span:
        tok = self.stream.next()
        return Span(SPAN_KINDS[tok.kind], tok.text)

    def _ref(self) -> CrossRef:
        tok = self.stream.expect(TokenKind.REF)
        return CrossRef(tok.text)

    def _quoted(self) -> Quoted:
        self.stream.expect(TokenKind.QUOTE)
        contents: List[Node] = []
        while not self.stream.at(TokenKind.QUOTE):
            tok = self.stream.peek()
            if tok is not None and tok.kind in WHITESPACE_KINDS:
                contents.append(self._span())
                continue
            if tok is None or tok.kind not in self._inline_rules:
                raise self.stream.error("expected a closing QUOTE", tok)
            contents.append(self._inline_rules[tok.kind]())
        self.stream.expect(TokenKind.QUOTE)
        return Quoted(contents)

    def _tag_attrs(self, open_tok: Token) -> Tuple[Dict[str, str], Token]:
        """Consume the attributes of an opening tag and the TAG_END after them."""
        attr_toks: List[Token] = []
        while not self.stream.at(TokenKind.TAG_END):
            tok = self.stream.peek()
            if tok is None or not (
                tok.kind in ATTR_TOKENS or tok.kind in WHITESPACE_KINDS
            ):
                raise self.stream.error(
                    f"expected an attribute or TAG_END in {open_tok.kind.name} tag",
                    tok,
                )
            attr_toks.append(self.stream.next())
        end_tok = self.stream.expect(TokenKind.TAG_END)
        attrs = parse_tag_attrs(attr_toks, open_tok.line, self.stream.file_name)
        return attrs, end_tok

    # Blocks

    def _list(self) -> DisplayList:
        open_tok = self.stream.expect(TokenKind.OL_OPEN, TokenKind.UL_OPEN)
        ordered = open_tok.kind == TokenKind.OL_OPEN
        close_kind = TokenKind.OL_CLOSE if ordered else TokenKind.UL_CLOSE

        items: List[ListItem] = []
        self._skip_whitespace()
        while not self.stream.at(close_kind):
            self.stream.expect(TokenKind.LIST_ITEM)
            items.append(ListItem(self._contents(TokenKind.LIST_ITEM, close_kind)))
        self.stream.expect(close_kind)
        return DisplayList(ordered, items)

    def _table(self) -> Table:
        open_tok = self.stream.expect(TokenKind.TABLE_OPEN)
        attrs, _ = self._tag_attrs(open_tok)

        rows: List[TableRow] = []
        self._skip_whitespace()
        while not self.stream.at(TokenKind.TABLE_CLOSE):
            self.stream.expect(TokenKind.ROW)
            cells: List[TableCell] = []
            self._skip_whitespace()
            while self.stream.at(TokenKind.HEADER_CELL, TokenKind.DATA_CELL):
                cell_tok = self.stream.next()
                cells.append(
                    TableCell(
                        header=cell_tok.kind == TokenKind.HEADER_CELL,
                        contents=self._contents(
                            TokenKind.HEADER_CELL,
                            TokenKind.DATA_CELL,
                            TokenKind.ROW,
                            TokenKind.TABLE_CLOSE,
                        ),
                    )
                )
            rows.append(TableRow(cells))
        self.stream.expect(TokenKind.TABLE_CLOSE)
        return Table(attrs, rows)

    def _image(self) -> Image:
        open_tok = self.stream.expect(TokenKind.IMAGE)
        attrs, _ = self._tag_attrs(open_tok)
        return Image(attrs)

    def _tag(self) -> Tag:
        open_tok = self.stream.expect(TokenKind.TAG_OPEN)
        attrs, end_tok = self._tag_attrs(open_tok)
        # The TAG_END of a self-closing tag is "/>"
        if end_tok.text.endswith("/>"):
            return Tag(open_tok.text, attrs, [])
        contents = self._contents(TokenKind.TAG_CLOSE)
        close_tok = self.stream.expect(TokenKind.TAG_CLOSE)
        if close_tok.text and open_tok.text and close_tok.text != open_tok.text:
            raise self.stream.error(
                f"closing tag doesn't match opening tag {open_tok.text!r} from line {open_tok.line}",
                close_tok,
            )
        return Tag(open_tok.text, attrs, contents)

    def _citation(self, def_type: Type[CitationDef], close_kind: TokenKind) -> CitationDef:
        open_tok = self.stream.next()
        while self.stream.at(TokenKind.SPACE, TokenKind.TAB):
            self.stream.next()
        label = self.stream.expect(TokenKind.LABEL)
        number = self.session.counters.definitions.take()
        _, title = self._inline_line(allow_label=False)
        body = self._contents(close_kind)
        self.stream.expect(close_kind)

        citation = def_type(
            label=label.text,
            line=open_tok.line,
            number=number,
            title=title,
            body=body,
            parent=self.session.current_parent,
        )
        self.session.register(citation)
        return citation

    def _optional_label(self) -> Optional[str]:
        self._skip_whitespace()
        tok = self.stream.accept(TokenKind.LABEL)
        return tok.text if tok is not None else None

    def _sidenote(self) -> SideNoteDef:
        open_tok = self.stream.expect(TokenKind.SIDENOTE_OPEN)
        label = self._optional_label()
        number = self.session.counters.definitions.take()
        body = self._contents(TokenKind.SIDENOTE_CLOSE)
        self.stream.expect(TokenKind.SIDENOTE_CLOSE)

        note = SideNoteDef(
            label=label,
            line=open_tok.line,
            number=number,
            body=body,
            parent=self.session.current_parent,
        )
        self.session.register(note)
        return note

    def _quote_body(self, close_kind: TokenKind) -> Tuple[List[Node], Optional[List[Node]]]:
        body = self._contents(close_kind, TokenKind.ATTRIBUTION)
        attribution = None
        if self.stream.accept(TokenKind.ATTRIBUTION):
            attribution = self._contents(close_kind)
        self.stream.expect(close_kind)
        return body, attribution

    def _sidequote(self) -> SideQuoteDef:
        open_tok = self.stream.expect(TokenKind.SIDEQUOTE_OPEN)
        label = self._optional_label()
        number = self.session.counters.definitions.take()
        body, attribution = self._quote_body(TokenKind.SIDEQUOTE_CLOSE)

        quote = SideQuoteDef(
            label=label,
            line=open_tok.line,
            number=number,
            body=body,
            attribution=attribution,
            parent=self.session.current_parent,
        )
        self.session.register(quote)
        return quote

    def _chapquote(self) -> ChapQuote:
        self.stream.expect(TokenKind.CHAPQUOTE_OPEN)
        body, attribution = self._quote_body(TokenKind.CHAPQUOTE_CLOSE)
        return ChapQuote(body, attribution)

    def _figure(self, fig_type: Type[FigureDef], close_kind: TokenKind) -> FigureDef:
        open_tok = self.stream.next()
        attrs, _ = self._tag_attrs(open_tok)
        # Numbered in the order the opening tags appear, labelled or not
        number = self.session.counters.figures.take()
        contents = self._contents(close_kind)
        self.stream.expect(close_kind)

        figure = fig_type(
            label=attrs.get("label"),
            line=open_tok.line,
            number=number,
            attrs=attrs,
            contents=contents,
            parent=self.session.current_parent,
        )
        self.session.define_figure(figure)
        return figure

    def _callout(self) -> Callout:
        self.stream.expect(TokenKind.CALLOUT_OPEN)
        contents = self._contents(TokenKind.CALLOUT_CLOSE)
        self.stream.expect(TokenKind.CALLOUT_CLOSE)
        return Callout(contents)

    def _raw_body(self, body_kind: TokenKind, close_kind: TokenKind) -> str:
        parts = []
        while self.stream.at(body_kind):
            parts.append(self.stream.next().text)
        self.stream.expect(close_kind)
        return "".join(parts)

    def _code(self) -> CodeBlock:
        open_tok = self.stream.expect(TokenKind.CODE_OPEN)
        code = self._raw_body(TokenKind.CODE_BODY, TokenKind.CODE_CLOSE)
        return CodeBlock(open_tok.text.strip(), code)

    def _pyfig(self) -> Node:
        open_tok = self.stream.expect(TokenKind.PYFIG_OPEN)
        body = self._raw_body(TokenKind.PYFIG_BODY, TokenKind.PYFIG_CLOSE)
        return self.session.code.extract_pyfig(
            open_tok.text,
            body,
            open_tok.line,
            open_tok.column,
            parent=self.session.current_parent,
        )

    def _pyeval(self) -> Node:
        open_tok = self.stream.expect(TokenKind.PYEVAL_OPEN)
        body = self._raw_body(TokenKind.PYEVAL_BODY, TokenKind.PYEVAL_CLOSE)
        return self.session.code.extract_pyeval(
            open_tok.text,
            body,
            open_tok.line,
            open_tok.column,
            parent=self.session.current_parent,
        )


def parse_chapter(
    tokens: Sequence[Token],
    file_name: str,
    chapter_ordinal: int,
    diagnostics: Optional[DiagnosticSink] = None,
) -> ParsedChapter:
    """Parse the tokens of one chapter file.

    Raises FolioSyntaxError if the tokens don't form a valid chapter."""
    return ChapterParser(tokens, file_name, chapter_ordinal, diagnostics).parse()
