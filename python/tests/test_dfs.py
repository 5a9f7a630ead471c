from folio_text import *
from folio_text.doc.dfs import DocumentDfsPass, iter_entities, iter_nodes, outline
from folio_text.doc.entities import (
    CitationDef,
    Entity,
    FigureDef,
    HeadingDef,
    PyFigDef,
    SectionDef,
)
from folio_text.doc.nodes import Paragraph, Span, SpanKind


def build():
    toks = [
        Token(TokenKind.CHAPTER, "", 1),
        Token(TokenKind.TEXT, "Book", 1),
        Token(TokenKind.NEWLINE, "\n", 1),
        Token(TokenKind.TEXT, "intro", 2),
        Token(TokenKind.BLANK_LINE, "", 3),
        Token(TokenKind.SECTION, "", 4),
        Token(TokenKind.TEXT, "First", 4),
        Token(TokenKind.NEWLINE, "\n", 4),
        Token(TokenKind.CITATION_OPEN, "", 5),
        Token(TokenKind.LABEL, "c1", 5),
        Token(TokenKind.TEXT, "Cited", 5),
        Token(TokenKind.NEWLINE, "\n", 5),
        Token(TokenKind.CITATION_CLOSE, "", 6),
        Token(TokenKind.BLANK_LINE, "", 7),
        Token(TokenKind.SUBSECTION, "", 8),
        Token(TokenKind.TEXT, "Deeper", 8),
        Token(TokenKind.NEWLINE, "\n", 8),
        Token(TokenKind.PYFIG_OPEN, "[p]", 9),
        Token(TokenKind.PYFIG_BODY, "plot()", 9),
        Token(TokenKind.PYFIG_CLOSE, "", 9),
        Token(TokenKind.BLANK_LINE, "", 10),
        Token(TokenKind.SECTION, "", 11),
        Token(TokenKind.TEXT, "Second", 11),
    ]
    return parse_chapter(toks, "ch5.md", 5, CollectingDiagnostics())


def test_iter_nodes_is_document_order():
    parsed = build()
    texts = [
        n.text
        for n in iter_nodes(parsed.chapter)
        if isinstance(n, Span) and n.kind == SpanKind.Text
    ]
    assert texts == ["Book", "intro", "First", "Cited", "Deeper", "Second"]


def test_iter_entities_by_type():
    parsed = build()
    assert [e.kind for e in iter_entities(parsed.chapter)] == [
        "chapter",
        "section",
        "citation",
        "subsection",
        "pyfig",
        "section",
    ]
    (cite,) = iter_entities(parsed.chapter, CitationDef)
    assert cite.label == "c1"
    (fig,) = iter_entities(parsed.chapter, PyFigDef)
    assert fig is parsed.code_blocks[0]
    assert list(iter_entities(parsed.chapter, FigureDef)) == []


def test_dfs_pass_visitors():
    parsed = build()
    headings = []
    paragraphs = []
    everything = []
    DocumentDfsPass(
        [
            (HeadingDef, lambda h: headings.append(h.title_text)),
            (Paragraph, paragraphs.append),
            (None, everything.append),
        ]
    ).dfs_over_document(parsed.chapter)
    assert headings == ["Book", "First", "Deeper", "Second"]
    assert len(paragraphs) == 1
    assert everything[0] is parsed.chapter
    assert sum(isinstance(n, Entity) for n in everything) == 6


def test_outline_numbers():
    parsed = build()
    assert [(path, h.title_text) for path, h in outline(parsed.chapter)] == [
        ((5,), "Book"),
        ((5, 1), "First"),
        ((5, 1, 1), "Deeper"),
        ((5, 2), "Second"),
    ]
    assert all(isinstance(h, SectionDef) for path, h in outline(parsed.chapter) if len(path) == 2)
