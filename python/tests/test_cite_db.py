import io

from folio_text import *
from folio_text.cite.db import citation_database, write_citation_db
from folio_text.doc.entities import CitationDef, FigureDef, SiteDef
from folio_text.doc.nodes import Paragraph, Span, SpanKind


def text(t):
    return [Span(SpanKind.Text, t)]


def make_registry():
    registry = LabelRegistry(CollectingDiagnostics())
    registry.register(
        CitationDef(
            label="knuth",
            line=1,
            number=1,
            title=text("The Art of Computer Programming"),
            body=[Paragraph(text("Volume 1"))],
        )
    )
    registry.register(FigureDef(label="fig1", line=2, number=1))
    registry.register(
        SiteDef(label="py", line=3, number=2, title=text("https://python.org"))
    )
    return registry


def test_citation_database_entries():
    db = citation_database(make_registry())
    assert db.entries == [
        {
            "ID": "knuth",
            "ENTRYTYPE": "misc",
            "title": "The Art of Computer Programming",
            "note": "Volume 1",
        },
        {
            "ID": "py",
            "ENTRYTYPE": "online",
            "url": "https://python.org",
        },
    ]


def test_write_citation_db():
    out = io.StringIO()
    write_citation_db(make_registry(), out)
    bib = out.getvalue()
    assert "@misc{knuth," in bib
    assert "@online{py," in bib
    assert "fig1" not in bib
    # Registry order, not sorted by ID
    assert bib.index("knuth") < bib.index("@online")


def test_empty_registry_writes_nothing():
    out = io.StringIO()
    write_citation_db(LabelRegistry(CollectingDiagnostics()), out)
    assert "@" not in out.getvalue()
