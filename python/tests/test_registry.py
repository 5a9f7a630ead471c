from folio_text import *
from folio_text.doc.entities import CitationDef, FigureDef, SideNoteDef, SiteDef
from folio_text.parse.session import ParseSession


def test_register_and_lookup():
    diags = CollectingDiagnostics()
    registry = LabelRegistry(diags)
    cite = CitationDef(label="knuth", line=3, number=1)
    registry.register(cite)
    assert "knuth" in registry
    assert registry["knuth"] is cite
    assert registry.get("missing") is None
    assert len(registry) == 1
    assert diags.diagnostics == []


def test_unlabelled_entities_are_skipped():
    diags = CollectingDiagnostics()
    registry = LabelRegistry(diags)
    registry.register(SideNoteDef(label=None, line=3, number=1))
    assert len(registry) == 0
    assert diags.diagnostics == []


def test_redefinition_warns_then_last_wins():
    diags = CollectingDiagnostics()
    registry = LabelRegistry(diags)
    first = CitationDef(label="foo", line=3, number=1)
    second = SiteDef(label="foo", line=9, number=2)
    registry.register(first)
    registry.register(second)

    assert registry["foo"] is second
    assert diags.diagnostics == [
        Diagnostic(Severity.Warning, 9, "redefinition of label foo at line 9")
    ]


def test_iteration_keeps_first_definition_order():
    registry = LabelRegistry(CollectingDiagnostics())
    registry.register(CitationDef(label="a", line=1, number=1))
    registry.register(CitationDef(label="b", line=2, number=2))
    registry.register(CitationDef(label="a", line=3, number=3))
    assert list(registry) == ["a", "b"]
    assert registry["a"].line == 3


def test_labels_of_kind():
    registry = LabelRegistry(CollectingDiagnostics())
    cite = CitationDef(label="c", line=1, number=1)
    site = SiteDef(label="s", line=2, number=2)
    fig = FigureDef(label="f", line=3, number=1)
    for e in (cite, site, fig):
        registry.register(e)
    assert registry.labels_of_kind(FigureDef) == {"f": fig}
    # Sites are a kind of citation
    assert registry.labels_of_kind(CitationDef) == {"c": cite, "s": site}
    assert registry.labels_of_kind(SiteDef) == {"s": site}


def test_figure_without_label_reports_error_and_is_not_registered():
    diags = CollectingDiagnostics()
    session = ParseSession("ch1.md", 1, diags)
    session.define_figure(FigureDef(label=None, line=5, number=1, attrs={"width": "2em"}))
    assert len(session.registry) == 0
    assert diags.errors == [
        Diagnostic(Severity.Error, 5, "figure missing label attribute")
    ]


def test_print_diagnostics_format(capsys):
    sink = PrintDiagnostics("ch2.md")
    sink.warning(7, "redefinition of label x at line 7")
    sink.error(9, "sidefig missing label attribute")
    err = capsys.readouterr().err
    assert "ch2.md:7: warning: redefinition of label x at line 7" in err
    assert "ch2.md:9: error: sidefig missing label attribute" in err
