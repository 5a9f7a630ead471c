from typing import Dict, TextIO

import bibtexparser  # type: ignore[import-untyped]

from folio_text.doc.entities import CitationDef, SiteDef
from folio_text.doc.registry import LabelRegistry

"""
Citations and web sites are defined inline in a chapter, not in an external bibliography.
A LaTeX renderer still wants them in a .bib file, so this writes the ones a registry knows about out as a BibTeX database.

Citations become @misc entries with the title line as `title` and the body as `note`.
Sites become @online entries with the title line as `url`.
Entries are written in the order their labels were first defined.
"""


def _generate_entry(citation: CitationDef) -> Dict[str, str]:
    # Citations and sites can't be parsed without a label
    assert citation.label is not None
    e = {"ID": citation.label}
    if isinstance(citation, SiteDef):
        e["ENTRYTYPE"] = "online"
        e["url"] = citation.title_text
        if citation.body_text:
            e["title"] = citation.body_text
    else:
        e["ENTRYTYPE"] = "misc"
        e["title"] = citation.title_text
        if citation.body_text:
            e["note"] = citation.body_text
    return e


def citation_database(registry: LabelRegistry) -> bibtexparser.bibdatabase.BibDatabase:
    db = bibtexparser.bibdatabase.BibDatabase()
    db.entries.extend(
        _generate_entry(citation)
        for citation in registry.labels_of_kind(CitationDef).values()
    )
    return db


def write_citation_db(registry: LabelRegistry, io: TextIO) -> None:
    """Write every citation and site in the registry to a text-based IO channel as BibTeX"""
    db = citation_database(registry)
    writer = bibtexparser.bwriter.BibTexWriter()
    # Keep registry order rather than sorting by ID
    writer.order_entries_by = None
    io.write(writer.write(db))
