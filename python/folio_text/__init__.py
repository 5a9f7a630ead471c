__all__ = [
    "Token",
    "TokenKind",
    "TokenStream",
    "FolioTextError",
    "FolioSyntaxError",
    "Diagnostic",
    "DiagnosticSink",
    "CollectingDiagnostics",
    "PrintDiagnostics",
    "Severity",
    "LabelRegistry",
    "ChapterParser",
    "ParsedChapter",
    "parse_chapter",
    "parse_code_args",
    "parse_tag_attrs",
]

from folio_text.diagnostics import (
    CollectingDiagnostics,
    Diagnostic,
    DiagnosticSink,
    PrintDiagnostics,
    Severity,
)
from folio_text.doc.registry import LabelRegistry
from folio_text.errors import FolioSyntaxError, FolioTextError
from folio_text.parse.attrs import parse_code_args, parse_tag_attrs
from folio_text.parse.builder import ChapterParser, parse_chapter
from folio_text.parse.session import ParsedChapter
from folio_text.tokens import Token, TokenKind, TokenStream
