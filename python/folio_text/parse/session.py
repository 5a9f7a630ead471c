import json
from dataclasses import dataclass
from typing import List, Optional, TextIO

from folio_text.diagnostics import DiagnosticSink, PrintDiagnostics
from folio_text.doc.entities import ChapterDef, CodeBlockDef, Entity, FigureDef
from folio_text.doc.registry import LabelRegistry
from folio_text.parse.code_blocks import CodeBlockExtractor, code_block_to_json
from folio_text.parse.numbering import HeadingStack, ParseCounters


class ParseSession:
    """All the state accumulated while parsing one chapter.

    Each ChapterParser owns exactly one session and nothing in it is shared,
    so separate chapters can be parsed side by side without locking.
    Merging registries across chapters is up to the caller."""

    file_name: str
    chapter_ordinal: int
    diagnostics: DiagnosticSink
    counters: ParseCounters
    registry: LabelRegistry
    code: CodeBlockExtractor
    _headings: Optional[HeadingStack]

    def __init__(
        self,
        file_name: str,
        chapter_ordinal: int,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self.file_name = file_name
        self.chapter_ordinal = chapter_ordinal
        self.diagnostics = (
            diagnostics if diagnostics is not None else PrintDiagnostics(file_name)
        )
        self.counters = ParseCounters()
        self.registry = LabelRegistry(self.diagnostics)
        self.code = CodeBlockExtractor(file_name, self.counters.code_blocks)
        self._headings = None

    def start_chapter(self, chapter: ChapterDef) -> HeadingStack:
        if self._headings is not None:
            raise RuntimeError(
                f"Tried to start a second chapter in {self.file_name}, only one is allowed per parse"
            )
        self._headings = HeadingStack(chapter, self.counters)
        return self._headings

    @property
    def headings(self) -> HeadingStack:
        if self._headings is None:
            raise RuntimeError("No chapter heading has been parsed yet")
        return self._headings

    @property
    def current_parent(self) -> Optional[Entity]:
        if self._headings is None:
            return None
        return self._headings.current

    def register(self, entity: Entity) -> None:
        self.registry.register(entity)

    def define_figure(self, figure: FigureDef) -> None:
        """Register a figure or side figure by its "label" attribute.

        A figure without one keeps its number but can't be referred to."""
        if figure.label is None:
            self.diagnostics.error(figure.line, f"{figure.kind} missing label attribute")
            return
        self.registry.register(figure)


@dataclass
class ParsedChapter:
    """The result of parsing one chapter: the tree, every labelled entity, and the code blocks to run."""

    chapter: ChapterDef
    registry: LabelRegistry
    code_blocks: List[CodeBlockDef]
    counters: ParseCounters

    def dump_code_blocks(self, io: TextIO, pretty_print: bool = True) -> None:
        """Write the code blocks as a JSON list, in the order the runner should execute them."""
        json.dump(
            [code_block_to_json(b) for b in self.code_blocks],
            io,
            indent=4 if pretty_print else None,
        )
