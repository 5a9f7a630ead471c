"""
Entities are the constructs of a chapter which can be numbered and referred back to by label.

Every entity knows
- its label, if the user gave one,
- the source line it started on,
- its number within its own numbering scheme (section numbers, figure numbers, code-block ids...),
- its parent, the structural entity (chapter or heading) it was found inside.

The parent is a back-reference only. The tree is owned through HeadingDef.contents and HeadingDef.subsegments,
so `parent` is left out of equality and repr.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Optional

from typing_extensions import override

from folio_text.doc.nodes import Node, plain_text


@dataclass
class Entity(Node):
    kind: ClassVar[str] = "entity"

    label: Optional[str]
    line: int
    number: int
    parent: Optional["Entity"] = field(
        default=None, repr=False, compare=False, kw_only=True
    )

    @override
    def child_nodes(self) -> Iterable[Node] | None:
        return None


@dataclass
class HeadingDef(Entity):
    """A structural level of the chapter. `weight` goes up by one for each level of nesting."""

    weight: ClassVar[int] = 0

    title: List[Node] = field(default_factory=list)
    contents: List[Node] = field(default_factory=list)
    subsegments: List["HeadingDef"] = field(default_factory=list)

    @property
    def title_text(self) -> str:
        return plain_text(self.title)

    @override
    def child_nodes(self) -> List[Node]:
        return [*self.title, *self.contents, *self.subsegments]


@dataclass
class ChapterDef(HeadingDef):
    kind: ClassVar[str] = "chapter"
    weight: ClassVar[int] = 0

    author: Optional[List[Node]] = None
    preabstract: Optional[List[Node]] = None
    abstract: Optional[List[Node]] = None

    @property
    def ordinal(self) -> int:
        """The chapter ordinal is supplied by whoever drives the parse, it isn't counted here."""
        return self.number

    @override
    def child_nodes(self) -> List[Node]:
        return [
            *self.title,
            *(self.author or []),
            *(self.preabstract or []),
            *(self.abstract or []),
            *self.contents,
            *self.subsegments,
        ]


@dataclass
class SectionDef(HeadingDef):
    kind: ClassVar[str] = "section"
    weight: ClassVar[int] = 1


@dataclass
class SubSectionDef(HeadingDef):
    kind: ClassVar[str] = "subsection"
    weight: ClassVar[int] = 2


@dataclass
class SubSubSectionDef(HeadingDef):
    kind: ClassVar[str] = "subsubsection"
    weight: ClassVar[int] = 3


@dataclass
class CitationDef(Entity):
    kind: ClassVar[str] = "citation"

    title: List[Node] = field(default_factory=list)
    body: List[Node] = field(default_factory=list)

    @property
    def title_text(self) -> str:
        return plain_text(self.title)

    @property
    def body_text(self) -> str:
        return plain_text(self.body)

    @override
    def child_nodes(self) -> List[Node]:
        return [*self.title, *self.body]


@dataclass
class SiteDef(CitationDef):
    """A web site. The title line is where the URL goes."""

    kind: ClassVar[str] = "site"


@dataclass
class SideNoteDef(Entity):
    kind: ClassVar[str] = "sidenote"

    body: List[Node] = field(default_factory=list)

    @property
    def body_text(self) -> str:
        return plain_text(self.body)

    @override
    def child_nodes(self) -> List[Node]:
        return self.body


@dataclass
class SideQuoteDef(SideNoteDef):
    kind: ClassVar[str] = "sidequote"

    attribution: Optional[List[Node]] = None

    @property
    def attribution_text(self) -> Optional[str]:
        if self.attribution is None:
            return None
        return plain_text(self.attribution)

    @override
    def child_nodes(self) -> List[Node]:
        return [*self.body, *(self.attribution or [])]


@dataclass
class FigureDef(Entity):
    """A figure. Its label comes from the "label" attribute of the opening tag."""

    kind: ClassVar[str] = "figure"

    attrs: Dict[str, str] = field(default_factory=dict)
    contents: List[Node] = field(default_factory=list)

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass
class SideFigDef(FigureDef):
    kind: ClassVar[str] = "sidefig"


@dataclass
class CodeBlockDef(Entity):
    """An embedded block of Python which an external runner will execute.

    `code` is None when the block had no source at all, which means "show the output only".
    That is distinct from a block whose source happens to be the empty string, which can't happen after trimming.
    The stdout, stderr and display_data fields are filled in by the runner, never by the parser."""

    kind: ClassVar[str] = "code"

    file_basename: str = ""
    args: Dict[str, str] = field(default_factory=dict)
    code: Optional[str] = None

    stdout: Optional[str] = None
    stderr: Optional[str] = None
    display_data: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def code_id(self) -> int:
        return self.number


@dataclass
class PyFigDef(CodeBlockDef):
    kind: ClassVar[str] = "pyfig"


@dataclass
class PyEvalDef(CodeBlockDef):
    kind: ClassVar[str] = "pyeval"

    @property
    def output_expr(self) -> Optional[str]:
        """The expression named by the reserved `output` argument, whose value becomes the displayed result."""
        return self.args.get("output")
