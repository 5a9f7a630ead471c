import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from typing_extensions import override


@runtime_checkable
class Node(Protocol):
    """Anything that can sit in a chapter tree.

    Containers return their children from child_nodes(), leaves return None."""

    @abc.abstractmethod
    def child_nodes(self) -> Iterable["Node"] | None:
        """The children of this node, used by the DFS pass to iterate into nodes."""
        ...


class SpanKind(Enum):
    Text = 0
    Other = 1
    Space = 2
    Newline = 3
    Tab = 4
    Link = 5
    Italics = 6
    Bold = 7
    LineBreak = 8
    Symbol = 9
    FirstUse = 10
    Todo = 11
    InlineCode = 12
    Equation = 13
    BlockEquation = 14
    Raw = 15
    LiteralLt = 16
    LiteralGt = 17


@dataclass(frozen=True)
class Span(Node):
    """A leaf which keeps the text of one atomic token, discriminated by kind."""

    kind: SpanKind
    text: str

    @override
    def child_nodes(self) -> None:
        return None


@dataclass(frozen=True)
class CrossRef(Node):
    label: str

    @override
    def child_nodes(self) -> None:
        return None


@dataclass(frozen=True)
class Paragraph(Node):
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class Quoted(Node):
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class Image(Node):
    attrs: Dict[str, str]

    @override
    def child_nodes(self) -> None:
        return None


@dataclass(frozen=True)
class Tag(Node):
    """An embedded XML-like tag the parser doesn't know the meaning of."""

    name: str
    attrs: Dict[str, str]
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class ListItem(Node):
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class DisplayList(Node):
    ordered: bool
    items: List[ListItem]

    @override
    def child_nodes(self) -> List[ListItem]:
        return self.items


@dataclass(frozen=True)
class TableCell(Node):
    header: bool
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class TableRow(Node):
    cells: List[TableCell]

    @override
    def child_nodes(self) -> List[TableCell]:
        return self.cells


@dataclass(frozen=True)
class Table(Node):
    attrs: Dict[str, str]
    rows: List[TableRow]

    @override
    def child_nodes(self) -> List[TableRow]:
        return self.rows


@dataclass(frozen=True)
class Callout(Node):
    contents: List[Node]

    @override
    def child_nodes(self) -> List[Node]:
        return self.contents


@dataclass(frozen=True)
class CodeBlock(Node):
    """A plain code listing. It is shown, never executed."""

    language: str
    code: str

    @override
    def child_nodes(self) -> None:
        return None


@dataclass(frozen=True)
class ChapQuote(Node):
    body: List[Node]
    attribution: Optional[List[Node]] = field(default=None)

    @override
    def child_nodes(self) -> List[Node]:
        return self.body + (self.attribution or [])


def plain_text(nodes: Iterable[Node]) -> str:
    """Flatten the text of some nodes into a string, collapsing runs of whitespace."""
    parts: List[str] = []

    def recurse(ns: Iterable[Node]) -> None:
        for n in ns:
            if isinstance(n, Span):
                if n.kind in (SpanKind.Space, SpanKind.Newline, SpanKind.Tab):
                    parts.append(" ")
                else:
                    parts.append(n.text)
            elif isinstance(n, CrossRef):
                parts.append(n.label)
            elif isinstance(n, Quoted):
                parts.append('"')
                recurse(n.contents)
                parts.append('"')
            else:
                children = n.child_nodes()
                if children is not None:
                    recurse(children)

    recurse(nodes)
    return " ".join("".join(parts).split())
