from dataclasses import dataclass
from typing import List, Optional, Type

from folio_text.doc.entities import ChapterDef, Entity, HeadingDef
from folio_text.doc.nodes import Node


@dataclass
class DocCounter:
    """A sequence of numbers starting at 1.

    take() hands out the current value and moves on, resetting every subcounter back to 1.
    A counter with no subcounters is flat and is never reset during a parse."""

    name: str
    subcounters: List["DocCounter"]

    value: int = 1

    def __init__(self, name: str, subcounters: Optional[List["DocCounter"]] = None) -> None:
        super().__init__()
        self.name = name
        self.subcounters = subcounters if subcounters is not None else []
        self.value = 1

    def take(self) -> int:
        v = self.value
        self.value += 1
        for c in self.subcounters:
            c.reset()
        return v

    def reset(self) -> None:
        self.value = 1
        for c in self.subcounters:
            c.reset()


class ParseCounters:
    """Every counter used by one parse.

    The heading counters form a chain section -> subsection -> subsubsection.
    The chapter is not counted: its ordinal comes from outside.
    `definitions` is shared by citations, sites, side notes and side quotes,
    `figures` by figures and side figures,
    `code_blocks` by every executable code block."""

    section: DocCounter
    subsection: DocCounter
    subsubsection: DocCounter

    definitions: DocCounter
    figures: DocCounter
    code_blocks: DocCounter

    def __init__(self) -> None:
        self.subsubsection = DocCounter("subsubsection")
        self.subsection = DocCounter("subsection", [self.subsubsection])
        self.section = DocCounter("section", [self.subsection])

        self.definitions = DocCounter("definitions")
        self.figures = DocCounter("figures")
        self.code_blocks = DocCounter("code_blocks")

    def heading_counter(self, weight: int) -> DocCounter:
        return [self.section, self.subsection, self.subsubsection][weight - 1]


class HeadingStack:
    """The chain of headings that are currently open, outermost (the chapter) first.

    Opening a heading at weight W closes every open heading at weight >= W,
    numbers the new heading from the counter for W (which resets the deeper counters),
    and attaches it to the heading at weight W-1 as both its parent and its owner.
    Skipping a level is rejected, there's nothing to attach to."""

    _open: List[HeadingDef]
    _counters: ParseCounters

    def __init__(self, chapter: ChapterDef, counters: ParseCounters) -> None:
        self._open = [chapter]
        self._counters = counters

    @property
    def chapter(self) -> ChapterDef:
        return self._open[0]  # type: ignore[return-value]

    @property
    def current(self) -> HeadingDef:
        """The innermost open heading, which new content belongs to."""
        return self._open[-1]

    def open_at(self, weight: int) -> Optional[HeadingDef]:
        if weight < len(self._open):
            return self._open[weight]
        return None

    def open(
        self,
        heading_type: Type[HeadingDef],
        label: Optional[str],
        line: int,
        title: List[Node],
    ) -> HeadingDef:
        weight = heading_type.weight
        if weight < 1:
            raise ValueError(f"Can't open a {heading_type.kind} inside a chapter")
        if weight > len(self._open):
            raise ValueError(
                f"Can't open a {heading_type.kind} without an enclosing {type(self._open[-1]).kind} one level up"
            )

        del self._open[weight:]
        parent = self._open[-1]
        number = self._counters.heading_counter(weight).take()
        heading = heading_type(
            label=label,
            line=line,
            number=number,
            title=title,
            parent=parent,
        )
        parent.subsegments.append(heading)
        self._open.append(heading)
        return heading


def number_path(heading: HeadingDef) -> List[int]:
    """The numbers of `heading` and its enclosing headings, chapter ordinal first."""
    path: List[int] = []
    e: Optional[Entity] = heading
    while e is not None:
        path.append(e.number)
        e = e.parent
    return list(reversed(path))
