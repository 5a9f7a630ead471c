from typing import Any, Callable, Iterator, List, Optional, Tuple, Type, TypeVar

from folio_text.doc.entities import Entity, HeadingDef
from folio_text.doc.nodes import Node

VisitorFilter = Tuple[Type[Any], ...] | Type[Any] | None
VisitorFunc = Callable[[Any], None]

TEntity = TypeVar("TEntity", bound=Entity)


def iter_nodes(root: Node) -> Iterator[Node]:
    """Depth-first, pre-order iteration over a node and everything below it, in document order."""
    dfs_queue: List[Node] = [root]
    while dfs_queue:
        node = dfs_queue.pop()
        yield node
        # reversed is important because we pop the last thing in the queue off first.
        children = node.child_nodes()
        if children:
            dfs_queue.extend(reversed(list(children)))


def iter_entities(root: Node, t: Type[TEntity] = Entity) -> Iterator[TEntity]:  # type: ignore[assignment]
    for node in iter_nodes(root):
        if isinstance(node, t):
            yield node


class DocumentDfsPass:
    """Calls each visitor on every node which matches its filter, in document order.

    A filter of None matches everything."""

    visitors: List[Tuple[VisitorFilter, VisitorFunc]]

    def __init__(self, visitors: List[Tuple[VisitorFilter, VisitorFunc]]) -> None:
        self.visitors = visitors

    def dfs_over_document(self, root: Node) -> None:
        for node in iter_nodes(root):
            for v_type, v_f in self.visitors:
                if v_type is None or isinstance(node, v_type):
                    v_f(node)


def outline(
    root: HeadingDef, number_prefix: Optional[Tuple[int, ...]] = None
) -> Iterator[Tuple[Tuple[int, ...], HeadingDef]]:
    """Yield (number path, heading) for `root` and every heading below it.

    The number path starts with the chapter ordinal, e.g. (3, 2, 1) for subsection 3.2.1."""
    path = (*(number_prefix or ()), root.number)
    yield path, root
    for sub in root.subsegments:
        yield from outline(sub, path)
