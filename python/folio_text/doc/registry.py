from typing import Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from folio_text.diagnostics import DiagnosticSink
from folio_text.doc.entities import Entity

TEntity = TypeVar("TEntity", bound=Entity)


class LabelRegistry:
    """Responsible for keeping track of every labelled entity in a chapter.

    Entities are registered as soon as the construct defining them has been parsed.
    Unlabelled entities are skipped.
    If a label is registered twice, a warning pointing at the later definition is reported and the later definition wins.
    Registering never fails.

    Iteration order is the order labels were first defined."""

    _entities: Dict[str, Entity]
    _diagnostics: DiagnosticSink

    def __init__(self, diagnostics: DiagnosticSink) -> None:
        self._entities = {}
        self._diagnostics = diagnostics

    def register(self, entity: Entity) -> None:
        if entity.label is None:
            return
        if entity.label in self._entities:
            self._diagnostics.warning(
                entity.line,
                f"redefinition of label {entity.label} at line {entity.line}",
            )
        self._entities[entity.label] = entity

    def __getitem__(self, label: str) -> Entity:
        return self._entities[label]

    def __contains__(self, label: object) -> bool:
        return label in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entities)

    def get(self, label: str) -> Optional[Entity]:
        return self._entities.get(label)

    def items(self) -> List[Tuple[str, Entity]]:
        return list(self._entities.items())

    def labels_of_kind(self, t: Type[TEntity]) -> Dict[str, TEntity]:
        """All registered entities that are instances of `t`, keyed by label."""
        return {
            label: entity
            for label, entity in self._entities.items()
            if isinstance(entity, t)
        }
