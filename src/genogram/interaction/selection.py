"""Single selection and multi-selection tracking."""
from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..store import EntityKind, GraphEvent, GraphEventType

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Selection:
    kind: EntityKind
    entity_id: str


class SelectionManager:
    """Tracks what the edit panel is showing and which nodes are multi-selected.

    At most one entity is singly selected at a time, whatever its kind. The
    multi-selection is an ordered set of person ids kept independently for
    bulk operations. Only ids are held; entity data stays in the store.
    """

    def __init__(self) -> None:
        self._current: Selection | None = None
        self._multi: list[str] = []

    @property
    def current(self) -> Selection | None:
        return self._current

    @property
    def selected_nodes(self) -> list[str]:
        return list(self._multi)

    def selected_id(self, kind: EntityKind) -> str | None:
        if self._current and self._current.kind == kind:
            return self._current.entity_id
        return None

    @property
    def selected_person(self) -> str | None:
        return self.selected_id(EntityKind.PERSON)

    @property
    def selected_relationship(self) -> str | None:
        return self.selected_id(EntityKind.RELATIONSHIP)

    @property
    def selected_household(self) -> str | None:
        return self.selected_id(EntityKind.HOUSEHOLD)

    @property
    def selected_text_annotation(self) -> str | None:
        return self.selected_id(EntityKind.TEXT_ANNOTATION)

    def select(self, kind: EntityKind, entity_id: str | None) -> None:
        """Select one entity, or clear the selection of ``kind`` with None.

        Selecting anything replaces whatever was selected before.
        """
        if entity_id is None:
            if self._current and self._current.kind == kind:
                self._current = None
            return
        self._current = Selection(EntityKind(kind), entity_id)
        logger.debug("selected", kind=self._current.kind.value, entity_id=entity_id)

    def select_person(self, person_id: str | None) -> None:
        self.select(EntityKind.PERSON, person_id)

    def select_relationship(self, relationship_id: str | None) -> None:
        self.select(EntityKind.RELATIONSHIP, relationship_id)

    def select_household(self, household_id: str | None) -> None:
        self.select(EntityKind.HOUSEHOLD, household_id)

    def select_text_annotation(self, annotation_id: str | None) -> None:
        self.select(EntityKind.TEXT_ANNOTATION, annotation_id)

    def clear(self) -> None:
        self._current = None

    def toggle_node(self, person_id: str) -> None:
        """Add ``person_id`` to the multi-selection, or remove it if present.

        When a multi-selection starts while a person is singly selected,
        that person joins it first so a ctrl-click extends the selection.
        """
        if person_id in self._multi:
            self._multi.remove(person_id)
            return
        if not self._multi and self.selected_person and self.selected_person != person_id:
            self._multi.append(self.selected_person)
        self._multi.append(person_id)

    def set_nodes(self, person_ids: list[str]) -> None:
        self._multi = list(dict.fromkeys(person_ids))

    def clear_nodes(self) -> None:
        self._multi = []

    def clear_all(self) -> None:
        self.clear()
        self.clear_nodes()

    def forget(self, entity_id: str) -> None:
        """Drop every reference to a removed entity."""
        if self._current and self._current.entity_id == entity_id:
            self._current = None
        if entity_id in self._multi:
            self._multi.remove(entity_id)

    def handle_event(self, event: GraphEvent) -> None:
        """GraphStore event handler keeping selection consistent with the graph."""
        if event.event_type == GraphEventType.REMOVED and event.entity_id:
            self.forget(event.entity_id)
        elif event.event_type == GraphEventType.LOADED and event.entity is not None:
            self.retain(_document_ids(event.entity))
        elif event.event_type == GraphEventType.RESET:
            self.clear_all()

    def retain(self, live_ids: set[str]) -> None:
        """Drop selections that are not in ``live_ids``."""
        if self._current and self._current.entity_id not in live_ids:
            self._current = None
        self._multi = [i for i in self._multi if i in live_ids]


def _document_ids(document) -> set[str]:
    return {
        entity.id
        for entity in (
            *document.people,
            *document.relationships,
            *document.households,
            *document.text_annotations,
        )
    }
