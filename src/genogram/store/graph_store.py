"""In-memory entity graph with referential integrity.

The store owns the four entity collections of a genogram (people,
relationships, households and text annotations). Every public mutation is
total: it either leaves the graph fully consistent or is rejected before
anything changes. Successful mutations are announced to registered event
handlers (selection, sync, host notification) once they have committed.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import structlog
from pydantic import ValidationError

from ..models import (
    ChildEdge,
    GenogramDocument,
    Household,
    PartnerEdge,
    Person,
    Relationship,
    RelationshipKind,
    RelationshipType,
    TextAnnotation,
    relationship_from_dict,
)
from .geometry import DEFAULT_BUFFER, members_within

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)


# =============================================================================
# Events and results
# =============================================================================


class EntityKind(str, Enum):
    """Collections held by the store."""
    PERSON = "person"
    RELATIONSHIP = "relationship"
    HOUSEHOLD = "household"
    TEXT_ANNOTATION = "text_annotation"


class GraphEventType(str, Enum):
    """Types of events emitted after a mutation commits."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    LOADED = "loaded"  # whole document replaced
    RESET = "reset"


@dataclass(frozen=True)
class GraphEvent:
    """One committed change.

    ``cascade_of`` names the entity whose mutation caused this change, e.g.
    the person whose deletion removed a relationship.
    """
    event_type: GraphEventType
    kind: EntityKind | None = None
    entity_id: str | None = None
    entity: Any = None
    cascade_of: str | None = None


EventHandler = Callable[[GraphEvent], None]


@dataclass
class MutationResult:
    """Outcome of a public mutation.

    A rejected mutation has ``applied=False``, a ``diagnostic`` and no
    events; the graph is unchanged.
    """
    applied: bool
    entity: Any = None
    diagnostic: str | None = None
    events: list[GraphEvent] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.applied

    @property
    def removed(self) -> list[str]:
        return [
            e.entity_id for e in self.events
            if e.event_type == GraphEventType.REMOVED and e.entity_id is not None
        ]

    @classmethod
    def rejected(cls, diagnostic: str) -> MutationResult:
        return cls(applied=False, diagnostic=diagnostic)


@dataclass
class IntegrityViolation(Exception):
    """A mutation would leave the graph inconsistent."""
    reason: str
    entity_id: str | None = None

    def __str__(self) -> str:
        if self.entity_id:
            return f"{self.reason} ({self.entity_id})"
        return self.reason


class DocumentError(ValueError):
    """A document could not be read into a graph."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass(frozen=True)
class ResolvedRelationship:
    """A relationship whose endpoints all resolve to live entities.

    For a partner edge ``parents`` holds its two people (one for a
    single-parent adoption) and ``child`` is None. For a child edge
    ``parent_relationship`` is the partner edge it hangs from.
    """
    relationship: Relationship
    parents: tuple[Person, ...]
    child: Person | None = None
    parent_relationship: PartnerEdge | None = None

    @property
    def is_child_edge(self) -> bool:
        return self.child is not None


# =============================================================================
# Graph store
# =============================================================================


class GraphStore:
    """Canonical people / relationships / households / text annotations."""

    def __init__(self, household_buffer: float = DEFAULT_BUFFER):
        self.household_buffer = household_buffer

        self._people: dict[str, Person] = {}
        self._relationships: dict[str, Relationship] = {}
        self._households: dict[str, Household] = {}
        self._text_annotations: dict[str, TextAnnotation] = {}
        self._metadata: dict[str, Any] = {}

        self._event_handlers: list[EventHandler] = []
        self._pending: list[GraphEvent] = []
        self._depth = 0

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def register_event_handler(self, handler: EventHandler) -> None:
        """Register a handler called with each committed GraphEvent."""
        self._event_handlers.append(handler)
        logger.debug("event_handler_registered", handler=getattr(handler, "__name__", repr(handler)))

    def unregister_event_handler(self, handler: EventHandler) -> None:
        if handler in self._event_handlers:
            self._event_handlers.remove(handler)

    def _emit_event(self, event: GraphEvent) -> None:
        for handler in list(self._event_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error("event_handler_error", error=str(e), event_type=event.event_type.value, exc_info=True)

    def _record(
        self,
        event_type: GraphEventType,
        kind: EntityKind | None = None,
        entity: Any = None,
        entity_id: str | None = None,
        cascade_of: str | None = None,
    ) -> None:
        if entity_id is None and entity is not None:
            entity_id = getattr(entity, "id", None)
        self._pending.append(GraphEvent(event_type, kind, entity_id, entity, cascade_of))

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _capture(self) -> tuple:
        return (
            dict(self._people),
            dict(self._relationships),
            dict(self._households),
            dict(self._text_annotations),
            dict(self._metadata),
        )

    def _restore(self, saved: tuple) -> None:
        (
            self._people,
            self._relationships,
            self._households,
            self._text_annotations,
            self._metadata,
        ) = saved

    @contextmanager
    def _transaction(self) -> Iterator[list[GraphEvent]]:
        """Apply a group of changes all-or-nothing.

        Nested transactions join the outermost one. Events are buffered and
        only published once the outermost transaction commits.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self._pending
            finally:
                self._depth -= 1
            return

        saved = self._capture()
        self._depth = 1
        self._pending = []
        try:
            yield self._pending
        except BaseException:
            self._restore(saved)
            self._pending = []
            raise
        finally:
            self._depth = 0

        events, self._pending = self._pending, []
        for event in events:
            self._emit_event(event)

    def _mutate(self, operation: Callable[[], Any]) -> MutationResult:
        outermost = self._depth == 0
        try:
            with self._transaction() as events:
                entity = operation()
        except (IntegrityViolation, ValidationError) as exc:
            if not outermost:
                raise
            diagnostic = str(exc)
            logger.warning(
                "mutation_rejected",
                diagnostic=diagnostic,
                entity_id=getattr(exc, "entity_id", None),
            )
            return MutationResult.rejected(diagnostic)
        return MutationResult(applied=True, entity=entity, events=list(events))

    def atomic(self, operation: Callable[[], Any]) -> MutationResult:
        """Run a compound operation as one mutation.

        ``operation`` may call any public mutation; if any of them is
        rejected the whole operation is rolled back and a rejected result
        is returned.
        """
        return self._mutate(operation)

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @property
    def people(self) -> list[Person]:
        return list(self._people.values())

    @property
    def relationships(self) -> list[Relationship]:
        return list(self._relationships.values())

    @property
    def households(self) -> list[Household]:
        return list(self._households.values())

    @property
    def text_annotations(self) -> list[TextAnnotation]:
        return list(self._text_annotations.values())

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self._metadata)

    def get_person(self, person_id: str) -> Person | None:
        return self._people.get(person_id)

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        return self._relationships.get(relationship_id)

    def get_household(self, household_id: str) -> Household | None:
        return self._households.get(household_id)

    def get_text_annotation(self, annotation_id: str) -> TextAnnotation | None:
        return self._text_annotations.get(annotation_id)

    def get(self, kind: EntityKind, entity_id: str) -> Any:
        return self._collection(kind).get(entity_id)

    def has_id(self, entity_id: str) -> bool:
        return any(entity_id in c for c in self._collections())

    def is_empty(self) -> bool:
        return not any(self._collections())

    def counts(self) -> dict[str, int]:
        return {
            "people": len(self._people),
            "relationships": len(self._relationships),
            "households": len(self._households),
            "textAnnotations": len(self._text_annotations),
        }

    def _collection(self, kind: EntityKind) -> dict[str, Any]:
        return {
            EntityKind.PERSON: self._people,
            EntityKind.RELATIONSHIP: self._relationships,
            EntityKind.HOUSEHOLD: self._households,
            EntityKind.TEXT_ANNOTATION: self._text_annotations,
        }[EntityKind(kind)]

    def _collections(self) -> tuple[dict[str, Any], ...]:
        return (self._people, self._relationships, self._households, self._text_annotations)

    # -------------------------------------------------------------------------
    # Relationship queries
    # -------------------------------------------------------------------------

    def partner_relationships_of(self, person_id: str) -> list[PartnerEdge]:
        """Live partner-kind relationships involving ``person_id``.

        Only relationships whose other endpoint also resolves are returned.
        """
        found = []
        for rel in self._relationships.values():
            if not isinstance(rel, PartnerEdge) or not rel.can_parent:
                continue
            if rel.involves(person_id) and rel.other(person_id) in self._people:
                found.append(rel)
        return found

    def children_of(self, relationship_id: str) -> list[ChildEdge]:
        return [
            rel for rel in self._relationships.values()
            if isinstance(rel, ChildEdge) and rel.parent_relationship_id == relationship_id
        ]

    def parent_relationships_of(self, child_id: str) -> list[PartnerEdge]:
        """Partner relationships ``child_id`` hangs from."""
        parents = []
        for rel in self._relationships.values():
            if isinstance(rel, ChildEdge) and rel.child_id == child_id:
                parent = self._relationships.get(rel.parent_relationship_id)
                if isinstance(parent, PartnerEdge):
                    parents.append(parent)
        return parents

    def relationships_of(self, person_id: str) -> list[Relationship]:
        """Every relationship with ``person_id`` as a direct endpoint."""
        return [rel for rel in self._relationships.values() if self._touches(rel, person_id)]

    def households_of(self, person_id: str) -> list[Household]:
        return [h for h in self._households.values() if person_id in h.members]

    def resolve_relationship(self, relationship_id: str) -> ResolvedRelationship | None:
        """Resolve a relationship's endpoints, or None when it is dangling."""
        rel = self._relationships.get(relationship_id)
        if rel is None:
            return None
        if isinstance(rel, PartnerEdge):
            parents = self._resolve_pair(rel)
            return ResolvedRelationship(rel, parents) if parents else None

        parent = self._relationships.get(rel.parent_relationship_id)
        child = self._people.get(rel.child_id)
        if not isinstance(parent, PartnerEdge) or child is None:
            return None
        parents = self._resolve_pair(parent)
        if not parents:
            return None
        return ResolvedRelationship(rel, parents, child=child, parent_relationship=parent)

    def renderable_relationships(self) -> list[ResolvedRelationship]:
        resolved = (self.resolve_relationship(rel_id) for rel_id in self._relationships)
        return [r for r in resolved if r is not None]

    def dangling_relationships(self) -> list[Relationship]:
        return [
            rel for rel_id, rel in self._relationships.items()
            if self.resolve_relationship(rel_id) is None
        ]

    def _resolve_pair(self, rel: PartnerEdge) -> tuple[Person, ...]:
        a = self._people.get(rel.person_a)
        b = self._people.get(rel.person_b)
        if a is None or b is None:
            return ()
        return (a,) if rel.is_self_edge else (a, b)

    @staticmethod
    def _touches(rel: Relationship, person_id: str) -> bool:
        if isinstance(rel, PartnerEdge):
            return rel.involves(person_id)
        return rel.child_id == person_id

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_relationship(self, rel: Relationship, replacing: str | None = None) -> None:
        """Raise IntegrityViolation if ``rel`` cannot join the graph.

        ``replacing`` is the id of the relationship being updated, which is
        ignored by the duplicate checks.
        """
        if isinstance(rel, PartnerEdge):
            for person_id in rel.endpoints:
                if person_id not in self._people:
                    raise IntegrityViolation("relationship endpoint does not exist", person_id)
            if rel.is_self_edge and rel.type != RelationshipType.ADOPTION:
                raise IntegrityViolation("a person cannot be related to themselves", rel.person_a)
            for other in self._relationships.values():
                if (
                    other.id != replacing
                    and isinstance(other, PartnerEdge)
                    and other.type == rel.type
                    and other.same_pair(rel)
                ):
                    raise IntegrityViolation("duplicate relationship", other.id)
            return

        parent = self._relationships.get(rel.parent_relationship_id)
        if not isinstance(parent, PartnerEdge):
            raise IntegrityViolation("parent relationship does not exist", rel.parent_relationship_id)
        if not parent.can_parent:
            raise IntegrityViolation("relationship type cannot have children", parent.id)
        if not self._resolve_pair(parent):
            raise IntegrityViolation("parent relationship is dangling", parent.id)
        if rel.child_id not in self._people:
            raise IntegrityViolation("child does not exist", rel.child_id)
        if parent.involves(rel.child_id):
            raise IntegrityViolation("a parent cannot be their own child", rel.child_id)
        for other in self.children_of(parent.id):
            if other.id != replacing and other.child_id == rel.child_id:
                raise IntegrityViolation("child is already attached to this relationship", other.id)

    def check_relationship(self, rel: Relationship | dict[str, Any]) -> str | None:
        """Diagnostic for why ``rel`` would be rejected, or None if valid."""
        try:
            self.validate_relationship(relationship_from_dict(rel))
        except IntegrityViolation as exc:
            return str(exc)
        except ValidationError as exc:
            return str(exc)
        return None

    def _new_id(self, entity_id: str) -> None:
        if self.has_id(entity_id):
            raise IntegrityViolation("id already in use", entity_id)

    @staticmethod
    def _patch_keeps_id(entity_id: str, patch: dict[str, Any]) -> None:
        if "id" in patch and patch["id"] != entity_id:
            raise IntegrityViolation("entity id cannot be changed", entity_id)

    def _require(self, kind: EntityKind, entity_id: str) -> Any:
        entity = self._collection(kind).get(entity_id)
        if entity is None:
            raise IntegrityViolation(f"{kind.value} does not exist", entity_id)
        return entity

    # -------------------------------------------------------------------------
    # People
    # -------------------------------------------------------------------------

    def add_person(self, person: Person | dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._add_person(person))

    def _add_person(self, person: Person | dict[str, Any]) -> Person:
        if not isinstance(person, Person):
            person = Person.model_validate(person)
        self._new_id(person.id)
        self._people[person.id] = person
        self._record(GraphEventType.ADDED, EntityKind.PERSON, person)
        self._refresh_membership(cause=person.id)
        return person

    def update_person(self, person_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._update_person(person_id, patch))

    def _update_person(self, person_id: str, patch: dict[str, Any]) -> Person:
        current = self._require(EntityKind.PERSON, person_id)
        self._patch_keeps_id(person_id, patch)
        updated = current.with_patch(patch)
        self._people[person_id] = updated
        self._record(GraphEventType.UPDATED, EntityKind.PERSON, updated)
        if updated.position != current.position:
            self._refresh_membership(cause=person_id)
        return updated

    def delete_person(self, person_id: str) -> MutationResult:
        return self._mutate(lambda: self._delete_person(person_id))

    def _delete_person(self, person_id: str) -> Person:
        person = self._require(EntityKind.PERSON, person_id)
        del self._people[person_id]
        self._record(GraphEventType.REMOVED, EntityKind.PERSON, person)

        direct = [rel.id for rel in self.relationships_of(person_id)]
        self._remove_relationships(direct, cause=person_id)

        for household in self.households_of(person_id):
            members = [m for m in household.members if m != person_id]
            self._put_household(household.merged({"members": members}), cause=person_id)
        return person

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def add_relationship(self, rel: Relationship | dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._add_relationship(rel))

    def _add_relationship(self, rel: Relationship | dict[str, Any]) -> Relationship:
        rel = relationship_from_dict(rel)
        self._new_id(rel.id)
        self.validate_relationship(rel)
        self._relationships[rel.id] = rel
        self._record(GraphEventType.ADDED, EntityKind.RELATIONSHIP, rel)
        return rel

    def update_relationship(self, relationship_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._update_relationship(relationship_id, patch))

    def _update_relationship(self, relationship_id: str, patch: dict[str, Any]) -> Relationship:
        current = self._require(EntityKind.RELATIONSHIP, relationship_id)
        self._patch_keeps_id(relationship_id, patch)
        updated = current.merged(patch)
        self.validate_relationship(updated, replacing=relationship_id)
        if (
            isinstance(updated, PartnerEdge)
            and updated.kind != RelationshipKind.PARTNER
            and self.children_of(relationship_id)
        ):
            raise IntegrityViolation("relationship with children must stay a partner type", relationship_id)
        if isinstance(current, PartnerEdge) and self.children_of(relationship_id):
            if set(current.endpoints) != set(updated.endpoints):
                raise IntegrityViolation("cannot move a relationship that has children", relationship_id)

        self._relationships[relationship_id] = updated
        self._record(GraphEventType.UPDATED, EntityKind.RELATIONSHIP, updated)
        return updated

    def delete_relationship(self, relationship_id: str) -> MutationResult:
        return self._mutate(lambda: self._delete_relationship(relationship_id))

    def _delete_relationship(self, relationship_id: str) -> Relationship:
        rel = self._require(EntityKind.RELATIONSHIP, relationship_id)
        self._remove_relationships([relationship_id])
        return rel

    def _remove_relationships(self, relationship_ids: list[str], cause: str | None = None) -> list[str]:
        """Remove relationships and every child edge hanging from them."""
        removed: list[str] = []
        queue = list(relationship_ids)
        while queue:
            rel_id = queue.pop(0)
            rel = self._relationships.pop(rel_id, None)
            if rel is None:
                continue
            removed.append(rel_id)
            self._record(GraphEventType.REMOVED, EntityKind.RELATIONSHIP, rel, cascade_of=cause)
            queue.extend(child.id for child in self.children_of(rel_id))

        cascaded = [r for r in removed if r not in relationship_ids]
        if cause or cascaded:
            logger.info("relationships_cascaded", cause=cause, removed=removed)
        return removed

    # -------------------------------------------------------------------------
    # Households
    # -------------------------------------------------------------------------

    def add_household(self, household: Household | dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._add_household(household))

    def _add_household(self, household: Household | dict[str, Any]) -> Household:
        if not isinstance(household, Household):
            household = Household.model_validate(household)
        self._new_id(household.id)
        if not household.is_closed_shape:
            raise IntegrityViolation("household boundary needs at least 3 points", household.id)
        household = household.merged({"members": self._members_for(household)})
        self._households[household.id] = household
        self._record(GraphEventType.ADDED, EntityKind.HOUSEHOLD, household)
        return household

    def update_household(self, household_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._update_household(household_id, patch))

    def _update_household(self, household_id: str, patch: dict[str, Any]) -> Household:
        current = self._require(EntityKind.HOUSEHOLD, household_id)
        self._patch_keeps_id(household_id, patch)
        updated = current.merged(patch)
        if not updated.is_closed_shape:
            raise IntegrityViolation("household boundary needs at least 3 points", household_id)
        if updated.points != current.points:
            updated = updated.merged({"members": self._members_for(updated)})
        else:
            for member in updated.members:
                if member not in self._people:
                    raise IntegrityViolation("household member does not exist", member)
        self._households[household_id] = updated
        self._record(GraphEventType.UPDATED, EntityKind.HOUSEHOLD, updated)
        return updated

    def delete_household(self, household_id: str) -> MutationResult:
        return self._mutate(lambda: self._delete_household(household_id))

    def _delete_household(self, household_id: str) -> Household:
        household = self._require(EntityKind.HOUSEHOLD, household_id)
        del self._households[household_id]
        self._record(GraphEventType.REMOVED, EntityKind.HOUSEHOLD, household)
        return household

    def _members_for(self, household: Household) -> list[str]:
        return members_within(household.points, self._people.values(), self.household_buffer)

    def _put_household(self, household: Household, cause: str | None = None) -> None:
        self._households[household.id] = household
        self._record(GraphEventType.UPDATED, EntityKind.HOUSEHOLD, household, cascade_of=cause)

    def _refresh_membership(self, cause: str | None = None) -> None:
        for household in list(self._households.values()):
            if not household.is_closed_shape:
                continue
            members = self._members_for(household)
            if members != household.members:
                self._put_household(household.merged({"members": members}), cause=cause)

    # -------------------------------------------------------------------------
    # Text annotations
    # -------------------------------------------------------------------------

    def add_text_annotation(self, annotation: TextAnnotation | dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._add_text_annotation(annotation))

    def _add_text_annotation(self, annotation: TextAnnotation | dict[str, Any]) -> TextAnnotation:
        if not isinstance(annotation, TextAnnotation):
            annotation = TextAnnotation.model_validate(annotation)
        self._new_id(annotation.id)
        self._text_annotations[annotation.id] = annotation
        self._record(GraphEventType.ADDED, EntityKind.TEXT_ANNOTATION, annotation)
        return annotation

    def update_text_annotation(self, annotation_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._mutate(lambda: self._update_text_annotation(annotation_id, patch))

    def _update_text_annotation(self, annotation_id: str, patch: dict[str, Any]) -> TextAnnotation:
        current = self._require(EntityKind.TEXT_ANNOTATION, annotation_id)
        self._patch_keeps_id(annotation_id, patch)
        updated = current.merged(patch)
        self._text_annotations[annotation_id] = updated
        self._record(GraphEventType.UPDATED, EntityKind.TEXT_ANNOTATION, updated)
        return updated

    def delete_text_annotation(self, annotation_id: str) -> MutationResult:
        return self._mutate(lambda: self._delete_text_annotation(annotation_id))

    def _delete_text_annotation(self, annotation_id: str) -> TextAnnotation:
        annotation = self._require(EntityKind.TEXT_ANNOTATION, annotation_id)
        del self._text_annotations[annotation_id]
        self._record(GraphEventType.REMOVED, EntityKind.TEXT_ANNOTATION, annotation)
        return annotation

    # -------------------------------------------------------------------------
    # Generic helpers used by the editor
    # -------------------------------------------------------------------------

    def update(self, kind: EntityKind, entity_id: str, patch: dict[str, Any]) -> MutationResult:
        method = {
            EntityKind.PERSON: self.update_person,
            EntityKind.RELATIONSHIP: self.update_relationship,
            EntityKind.HOUSEHOLD: self.update_household,
            EntityKind.TEXT_ANNOTATION: self.update_text_annotation,
        }[EntityKind(kind)]
        return method(entity_id, patch)

    def update_metadata(self, patch: dict[str, Any]) -> MutationResult:
        def apply() -> dict[str, Any]:
            self._metadata = {**self._metadata, **patch}
            self._record(GraphEventType.UPDATED, entity=None, entity_id=None)
            return dict(self._metadata)

        return self._mutate(apply)

    # -------------------------------------------------------------------------
    # Whole-document operations
    # -------------------------------------------------------------------------

    def snapshot(self) -> GenogramDocument:
        """Immutable copy of the whole graph."""
        return GenogramDocument(
            people=list(self._people.values()),
            relationships=list(self._relationships.values()),
            households=list(self._households.values()),
            text_annotations=list(self._text_annotations.values()),
            metadata=dict(self._metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        return self.snapshot().to_dict()

    def load(self, data: GenogramDocument | dict[str, Any]) -> GenogramDocument:
        """Atomically replace the graph with ``data``.

        Raises DocumentError before touching the current graph when ``data``
        is malformed. Household membership is kept exactly as stored and
        dangling edges are kept verbatim.
        """
        document = self.parse(data)
        self._replace(document, GraphEventType.LOADED)
        dangling = self.dangling_relationships()
        if dangling:
            logger.warning("document_has_dangling_relationships", ids=[r.id for r in dangling])
        logger.info("document_loaded", **document.entity_counts())
        return document

    def reset(self) -> None:
        """Replace the graph with an empty document."""
        self._replace(GenogramDocument(), GraphEventType.RESET)
        logger.info("document_reset")

    @staticmethod
    def parse(data: GenogramDocument | dict[str, Any]) -> GenogramDocument:
        if isinstance(data, GenogramDocument):
            return data
        if not isinstance(data, dict):
            raise DocumentError(f"expected a JSON object, got {type(data).__name__}")
        try:
            return GenogramDocument.model_validate(data)
        except ValidationError as exc:
            raise DocumentError(f"malformed genogram document: {exc.error_count()} error(s)", exc.errors()) from exc

    def _replace(self, document: GenogramDocument, event_type: GraphEventType) -> None:
        ids = [e.id for e in (*document.people, *document.relationships, *document.households, *document.text_annotations)]
        if len(ids) != len(set(ids)):
            raise DocumentError("document contains duplicate entity ids")

        with self._transaction():
            self._people = {p.id: p for p in document.people}
            self._relationships = {r.id: r for r in document.relationships}
            self._households = {h.id: h for h in document.households}
            self._text_annotations = {t.id: t for t in document.text_annotations}
            self._metadata = dict(document.metadata)
            self._record(event_type, entity=document)
