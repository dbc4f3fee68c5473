"""The editor action API.

``GenogramEditor`` is the one object the presentation layer talks to. It
owns a GraphStore and the interaction state machines, records undo history
for every committed action and forwards committed state to the host page
and the sync backend.

Example:
    editor = GenogramEditor()
    a = editor.add_person(name="Ada").entity
    b = editor.add_person(name="Bo").entity
    editor.start_connection(a.id, "partner")
    editor.click_person(b.id)
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from enum import Enum
from typing import Any, Callable, TypeVar

import structlog

from .autosave import Autosaver
from .config import EditorConfig
from .embed import HostBridge
from .interaction import (
    AutoResolve,
    ChildConnectionOption,
    ChildConnectionResolver,
    ChildDecision,
    ChooseParentage,
    ChoosePartner,
    ConnectionKind,
    ConnectionRequest,
    ConnectionStateMachine,
    HistoryManager,
    HouseholdDrawingStateMachine,
    SelectionManager,
    next_household_label,
)
from .models import (
    ABBREVIATIONS,
    PALETTE,
    ChildEdge,
    ConnectionStatus,
    GenogramDocument,
    Household,
    PartnerEdge,
    Person,
    Point,
    RelationshipType,
    TextAnnotation,
    is_active_type,
    new_id,
)
from .store import EntityKind, GraphEvent, GraphEventType, GraphStore, IntegrityViolation, MutationResult
from .store.geometry import snap
from .sync import SyncDispatcher

logger = structlog.get_logger(__name__)

CHILD_OFFSET_Y = 150
CO_PARENT_OFFSET_X = 150
SIBLING_SPACING = 100

UNKNOWN_CO_PARENT_COLOR = "#9ca3af"
ADOPTION_COLOR = "#06b6d4"

E = TypeVar("E", bound=Enum)

_COMPLEMENTARY_GENDER = {"male": "female", "female": "male"}


@dataclass
class Viewport:
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0


@dataclass(frozen=True)
class PendingChildRequest:
    """A child connection waiting for the user to pick an option.

    ``child_id`` is set when an existing person is being attached as the
    child; otherwise a new child is created once resolved.
    """
    parent_id: str
    decision: ChildDecision
    child_id: str | None = None


@dataclass(frozen=True)
class ChildRequestOutcome:
    """Result of asking for a child from a single person.

    ``result`` is set when the request resolved without a prompt.
    """
    decision: ChildDecision
    result: MutationResult | None = None

    @property
    def needs_prompt(self) -> bool:
        return self.decision.needs_prompt

    def __bool__(self) -> bool:
        return self.needs_prompt or bool(self.result)


class GenogramEditor:
    def __init__(
        self,
        config: EditorConfig | None = None,
        store: GraphStore | None = None,
        host: HostBridge | None = None,
        sync: SyncDispatcher | None = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.store = store or GraphStore(household_buffer=self.config.household_buffer)
        self.selection = SelectionManager()
        self.history = HistoryManager(self.config.history_limit)
        self.resolver = ChildConnectionResolver(self.store)
        self.connection = ConnectionStateMachine(self.store, self._commit_connection)
        self.household_drawing = HouseholdDrawingStateMachine(
            self._commit_household, self.config.household_close_radius
        )
        self.viewport = Viewport()
        self.pending_child: PendingChildRequest | None = None
        self._clipboard: tuple[EntityKind, Any] | None = None

        self.store.register_event_handler(self.selection.handle_event)
        self.store.register_event_handler(self._drop_stale_child_request)

        self.host = host
        if host is not None:
            host.attach(self)

        self.sync = sync
        if sync is not None:
            self.store.register_event_handler(sync.handle_event)

    # -------------------------------------------------------------------------
    # Committing
    # -------------------------------------------------------------------------

    def _apply(self, operation: Callable[[], Any]) -> MutationResult:
        """Run ``operation`` against the store as one undoable action."""
        before = self.store.snapshot()
        result = self.store.atomic(operation)
        if result.applied:
            self.history.snapshot(before)
            self.history.mark_dirty()
            self._publish()
        return result

    def _publish(self) -> None:
        if self.host is not None:
            self.host.publish_state(self.store.snapshot())

    def _drop_stale_child_request(self, event: GraphEvent) -> None:
        pending = self.pending_child
        if pending is None:
            return
        if event.event_type in (GraphEventType.LOADED, GraphEventType.RESET) or (
            event.event_type == GraphEventType.REMOVED
            and event.kind == EntityKind.PERSON
            and event.entity_id in (pending.parent_id, pending.child_id)
        ):
            logger.debug("child_request_dropped", parent_id=pending.parent_id)
            self.pending_child = None

    def _snap(self, value: float) -> float:
        if self.config.snap_to_grid:
            return snap(value, self.config.grid_size)
        return value

    @property
    def is_dirty(self) -> bool:
        return self.history.is_dirty

    def mark_clean(self) -> None:
        self.history.mark_clean()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def serialize(self) -> dict[str, Any]:
        return self.store.to_dict()

    def snapshot(self) -> GenogramDocument:
        return self.store.snapshot()

    # -------------------------------------------------------------------------
    # People
    # -------------------------------------------------------------------------

    def add_person(self, person: Person | dict[str, Any] | None = None, **fields: Any) -> MutationResult:
        """Add a person. Without an explicit id one is generated."""
        if person is None:
            person = fields
        if isinstance(person, dict) and not person.get("id"):
            person = {**person, "id": new_id()}
        return self._apply(lambda: self.store.add_person(person).entity)

    def update_person(self, person_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._apply(lambda: self.store.update_person(person_id, patch).entity)

    def delete_person(self, person_id: str) -> MutationResult:
        return self._apply(lambda: self.store.delete_person(person_id).entity)

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def add_relationship(self, relationship: PartnerEdge | ChildEdge | dict[str, Any]) -> MutationResult:
        if isinstance(relationship, dict) and not relationship.get("id"):
            relationship = {**relationship, "id": new_id()}
        return self._apply(lambda: self.store.add_relationship(relationship).entity)

    def create_relationship(
        self,
        person_a: str,
        person_b: str,
        relationship_type: RelationshipType | str = RelationshipType.MARRIAGE,
    ) -> MutationResult:
        """Draw a new person-to-person line with the default styling."""
        return self._apply(lambda: self._add_partner_edge(person_a, person_b, relationship_type))

    def create_child_relationship(self, relationship_id: str, child_id: str) -> MutationResult:
        return self._apply(lambda: self._add_child_edge(relationship_id, child_id))

    def update_relationship(self, relationship_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._apply(lambda: self.store.update_relationship(relationship_id, patch).entity)

    def delete_relationship(self, relationship_id: str) -> MutationResult:
        return self._apply(lambda: self.store.delete_relationship(relationship_id).entity)

    def change_relationship_type(self, relationship_id: str, new_type: RelationshipType | str) -> MutationResult:
        """Retype a relationship, keeping the children that hang from it."""
        new_type = _member(RelationshipType, new_type)
        if new_type is None:
            return MutationResult.rejected("unknown relationship type")
        patch = {
            "type": new_type,
            "isActive": is_active_type(new_type),
            "abbr": ABBREVIATIONS.get(new_type, ""),
        }
        return self.update_relationship(relationship_id, patch)

    def create_potential_connection(
        self,
        person_a: str,
        person_b: str,
        relationship_type: RelationshipType | str = RelationshipType.PARTNER,
        source: str | None = None,
        notes: str = "",
    ) -> MutationResult:
        """Draw a family-finding lead that is not yet confirmed.

        The edge is stamped with when and where it was discovered; use
        ``promote_connection`` once it is verified.
        """
        return self._apply(lambda: self._add_partner_edge(
            person_a,
            person_b,
            relationship_type,
            connectionStatus=ConnectionStatus.POTENTIAL,
            discoverySource=source,
            discoveryDate=datetime.now(UTC).isoformat(),
            discoveryNotes=notes,
        ))

    def promote_connection(self, relationship_id: str) -> MutationResult:
        """Confirm a potential (family-finding) connection."""
        rel = self.store.get_relationship(relationship_id)
        if rel is None:
            return MutationResult.rejected(f"relationship does not exist ({relationship_id})")
        if rel.connection_status != ConnectionStatus.POTENTIAL:
            return MutationResult.rejected(f"connection is already confirmed ({relationship_id})")

        stamp = datetime.now(UTC).date().isoformat()
        note = f"[Promoted to confirmed on {stamp}]"
        notes = f"{rel.notes}\n{note}" if rel.notes else note
        return self.update_relationship(
            relationship_id,
            {"connectionStatus": ConnectionStatus.CONFIRMED, "notes": notes},
        )

    def _add_partner_edge(
        self,
        person_a: str,
        person_b: str,
        relationship_type: RelationshipType | str = RelationshipType.MARRIAGE,
        **extra: Any,
    ) -> PartnerEdge:
        rel_type = _member(RelationshipType, relationship_type)
        if rel_type is None:
            raise IntegrityViolation(f"unknown relationship type {relationship_type!r}")
        fields: dict[str, Any] = {
            "id": new_id(),
            "from": person_a,
            "to": person_b,
            "type": rel_type,
            "color": PALETTE[len(self.store.relationships) % len(PALETTE)],
            "bubblePosition": 0.5,
            "isActive": is_active_type(rel_type),
        }
        fields.update(extra)
        return self.store.add_relationship(PartnerEdge.model_validate(fields)).entity

    def _add_child_edge(self, relationship_id: str, child_id: str, line_style: str = "default") -> ChildEdge:
        parent = self.store.get_relationship(relationship_id)
        edge = ChildEdge(
            id=new_id(),
            parent_relationship_id=relationship_id,
            child_id=child_id,
            color=parent.color if parent is not None else "#3b82f6",
            line_style=line_style,
        )
        return self.store.add_relationship(edge).entity

    # -------------------------------------------------------------------------
    # Households and text annotations
    # -------------------------------------------------------------------------

    def add_household(self, household: Household | dict[str, Any]) -> MutationResult:
        if isinstance(household, dict):
            household = {"id": new_id(), "label": next_household_label(self.store.households), **household}
        return self._apply(lambda: self.store.add_household(household).entity)

    def update_household(self, household_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._apply(lambda: self.store.update_household(household_id, patch).entity)

    def delete_household(self, household_id: str) -> MutationResult:
        return self._apply(lambda: self.store.delete_household(household_id).entity)

    def add_text_annotation(self, annotation: TextAnnotation | dict[str, Any] | None = None, **fields: Any) -> MutationResult:
        if annotation is None:
            annotation = fields
        if isinstance(annotation, dict) and not annotation.get("id"):
            annotation = {**annotation, "id": new_id()}
        return self._apply(lambda: self.store.add_text_annotation(annotation).entity)

    def update_text_annotation(self, annotation_id: str, patch: dict[str, Any]) -> MutationResult:
        return self._apply(lambda: self.store.update_text_annotation(annotation_id, patch).entity)

    def delete_text_annotation(self, annotation_id: str) -> MutationResult:
        return self._apply(lambda: self.store.delete_text_annotation(annotation_id).entity)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def select_person(self, person_id: str | None) -> None:
        self.selection.select_person(person_id)

    def select_relationship(self, relationship_id: str | None) -> None:
        self.selection.select_relationship(relationship_id)

    def select_household(self, household_id: str | None) -> None:
        self.selection.select_household(household_id)

    def select_text_annotation(self, annotation_id: str | None) -> None:
        self.selection.select_text_annotation(annotation_id)

    def toggle_node_selection(self, person_id: str) -> None:
        if self.store.get_person(person_id) is not None:
            self.selection.toggle_node(person_id)

    def clear_node_selection(self) -> None:
        self.selection.clear_nodes()

    def clear_selection(self) -> None:
        self.selection.clear_all()

    # -------------------------------------------------------------------------
    # Pointer input
    # -------------------------------------------------------------------------

    def start_connection(
        self,
        origin_id: str,
        kind: ConnectionKind | str,
        relationship_type: RelationshipType | str = RelationshipType.MARRIAGE,
    ) -> bool:
        self.household_drawing.cancel()
        return self.connection.start(origin_id, kind, relationship_type)

    def cancel_connection(self) -> None:
        self.connection.cancel()

    def click_person(self, person_id: str, multi: bool = False) -> Any:
        """A click on a person node.

        While connecting the click targets the pending connection and the
        commit outcome is returned (None for an invalid target).
        """
        if self.connection.is_connecting:
            return self.connection.target_person(person_id)
        if self.household_drawing.is_drawing or self.store.get_person(person_id) is None:
            return None
        if multi:
            self.toggle_node_selection(person_id)
        else:
            self.selection.clear_nodes()
            self.selection.select_person(person_id)
        return None

    def click_relationship_bubble(self, relationship_id: str) -> Any:
        """A click on a relationship's midpoint bubble.

        Outside connection mode this starts drawing a child from the bubble.
        """
        if self.connection.is_connecting:
            return self.connection.target_relationship(relationship_id)
        if self.connection.start(relationship_id, ConnectionKind.CHILD):
            self.selection.select_relationship(relationship_id)
        return None

    def click_canvas(self, point: Point | tuple[float, float]) -> Any:
        """A click on empty canvas."""
        if self.connection.is_connecting:
            self.connection.cancel()
            return None
        if self.household_drawing.is_drawing:
            return self.add_household_point(point)
        self.selection.clear_all()
        return None

    def _commit_connection(self, request: ConnectionRequest) -> Any:
        if request.kind == ConnectionKind.PARTNER:
            return self.create_relationship(request.person_a, request.person_b, request.relationship_type)
        if request.parent_relationship_id is not None:
            return self.create_child_relationship(request.parent_relationship_id, request.child_id)
        return self.connect_existing_child(request.parent_id, request.child_id)

    # -------------------------------------------------------------------------
    # Household drawing
    # -------------------------------------------------------------------------

    def start_drawing_household(self) -> None:
        self.connection.cancel()
        self.household_drawing.start()

    def cancel_drawing_household(self) -> None:
        self.household_drawing.cancel()

    def add_household_point(self, point: Point | tuple[float, float]) -> Any:
        if not isinstance(point, Point):
            point = Point(x=point[0], y=point[1])
        point = Point(x=self._snap(point.x), y=self._snap(point.y))
        return self.household_drawing.add_point(point)

    def finish_household(self) -> Any:
        return self.household_drawing.close()

    def _commit_household(self, points: tuple[Point, ...]) -> MutationResult:
        result = self.add_household({"points": list(points)})
        if result.applied:
            self.selection.select_household(result.entity.id)
        return result

    # -------------------------------------------------------------------------
    # Children
    # -------------------------------------------------------------------------

    def add_child(self, parent_id: str) -> ChildRequestOutcome | None:
        """Add a new child to ``parent_id``.

        With exactly one partner relationship the child is created at once;
        otherwise the request is kept pending until ``resolve_child_request``.
        """
        return self._request_child(parent_id, None)

    def connect_existing_child(self, parent_id: str, child_id: str) -> ChildRequestOutcome | None:
        """Attach an existing person as a child of ``parent_id``."""
        if self.store.get_person(child_id) is None or parent_id == child_id:
            return None
        return self._request_child(parent_id, child_id)

    def _request_child(self, parent_id: str, child_id: str | None) -> ChildRequestOutcome | None:
        if self.store.get_person(parent_id) is None:
            return None
        decision = self.resolver.resolve(parent_id)
        if isinstance(decision, AutoResolve):
            self.pending_child = None
            result = self._apply(lambda: self._attach_child(decision.relationship_id, parent_id, child_id))
            return ChildRequestOutcome(decision, result)
        self.pending_child = PendingChildRequest(parent_id, decision, child_id)
        return ChildRequestOutcome(decision)

    def resolve_child_request(
        self,
        option: ChildConnectionOption | str,
        relationship_id: str | None = None,
        co_parent_id: str | None = None,
    ) -> MutationResult:
        """Complete the pending child request with the user's choice."""
        pending = self.pending_child
        if pending is None:
            return MutationResult.rejected("no pending child request")

        option = _member(ChildConnectionOption, option)
        if option is None:
            return MutationResult.rejected("unknown child connection option")
        if option == ChildConnectionOption.CANCEL:
            self.pending_child = None
            return MutationResult.rejected("child request cancelled")
        if option not in _allowed_options(pending.decision):
            return MutationResult.rejected(f"option {option.value} is not offered for this request")

        parent_id = pending.parent_id
        child_id = pending.child_id
        if self.store.get_person(parent_id) is None or (child_id and self.store.get_person(child_id) is None):
            self.pending_child = None
            return MutationResult.rejected("child request refers to a deleted person")

        if option == ChildConnectionOption.UNKNOWN_CO_PARENT:
            operation = partial(self._with_unknown_co_parent, parent_id, child_id)
        elif option == ChildConnectionOption.NEW_PARTNER:
            operation = partial(self._with_new_partner, parent_id, child_id)
        elif option == ChildConnectionOption.EXISTING_CO_PARENT:
            if not co_parent_id:
                return MutationResult.rejected("co_parent_id is required")
            operation = partial(self._with_existing_co_parent, parent_id, co_parent_id, child_id)
        elif option == ChildConnectionOption.SINGLE_PARENT:
            operation = partial(self._as_single_parent, parent_id, child_id)
        else:
            offered = {r.id for r in self.store.partner_relationships_of(parent_id)}
            if relationship_id not in offered:
                return MutationResult.rejected("relationship_id must be one of the offered partners")
            operation = partial(self._attach_child, relationship_id, parent_id, child_id)

        result = self._apply(operation)
        if result.applied:
            self.pending_child = None
        return result

    def add_child_to_relationship(self, relationship_id: str) -> MutationResult:
        """Create a new child under a relationship bubble."""
        rel = self.store.get_relationship(relationship_id)
        if not isinstance(rel, PartnerEdge):
            return MutationResult.rejected(f"partner relationship does not exist ({relationship_id})")
        if self.store.resolve_relationship(relationship_id) is None:
            return MutationResult.rejected(f"relationship has a missing endpoint ({relationship_id})")
        return self._apply(lambda: self._attach_child(relationship_id, rel.person_a, None))

    def _attach_child(self, relationship_id: str, parent_id: str, child_id: str | None, **child_fields: Any) -> Person:
        """Hang a child (new or existing) from ``relationship_id``."""
        if child_id is None:
            x, y = self._child_position(relationship_id, parent_id)
            child = self.store.add_person(Person(id=new_id(), name="New Child", x=x, y=y, **child_fields)).entity
            child_id = child.id
        line_style = "dashed" if child_fields.get("special_status") == "adopted" else "default"
        self._add_child_edge(relationship_id, child_id, line_style=line_style)
        self.selection.select_person(child_id)
        return self.store.get_person(child_id)

    def _child_position(self, relationship_id: str, parent_id: str) -> tuple[float, float]:
        rel = self.store.get_relationship(relationship_id)
        parents = [self.store.get_person(pid) for pid in rel.endpoints] if isinstance(rel, PartnerEdge) else []
        parents = [p for p in parents if p is not None] or [self.store.get_person(parent_id)]
        parents = [p for p in parents if p is not None]
        if not parents:
            raise IntegrityViolation("child has no resolvable parent", relationship_id)
        x = sum(p.x for p in parents) / len(parents)
        y = max(p.y for p in parents) + CHILD_OFFSET_Y
        x += SIBLING_SPACING * len(self.store.children_of(relationship_id))
        return self._snap(x), self._snap(y)

    def _with_unknown_co_parent(self, parent_id: str, child_id: str | None) -> Person:
        parent = self.store.get_person(parent_id)
        unknown = self.store.add_person(Person(
            id=new_id(),
            name="Unknown",
            gender="unknown",
            x=self._snap(parent.x + CO_PARENT_OFFSET_X),
            y=self._snap(parent.y),
        )).entity
        rel = self._add_partner_edge(
            parent_id,
            unknown.id,
            RelationshipType.PARTNER,
            color=UNKNOWN_CO_PARENT_COLOR,
            lineStyle="dashed",
            isActive=False,
            notes="Unknown co-parent",
        )
        return self._attach_child(rel.id, parent_id, child_id)

    def _with_new_partner(self, parent_id: str, child_id: str | None) -> Person:
        parent = self.store.get_person(parent_id)
        partner = self.store.add_person(Person(
            id=new_id(),
            name=f"Person {len(self.store.people) + 1}",
            gender=_COMPLEMENTARY_GENDER.get(parent.gender, "unknown"),
            x=self._snap(parent.x + CO_PARENT_OFFSET_X),
            y=self._snap(parent.y),
        )).entity
        rel = self._add_partner_edge(parent_id, partner.id, RelationshipType.MARRIAGE)
        return self._attach_child(rel.id, parent_id, child_id)

    def _with_existing_co_parent(self, parent_id: str, co_parent_id: str, child_id: str | None) -> Person:
        rel = next(
            (r for r in self.store.partner_relationships_of(parent_id) if r.other(parent_id) == co_parent_id),
            None,
        )
        if rel is None:
            rel = self._add_partner_edge(parent_id, co_parent_id, RelationshipType.PARTNER)
        return self._attach_child(rel.id, parent_id, child_id)

    def _as_single_parent(self, parent_id: str, child_id: str | None) -> Person:
        rel = self._add_partner_edge(
            parent_id,
            parent_id,
            RelationshipType.ADOPTION,
            color=ADOPTION_COLOR,
            lineStyle="dotted",
            notes="Single parent adoption",
            abbr="A",
        )
        if child_id is None:
            return self._attach_child(rel.id, parent_id, None, special_status="adopted")
        return self._attach_child(rel.id, parent_id, child_id)

    # -------------------------------------------------------------------------
    # Clipboard and ordering
    # -------------------------------------------------------------------------

    def copy_to_clipboard(self, kind: EntityKind | str, entity_id: str) -> bool:
        kind = _member(EntityKind, kind)
        if kind is None or kind == EntityKind.RELATIONSHIP:
            return False
        entity = self.store.get(kind, entity_id)
        if entity is None:
            return False
        self._clipboard = (kind, entity)
        return True

    @property
    def clipboard(self) -> tuple[EntityKind, Any] | None:
        return self._clipboard

    def paste_from_clipboard(self, dx: float = 50, dy: float = 50) -> MutationResult:
        """Add a copy of the clipboard entity, offset by ``(dx, dy)``."""
        if self._clipboard is None:
            return MutationResult.rejected("clipboard is empty")
        kind, entity = self._clipboard
        data = entity.to_dict()
        data["id"] = new_id()

        if kind == EntityKind.PERSON:
            data.update(name=f"{entity.name} (Copy)", x=entity.x + dx, y=entity.y + dy)
            result = self.add_person(data)
        elif kind == EntityKind.TEXT_ANNOTATION:
            data.update(x=entity.x + dx, y=entity.y + dy)
            result = self.add_text_annotation(data)
        else:
            data["points"] = [{"x": p.x + dx, "y": p.y + dy} for p in entity.points]
            data["label"] = f"{entity.display_name} (Copy)"
            data["members"] = []
            result = self.add_household(data)

        if result.applied:
            self.selection.select(kind, result.entity.id)
        return result

    def bring_to_front(self, kind: EntityKind | str, entity_id: str) -> MutationResult:
        top = max([*self._z_indexes(), 0])
        return self._set_z_index(kind, entity_id, top + 1)

    def send_to_back(self, kind: EntityKind | str, entity_id: str) -> MutationResult:
        bottom = min([*self._z_indexes(), 0])
        return self._set_z_index(kind, entity_id, bottom - 1)

    def _z_indexes(self) -> list[int]:
        entities = (*self.store.people, *self.store.households, *self.store.text_annotations)
        return [e.z_index or 0 for e in entities]

    def _set_z_index(self, kind: EntityKind | str, entity_id: str, z_index: int) -> MutationResult:
        kind = _member(EntityKind, kind)
        if kind is None or kind == EntityKind.RELATIONSHIP:
            return MutationResult.rejected("only people, households and text annotations have a z-order")
        return self._apply(lambda: self.store.update(kind, entity_id, {"zIndex": z_index}).entity)

    # -------------------------------------------------------------------------
    # Bulk operations
    # -------------------------------------------------------------------------

    def delete_selected_nodes(self) -> MutationResult:
        selected = self.selection.selected_nodes
        if not selected:
            return MutationResult.rejected("no nodes selected")

        def delete_all() -> list[str]:
            for person_id in selected:
                self.store.delete_person(person_id)
            return selected

        result = self._apply(delete_all)
        if result.applied:
            self.selection.clear_nodes()
            logger.info("bulk_delete", count=len(selected))
        return result

    def delete_selection(self) -> MutationResult:
        """Delete whatever is singly selected."""
        current = self.selection.current
        if current is None:
            return MutationResult.rejected("nothing selected")
        delete = {
            EntityKind.PERSON: self.delete_person,
            EntityKind.RELATIONSHIP: self.delete_relationship,
            EntityKind.HOUSEHOLD: self.delete_household,
            EntityKind.TEXT_ANNOTATION: self.delete_text_annotation,
        }[current.kind]
        return delete(current.entity_id)

    def bulk_add_tag(self, tag: str) -> MutationResult:
        return self._bulk_tags(lambda tags: tags if tag in tags else [*tags, tag])

    def bulk_remove_tag(self, tag: str) -> MutationResult:
        return self._bulk_tags(lambda tags: [t for t in tags if t != tag])

    def _bulk_tags(self, change: Callable[[list[str]], list[str]]) -> MutationResult:
        selected = self.selection.selected_nodes
        if not selected:
            return MutationResult.rejected("no nodes selected")

        def apply() -> list[str]:
            for person_id in selected:
                person = self.store.get_person(person_id)
                tags = change(list(person.tags))
                if tags != person.tags:
                    self.store.update_person(person_id, {"tags": tags})
            return selected

        return self._apply(apply)

    # -------------------------------------------------------------------------
    # History and documents
    # -------------------------------------------------------------------------

    def undo(self) -> bool:
        self._cancel_interactions()
        if not self.history.undo(self.store.snapshot(), self.store.load):
            return False
        self._publish()
        return True

    def redo(self) -> bool:
        self._cancel_interactions()
        if not self.history.redo(self.store.snapshot(), self.store.load):
            return False
        self._publish()
        return True

    def load_from_data(self, data: GenogramDocument | dict[str, Any]) -> GenogramDocument:
        """Replace the whole diagram. Raises DocumentError if ``data`` is malformed."""
        document = self.store.load(data)
        self._start_session()
        return document

    def reset(self) -> None:
        """Start a new empty diagram."""
        self.store.reset()
        self._start_session()

    def _start_session(self) -> None:
        self._cancel_interactions()
        self.selection.clear_all()
        self.history.clear()
        self.history.mark_clean()
        self.viewport = Viewport()
        self._publish()

    def _cancel_interactions(self) -> None:
        self.connection.cancel()
        self.household_drawing.cancel()
        self.pending_child = None

    # -------------------------------------------------------------------------
    # Viewport
    # -------------------------------------------------------------------------

    def set_zoom(self, zoom: float) -> float:
        self.viewport.zoom = min(self.config.max_zoom, max(self.config.min_zoom, zoom))
        return self.viewport.zoom

    def set_pan(self, x: float, y: float) -> None:
        self.viewport.pan_x = x
        self.viewport.pan_y = y

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    def autosaver(self) -> Autosaver:
        return Autosaver(
            snapshot=self.store.snapshot,
            is_dirty=lambda: self.is_dirty,
            mark_clean=self.mark_clean,
            path=self.config.autosave_path,
            interval=self.config.autosave_interval,
        )


def _allowed_options(decision: ChildDecision) -> set[ChildConnectionOption]:
    if isinstance(decision, ChooseParentage):
        return set(decision.options)
    if isinstance(decision, ChoosePartner):
        return {ChildConnectionOption.SELECT_PARTNER, ChildConnectionOption.UNKNOWN_CO_PARENT}
    return set()


def _member(enum_type: type[E], value: Any) -> E | None:
    """``enum_type(value)``, or None for a value outside the enum."""
    try:
        return enum_type(value)
    except ValueError:
        return None
