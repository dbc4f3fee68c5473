"""Tests for GraphStore mutations, cascades and queries."""

import pytest

from genogram.models import (
    ChildEdge,
    GenogramDocument,
    Household,
    PartnerEdge,
    Person,
    RelationshipType,
    TextAnnotation,
)
from genogram.store import DocumentError, EntityKind, GraphEventType, GraphStore

SQUARE = [{"x": 0, "y": 0}, {"x": 400, "y": 0}, {"x": 400, "y": 400}, {"x": 0, "y": 400}]


def _references(store: GraphStore, person_id: str) -> list:
    found = []
    for rel in store.relationships:
        data = rel.to_dict()
        if person_id in (data["from"], data["to"]):
            found.append(rel.id)
    for household in store.households:
        if person_id in household.members:
            found.append(household.id)
    return found


class TestPeople:
    """Tests for person mutations."""

    def test_add_and_get(self, store):
        result = store.add_person({"id": "p1", "name": "Ada"})
        assert result.applied
        assert store.get_person("p1").name == "Ada"

    def test_duplicate_id_rejected(self, store):
        store.add_person(Person(id="p1"))
        result = store.add_person(Person(id="p1", name="Other"))
        assert not result.applied
        assert "already in use" in result.diagnostic
        assert store.get_person("p1").name == ""

    def test_update_patches(self, store):
        store.add_person(Person(id="p1", name="Ada"))
        result = store.update_person("p1", {"name": "Ada L.", "x": 10})
        assert result.applied
        assert store.get_person("p1").name == "Ada L."
        assert store.get_person("p1").x == 10

    def test_update_cannot_change_id(self, store):
        store.add_person(Person(id="p1"))
        result = store.update_person("p1", {"id": "p2"})
        assert not result.applied
        assert store.get_person("p1") is not None
        assert store.get_person("p2") is None

    def test_update_missing_person_rejected(self, store):
        result = store.update_person("ghost", {"name": "x"})
        assert not result.applied
        assert "does not exist" in result.diagnostic

    def test_invalid_patch_rejected(self, store):
        store.add_person(Person(id="p1"))
        result = store.update_person("p1", {"x": "not a number"})
        assert not result.applied
        assert store.get_person("p1").x == 0

    def test_delete_cascades(self, family):
        """Deleting a parent removes their partner edge and the child edge under it."""
        result = family.delete_person("bo")
        assert result.applied
        assert set(result.removed) == {"bo", "m1", "c1"}
        assert family.get_relationship("m1") is None
        assert family.get_relationship("c1") is None
        assert family.get_person("cy") is not None

    def test_delete_child_removes_child_edge(self, family):
        family.delete_person("cy")
        assert family.get_relationship("c1") is None
        assert family.get_relationship("m1") is not None

    @pytest.mark.parametrize("person_id", ["ada", "bo", "cy"])
    def test_no_references_after_delete(self, family, person_id):
        family.add_household({"id": "h1", "points": SQUARE})
        family.delete_person(person_id)
        assert _references(family, person_id) == []
        assert family.dangling_relationships() == []

    def test_delete_removes_household_membership(self, family):
        family.add_household({"id": "h1", "points": SQUARE})
        assert "ada" in family.get_household("h1").members
        family.delete_person("ada")
        assert "ada" not in family.get_household("h1").members


class TestRelationships:
    """Tests for relationship integrity rules."""

    def test_missing_endpoint_leaves_graph_unchanged(self, store):
        store.add_person(Person(id="a"))
        before = store.snapshot()
        result = store.add_relationship(PartnerEdge(id="r1", person_a="a", person_b="ghost"))
        assert not result.applied
        assert store.snapshot() == before

    def test_child_edge_needs_live_partner_relationship(self, store):
        store.add_person(Person(id="kid"))
        before = store.snapshot()
        result = store.add_relationship(ChildEdge(id="c1", parent_relationship_id="nope", child_id="kid"))
        assert not result.applied
        assert store.snapshot() == before

    def test_child_edge_cannot_hang_from_child_edge(self, family):
        family.add_person(Person(id="dee"))
        result = family.add_relationship(ChildEdge(id="c2", parent_relationship_id="c1", child_id="dee"))
        assert not result.applied

    def test_child_edge_cannot_hang_from_conflict_line(self, family):
        family.add_relationship(PartnerEdge(id="x1", type=RelationshipType.CONFLICT, person_a="ada", person_b="cy"))
        family.add_person(Person(id="dee"))
        result = family.add_relationship(ChildEdge(id="c2", parent_relationship_id="x1", child_id="dee"))
        assert not result.applied
        assert "cannot have children" in result.diagnostic

    def test_self_edge_only_for_adoption(self, store):
        store.add_person(Person(id="a"))
        assert not store.add_relationship(PartnerEdge(id="r1", person_a="a", person_b="a")).applied
        adoption = PartnerEdge(id="r2", type=RelationshipType.ADOPTION, person_a="a", person_b="a")
        assert store.add_relationship(adoption).applied

    def test_duplicate_pair_rejected(self, family):
        result = family.add_relationship(PartnerEdge(id="m2", person_a="bo", person_b="ada"))
        assert not result.applied
        assert "duplicate" in result.diagnostic

    def test_same_pair_different_type_allowed(self, family):
        result = family.add_relationship(
            PartnerEdge(id="x1", type=RelationshipType.CONFLICT, person_a="bo", person_b="ada")
        )
        assert result.applied

    def test_parent_cannot_be_own_child(self, family):
        result = family.add_relationship(ChildEdge(id="c2", parent_relationship_id="m1", child_id="ada"))
        assert not result.applied

    def test_child_attached_once(self, family):
        result = family.add_relationship(ChildEdge(id="c2", parent_relationship_id="m1", child_id="cy"))
        assert not result.applied

    def test_delete_relationship_cascades_to_children(self, family):
        result = family.delete_relationship("m1")
        assert set(result.removed) == {"m1", "c1"}

    def test_retype_to_non_partner_with_children_rejected(self, family):
        result = family.update_relationship("m1", {"type": "conflict"})
        assert not result.applied
        assert family.get_relationship("m1").type == RelationshipType.MARRIAGE

    def test_retype_between_partner_types_keeps_children(self, family):
        result = family.update_relationship("m1", {"type": "divorce"})
        assert result.applied
        assert family.get_relationship("c1") is not None

    def test_cannot_turn_partner_edge_into_child_edge(self, family):
        assert not family.update_relationship("m1", {"type": "child"}).applied


class TestQueries:
    """Tests for read-side queries."""

    def test_partner_relationships_of(self, family):
        assert [r.id for r in family.partner_relationships_of("ada")] == ["m1"]
        assert family.partner_relationships_of("cy") == []

    def test_resolve_child_edge(self, family):
        resolved = family.resolve_relationship("c1")
        assert resolved.is_child_edge
        assert resolved.child.id == "cy"
        assert {p.id for p in resolved.parents} == {"ada", "bo"}

    def test_resolve_unknown_is_none(self, family):
        assert family.resolve_relationship("missing") is None

    def test_dangling_edges_filtered(self, store):
        """Dangling edges loaded from a document are kept but not renderable."""
        store.load({
            "people": [{"id": "a"}],
            "relationships": [
                {"id": "r1", "type": "marriage", "from": "a", "to": "gone"},
                {"id": "c1", "type": "child", "from": "r1", "to": "a"},
            ],
        })
        assert len(store.relationships) == 2
        assert store.renderable_relationships() == []
        assert store.resolve_relationship("r1") is None
        assert {r.id for r in store.dangling_relationships()} == {"r1", "c1"}

    def test_parent_relationships_of(self, family):
        assert [r.id for r in family.parent_relationships_of("cy")] == ["m1"]


class TestHouseholds:
    """Tests for household membership."""

    def test_membership_computed_on_add(self, family):
        family.add_person(Person(id="far", x=900, y=900))
        result = family.add_household({"id": "h1", "points": SQUARE})
        assert set(result.entity.members) == {"ada", "bo", "cy"}

    def test_needs_three_points(self, store):
        result = store.add_household({"id": "h1", "points": SQUARE[:2]})
        assert not result.applied

    def test_membership_follows_moves(self, family):
        family.add_household({"id": "h1", "points": SQUARE})
        family.update_person("ada", {"x": 1000, "y": 1000})
        assert "ada" not in family.get_household("h1").members
        family.update_person("ada", {"x": 50, "y": 50})
        assert "ada" in family.get_household("h1").members

    def test_buffer_counts_boundary(self, store):
        store.add_household({"id": "h1", "points": SQUARE})
        store.add_person(Person(id="edge", x=405, y=200))
        assert "edge" in store.get_household("h1").members

    def test_new_points_recompute_members(self, family):
        family.add_household({"id": "h1", "points": SQUARE})
        small = [{"x": 50, "y": 50}, {"x": 150, "y": 50}, {"x": 150, "y": 150}, {"x": 50, "y": 150}]
        family.update_household("h1", {"points": small})
        assert family.get_household("h1").members == ["ada"]

    def test_explicit_members_must_exist(self, family):
        family.add_household({"id": "h1", "points": SQUARE})
        assert not family.update_household("h1", {"members": ["ghost"]}).applied


class TestTextAnnotations:
    def test_crud(self, store):
        assert store.add_text_annotation(TextAnnotation(id="t1", html="hi")).applied
        assert store.update_text_annotation("t1", {"fontSize": 20}).entity.font_size == 20
        assert store.delete_text_annotation("t1").applied
        assert store.get_text_annotation("t1") is None


class TestEventsAndTransactions:
    """Tests for event publication and all-or-nothing mutations."""

    def test_events_published_after_commit(self, store):
        seen = []
        store.register_event_handler(seen.append)
        store.add_person(Person(id="p1"))
        assert [(e.event_type, e.kind, e.entity_id) for e in seen] == [
            (GraphEventType.ADDED, EntityKind.PERSON, "p1"),
        ]

    def test_rejected_mutation_emits_nothing(self, store):
        seen = []
        store.register_event_handler(seen.append)
        store.update_person("ghost", {"name": "x"})
        assert seen == []

    def test_cascade_events_name_their_cause(self, family):
        seen = []
        family.register_event_handler(seen.append)
        family.delete_person("bo")
        cascaded = {e.entity_id: e.cascade_of for e in seen if e.kind == EntityKind.RELATIONSHIP}
        assert cascaded == {"m1": "bo", "c1": "bo"}

    def test_handler_errors_do_not_break_mutation(self, store):
        def broken(event):
            raise RuntimeError("boom")

        store.register_event_handler(broken)
        assert store.add_person(Person(id="p1")).applied
        assert store.get_person("p1") is not None

    def test_atomic_rolls_back_everything(self, store):
        def operation():
            store.add_person(Person(id="a"))
            store.add_person(Person(id="b"))
            store.add_relationship(PartnerEdge(id="r1", person_a="a", person_b="ghost"))

        result = store.atomic(operation)
        assert not result.applied
        assert store.is_empty()

    def test_atomic_publishes_once_committed(self, store):
        seen = []
        store.register_event_handler(seen.append)

        def operation():
            store.add_person(Person(id="a"))
            assert seen == []
            store.add_person(Person(id="b"))

        assert store.atomic(operation).applied
        assert [e.entity_id for e in seen] == ["a", "b"]


class TestDocuments:
    """Tests for load / reset / snapshot."""

    def test_round_trip(self, family):
        family.add_household({"id": "h1", "points": SQUARE})
        family.add_text_annotation({"id": "t1", "html": "note"})
        family.update_metadata({"caseId": "c-1"})

        snapshot = family.snapshot()
        other = GraphStore()
        other.load(snapshot.to_dict())
        assert other.snapshot() == snapshot
        assert other.to_dict() == family.to_dict()

    def test_load_does_not_recompute_membership(self, store):
        store.load({
            "people": [{"id": "a", "x": 5000, "y": 5000}],
            "relationships": [],
            "households": [{"id": "h1", "points": SQUARE, "members": ["a"]}],
        })
        assert store.get_household("h1").members == ["a"]

    def test_malformed_document_keeps_graph(self, family):
        before = family.snapshot()
        with pytest.raises(DocumentError):
            family.load({"people": [{"name": "no id"}], "relationships": []})
        assert family.snapshot() == before

    def test_non_object_document(self, store):
        with pytest.raises(DocumentError):
            store.load(["people"])

    def test_duplicate_ids_rejected(self, store):
        with pytest.raises(DocumentError):
            store.load({"people": [{"id": "a"}, {"id": "a"}], "relationships": []})

    def test_reset(self, family):
        family.reset()
        assert family.is_empty()
        assert family.snapshot() == GenogramDocument()

    def test_household_model_instance(self, store):
        household = Household(id="h1", points=SQUARE)
        assert store.add_household(household).applied
