"""Relationship models.

Relationships come in two shapes that share presentation metadata:

- ``PartnerEdge`` joins two people (marriage, sibling bar, conflict, ...).
- ``ChildEdge`` hangs a child person off an existing partner relationship,
  so a child drawn under two parents has exactly one edge.

Both persist as ``{"id", "type", "from", "to", ...}``; the ``type`` field
decides which shape a stored record is read into.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import Field, field_validator, model_validator

from .base import GenogramModel


class RelationshipType(str, Enum):
    """Relationship vocabulary shown in the editor."""

    # Romantic
    MARRIAGE = "marriage"
    ENGAGEMENT = "engagement"
    COHABITATION = "cohabitation"
    PARTNER = "partner"
    DATING = "dating"
    LOVE_AFFAIR = "love-affair"
    SECRET_AFFAIR = "secret-affair"
    SINGLE_ENCOUNTER = "single-encounter"

    # Ended
    SEPARATION = "separation"
    DIVORCE = "divorce"
    NULLITY = "nullity"
    WIDOWED = "widowed"

    # Family
    SIBLING = "sibling"
    ADOPTION = "adoption"
    STEP_RELATIONSHIP = "step-relationship"
    CHILD = "child"

    # Emotional
    CLOSE = "close"
    DISTANT = "distant"
    CONFLICT = "conflict"
    CUTOFF = "cutoff"
    FUSED = "fused"
    INDIFFERENT = "indifferent"
    HOSTILE = "hostile"
    HATE = "hate"
    BEST_FRIENDS = "best-friends"
    LOVE = "love"

    # Complex dynamics
    TOXIC = "toxic"
    ON_OFF = "on-off"
    COMPLICATED = "complicated"
    DEPENDENCY = "dependency"
    CODEPENDENT = "codependent"
    MANIPULATIVE = "manipulative"
    SUPPORTIVE = "supportive"
    COMPETITIVE = "competitive"

    # Social services
    ABUSIVE = "abusive"
    PROTECTIVE = "protective"
    CAREGIVER = "caregiver"
    FINANCIAL_DEPENDENCY = "financial-dependency"
    SUPERVISED_CONTACT = "supervised-contact"


class RelationshipKind(str, Enum):
    """Structural role of a relationship in the graph."""

    PARTNER = "partner"  # may parent children
    PARENT_CHILD = "parent_child"
    SIBLING = "sibling"
    OTHER = "other"  # supportive / conflict / emotional lines


# Relationship types that can be the parents of a child edge
PARTNER_TYPES = frozenset({
    RelationshipType.MARRIAGE,
    RelationshipType.PARTNER,
    RelationshipType.COHABITATION,
    RelationshipType.ENGAGEMENT,
    RelationshipType.DATING,
    RelationshipType.LOVE_AFFAIR,
    RelationshipType.SECRET_AFFAIR,
    RelationshipType.SINGLE_ENCOUNTER,
    RelationshipType.DIVORCE,
    RelationshipType.SEPARATION,
    RelationshipType.NULLITY,
    RelationshipType.WIDOWED,
    RelationshipType.COMPLICATED,
    RelationshipType.ON_OFF,
    RelationshipType.TOXIC,
    RelationshipType.DEPENDENCY,
    RelationshipType.CODEPENDENT,
    RelationshipType.ADOPTION,
    RelationshipType.STEP_RELATIONSHIP,
    RelationshipType.CLOSE,
    RelationshipType.LOVE,
    RelationshipType.BEST_FRIENDS,
    RelationshipType.CAREGIVER,
    RelationshipType.SUPPORTIVE,
})

INACTIVE_TYPES = frozenset({
    RelationshipType.DIVORCE,
    RelationshipType.SEPARATION,
    RelationshipType.NULLITY,
})

ABBREVIATIONS: dict[RelationshipType, str] = {
    RelationshipType.MARRIAGE: "M",
    RelationshipType.ENGAGEMENT: "E",
    RelationshipType.COHABITATION: "C",
    RelationshipType.PARTNER: "P",
    RelationshipType.DATING: "D",
    RelationshipType.SEPARATION: "S",
    RelationshipType.DIVORCE: "D",
    RelationshipType.NULLITY: "N",
    RelationshipType.WIDOWED: "W",
    RelationshipType.SIBLING: "Sib",
    RelationshipType.ADOPTION: "A",
    RelationshipType.STEP_RELATIONSHIP: "Step",
    RelationshipType.CHILD: "Ch",
    RelationshipType.CONFLICT: "Conf",
    RelationshipType.CUTOFF: "CO",
    RelationshipType.SUPPORTIVE: "Supp",
    RelationshipType.CAREGIVER: "Care",
}

# New person-person lines cycle through this palette
PALETTE = ("#ec4899", "#3b82f6", "#10b981", "#f59e0b", "#8b5cf6")


def kind_of(rel_type: RelationshipType | str) -> RelationshipKind:
    rel_type = RelationshipType(rel_type)
    if rel_type == RelationshipType.CHILD:
        return RelationshipKind.PARENT_CHILD
    if rel_type in PARTNER_TYPES:
        return RelationshipKind.PARTNER
    if rel_type == RelationshipType.SIBLING:
        return RelationshipKind.SIBLING
    return RelationshipKind.OTHER


def is_active_type(rel_type: RelationshipType | str) -> bool:
    return RelationshipType(rel_type) not in INACTIVE_TYPES


class ConnectionStatus(str, Enum):
    """Whether a connection is established or a family-finding lead."""

    CONFIRMED = "confirmed"
    POTENTIAL = "potential"


class _Edge(GenogramModel):
    id: str
    type: RelationshipType

    # Presentation metadata
    color: str = "#3b82f6"
    line_style: str = "default"
    bubble_position: float = Field(default=0.5, ge=0.0, le=1.0)
    conflict_flag: bool = False
    abbr: str = ""

    is_active: bool = True
    start_date: str | None = ""
    end_date: str | None = ""
    notes: str = ""

    # Family finding
    connection_status: ConnectionStatus = ConnectionStatus.CONFIRMED
    discovery_source: str | None = None
    discovery_date: str | None = None
    discovery_notes: str = ""

    @model_validator(mode="before")
    @classmethod
    def _type_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "type" not in data:
            return data
        try:
            rel_type = RelationshipType(data["type"])
        except ValueError:
            return data
        defaults: dict[str, Any] = {}
        if "isActive" not in data and "is_active" not in data:
            defaults["isActive"] = is_active_type(rel_type)
        if "abbr" not in data:
            defaults["abbr"] = ABBREVIATIONS.get(rel_type, "")
        return {**data, **defaults} if defaults else data

    @property
    def kind(self) -> RelationshipKind:
        return kind_of(self.type)


class PartnerEdge(_Edge):
    """A line between two people.

    ``person_a == person_b`` is only meaningful for single-parent adoption,
    which is the parent relationship of a child with one parent.
    """

    type: RelationshipType = RelationshipType.MARRIAGE
    person_a: str = Field(alias="from")
    person_b: str = Field(alias="to")

    @field_validator("type")
    @classmethod
    def _not_child(cls, value: RelationshipType) -> RelationshipType:
        if value == RelationshipType.CHILD:
            raise ValueError("child relationships must be ChildEdge")
        return value

    @property
    def endpoints(self) -> tuple[str, str]:
        return (self.person_a, self.person_b)

    @property
    def is_self_edge(self) -> bool:
        return self.person_a == self.person_b

    @property
    def can_parent(self) -> bool:
        return self.kind == RelationshipKind.PARTNER

    def involves(self, person_id: str) -> bool:
        return person_id in (self.person_a, self.person_b)

    def other(self, person_id: str) -> str:
        """The endpoint that is not ``person_id``."""
        return self.person_b if self.person_a == person_id else self.person_a

    def same_pair(self, other: PartnerEdge) -> bool:
        return {self.person_a, self.person_b} == {other.person_a, other.person_b}


class ChildEdge(_Edge):
    """Parent-child line from a partner relationship to a child."""

    type: RelationshipType = RelationshipType.CHILD
    parent_relationship_id: str = Field(alias="from")
    child_id: str = Field(alias="to")

    @field_validator("type")
    @classmethod
    def _only_child(cls, value: RelationshipType) -> RelationshipType:
        if value != RelationshipType.CHILD:
            raise ValueError("ChildEdge type must be 'child'")
        return value


Relationship = Union[PartnerEdge, ChildEdge]


def relationship_from_dict(data: dict[str, Any] | Relationship) -> Relationship:
    """Read a stored relationship record into the matching edge shape."""
    if isinstance(data, (PartnerEdge, ChildEdge)):
        return data
    if data.get("type") == RelationshipType.CHILD:
        return ChildEdge.model_validate(data)
    return PartnerEdge.model_validate(data)
