"""Pydantic data models."""

from .base import GenogramModel, new_id
from .document import GenogramDocument
from .household import Household, Point, TextAnnotation
from .person import NodeType, Person
from .relationship import (
    ABBREVIATIONS,
    PALETTE,
    PARTNER_TYPES,
    ChildEdge,
    ConnectionStatus,
    PartnerEdge,
    Relationship,
    RelationshipKind,
    RelationshipType,
    is_active_type,
    kind_of,
    relationship_from_dict,
)

__all__ = [
    "GenogramModel",
    "new_id",
    "GenogramDocument",
    "Household",
    "Point",
    "TextAnnotation",
    "NodeType",
    "Person",
    "ABBREVIATIONS",
    "PALETTE",
    "PARTNER_TYPES",
    "ChildEdge",
    "ConnectionStatus",
    "PartnerEdge",
    "Relationship",
    "RelationshipKind",
    "RelationshipType",
    "is_active_type",
    "kind_of",
    "relationship_from_dict",
]
