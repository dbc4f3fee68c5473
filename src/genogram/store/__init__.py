"""Canonical entity graph."""

from .graph_store import (
    DocumentError,
    EntityKind,
    GraphEvent,
    GraphEventType,
    GraphStore,
    IntegrityViolation,
    MutationResult,
    ResolvedRelationship,
)

__all__ = [
    "DocumentError",
    "EntityKind",
    "GraphEvent",
    "GraphEventType",
    "GraphStore",
    "IntegrityViolation",
    "MutationResult",
    "ResolvedRelationship",
]
