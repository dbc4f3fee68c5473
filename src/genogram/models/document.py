"""Persisted genogram document."""
from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from .base import GenogramModel
from .household import Household, TextAnnotation
from .person import Person
from .relationship import ChildEdge, PartnerEdge, relationship_from_dict


class GenogramDocument(GenogramModel):
    """The whole diagram as it is saved to disk or sent to a host page.

    Serializes to ``{"people", "relationships", "households",
    "textAnnotations", "metadata"}``. Older files that call text annotations
    ``textBoxes`` are accepted on read.
    """

    people: list[Person] = Field(default_factory=list)
    relationships: list[PartnerEdge | ChildEdge] = Field(default_factory=list)
    households: list[Household] = Field(default_factory=list)
    text_annotations: list[TextAnnotation] = Field(
        default_factory=list,
        validation_alias=AliasChoices("textAnnotations", "textBoxes", "text_annotations"),
        serialization_alias="textAnnotations",
    )
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("relationships", mode="before")
    @classmethod
    def _split_edges(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [relationship_from_dict(item) if isinstance(item, dict) else item for item in value]

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_mapping(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenogramDocument:
        return cls.model_validate(data)

    def entity_counts(self) -> dict[str, int]:
        return {
            "people": len(self.people),
            "relationships": len(self.relationships),
            "households": len(self.households),
            "textAnnotations": len(self.text_annotations),
        }
