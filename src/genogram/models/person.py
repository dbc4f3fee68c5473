"""Person and non-person node models."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from .base import GenogramModel


class NodeType(str, Enum):
    """Kinds of node that can sit on the canvas."""

    PERSON = "person"
    ORGANIZATION = "organization"
    SERVICE_RESOURCE = "service_resource"
    PLACE_LOCATION = "place_location"
    CUSTOM = "custom"


class Person(GenogramModel):
    """A node on the genogram canvas.

    Most nodes are people; organizations, services, places and custom nodes
    share position, name and notes and keep their specific fields in
    ``type_data``.
    """

    id: str
    name: str = ""
    type: NodeType = NodeType.PERSON

    # Demographics
    gender: str = "unknown"
    age: str | int | None = ""
    birth_date: str | None = ""
    death_date: str | None = ""
    is_deceased: bool = False
    deceased_symbol: str | None = None
    deceased_gentle_treatment: str = "none"
    special_status: str | None = None

    # Canvas
    x: float = 0.0
    y: float = 0.0
    z_index: int | None = None

    # Notes and categorisation
    notes: str = ""
    notes_rich_text: str = ""
    tags: list[str] = Field(default_factory=list)
    network_member: bool = False

    # Type-specific payload for non-person nodes
    type_data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("notes", "notes_rich_text", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("type_data", mode="before")
    @classmethod
    def _mapping_or_empty(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("tags", mode="before")
    @classmethod
    def _list_or_empty(cls, value: Any) -> list[str]:
        return value if isinstance(value, list) else []

    @field_validator("deceased_gentle_treatment", mode="before")
    @classmethod
    def _treatment_default(cls, value: Any) -> str:
        return value or "none"

    @model_validator(mode="before")
    @classmethod
    def _person_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        node_type = data.get("type") or NodeType.PERSON
        symbol = data.get("deceasedSymbol", data.get("deceased_symbol"))
        if node_type in (NodeType.PERSON, NodeType.PERSON.value) and symbol is None:
            data = {**data, "deceasedSymbol": "halo"}
        return data

    @property
    def is_person(self) -> bool:
        return self.type == NodeType.PERSON

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed"

    def with_patch(self, patch: dict[str, Any]) -> Person:
        """Merge ``patch`` over this node.

        ``typeData`` is merged key-wise rather than replaced; an explicit
        ``None`` clears it.
        """
        patch = dict(patch)
        keys = [key for key in ("type_data", "typeData") if key in patch]
        if keys:
            update = [patch.pop(key) for key in keys][-1]
            if update is None:
                patch["typeData"] = {}
            elif isinstance(update, dict):
                patch["typeData"] = {**self.type_data, **update}
            else:
                patch["typeData"] = update
        return self.merged(patch)
