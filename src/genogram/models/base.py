"""Shared pydantic base for persisted genogram entities."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from uuid_utils import uuid7 as _uuid7


def new_id(suffix: str = "") -> str:
    """Generate a collision-resistant entity id.

    UUID7 is a millisecond timestamp followed by random bits, so ids sort by
    creation time and two editors cannot mint the same one.
    """
    return f"{_uuid7()}{suffix}"


class GenogramModel(BaseModel):
    """Immutable entity; persisted with camelCase keys.

    Unknown keys are kept so documents written by newer editors survive a
    load/save cycle.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted (camelCase, JSON-safe) shape."""
        return self.model_dump(by_alias=True, mode="json")

    def merged(self, patch: dict[str, Any]):
        """Return a validated copy with ``patch`` applied over this entity.

        Patch keys may be Python field names or persisted aliases.
        """
        data = self.to_dict()
        data.update(_aliased(type(self), patch))
        return type(self).model_validate(data)


def _aliased(model: type[BaseModel], patch: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in patch.items():
        info = model.model_fields.get(key)
        if info is not None:
            alias = info.serialization_alias or info.alias or key
            out[alias] = value
        else:
            out[key] = value
    return out
