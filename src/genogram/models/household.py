"""Household boundary and text annotation models."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .base import GenogramModel


class Point(BaseModel):
    """A canvas coordinate."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


class Household(GenogramModel):
    """A polygon grouping the people drawn inside it."""

    id: str
    points: list[Point] = Field(default_factory=list)
    members: list[str] = Field(default_factory=list)
    label: str = ""
    name: str = ""
    color: str = "#6366f1"
    z_index: int | None = None

    @property
    def is_closed_shape(self) -> bool:
        return len(self.points) >= 3

    @property
    def display_name(self) -> str:
        return self.label or self.name


class TextAnnotation(GenogramModel):
    """Free-text box placed on the canvas."""

    id: str
    html: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 200.0
    height: float = 100.0
    font_size: int = 14
    color: str | None = None
    background_color: str | None = None
    border_color: str | None = None
    z_index: int | None = None
