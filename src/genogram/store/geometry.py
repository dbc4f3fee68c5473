"""Household boundary geometry.

Membership is decided by ray casting against the boundary polygon pushed
outward from its centroid, so a person drawn on the line still counts as
inside.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from ..models import Person, Point

DEFAULT_BUFFER = 15.0


def centroid(points: Sequence[Point]) -> Point:
    n = len(points)
    return Point(x=sum(p.x for p in points) / n, y=sum(p.y for p in points) / n)


def expand_polygon(points: Sequence[Point], buffer: float) -> list[Point]:
    """Move every vertex ``buffer`` pixels further from the centroid."""
    if len(points) < 3 or not buffer:
        return list(points)

    center = centroid(points)
    expanded = []
    for point in points:
        dx = point.x - center.x
        dy = point.y - center.y
        distance = math.hypot(dx, dy)
        if distance == 0:
            expanded.append(point)
            continue
        ratio = (distance + buffer) / distance
        expanded.append(Point(x=center.x + dx * ratio, y=center.y + dy * ratio))
    return expanded


def point_in_polygon(point: Point, polygon: Sequence[Point], buffer: float = DEFAULT_BUFFER) -> bool:
    if len(polygon) < 3:
        return False

    vertices = expand_polygon(polygon, buffer) if buffer > 0 else list(polygon)
    inside = False
    j = len(vertices) - 1
    for i, vi in enumerate(vertices):
        vj = vertices[j]
        if (vi.y > point.y) != (vj.y > point.y):
            crossing = (vj.x - vi.x) * (point.y - vi.y) / (vj.y - vi.y) + vi.x
            if point.x < crossing:
                inside = not inside
        j = i
    return inside


def members_within(
    points: Sequence[Point],
    people: Iterable[Person],
    buffer: float = DEFAULT_BUFFER,
) -> list[str]:
    """Ids of the nodes whose position falls inside the boundary."""
    if len(points) < 3:
        return []
    return [p.id for p in people if point_in_polygon(Point(x=p.x, y=p.y), points, buffer)]


def snap(value: float, grid: int) -> float:
    if grid <= 0:
        return value
    return float(round(value / grid) * grid)
