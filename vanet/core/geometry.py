"""
geometry.py — Static world geometry
====================================
Axis-aligned obstacles and congestion zones, road segments, and the road
map used to look up the environment a node is driving through.

Everything here is read-only after construction.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from .nodes import EnvironmentType

# Maximum distance (m) from a road for a point to count as "on" it.
ROAD_SNAP_DISTANCE = 20.0


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def _orientation(ax: float, ay: float, bx: float, by: float, cx: float, cy: float) -> float:
    """Signed area of triangle abc: > 0 counter-clockwise, < 0 clockwise."""
    return (bx - ax) * (cy - ay) - (by - ay) * (cx - ax)


def _on_segment(ax: float, ay: float, bx: float, by: float, px: float, py: float) -> bool:
    return min(ax, bx) <= px <= max(ax, bx) and min(ay, by) <= py <= max(ay, by)


def segments_intersect(
    p1: tuple[float, float],
    p2: tuple[float, float],
    q1: tuple[float, float],
    q2: tuple[float, float],
) -> bool:
    """True if segment p1-p2 touches or crosses segment q1-q2."""
    d1 = _orientation(*q1, *q2, *p1)
    d2 = _orientation(*q1, *q2, *p2)
    d3 = _orientation(*p1, *p2, *q1)
    d4 = _orientation(*p1, *p2, *q2)

    if d1 * d2 < 0 and d3 * d4 < 0:
        return True

    # Collinear / touching cases
    if d1 == 0 and _on_segment(*q1, *q2, *p1):
        return True
    if d2 == 0 and _on_segment(*q1, *q2, *p2):
        return True
    if d3 == 0 and _on_segment(*p1, *p2, *q1):
        return True
    if d4 == 0 and _on_segment(*p1, *p2, *q2):
        return True
    return False


# ---------------------------------------------------------------------------
# Rectangles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle; corners are normalised so x1 <= x2, y1 <= y2."""
    x1: float
    y1: float
    x2: float
    y2: float

    def __post_init__(self) -> None:
        x1, x2 = sorted((self.x1, self.x2))
        y1, y2 = sorted((self.y1, self.y2))
        object.__setattr__(self, "x1", x1)
        object.__setattr__(self, "x2", x2)
        object.__setattr__(self, "y1", y1)
        object.__setattr__(self, "y2", y2)

    def contains(self, x: float, y: float) -> bool:
        return self.x1 <= x <= self.x2 and self.y1 <= y <= self.y2

    def edges(self) -> list[tuple[tuple[float, float], tuple[float, float]]]:
        tl, tr = (self.x1, self.y1), (self.x2, self.y1)
        br, bl = (self.x2, self.y2), (self.x1, self.y2)
        return [(tl, tr), (tr, br), (bl, br), (tl, bl)]

    def crossed_by(self, x1: float, y1: float, x2: float, y2: float) -> bool:
        """True if the segment (x1,y1)-(x2,y2) passes through the rectangle."""
        if self.contains(x1, y1) or self.contains(x2, y2):
            return True
        return any(segments_intersect((x1, y1), (x2, y2), a, b) for a, b in self.edges())


@dataclass(frozen=True)
class Obstacle(Rect):
    """Building / foliage block.  ``attenuation`` ∈ [0, 1], 1 = full blockage."""
    attenuation: float = 0.0


@dataclass(frozen=True)
class CongestionZone(Rect):
    """Area with elevated channel load.  ``load`` ∈ [0, 1]."""
    load: float = 0.0


# ---------------------------------------------------------------------------
# Roads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Road:
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    lanes: int = 2
    speed_limit: float = 13.9          # m/s
    environment: EnvironmentType = EnvironmentType.URBAN

    @property
    def heading(self) -> float:
        """Direction of the road axis in radians."""
        return math.atan2(self.end_y - self.start_y, self.end_x - self.start_x)

    def distance_to(self, x: float, y: float) -> float:
        """Shortest distance from a point to the road segment."""
        rx, ry = self.end_x - self.start_x, self.end_y - self.start_y
        length = math.hypot(rx, ry)
        if length == 0:
            return distance(x, y, self.start_x, self.start_y)
        rx, ry = rx / length, ry / length
        projection = (x - self.start_x) * rx + (y - self.start_y) * ry
        projection = max(0.0, min(length, projection))
        cx = self.start_x + projection * rx
        cy = self.start_y + projection * ry
        return distance(x, y, cx, cy)


@dataclass
class RoadMap:
    """Collection of roads with a nearest-road lookup."""
    roads: list[Road] = field(default_factory=list)
    snap_distance: float = ROAD_SNAP_DISTANCE

    def add(self, road: Road) -> None:
        self.roads.append(road)

    def nearest(self, x: float, y: float) -> Optional[Road]:
        """Closest road within ``snap_distance`` of the point, else None."""
        best: Optional[Road] = None
        best_dist = math.inf
        for road in self.roads:
            d = road.distance_to(x, y)
            if d < best_dist:
                best, best_dist = road, d
        return best if best_dist <= self.snap_distance else None

    def environment_at(self, x: float, y: float) -> EnvironmentType:
        road = self.nearest(x, y)
        return road.environment if road is not None else EnvironmentType.URBAN
