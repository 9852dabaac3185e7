"""
nodes.py — Network participants, links and messages
====================================================
Nodes are a single tagged dataclass rather than a class hierarchy:
every node exposes ``id``, position and ``tx_range``; vehicles additionally
carry a ``VehicleMotion`` and their traffic-generating applications.

Links live on the topology graph (see ``topology.py``); ``Link`` here is
only a typed snapshot of one edge.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NodeKind(str, Enum):
    VEHICLE = "vehicle"
    INFRASTRUCTURE = "infrastructure"


class MessageType(IntEnum):
    """Traffic classes.  Lower value = higher scheduling priority."""
    SAFETY = 1
    TELEMETRY = 2
    INFOTAINMENT = 3


class EnvironmentType(IntEnum):
    URBAN = 1
    SUBURBAN = 2
    HIGHWAY = 3


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------

@dataclass
class Application:
    """Periodic traffic source on a vehicle."""
    message_type: MessageType
    payload_size: int       # bytes
    interval_ms: int
    last_sent_ms: int = 0

    def is_due(self, now_ms: int) -> bool:
        return now_ms - self.last_sent_ms >= self.interval_ms


def default_applications() -> list[Application]:
    """Safety beacon 1/s, telemetry 1/5 s, infotainment 1/15 s."""
    return [
        Application(MessageType.SAFETY, payload_size=50, interval_ms=1000),
        Application(MessageType.TELEMETRY, payload_size=200, interval_ms=5000),
        Application(MessageType.INFOTAINMENT, payload_size=1500, interval_ms=15000),
    ]


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

@dataclass
class VehicleMotion:
    direction: float            # radians
    speed: float                # m/s
    max_speed: float = 30.0     # m/s

    def __post_init__(self) -> None:
        self.speed = min(self.speed, self.max_speed)

    @property
    def velocity(self) -> tuple[float, float]:
        return (self.speed * math.cos(self.direction), self.speed * math.sin(self.direction))

    def set_max_speed(self, max_speed: float) -> None:
        self.max_speed = max_speed
        self.speed = min(self.speed, max_speed)


@dataclass
class Node:
    id: str
    x: float
    y: float
    tx_range: float
    kind: NodeKind
    motion: Optional[VehicleMotion] = None
    applications: list[Application] = field(default_factory=list)

    @property
    def is_vehicle(self) -> bool:
        return self.kind is NodeKind.VEHICLE

    @property
    def speed(self) -> float:
        return self.motion.speed if self.motion is not None else 0.0

    def advance(self, dt_ms: int) -> None:
        """Move along the current heading for ``dt_ms`` milliseconds."""
        if self.motion is None:
            return
        dt = dt_ms / 1000.0
        vx, vy = self.motion.velocity
        self.x += vx * dt
        self.y += vy * dt

    def align_to(self, heading: float) -> None:
        """
        Snap the vehicle onto a road axis, keeping whichever of the two
        road directions is closer to its current heading.  Headings within
        0.1 rad of either direction are left untouched.
        """
        if self.motion is None:
            return
        forward = _angle_between(self.motion.direction, heading)
        backward = _angle_between(self.motion.direction, heading + math.pi)
        if forward > 0.1 and backward > 0.1:
            if forward <= backward:
                self.motion.direction = heading
            else:
                self.motion.direction = _normalize_angle(heading + math.pi)

    def wrap(self, width: float, height: float) -> None:
        """Re-enter on the opposite edge when leaving the simulation area."""
        if self.x < 0:
            self.x = width
        elif self.x > width:
            self.x = 0.0
        if self.y < 0:
            self.y = height
        elif self.y > height:
            self.y = 0.0


def _normalize_angle(angle: float) -> float:
    return angle % (2 * math.pi)


def _angle_between(a: float, b: float) -> float:
    """Smallest absolute difference between two headings, in [0, pi]."""
    return abs((a - b + math.pi) % (2 * math.pi) - math.pi)


def make_vehicle(node_id: str, x: float, y: float, direction: float, speed: float,
                 tx_range: float) -> Node:
    return Node(
        id=node_id, x=x, y=y, tx_range=tx_range, kind=NodeKind.VEHICLE,
        motion=VehicleMotion(direction=direction, speed=speed),
        applications=default_applications(),
    )


def make_infrastructure(node_id: str, x: float, y: float, tx_range: float) -> Node:
    return Node(id=node_id, x=x, y=y, tx_range=tx_range, kind=NodeKind.INFRASTRUCTURE)


def relative_speed(a: Node, b: Node) -> float:
    """
    Magnitude of the relative velocity for two vehicles; the moving node's
    speed when one end is fixed; 0 for two fixed nodes.
    """
    if a.motion is not None and b.motion is not None:
        avx, avy = a.motion.velocity
        bvx, bvy = b.motion.velocity
        return math.hypot(avx - bvx, avy - bvy)
    if a.motion is not None:
        return a.motion.speed
    if b.motion is not None:
        return b.motion.speed
    return 0.0


# ---------------------------------------------------------------------------
# Links & messages
# ---------------------------------------------------------------------------

@dataclass
class Link:
    """Snapshot of a directed edge owner → neighbor."""
    source: str
    target: str
    quality: float        # learned desirability ∈ [0, 1]
    reliability: float    # per-hop delivery probability ∈ [0, 1]
    duration: float       # seconds until expected breakage (inf = fixed pair)


@dataclass(frozen=True)
class Message:
    id: str
    source: str
    destination: Optional[str]    # None → broadcast
    message_type: MessageType
    size: int                     # bytes
    created_ms: int

    @property
    def is_broadcast(self) -> bool:
        return self.destination is None
