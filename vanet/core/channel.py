"""
channel.py — Stochastic radio channel model
============================================
Turns geometry + environment into a link estimate:

    signal      = clamp01(pathLoss × (1 − obstacleAttenuation) × fading)
    pathLoss    = max(0, 1 − distance / range)
    fading      = sqrt(Gamma(m, Ω/m)) / sqrt(m)           (Nakagami-m)

Reliability is the signal reduced for obstructed line of sight and local
congestion; duration is the time until the pair drifts out of range.

All draws come from the ``random.Random`` handed in by the simulator so a
run is reproducible from its seed.
"""

import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .geometry import CongestionZone, Obstacle, distance
from .nodes import EnvironmentType, Node, relative_speed


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

# Nakagami shape m per environment: more line-of-sight → larger m → milder fading.
V2V_SHAPE = {
    EnvironmentType.URBAN: 1.0,
    EnvironmentType.SUBURBAN: 2.0,
    EnvironmentType.HIGHWAY: 3.0,
}
INFRASTRUCTURE_SHAPE = {
    EnvironmentType.URBAN: 1.5,
    EnvironmentType.SUBURBAN: 2.5,
    EnvironmentType.HIGHWAY: 3.5,
}


@dataclass
class ChannelConfig:
    spread: float = 1.0                        # Nakagami Ω
    obstruction_threshold: float = 0.8         # attenuation at which LOS is lost
    obstructed_multiplier: float = 0.6
    infrastructure_reliability: float = 0.9
    infrastructure_congestion_tolerance: float = 0.5
    density_radius: float = 100.0              # m
    density_saturation: float = 20.0           # vehicles for full congestion
    stable_duration: float = 300.0             # s, for near-zero relative speed
    stable_speed: float = 0.1                  # m/s


@dataclass
class LinkEstimate:
    signal: float
    base_reliability: float      # before the congestion penalty
    reliability: float
    duration: float
    relative_speed: float
    attenuation: float


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

def sample_gamma(rng: random.Random, shape: float, scale: float) -> float:
    """
    Gamma(shape, scale) variate.

    shape >= 1 : Marsaglia–Tsang squeeze method.
    shape <  1 : Ahrens–Dieter GS rejection method, retried until accepted.
    """
    if shape <= 0 or scale <= 0:
        raise ValueError(f"Gamma parameters must be positive (shape={shape}, scale={scale})")

    if shape >= 1.0:
        d = shape - 1.0 / 3.0
        c = 1.0 / math.sqrt(9.0 * d)
        while True:
            x = rng.gauss(0.0, 1.0)
            v = 1.0 + c * x
            if v <= 0:
                continue
            v = v * v * v
            u = rng.random()
            if u < 1.0 - 0.0331 * x ** 4:
                return scale * d * v
            if u > 0 and math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
                return scale * d * v

    b = (math.e + shape) / math.e
    while True:
        p = b * rng.random()
        if p <= 1.0:
            x = p ** (1.0 / shape)
            if rng.random() <= math.exp(-x):
                return scale * x
        else:
            x = -math.log((b - p) / shape)
            if rng.random() <= x ** (shape - 1.0):
                return scale * x


def sample_nakagami(rng: random.Random, m: float, omega: float) -> float:
    """Nakagami-m amplitude: its square is Gamma(m, Ω/m) with mean Ω."""
    return math.sqrt(sample_gamma(rng, m, omega / m))


# ---------------------------------------------------------------------------
# ChannelModel
# ---------------------------------------------------------------------------

class ChannelModel:
    """
    Radio channel between two nodes.

    The model itself is stateless apart from the shared RNG; obstacles and
    congestion zones are static and passed at construction.
    """

    def __init__(
        self,
        rng: random.Random,
        obstacles: Iterable[Obstacle] = (),
        congestion_zones: Iterable[CongestionZone] = (),
        config: Optional[ChannelConfig] = None,
    ):
        self.rng = rng
        self.obstacles = list(obstacles)
        self.congestion_zones = list(congestion_zones)
        self.config = config or ChannelConfig()

    # ------------------------------------------------------------------
    # Deterministic components
    # ------------------------------------------------------------------

    @staticmethod
    def path_loss(dist: float, tx_range: float) -> float:
        return max(0.0, 1.0 - dist / tx_range)

    def obstacle_attenuation(self, x1: float, y1: float, x2: float, y2: float) -> float:
        """
        Combined attenuation of every obstacle crossed by the segment.
        Each obstacle removes its share of what is left, so the total is
        independent of order and never exceeds 1.
        """
        total = 0.0
        for obstacle in self.obstacles:
            if obstacle.crossed_by(x1, y1, x2, y2):
                total = total + (1.0 - total) * obstacle.attenuation
        return total

    def zone_load(self, x: float, y: float) -> float:
        return max((z.load for z in self.congestion_zones if z.contains(x, y)), default=0.0)

    def congestion_factor(self, x: float, y: float, local_vehicles: int) -> float:
        """More severe of static zone load and live density within the radius."""
        density = min(1.0, local_vehicles / self.config.density_saturation)
        return max(self.zone_load(x, y), density)

    def congestion_map(self, nodes: list[Node]) -> dict[str, float]:
        """
        Congestion factor at every node's position.  Vehicle density is
        counted for all nodes at once from a pairwise distance matrix.
        """
        if not nodes:
            return {}
        points = np.array([(n.x, n.y) for n in nodes], dtype=float)
        vehicles = points[[n.is_vehicle for n in nodes]]
        if len(vehicles):
            deltas = points[:, None, :] - vehicles[None, :, :]
            dists = np.hypot(deltas[..., 0], deltas[..., 1])
            counts = np.count_nonzero(dists <= self.config.density_radius, axis=1)
        else:
            counts = np.zeros(len(nodes), dtype=int)
        return {
            node.id: self.congestion_factor(node.x, node.y, int(count))
            for node, count in zip(nodes, counts)
        }

    def link_duration(self, dist: float, rel_speed: float, tx_range: float) -> float:
        if rel_speed < self.config.stable_speed:
            return self.config.stable_duration
        return (tx_range - dist) / rel_speed

    # ------------------------------------------------------------------
    # Stochastic components
    # ------------------------------------------------------------------

    def fading(self, m: float) -> float:
        return sample_nakagami(self.rng, m, self.config.spread) / math.sqrt(m)

    def signal_strength(self, dist: float, tx_range: float, m: float, attenuation: float) -> float:
        strength = self.path_loss(dist, tx_range) * (1.0 - attenuation) * self.fading(m)
        return min(1.0, max(0.0, strength))

    # ------------------------------------------------------------------
    # Link estimate
    # ------------------------------------------------------------------

    def estimate_link(
        self,
        a: Node,
        b: Node,
        environment: EnvironmentType,
        congestion: float,
    ) -> LinkEstimate:
        """
        Estimate the directed link a → b.  Both nodes must already be in
        range of each other.  ``environment`` and ``congestion`` are taken
        at the reference node: the transmitting vehicle for V2V, the RSU
        when either end is infrastructure.
        """
        cfg = self.config
        dist = distance(a.x, a.y, b.x, b.y)
        tx_range = min(a.tx_range, b.tx_range)
        attenuation = self.obstacle_attenuation(a.x, a.y, b.x, b.y)
        rel_speed = relative_speed(a, b)

        if a.is_vehicle and b.is_vehicle:
            signal = self.signal_strength(dist, tx_range, V2V_SHAPE[environment], attenuation)
            base_reliability = signal
            if attenuation >= cfg.obstruction_threshold:
                base_reliability *= cfg.obstructed_multiplier
            reliability = base_reliability * (1.0 - congestion)
            duration = self.link_duration(dist, rel_speed, tx_range)
        else:
            signal = self.signal_strength(dist, tx_range, INFRASTRUCTURE_SHAPE[environment], attenuation)
            base_reliability = cfg.infrastructure_reliability * signal
            reliability = base_reliability * (1.0 - congestion * cfg.infrastructure_congestion_tolerance)
            duration = math.inf

        return LinkEstimate(
            signal=signal,
            base_reliability=base_reliability,
            reliability=reliability,
            duration=duration,
            relative_speed=rel_speed,
            attenuation=attenuation,
        )
