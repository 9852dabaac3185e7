"""
scenario.py — Reference urban scenario
=======================================
1 km × 1 km area with two horizontal and two vertical roads, an RSU at
each intersection, three congestion zones and three obstacles.  Vehicles
are scattered along the roads with their own seeded generator so both
policies start from the identical layout.
"""

import math
import random
import logging
from dataclasses import dataclass
from typing import Optional

from .metrics import MetricsCollector
from .nodes import EnvironmentType
from .routing import RoutingPolicy
from .simulator import SimulationConfig, VanetSimulator

logger = logging.getLogger(__name__)


@dataclass
class ScenarioConfig:
    vehicle_count: int = 200
    seed: int = 42
    ticks: int = 3000               # 300 s at 100 ms
    report_every: int = 50
    min_speed: float = 8.0          # m/s
    max_speed: float = 16.0         # m/s


# (start_x, start_y, end_x, end_y, lanes, speed_limit, environment)
ROADS = [
    (0, 250, 1000, 250, 2, 13.9, EnvironmentType.URBAN),
    (0, 750, 1000, 750, 2, 13.9, EnvironmentType.SUBURBAN),
    (250, 0, 250, 1000, 2, 13.9, EnvironmentType.URBAN),
    (750, 0, 750, 1000, 2, 25.0, EnvironmentType.HIGHWAY),
]

# (x1, y1, x2, y2, load)
CONGESTION_ZONES = [
    (200, 200, 300, 300, 0.8),
    (700, 200, 800, 300, 0.6),
    (200, 700, 300, 800, 0.5),
]

# (id, x, y, range)
RSUS = [
    ("RSU1", 250, 250, 300),
    ("RSU2", 750, 250, 300),
    ("RSU3", 250, 750, 300),
    ("RSU4", 750, 750, 300),
]

# (x1, y1, x2, y2, attenuation)
OBSTACLES = [
    (100, 100, 200, 200, 0.8),
    (600, 300, 650, 400, 0.5),
    (300, 600, 400, 800, 0.3),
]


def _place_vehicle(rng: random.Random, cfg: ScenarioConfig) -> tuple[float, float, float, float]:
    """Random (x, y, direction, speed) on one of the four road axes."""
    if rng.random() < 0.5:
        y = 250.0 if rng.random() < 0.5 else 750.0
        x = rng.random() * 1000.0
        direction = 0.0 if rng.random() < 0.5 else math.pi
    else:
        x = 250.0 if rng.random() < 0.5 else 750.0
        y = rng.random() * 1000.0
        direction = math.pi / 2 if rng.random() < 0.5 else 3 * math.pi / 2
    speed = rng.uniform(cfg.min_speed, cfg.max_speed)
    return x, y, direction, speed


def build_reference_scenario(
    policy: RoutingPolicy = RoutingPolicy.LEARNED,
    scenario: Optional[ScenarioConfig] = None,
    metrics: Optional[MetricsCollector] = None,
) -> VanetSimulator:
    """Fully populated simulator, ready to ``tick()``."""
    cfg = scenario or ScenarioConfig()
    sim = VanetSimulator(SimulationConfig(policy=RoutingPolicy(policy), seed=cfg.seed), metrics=metrics)

    for road in ROADS:
        sim.add_road(*road)
    for zone in CONGESTION_ZONES:
        sim.add_congestion_zone(*zone)
    for rsu_id, x, y, tx_range in RSUS:
        sim.add_infrastructure(rsu_id, x, y, tx_range)
    for obstacle in OBSTACLES:
        sim.add_obstacle(*obstacle)

    placement = random.Random(cfg.seed)
    for i in range(cfg.vehicle_count):
        x, y, direction, speed = _place_vehicle(placement, cfg)
        sim.add_vehicle(f"V{i}", x, y, direction, speed)

    logger.info("Reference scenario built: %d vehicles, %d RSUs, policy=%s",
                len(sim.vehicles), len(sim.infrastructure), sim.policy.value)
    return sim
