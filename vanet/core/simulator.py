"""
simulator.py — VANET simulation orchestrator
=============================================
Owns the world (vehicles, RSUs, roads, obstacles, congestion zones), the
message queue and the learned estimator, and advances everything one
fixed time step per ``tick()``:

    1. align vehicles to their road, cap speed, move, wrap at the edges
    2. generate application messages that are due
    3. rebuild the link graph (and the per-node congestion cache)
    4. drain the message queue in priority order
    5. every N ticks (learned policy) retrain the estimator and refresh
       link qualities

All randomness is drawn from one ``random.Random(seed)`` so a run is
reproducible.  Two simulators never share state.
"""

import random
import logging
from dataclasses import dataclass
from typing import Optional

import networkx as nx

from .channel import ChannelConfig, ChannelModel
from .delivery import DeliverySimulator, LossConfig
from .estimator import LinkQualityEstimator, TrainingSample
from .geometry import CongestionZone, Obstacle, Road, RoadMap, distance
from .metrics import MetricsCollector
from .nodes import (
    EnvironmentType,
    Message,
    MessageType,
    Node,
    make_infrastructure,
    make_vehicle,
    relative_speed,
)
from .routing import RoutingEngine, RoutingPolicy
from .topology import TopologyEngine, average_link_quality, vehicle_links

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class SimulationConfig:
    width: float = 1000.0               # m
    height: float = 1000.0              # m
    tx_range: float = 300.0             # default vehicle range, m
    time_step_ms: int = 100
    learning_rate: float = 0.1
    policy: RoutingPolicy = RoutingPolicy.LEARNED
    seed: int = 42
    train_every_ticks: int = 10         # 1 s of simulated time
    min_training_samples: int = 10
    quality_smoothing: float = 0.3      # weight of the prediction in the EMA
    training_duration_cap: float = 300.0   # s, keeps inf out of the features


@dataclass
class NetworkStats:
    vehicle_count: int
    infrastructure_count: int
    queue_size: int
    delivered_count: int
    sim_time: int
    avg_link_quality: float
    total_links: int


# ---------------------------------------------------------------------------
# VanetSimulator
# ---------------------------------------------------------------------------

class VanetSimulator:
    """
    One simulation run under a single routing policy.

    Setup mutators (``add_*``) are meant to be called before the first
    ``tick()``; adding a node whose id is taken raises ``ValueError``.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        metrics: Optional[MetricsCollector] = None,
        channel_config: Optional[ChannelConfig] = None,
        loss_config: Optional[LossConfig] = None,
    ):
        self.config = config or SimulationConfig()
        self.policy = RoutingPolicy(self.config.policy)
        self.rng = random.Random(self.config.seed)
        self.metrics = metrics or MetricsCollector()

        self.road_map = RoadMap()
        self.channel = ChannelModel(self.rng, config=channel_config)
        self.topology = TopologyEngine(self.channel, self.road_map, self.policy)
        self.router = RoutingEngine(self.policy)
        self.delivery = DeliverySimulator(self.rng, self.congestion_at, self.metrics, loss_config)
        self.estimator = LinkQualityEstimator(self.config.learning_rate, seed=self.config.seed)

        self.vehicles: dict[str, Node] = {}
        self.infrastructure: dict[str, Node] = {}
        self.graph = nx.DiGraph()
        self.queue: list[Message] = []
        self.delivered: set[str] = set()

        self.current_time_ms = 0
        self.ticks = 0
        self._congestion: dict[str, float] = {}
        self._next_message_id = 0

        logger.info("VanetSimulator created: %.0fx%.0f m, policy=%s, seed=%d",
                    self.config.width, self.config.height, self.policy.value, self.config.seed)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _check_new_id(self, node_id: str) -> None:
        if node_id in self.vehicles or node_id in self.infrastructure:
            raise ValueError(f"Node id {node_id!r} already exists")

    def _resolve_range(self, tx_range: Optional[float]) -> float:
        tx_range = self.config.tx_range if tx_range is None else tx_range
        if tx_range <= 0:
            raise ValueError(f"Transmission range must be positive, got {tx_range}")
        return tx_range

    def add_vehicle(self, node_id: str, x: float, y: float, direction: float, speed: float,
                    tx_range: Optional[float] = None) -> Node:
        self._check_new_id(node_id)
        vehicle = make_vehicle(node_id, x, y, direction, speed, self._resolve_range(tx_range))
        self.vehicles[node_id] = vehicle
        return vehicle

    def add_infrastructure(self, node_id: str, x: float, y: float,
                           tx_range: Optional[float] = None) -> Node:
        self._check_new_id(node_id)
        rsu = make_infrastructure(node_id, x, y, self._resolve_range(tx_range))
        self.infrastructure[node_id] = rsu
        return rsu

    def add_road(self, start_x: float, start_y: float, end_x: float, end_y: float,
                 lanes: int = 2, speed_limit: float = 13.9,
                 environment: EnvironmentType = EnvironmentType.URBAN) -> Road:
        road = Road(start_x, start_y, end_x, end_y, lanes, speed_limit, EnvironmentType(environment))
        self.road_map.add(road)
        return road

    def add_congestion_zone(self, x1: float, y1: float, x2: float, y2: float,
                            load: float) -> CongestionZone:
        if not 0.0 <= load <= 1.0:
            raise ValueError(f"Congestion load must be in [0, 1], got {load}")
        zone = CongestionZone(x1, y1, x2, y2, load=load)
        self.channel.congestion_zones.append(zone)
        return zone

    def add_obstacle(self, x1: float, y1: float, x2: float, y2: float,
                     attenuation: float) -> Obstacle:
        if not 0.0 <= attenuation <= 1.0:
            raise ValueError(f"Obstacle attenuation must be in [0, 1], got {attenuation}")
        obstacle = Obstacle(x1, y1, x2, y2, attenuation=attenuation)
        self.channel.obstacles.append(obstacle)
        return obstacle

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> dict[str, Node]:
        return {**self.vehicles, **self.infrastructure}

    def get_node(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        return self.vehicles.get(node_id) or self.infrastructure.get(node_id)

    def congestion_at(self, node_id: str) -> float:
        return self._congestion.get(node_id, 0.0)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advance the simulation by one time step."""
        self.ticks += 1
        self.current_time_ms += self.config.time_step_ms
        self.metrics.update_time(self.current_time_ms)

        self._move_vehicles()
        self._generate_messages()

        nodes = list(self.nodes.values())
        self._congestion = self.channel.congestion_map(nodes)
        self.graph = self.topology.rebuild(nodes, self._congestion)

        self._process_queue()

        if self.policy == RoutingPolicy.LEARNED and self.ticks % self.config.train_every_ticks == 0:
            if self.train_model():
                self.metrics.record_model_update()

        avg_quality, _ = average_link_quality(self.graph, self.vehicles)
        self.metrics.record_link_quality(avg_quality)

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()

    # ---- step 1 ----

    def _move_vehicles(self) -> None:
        dt = self.config.time_step_ms
        for vehicle in self.vehicles.values():
            road = self.road_map.nearest(vehicle.x, vehicle.y)
            if road is not None:
                vehicle.align_to(road.heading)
                vehicle.motion.set_max_speed(road.speed_limit)
            vehicle.advance(dt)
            vehicle.wrap(self.config.width, self.config.height)

    # ---- step 2 ----

    def _new_message_id(self) -> str:
        self._next_message_id += 1
        return f"M{self._next_message_id}"

    def _nearest_infrastructure(self, vehicle: Node) -> Optional[str]:
        best_id, best_dist = None, float("inf")
        for rsu in self.infrastructure.values():
            d = distance(vehicle.x, vehicle.y, rsu.x, rsu.y)
            if d < best_dist:
                best_id, best_dist = rsu.id, d
        return best_id

    def _random_vehicle(self, exclude: str) -> Optional[str]:
        others = [vid for vid in self.vehicles if vid != exclude]
        if not others:
            return None
        return others[self.rng.randrange(len(others))]

    def _destination_for(self, vehicle: Node, message_type: MessageType) -> tuple[bool, Optional[str]]:
        """(ok, destination); ok is False when a unicast type has no target."""
        if message_type == MessageType.SAFETY:
            return True, None
        if message_type == MessageType.TELEMETRY:
            destination = self._nearest_infrastructure(vehicle)
        else:
            destination = self._random_vehicle(vehicle.id)
        return destination is not None, destination

    def _generate_messages(self) -> None:
        now = self.current_time_ms
        for vehicle in self.vehicles.values():
            for app in vehicle.applications:
                if not app.is_due(now):
                    continue
                app.last_sent_ms = now
                ok, destination = self._destination_for(vehicle, app.message_type)
                if not ok:
                    logger.debug("%s: no destination for %s message", vehicle.id, app.message_type.name)
                    continue
                self.queue.append(Message(
                    id=self._new_message_id(),
                    source=vehicle.id,
                    destination=destination,
                    message_type=app.message_type,
                    size=app.payload_size,
                    created_ms=now,
                ))
                self.metrics.record_message_sent(app.message_type, app.payload_size)

    # ---- step 4 ----

    def _record_delivery(self, message: Message, hops: int) -> None:
        self.delivered.add(message.id)
        self.metrics.record_message_delivered(
            message.message_type, message.created_ms, self.current_time_ms, hops, message.size,
        )

    def _process_queue(self) -> None:
        # sorted() is stable: FIFO within a priority class
        pending = sorted(self.queue, key=lambda m: m.message_type)
        keep: list[Message] = []

        for message in pending:
            if message.id in self.delivered:
                continue
            if self.get_node(message.source) is None:
                self._drop(message, "source %s is gone", message.source)
                continue

            if message.is_broadcast:
                result = self.delivery.broadcast(self.graph, message, message.source)
                if result.delivered:
                    self._record_delivery(message, result.hops)
                else:
                    self._drop(message, "broadcast reached no receiver")
                continue

            if self.get_node(message.destination) is None:
                self._drop(message, "destination %s is gone", message.destination)
                continue

            path = self.router.find_path(self.graph, message.source, message.destination,
                                         message.message_type)
            if not path:
                keep.append(message)
                continue

            result = self.delivery.forward(self.graph, message, path)
            if result.delivered:
                self._record_delivery(message, result.hops)
            elif result.path_broken:
                self.metrics.record_path_break()
                self.metrics.record_route_recomputation()
                keep.append(message)
            else:
                self._drop(message, "lost after %d hops", result.hops)

        self.queue = keep

    def _drop(self, message: Message, reason: str, *args) -> None:
        logger.debug("Dropping %s: " + reason, message.id, *args)
        self.metrics.record_message_dropped(message.message_type)

    # ---- step 5 ----

    def _link_features(self, owner: Node, neighbor: Node, attrs: dict) -> list[float]:
        duration = min(attrs["duration"], self.config.training_duration_cap)
        return [
            attrs["reliability"],
            duration / 60.0,
            relative_speed(owner, neighbor) / 30.0,
            owner.speed / 30.0,
        ]

    def collect_training_samples(self) -> list[TrainingSample]:
        """One sample per vehicle-owned link; reward is the link's current quality."""
        nodes = self.nodes
        return [
            TrainingSample(self._link_features(nodes[owner], nodes[neighbor], attrs), attrs["quality"])
            for owner, neighbor, attrs in vehicle_links(self.graph, self.vehicles)
        ]

    def refresh_link_qualities(self) -> None:
        alpha = self.config.quality_smoothing
        nodes = self.nodes
        for owner, neighbor, attrs in vehicle_links(self.graph, self.vehicles):
            predicted = self.estimator.predict(self._link_features(nodes[owner], nodes[neighbor], attrs))
            attrs["quality"] = alpha * predicted + (1.0 - alpha) * attrs["quality"]

    def train_model(self) -> bool:
        """Train on the current links; False if there were too few samples."""
        samples = self.collect_training_samples()
        if len(samples) < self.config.min_training_samples:
            logger.debug("Skipping training: %d samples", len(samples))
            return False
        mse = self.estimator.train_on_batch(samples)
        self.refresh_link_qualities()
        logger.info("t=%dms trained estimator on %d samples (mse=%.5f)",
                    self.current_time_ms, len(samples), mse)
        return True

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def network_stats(self) -> NetworkStats:
        avg_quality, total_links = average_link_quality(self.graph, self.vehicles)
        return NetworkStats(
            vehicle_count=len(self.vehicles),
            infrastructure_count=len(self.infrastructure),
            queue_size=len(self.queue),
            delivered_count=len(self.delivered),
            sim_time=self.current_time_ms,
            avg_link_quality=avg_quality,
            total_links=total_links,
        )
