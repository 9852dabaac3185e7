"""
simulation_service.py — Service layer bridging API ↔ simulator.
================================================================
Holds the singleton VanetSimulator the API operates on, and runs
side-by-side policy comparisons on demand.

Design: The service is a plain class (not a FastAPI dependency) so it can
be imported and used by all routers.  A module-level singleton is created
lazily; routers get it via `get_service()`.
"""

import math
import time
import logging
from typing import Optional

from vanet.core.compare import comparison_table, run_policy
from vanet.core.nodes import MessageType
from vanet.core.routing import RoutingEngine, RoutingPolicy, edge_weight
from vanet.core.scenario import ScenarioConfig, build_reference_scenario
from vanet.core.simulator import VanetSimulator

logger = logging.getLogger(__name__)

DEFAULT_VEHICLES = 50

MESSAGE_TYPES = {
    "safety": MessageType.SAFETY,
    "telemetry": MessageType.TELEMETRY,
    "infotainment": MessageType.INFOTAINMENT,
}


def _finite(value: float) -> Optional[float]:
    """JSON has no infinity; fixed links report their lifetime as null."""
    return value if math.isfinite(value) else None


class SimulationService:
    """
    Central service that owns the running simulation.

    All mutations (rebuild, tick) go through this class so the simulator
    and its metrics stay consistent.
    """

    def __init__(self):
        # Start with a small reference scenario so the API is usable immediately
        self._scenario = ScenarioConfig(vehicle_count=DEFAULT_VEHICLES)
        self.sim: VanetSimulator = build_reference_scenario(RoutingPolicy.LEARNED, self._scenario)
        logger.info("SimulationService initialised with %d-vehicle reference scenario",
                    DEFAULT_VEHICLES)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_simulation(self, policy: str = "learned", vehicle_count: int = DEFAULT_VEHICLES,
                          seed: int = 42) -> dict:
        """Discard the current run and build a fresh reference scenario."""
        self._scenario = ScenarioConfig(vehicle_count=vehicle_count, seed=seed)
        self.sim = build_reference_scenario(RoutingPolicy(policy), self._scenario)
        logger.info("Simulation reset: %d vehicles, policy=%s, seed=%d", vehicle_count, policy, seed)
        return self.get_stats()

    def advance(self, ticks: int) -> dict:
        if ticks < 1:
            raise ValueError("ticks must be positive")
        self.sim.run(ticks)
        return self.get_stats()

    def get_stats(self) -> dict:
        stats = self.sim.network_stats()
        return {
            "policy": self.sim.policy.value,
            "ticks": self.sim.ticks,
            "vehicle_count": stats.vehicle_count,
            "infrastructure_count": stats.infrastructure_count,
            "queue_size": stats.queue_size,
            "delivered_count": stats.delivered_count,
            "sim_time": stats.sim_time,
            "avg_link_quality": round(stats.avg_link_quality, 4),
            "total_links": stats.total_links,
            "seed": self._scenario.seed,
        }

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def has_node(self, node_id: str) -> bool:
        return self.sim.get_node(node_id) is not None

    def get_topology(self) -> dict:
        """Return the current link graph for the API response."""
        sim = self.sim
        graph = sim.graph

        nodes = []
        for node in sim.nodes.values():
            nodes.append({
                "id": node.id,
                "kind": node.kind,
                "x": round(node.x, 2),
                "y": round(node.y, 2),
                "tx_range": node.tx_range,
                "speed": round(node.speed, 3),
                "direction": round(node.motion.direction, 4) if node.motion is not None else None,
                "neighbor_count": graph.out_degree(node.id) if node.id in graph else 0,
                "congestion": round(sim.congestion_at(node.id), 4),
            })

        links = []
        for u, v, d in graph.edges(data=True):
            links.append({
                "source": u,
                "target": v,
                "quality": round(d["quality"], 4),
                "reliability": round(d["reliability"], 4),
                "duration": _finite(d["duration"]),
                "relative_speed": round(d["relative_speed"], 3),
            })

        return {
            "nodes": nodes,
            "links": links,
            "metadata": {
                "node_count": len(nodes),
                "link_count": len(links),
                "sim_time": sim.current_time_ms,
                "width": sim.config.width,
                "height": sim.config.height,
            },
        }

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def route(self, source: str, destination: str, message_type: str = "safety",
              policy: Optional[str] = None) -> dict:
        """Route one message on the current link graph without delivering it."""
        mtype = MESSAGE_TYPES[message_type]
        engine = RoutingEngine(policy or self.sim.policy)
        graph = self.sim.graph

        path = engine.find_path(graph, source, destination, mtype)
        per_hop = []
        for u, v in zip(path, path[1:]):
            d = graph[u][v]
            per_hop.append({
                "from_node": u,
                "to_node": v,
                "quality": round(d["quality"], 4),
                "reliability": round(d["reliability"], 4),
                "edge_weight": edge_weight(d, mtype, engine.policy),
            })

        return {
            "policy": engine.policy.value,
            "message_type": message_type,
            "source": source,
            "destination": destination,
            "path": path,
            "total_cost": _finite(engine.path_cost(graph, path, mtype)) if path else None,
            "hop_count": max(0, len(path) - 1),
            "found": bool(path),
            "per_hop_details": per_hop,
        }

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def get_metrics(self) -> dict:
        """Return the collector summary for the /metrics endpoint."""
        return {"policy": self.sim.policy.value, **self.sim.metrics.summary()}

    def compare_policies(self, vehicle_count: int = DEFAULT_VEHICLES, ticks: int = 300,
                         seed: int = 42) -> dict:
        """Run the reference scenario under both policies and compare."""
        scenario = ScenarioConfig(vehicle_count=vehicle_count, seed=seed, ticks=ticks,
                                  report_every=max(1, ticks))
        t0 = time.time()
        learned = run_policy(RoutingPolicy.LEARNED, scenario)
        baseline = run_policy(RoutingPolicy.BASELINE, scenario)
        logger.info("Comparison of %d ticks × %d vehicles finished in %.2fs",
                    ticks, vehicle_count, time.time() - t0)

        return {
            "vehicle_count": vehicle_count,
            "ticks": ticks,
            "seed": seed,
            "rows": comparison_table(learned.metrics, baseline.metrics),
            "learned": learned.metrics.summary(),
            "baseline": baseline.metrics.summary(),
        }


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

_service_instance: Optional[SimulationService] = None


def get_service() -> SimulationService:
    """Return the module-level singleton SimulationService."""
    global _service_instance
    if _service_instance is None:
        _service_instance = SimulationService()
    return _service_instance
