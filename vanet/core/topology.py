"""
topology.py — Per-tick link graph construction
================================================
Rebuilds the VANET link graph from scratch every tick as a NetworkX DiGraph.

Design decisions:
- DiGraph (directed) because each direction gets its own fading sample, so
  a→b and b→a may differ slightly in quality / reliability.
- Link attributes are stored directly on the edge dict (quality,
  reliability, duration) for O(1) access by routing and delivery.
- A node's outgoing link map is simply ``graph[node_id]``.
- Nothing survives between rebuilds: a pair that drifted out of range has
  no edge in the new graph.
"""

import math
import logging
from typing import Iterable, Iterator, Optional

import networkx as nx
import numpy as np

from .channel import ChannelModel, LinkEstimate
from .geometry import RoadMap
from .nodes import Link, Node
from .routing import RoutingPolicy

logger = logging.getLogger(__name__)

# Composite V2V quality weights (learned policy)
W_SIGNAL = 0.3
W_RELIABILITY = 0.3
W_DURATION = 0.2
W_REL_SPEED = 0.2
DURATION_CAP = 60.0     # s
SPEED_NORM = 30.0       # m/s


def composite_quality(signal: float, reliability: float, duration: float, rel_speed: float) -> float:
    """
    Weighted sum of link factors ∈ [0, 1]:

        0.3·signal + 0.3·reliability + 0.2·min(duration, 60)/60
        + 0.2·max(0, 1 − relSpeed/30)
    """
    norm_duration = min(duration, DURATION_CAP) / DURATION_CAP
    norm_speed = max(0.0, 1.0 - rel_speed / SPEED_NORM)
    return (W_SIGNAL * signal + W_RELIABILITY * reliability
            + W_DURATION * norm_duration + W_REL_SPEED * norm_speed)


class TopologyEngine:
    """
    Builds the directed link graph for one tick.

    Pair enumeration is O(n²); candidate pairs are found from a single
    numpy distance matrix, then each in-range pair is estimated by the
    channel model once per direction.
    """

    def __init__(
        self,
        channel: ChannelModel,
        road_map: Optional[RoadMap] = None,
        policy: RoutingPolicy = RoutingPolicy.LEARNED,
    ):
        self.channel = channel
        self.road_map = road_map or RoadMap()
        self.policy = RoutingPolicy(policy)

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    def in_range_pairs(self, nodes: list[Node]) -> Iterator[tuple[int, int]]:
        """Index pairs (i < j) whose distance is within the smaller range."""
        if len(nodes) < 2:
            return iter(())
        xy = np.array([(n.x, n.y) for n in nodes], dtype=float)
        ranges = np.array([n.tx_range for n in nodes], dtype=float)
        deltas = xy[:, None, :] - xy[None, :, :]
        dists = np.hypot(deltas[..., 0], deltas[..., 1])
        reach = dists <= np.minimum(ranges[:, None], ranges[None, :])
        ii, jj = np.nonzero(np.triu(reach, k=1))
        return zip(ii.tolist(), jj.tolist())

    def rebuild(self, nodes: Iterable[Node], congestion: dict[str, float]) -> nx.DiGraph:
        """
        Fresh link graph for the current node positions.

        ``congestion`` maps node id → congestion factor at that node (see
        ``ChannelModel.congestion_map``).
        """
        node_list = list(nodes)
        graph = nx.DiGraph()
        graph.add_nodes_from(n.id for n in node_list)

        for i, j in self.in_range_pairs(node_list):
            a, b = node_list[i], node_list[j]
            self._install(graph, a, b, congestion)
            self._install(graph, b, a, congestion)

        logger.debug("Topology rebuilt: %d nodes, %d links",
                     graph.number_of_nodes(), graph.number_of_edges())
        return graph

    def _reference(self, a: Node, b: Node) -> Node:
        """Node whose surroundings set environment and congestion."""
        if a.is_vehicle and not b.is_vehicle:
            return b
        return a

    def _install(self, graph: nx.DiGraph, a: Node, b: Node, congestion: dict[str, float]) -> None:
        ref = self._reference(a, b)
        environment = self.road_map.environment_at(ref.x, ref.y)
        estimate = self.channel.estimate_link(a, b, environment, congestion.get(ref.id, 0.0))
        graph.add_edge(
            a.id, b.id,
            quality=self._quality(a, b, estimate),
            reliability=estimate.reliability,
            duration=estimate.duration,
            relative_speed=estimate.relative_speed,
        )

    def _quality(self, a: Node, b: Node, estimate: LinkEstimate) -> float:
        if a.is_vehicle and b.is_vehicle and self.policy == RoutingPolicy.LEARNED:
            return composite_quality(estimate.signal, estimate.base_reliability,
                                     estimate.duration, estimate.relative_speed)
        return estimate.signal


# ---------------------------------------------------------------------------
# Graph queries
# ---------------------------------------------------------------------------

def get_link(graph: nx.DiGraph, source: str, target: str) -> Link:
    """Typed snapshot of one edge."""
    d = graph[source][target]
    return Link(
        source=source,
        target=target,
        quality=d["quality"],
        reliability=d["reliability"],
        duration=d["duration"],
    )


def vehicle_links(graph: nx.DiGraph, nodes: dict[str, Node]) -> Iterator[tuple[str, str, dict]]:
    """(owner, neighbor, attrs) for every link owned by a vehicle."""
    for node_id, node in nodes.items():
        if not node.is_vehicle or node_id not in graph:
            continue
        for neighbor_id, attrs in graph[node_id].items():
            yield node_id, neighbor_id, attrs


def average_link_quality(graph: nx.DiGraph, nodes: dict[str, Node]) -> tuple[float, int]:
    """Mean quality over vehicle-owned links, and how many there are."""
    qualities = [attrs["quality"] for _, _, attrs in vehicle_links(graph, nodes)]
    if not qualities:
        return 0.0, 0
    return math.fsum(qualities) / len(qualities), len(qualities)
