"""
routing.py — Shortest-path routing over the live link graph
============================================================
Both policies run Dijkstra (NetworkX) from scratch on every call; the graph
changes every tick so nothing is cached between calls.

LEARNED  weight = 1 / max(0.1, quality), divided by a traffic-class factor:
             SAFETY        reliability × 2
             TELEMETRY     reliability × duration / 30
             INFOTAINMENT  duration / 60
BASELINE weight = 1 / reliability   (ignores quality and message type)

Lower weight = preferred edge.  An edge whose weight would be infinite or
undefined (zero reliability, zero-length lifetime) is hidden from the search.
"""

import math
import logging
from enum import Enum
from typing import Optional

import networkx as nx

from .nodes import MessageType

logger = logging.getLogger(__name__)

MIN_QUALITY = 0.1


class RoutingPolicy(str, Enum):
    LEARNED = "learned"
    BASELINE = "baseline"


# ---------------------------------------------------------------------------
# Edge weights
# ---------------------------------------------------------------------------

def _finite_or_none(value: float) -> Optional[float]:
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def learned_weight(attrs: dict, message_type: MessageType) -> Optional[float]:
    """Message-type-aware weight from learned quality; None = unusable edge."""
    weight = 1.0 / max(MIN_QUALITY, attrs["quality"])
    reliability = attrs["reliability"]
    duration = attrs["duration"]

    if message_type == MessageType.SAFETY:
        divisor = reliability * 2.0
    elif message_type == MessageType.TELEMETRY:
        divisor = reliability * duration / 30.0
    elif message_type == MessageType.INFOTAINMENT:
        divisor = duration / 60.0
    else:
        divisor = 1.0

    # nan (0 × inf) and 0 both fail this test
    if not divisor > 0:
        return None
    return _finite_or_none(weight / divisor)


def baseline_weight(attrs: dict) -> Optional[float]:
    reliability = attrs["reliability"]
    if not reliability > 0:
        return None
    return _finite_or_none(1.0 / reliability)


def edge_weight(attrs: dict, message_type: MessageType, policy: RoutingPolicy) -> Optional[float]:
    if policy == RoutingPolicy.LEARNED:
        return learned_weight(attrs, message_type)
    return baseline_weight(attrs)


# ---------------------------------------------------------------------------
# RoutingEngine
# ---------------------------------------------------------------------------

class RoutingEngine:
    """Dijkstra path finder over a topology DiGraph under one policy."""

    def __init__(self, policy: RoutingPolicy = RoutingPolicy.LEARNED):
        self.policy = RoutingPolicy(policy)

    def weight_fn(self, message_type: MessageType):
        """NetworkX weight callable: (u, v, edge_attrs) → weight | None."""
        policy = self.policy
        return lambda u, v, d: edge_weight(d, message_type, policy)

    def find_path(
        self,
        graph: nx.DiGraph,
        source: str,
        destination: str,
        message_type: MessageType,
    ) -> list[str]:
        """
        Lowest-weight path source → destination, or [] if there is none.
        Unknown endpoints are treated the same as an unreachable target.
        """
        try:
            path = nx.dijkstra_path(graph, source, destination, weight=self.weight_fn(message_type))
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            logger.debug("No %s path %s → %s", self.policy.value, source, destination)
            return []

        if len(path) < 2 or path[0] != source:
            return []
        return path

    def path_cost(self, graph: nx.DiGraph, path: list[str], message_type: MessageType) -> float:
        """Sum of edge weights along ``path`` (inf if any edge is unusable)."""
        total = 0.0
        for u, v in zip(path, path[1:]):
            if not graph.has_edge(u, v):
                return math.inf
            w = edge_weight(graph[u][v], message_type, self.policy)
            if w is None:
                return math.inf
            total += w
        return total


def find_optimal_path(graph: nx.DiGraph, source: str, destination: str,
                      message_type: MessageType) -> list[str]:
    return RoutingEngine(RoutingPolicy.LEARNED).find_path(graph, source, destination, message_type)


def find_baseline_path(graph: nx.DiGraph, source: str, destination: str) -> list[str]:
    # message type is ignored by the baseline weight
    return RoutingEngine(RoutingPolicy.BASELINE).find_path(graph, source, destination, MessageType.SAFETY)
