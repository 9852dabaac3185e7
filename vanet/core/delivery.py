"""
delivery.py — Per-hop message delivery with loss
==================================================
Three disciplines:

- flood broadcast      (safety beacons: every direct neighbour)
- selective broadcast  (other broadcasts: greedy multipoint-relay subset)
- unicast path walk    (hop by hop along a routed path)

Every transmission first risks congestion loss (scaled congestion factor at
the transmitting node), then environment loss (1 − link reliability).  The
scale factors are hand-calibrated severity knobs, not protocol constants.
"""

import random
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import networkx as nx

from .metrics import MetricsCollector
from .nodes import Message, MessageType

logger = logging.getLogger(__name__)


@dataclass
class LossConfig:
    broadcast_congestion_scale: float = 0.7
    unicast_congestion_scale: float = 0.8


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""
    delivered: bool
    path_broken: bool
    hops: int


# ---------------------------------------------------------------------------
# Multipoint relay selection
# ---------------------------------------------------------------------------

def select_relays(graph: nx.DiGraph, source: str) -> list[str]:
    """
    Greedy MPR: repeatedly pick the neighbour whose own neighbours cover the
    most still-uncovered nodes, until no candidate adds coverage.

    Works on copies (candidate list + covered set); the graph is not touched.
    """
    if source not in graph:
        return []
    neighbors = list(graph.successors(source))
    coverage = {n: set(graph.successors(n)) for n in neighbors}

    covered = set(neighbors)
    covered.add(source)
    candidates = list(neighbors)
    selected: list[str] = []

    while candidates:
        best, best_gain = None, 0
        for candidate in candidates:
            gain = len(coverage[candidate] - covered)
            if gain > best_gain:
                best, best_gain = candidate, gain
        if best is None:
            break
        selected.append(best)
        candidates.remove(best)
        covered |= coverage[best]

    return selected


# ---------------------------------------------------------------------------
# DeliverySimulator
# ---------------------------------------------------------------------------

class DeliverySimulator:
    """
    Simulates transmissions over the current link graph.

    ``congestion_at`` returns the congestion factor at a node id for the
    current tick; all loss draws use the shared ``rng``.
    """

    def __init__(
        self,
        rng: random.Random,
        congestion_at: Callable[[str], float],
        metrics: Optional[MetricsCollector] = None,
        config: Optional[LossConfig] = None,
    ):
        self.rng = rng
        self.congestion_at = congestion_at
        self.metrics = metrics or MetricsCollector()
        self.config = config or LossConfig()

    # ------------------------------------------------------------------
    # Single transmission
    # ------------------------------------------------------------------

    def _transmit(self, message: Message, sender: str, reliability: float, congestion_scale: float) -> bool:
        """One radio transmission; records the attempt and any loss."""
        self.metrics.record_packet_attempt()

        if self.rng.random() < self.congestion_at(sender) * congestion_scale:
            self.metrics.record_congestion_loss(message.message_type, message.size)
            return False
        if self.rng.random() >= reliability:
            self.metrics.record_environment_loss(message.message_type, message.size)
            return False
        return True

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    def broadcast(self, graph: nx.DiGraph, message: Message, source: str) -> DeliveryResult:
        """
        Safety messages flood every neighbour; anything else goes only to
        the multipoint relays.  Delivered (1 hop) if any receiver got it.
        """
        if source not in graph:
            return DeliveryResult(delivered=False, path_broken=False, hops=0)

        if message.message_type == MessageType.SAFETY:
            receivers = list(graph.successors(source))
        else:
            receivers = select_relays(graph, source)

        scale = self.config.broadcast_congestion_scale
        received = 0
        for neighbor in receivers:
            if self._transmit(message, source, graph[source][neighbor]["reliability"], scale):
                received += 1

        logger.debug("Broadcast %s from %s: %d/%d receivers", message.id, source, received, len(receivers))
        return DeliveryResult(delivered=received > 0, path_broken=False, hops=1 if received else 0)

    # ------------------------------------------------------------------
    # Unicast
    # ------------------------------------------------------------------

    def forward(self, graph: nx.DiGraph, message: Message, path: list[str]) -> DeliveryResult:
        """
        Walk ``path`` hop by hop.

        - missing link  → path_broken, hops = hops completed so far
        - first loss    → not delivered, not broken, hops = index of that hop
        - no loss       → delivered, hops = len(path) − 1
        """
        scale = self.config.unicast_congestion_scale

        for hop, (current, next_hop) in enumerate(zip(path, path[1:])):
            if not graph.has_edge(current, next_hop):
                logger.debug("Message %s: link %s→%s gone, path broken at hop %d",
                             message.id, current, next_hop, hop)
                return DeliveryResult(delivered=False, path_broken=True, hops=hop)

            if not self._transmit(message, current, graph[current][next_hop]["reliability"], scale):
                return DeliveryResult(delivered=False, path_broken=False, hops=hop)

        logger.debug("Message %s delivered via %s", message.id, " → ".join(path))
        return DeliveryResult(delivered=True, path_broken=False, hops=len(path) - 1)
