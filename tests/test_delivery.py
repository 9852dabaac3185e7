import random

import networkx as nx

from vanet.core.delivery import DeliverySimulator, LossConfig, select_relays
from vanet.core.metrics import MetricsCollector
from vanet.core.nodes import Message, MessageType


def _graph(edges):
    g = nx.DiGraph()
    for u, v, reliability in edges:
        g.add_edge(u, v, quality=0.5, reliability=reliability, duration=60.0, relative_speed=0.0)
    return g


def _message(destination="C", message_type=MessageType.TELEMETRY):
    return Message("M1", "A", destination, message_type, 200, 0)


def _delivery(congestion=0.0, config=None):
    metrics = MetricsCollector()
    return DeliverySimulator(random.Random(0), lambda _: congestion, metrics, config), metrics


def test_lossless_path_is_delivered():
    sim, metrics = _delivery()
    g = _graph([("A", "B", 1.0), ("B", "C", 1.0)])
    result = sim.forward(g, _message(), ["A", "B", "C"])
    assert result.delivered and not result.path_broken
    assert result.hops == 2
    assert metrics.packets_attempted == 2
    assert metrics.congestion_losses == metrics.environment_losses == 0


def test_zero_reliability_hop_stops_forwarding():
    sim, metrics = _delivery()
    g = _graph([("A", "B", 1.0), ("B", "C", 0.0)])
    result = sim.forward(g, _message(), ["A", "B", "C"])
    assert not result.delivered and not result.path_broken
    assert result.hops == 1
    assert metrics.environment_losses == 1


def test_missing_link_breaks_path():
    sim, metrics = _delivery()
    g = _graph([("A", "B", 1.0)])
    g.add_node("C")
    result = sim.forward(g, _message(), ["A", "B", "C"])
    assert result.path_broken and not result.delivered
    assert result.hops == 1
    assert metrics.packets_attempted == 1


def test_full_congestion_loses_first_hop():
    sim, metrics = _delivery(congestion=1.0, config=LossConfig(unicast_congestion_scale=1.0))
    g = _graph([("A", "B", 1.0), ("B", "C", 1.0)])
    result = sim.forward(g, _message(), ["A", "B", "C"])
    assert not result.delivered
    assert result.hops == 0
    assert metrics.congestion_losses == 1
    assert metrics.environment_losses == 0


def test_safety_broadcast_floods_all_neighbours():
    sim, metrics = _delivery()
    g = _graph([("A", "B", 1.0), ("A", "C", 1.0), ("A", "D", 1.0)])
    result = sim.broadcast(g, _message(None, MessageType.SAFETY), "A")
    assert result.delivered and result.hops == 1
    assert metrics.packets_attempted == 3


def test_broadcast_without_neighbours_is_not_delivered():
    sim, _ = _delivery()
    g = nx.DiGraph()
    g.add_node("A")
    result = sim.broadcast(g, _message(None, MessageType.SAFETY), "A")
    assert not result.delivered and result.hops == 0


def test_select_relays_greedy_cover():
    g = _graph([
        ("S", "A", 1.0), ("S", "B", 1.0), ("S", "C", 1.0),
        ("A", "S", 1.0), ("A", "X", 1.0), ("A", "Y", 1.0),
        ("B", "S", 1.0), ("B", "X", 1.0),
        ("C", "S", 1.0),
    ])
    assert select_relays(g, "S") == ["A"]
    # graph untouched
    assert set(g.successors("S")) == {"A", "B", "C"}
    assert select_relays(g, "missing") == []


def test_selective_broadcast_uses_relays_only():
    sim, metrics = _delivery()
    g = _graph([
        ("S", "A", 1.0), ("S", "B", 1.0),
        ("A", "X", 1.0),
    ])
    result = sim.broadcast(g, Message("M2", "S", None, MessageType.TELEMETRY, 200, 0), "S")
    assert result.delivered
    assert metrics.packets_attempted == 1
