import math

import networkx as nx
import pytest

from vanet.core.nodes import MessageType
from vanet.core.routing import (
    RoutingEngine, RoutingPolicy, baseline_weight, find_baseline_path,
    find_optimal_path, learned_weight,
)


def _link(graph, u, v, quality=0.5, reliability=0.5, duration=60.0):
    graph.add_edge(u, v, quality=quality, reliability=reliability, duration=duration, relative_speed=0.0)


def test_baseline_picks_most_reliable_path():
    g = nx.DiGraph()
    _link(g, "A", "B", reliability=0.9)
    _link(g, "B", "D", reliability=0.9)
    _link(g, "A", "C", reliability=0.5)
    _link(g, "C", "D", reliability=0.5)
    g.add_node("E")

    assert find_baseline_path(g, "A", "D") == ["A", "B", "D"]
    assert RoutingEngine(RoutingPolicy.BASELINE).path_cost(g, ["A", "B", "D"], MessageType.SAFETY) == \
        pytest.approx(2 / 0.9)
    assert find_baseline_path(g, "A", "E") == []
    assert find_baseline_path(g, "A", "missing") == []
    assert find_baseline_path(g, "A", "A") == []


def test_learned_weight_depends_on_message_type():
    g = nx.DiGraph()
    # high quality, low reliability, long-lived
    _link(g, "A", "H", quality=0.9, reliability=0.2, duration=120.0)
    _link(g, "H", "D", quality=0.9, reliability=0.2, duration=120.0)
    # low quality, high reliability, short-lived
    _link(g, "A", "L", quality=0.3, reliability=0.9, duration=5.0)
    _link(g, "L", "D", quality=0.3, reliability=0.9, duration=5.0)

    assert find_optimal_path(g, "A", "D", MessageType.SAFETY) == ["A", "L", "D"]
    assert find_optimal_path(g, "A", "D", MessageType.INFOTAINMENT) == ["A", "H", "D"]


def test_unusable_edges_are_hidden():
    zero = {"quality": 0.8, "reliability": 0.0, "duration": math.inf}
    assert learned_weight(zero, MessageType.SAFETY) is None
    assert learned_weight(zero, MessageType.TELEMETRY) is None
    assert baseline_weight(zero) is None

    g = nx.DiGraph()
    _link(g, "A", "B", reliability=0.0)
    assert find_optimal_path(g, "A", "B", MessageType.SAFETY) == []


def test_infrastructure_link_has_zero_infotainment_weight():
    fixed = {"quality": 0.5, "reliability": 0.4, "duration": math.inf}
    assert learned_weight(fixed, MessageType.INFOTAINMENT) == 0.0


def test_min_quality_floor():
    attrs = {"quality": 0.0, "reliability": 0.5, "duration": 60.0}
    assert learned_weight(attrs, MessageType.SAFETY) == pytest.approx(10.0)


def test_engine_accepts_policy_name():
    assert RoutingEngine("baseline").policy is RoutingPolicy.BASELINE
