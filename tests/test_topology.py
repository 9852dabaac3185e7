import math
import random

import pytest

from vanet.core.channel import ChannelModel
from vanet.core.nodes import make_infrastructure, make_vehicle
from vanet.core.routing import RoutingPolicy
from vanet.core.topology import TopologyEngine, average_link_quality, composite_quality, get_link


def _engine(policy=RoutingPolicy.LEARNED):
    return TopologyEngine(ChannelModel(random.Random(5)), policy=policy)


def test_link_exists_iff_within_smaller_range():
    nodes = [
        make_vehicle("V0", 0, 0, 0.0, 10.0, 300),
        make_vehicle("V1", 250, 0, 0.0, 10.0, 300),
        make_vehicle("V2", 600, 0, 0.0, 10.0, 300),
        make_infrastructure("R", 0, 100, 50),
    ]
    graph = _engine().rebuild(nodes, {})
    assert set(graph.nodes) == {"V0", "V1", "V2", "R"}
    assert set(graph.edges) == {("V0", "V1"), ("V1", "V0")}


def test_rebuild_starts_from_scratch():
    engine = _engine()
    a = make_vehicle("A", 0, 0, 0.0, 10.0, 300)
    b = make_vehicle("B", 100, 0, 0.0, 10.0, 300)
    assert engine.rebuild([a, b], {}).has_edge("A", "B")

    b.x = 900
    graph = engine.rebuild([a, b], {})
    assert graph.number_of_edges() == 0


def test_link_attributes():
    nodes = [
        make_vehicle("A", 0, 0, 0.0, 10.0, 300),
        make_vehicle("B", 120, 0, 0.0, 12.0, 300),
        make_infrastructure("R", 60, 60, 300),
    ]
    graph = _engine().rebuild(nodes, {"A": 0.2, "B": 0.2, "R": 0.2})
    for u, v, d in graph.edges(data=True):
        assert 0.0 <= d["quality"] <= 1.0
        assert 0.0 <= d["reliability"] <= 1.0
    assert math.isinf(get_link(graph, "A", "R").duration)
    assert math.isinf(get_link(graph, "R", "B").duration)
    assert get_link(graph, "A", "B").duration == pytest.approx((300 - 120) / 2.0)


def test_composite_quality_range():
    assert composite_quality(1.0, 1.0, 600.0, 0.0) == pytest.approx(1.0)
    assert composite_quality(0.0, 0.0, 0.0, 45.0) == pytest.approx(0.0)


def test_baseline_quality_is_signal():
    nodes = [make_vehicle("A", 0, 0, 0.0, 10.0, 300), make_vehicle("B", 100, 0, 0.0, 10.0, 300)]
    graph = _engine(RoutingPolicy.BASELINE).rebuild(nodes, {})
    d = graph["A"]["B"]
    # no obstacles, no congestion: reliability equals the signal
    assert d["quality"] == pytest.approx(d["reliability"])


def test_average_link_quality_counts_vehicle_links():
    nodes = [
        make_vehicle("A", 0, 0, 0.0, 10.0, 300),
        make_vehicle("B", 100, 0, 0.0, 10.0, 300),
        make_infrastructure("R", 50, 0, 300),
    ]
    graph = _engine().rebuild(nodes, {})
    avg, count = average_link_quality(graph, {n.id: n for n in nodes})
    assert count == 4          # A→B, A→R, B→A, B→R
    assert 0.0 <= avg <= 1.0
