import math
import random

import pytest

from vanet.core.channel import ChannelModel, sample_gamma, sample_nakagami
from vanet.core.geometry import CongestionZone, Obstacle
from vanet.core.nodes import EnvironmentType, make_infrastructure, make_vehicle


def test_nakagami_mean_square_matches_spread():
    rng = random.Random(42)
    n = 20000
    mean_square = sum(sample_nakagami(rng, 1.0, 1.0) ** 2 for _ in range(n)) / n
    assert mean_square == pytest.approx(1.0, abs=0.05)


@pytest.mark.parametrize("shape", [0.5, 2.0])
def test_gamma_non_negative_with_expected_mean(shape):
    rng = random.Random(7)
    draws = [sample_gamma(rng, shape, 2.0) for _ in range(20000)]
    assert min(draws) >= 0.0
    assert sum(draws) / len(draws) == pytest.approx(shape * 2.0, rel=0.1)


@pytest.mark.parametrize("shape,scale", [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0)])
def test_gamma_rejects_bad_parameters(shape, scale):
    with pytest.raises(ValueError):
        sample_gamma(random.Random(0), shape, scale)


def test_obstacle_attenuation_combines():
    channel = ChannelModel(random.Random(0), obstacles=[
        Obstacle(100, 100, 200, 200, attenuation=0.8),
        Obstacle(300, 100, 400, 200, attenuation=0.5),
    ])
    assert channel.obstacle_attenuation(0, 150, 500, 150) == pytest.approx(0.9)
    assert channel.obstacle_attenuation(0, 0, 500, 0) == 0.0
    # endpoint inside the block counts as crossing
    assert channel.obstacle_attenuation(150, 150, 150, 500) == pytest.approx(0.8)


def test_congestion_factor_takes_worse_of_zone_and_density():
    channel = ChannelModel(random.Random(0), congestion_zones=[CongestionZone(200, 200, 300, 300, load=0.8)])
    assert channel.congestion_factor(250, 250, 0) == pytest.approx(0.8)
    assert channel.congestion_factor(250, 250, 30) == pytest.approx(1.0)
    assert channel.congestion_factor(600, 600, 10) == pytest.approx(0.5)


def test_congestion_map_counts_vehicles_only():
    channel = ChannelModel(random.Random(0))
    nodes = [make_vehicle(f"V{i}", 0, 0, 0.0, 10.0, 300) for i in range(5)]
    nodes.append(make_infrastructure("RSU", 0, 0, 300))
    nodes.append(make_vehicle("far", 500, 500, 0.0, 10.0, 300))
    congestion = channel.congestion_map(nodes)
    assert congestion["V0"] == pytest.approx(0.25)
    assert congestion["RSU"] == pytest.approx(0.25)
    assert congestion["far"] == pytest.approx(0.05)


def test_link_duration():
    channel = ChannelModel(random.Random(0))
    assert channel.link_duration(100, 0.0, 300) == 300.0
    assert channel.link_duration(100, 10.0, 300) == pytest.approx(20.0)


def test_estimate_link_bounds():
    channel = ChannelModel(random.Random(3))
    a = make_vehicle("A", 0, 0, 0.0, 10.0, 300)
    b = make_vehicle("B", 100, 0, math.pi, 10.0, 300)
    rsu = make_infrastructure("R", 50, 50, 300)

    v2v = channel.estimate_link(a, b, EnvironmentType.URBAN, 0.5)
    assert 0.0 <= v2v.signal <= 1.0
    assert v2v.reliability == pytest.approx(v2v.base_reliability * 0.5)
    assert v2v.relative_speed == pytest.approx(20.0)
    assert v2v.duration == pytest.approx(10.0)

    v2i = channel.estimate_link(a, rsu, EnvironmentType.HIGHWAY, 0.0)
    assert math.isinf(v2i.duration)
    assert v2i.reliability == pytest.approx(0.9 * v2i.signal)
