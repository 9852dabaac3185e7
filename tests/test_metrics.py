import pytest

from vanet.core.metrics import MetricsCollector
from vanet.core.nodes import MessageType


def test_delivery_ratios_and_latency():
    m = MetricsCollector()
    m.record_message_sent(MessageType.SAFETY, 50)
    m.record_message_sent(MessageType.SAFETY, 50)
    m.record_message_sent(MessageType.TELEMETRY, 200)
    m.record_message_delivered(MessageType.SAFETY, 1000, 1020, 1, 50)
    m.record_message_delivered(MessageType.TELEMETRY, 5000, 5100, 3, 200)

    assert m.total_sent == 3 and m.total_delivered == 2
    assert m.delivery_ratio() == pytest.approx(2 / 3)
    assert m.delivery_ratio(MessageType.SAFETY) == pytest.approx(0.5)
    assert m.delivery_ratio(MessageType.INFOTAINMENT) == 0.0
    assert m.average_latency() == pytest.approx(60.0)
    assert m.average_latency(MessageType.TELEMETRY) == pytest.approx(100.0)
    assert m.average_hop_count == pytest.approx(2.0)
    assert m.bytes_transmitted == 300


def test_loss_rates():
    m = MetricsCollector()
    for _ in range(4):
        m.record_packet_attempt()
    m.record_congestion_loss(MessageType.SAFETY, 50)
    m.record_environment_loss(MessageType.SAFETY, 50)
    m.record_environment_loss(MessageType.TELEMETRY, 200)
    assert m.congestion_loss_rate == pytest.approx(0.25)
    assert m.environment_loss_rate == pytest.approx(0.5)


def test_link_quality_improvement_from_first_nonzero_reading():
    m = MetricsCollector()
    assert m.link_quality_improvement == 0.0
    m.record_link_quality(0.0)
    m.record_link_quality(0.5)
    m.record_link_quality(0.6)
    assert m.link_quality_improvement == pytest.approx(20.0)


def test_summary_is_flat():
    m = MetricsCollector()
    m.update_time(1200)
    m.record_path_break()
    m.record_route_recomputation()
    m.record_model_update()
    summary = m.summary()
    assert summary["time_ms"] == 1200
    assert summary["path_breaks"] == 1
    assert summary["route_recomputations"] == 1
    assert summary["model_updates"] == 1
    assert summary["delivery_ratio"] == 0.0


def test_dropped_messages_counted_per_type():
    m = MetricsCollector()
    m.record_message_sent(MessageType.SAFETY, 50)
    m.record_message_sent(MessageType.TELEMETRY, 200)
    m.record_message_dropped(MessageType.SAFETY)
    assert m.per_type[MessageType.SAFETY].dropped == 1
    assert m.total_dropped == 1
    assert m.summary()["messages_dropped"] == 1
    # a drop is not a delivery
    assert m.delivery_ratio() == 0.0
