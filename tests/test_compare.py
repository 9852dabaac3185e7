import csv

import pytest

from vanet.core.compare import (
    COMPARISON_ROWS, comparison_table, improvement, plot_comparison, run_policy, save_csv,
)
from vanet.core.metrics import MetricsCollector
from vanet.core.nodes import MessageType
from vanet.core.routing import RoutingPolicy
from vanet.core.scenario import ScenarioConfig


def test_improvement():
    assert improvement(120, 100) == pytest.approx(20.0)
    assert improvement(5, 0) == 0.0


def test_comparison_table_sign_convention():
    learned, baseline = MetricsCollector(), MetricsCollector()
    for m, delivered in ((learned, 3), (baseline, 2)):
        for _ in range(4):
            m.record_message_sent(MessageType.SAFETY, 50)
        for _ in range(delivered):
            m.record_message_delivered(MessageType.SAFETY, 0, 10, 1, 50)

    rows = {r["metric"]: r for r in comparison_table(learned, baseline)}
    assert len(rows) == len(COMPARISON_ROWS)
    assert rows["Delivery ratio (%)"]["improvement_percent"] == pytest.approx(50.0)
    assert rows["Average latency (ms)"]["improvement_percent"] == 0.0


def test_run_policy_and_outputs(tmp_path):
    cfg = ScenarioConfig(vehicle_count=10, ticks=20, report_every=10)
    learned = run_policy(RoutingPolicy.LEARNED, cfg)
    baseline = run_policy(RoutingPolicy.BASELINE, cfg)
    assert [c.tick for c in learned.checkpoints] == [10, 20]
    assert learned.checkpoints[-1].time_ms == 2000

    rows = comparison_table(learned.metrics, baseline.metrics)
    csv_path = tmp_path / "out.csv"
    save_csv(rows, csv_path)
    with csv_path.open() as fh:
        lines = list(csv.reader(fh))
    assert lines[0][0] == "Metric"
    assert len(lines) == len(rows) + 1

    png_path = tmp_path / "chart.png"
    plot_comparison(learned, baseline, png_path)
    assert png_path.stat().st_size > 0
