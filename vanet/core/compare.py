"""
compare.py — Learned vs Baseline Routing Comparison
====================================================
Entry point that:
    1. Builds the reference scenario twice (same seed, same layout).
    2. Runs it under the learned policy, then under the baseline policy.
    3. Prints a side-by-side comparison table.
    4. Writes the comparison to CSV.
    5. Plots average link quality and delivery ratio over time.

Usage:
    python -m vanet.core.compare          (from project root)
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import matplotlib
matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt

from vanet.core.metrics import MetricsCollector
from vanet.core.nodes import MessageType
from vanet.core.routing import RoutingPolicy
from vanet.core.scenario import ScenarioConfig, build_reference_scenario

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

OUTPUT_DIR = Path.cwd()
CSV_NAME = "vanet_comparison_results.csv"
PLOT_NAME = "vanet_comparison.png"


@dataclass
class Checkpoint:
    tick: int
    time_ms: int
    avg_link_quality: float
    delivery_ratio: float
    delivered: int
    sent: int


@dataclass
class RunResult:
    policy: RoutingPolicy
    metrics: MetricsCollector
    checkpoints: list[Checkpoint] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------

def run_policy(
    policy: RoutingPolicy,
    scenario: Optional[ScenarioConfig] = None,
    on_checkpoint: Optional[Callable[[RoutingPolicy, Checkpoint], None]] = None,
) -> RunResult:
    """Run the reference scenario under one policy, sampling every ``report_every`` ticks."""
    cfg = scenario or ScenarioConfig()
    metrics = MetricsCollector()
    sim = build_reference_scenario(policy, cfg, metrics)
    result = RunResult(policy=RoutingPolicy(policy), metrics=metrics)

    for i in range(1, cfg.ticks + 1):
        sim.tick()
        if i % cfg.report_every == 0:
            stats = sim.network_stats()
            point = Checkpoint(
                tick=i,
                time_ms=stats.sim_time,
                avg_link_quality=stats.avg_link_quality,
                delivery_ratio=metrics.delivery_ratio(),
                delivered=metrics.total_delivered,
                sent=metrics.total_sent,
            )
            result.checkpoints.append(point)
            if on_checkpoint is not None:
                on_checkpoint(result.policy, point)

    return result


def improvement(new_value: float, old_value: float) -> float:
    """Relative change in percent; 0 when the reference is 0."""
    if old_value == 0:
        return 0.0
    return (new_value - old_value) / old_value * 100


# Each row: label, getter, lower_is_better
COMPARISON_ROWS: list[tuple[str, Callable[[MetricsCollector], float], bool]] = [
    ("Delivery ratio (%)", lambda m: m.delivery_ratio() * 100, False),
    ("Safety delivery ratio (%)", lambda m: m.delivery_ratio(MessageType.SAFETY) * 100, False),
    ("Telemetry delivery ratio (%)", lambda m: m.delivery_ratio(MessageType.TELEMETRY) * 100, False),
    ("Infotainment delivery ratio (%)", lambda m: m.delivery_ratio(MessageType.INFOTAINMENT) * 100, False),
    ("Average latency (ms)", lambda m: m.average_latency(), True),
    ("Safety latency (ms)", lambda m: m.average_latency(MessageType.SAFETY), True),
    ("Telemetry latency (ms)", lambda m: m.average_latency(MessageType.TELEMETRY), True),
    ("Infotainment latency (ms)", lambda m: m.average_latency(MessageType.INFOTAINMENT), True),
    ("Network overhead (bytes)", lambda m: float(m.bytes_transmitted), True),
    ("Average hop count", lambda m: m.average_hop_count, True),
    ("Path breaks", lambda m: float(m.path_breaks), True),
    ("Packet loss, congestion (%)", lambda m: m.congestion_loss_rate * 100, True),
    ("Packet loss, environment (%)", lambda m: m.environment_loss_rate * 100, True),
]


def comparison_table(learned: MetricsCollector, baseline: MetricsCollector) -> list[dict]:
    """
    One row per metric.  Improvement is signed so that positive always
    means the learned policy did better.
    """
    rows = []
    for label, getter, lower_is_better in COMPARISON_ROWS:
        lv, bv = getter(learned), getter(baseline)
        # lower-is-better rows are inverted: (baseline − learned) / learned
        delta = improvement(bv, lv) if lower_is_better else improvement(lv, bv)
        rows.append({
            "metric": label,
            "learned": round(lv, 4),
            "baseline": round(bv, 4),
            "improvement_percent": round(delta, 2),
        })
    return rows


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def print_comparison(rows: list[dict]) -> None:
    header = f"\n{'='*72}"
    print(header)
    print("  VANET PERFORMANCE COMPARISON — Learned vs Baseline")
    print(header)
    print(f"  {'Metric':<32} {'Learned':>12} {'Baseline':>12} {'Improvement':>12}")
    print(f"  {'-'*32} {'-'*12} {'-'*12} {'-'*12}")
    for row in rows:
        print(f"  {row['metric']:<32} {row['learned']:>12.2f} {row['baseline']:>12.2f} "
              f"{row['improvement_percent']:>+11.2f}%")
    print(header)


def save_csv(rows: list[dict], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(["Metric", "Learned Routing", "Baseline Routing", "Improvement (%)"])
        for row in rows:
            writer.writerow([row["metric"], row["learned"], row["baseline"], row["improvement_percent"]])
    logger.info("Comparison saved → %s", output_path)


def plot_comparison(learned: RunResult, baseline: RunResult, output_path: Path) -> None:
    """
    Plot two charts:
      1. Average vehicle link quality per checkpoint
      2. Cumulative delivery ratio per checkpoint
    """
    fig, axes = plt.subplots(2, 1, figsize=(12, 8), dpi=120)

    # --- Link quality ---
    ax1 = axes[0]
    for run, color in ((learned, "#EF553B"), (baseline, "#636EFA")):
        seconds = [c.time_ms / 1000 for c in run.checkpoints]
        ax1.plot(seconds, [c.avg_link_quality for c in run.checkpoints],
                 color=color, linewidth=2, label=run.policy.value)
    ax1.set_xlabel("Simulation time (s)")
    ax1.set_ylabel("Avg link quality")
    ax1.set_title("Average Vehicle Link Quality")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    # --- Delivery ratio ---
    ax2 = axes[1]
    for run, color in ((learned, "#EF553B"), (baseline, "#636EFA")):
        seconds = [c.time_ms / 1000 for c in run.checkpoints]
        ax2.plot(seconds, [c.delivery_ratio * 100 for c in run.checkpoints],
                 color=color, linewidth=2, label=run.policy.value)
    ax2.set_xlabel("Simulation time (s)")
    ax2.set_ylabel("Delivery ratio (%)")
    ax2.set_title("Cumulative Delivery Ratio")
    ax2.set_ylim(-5, 105)
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plt.savefig(output_path)
    plt.close(fig)
    logger.info("Comparison chart saved → %s", output_path)


def _print_checkpoint(policy: RoutingPolicy, point: Checkpoint) -> None:
    print(f"  [{policy.value:>8}] t={point.time_ms:>7}ms  "
          f"delivered {point.delivered}/{point.sent} ({point.delivery_ratio * 100:.2f}%)  "
          f"avg link quality {point.avg_link_quality:.4f}")


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(output_dir: Path = OUTPUT_DIR, scenario: Optional[ScenarioConfig] = None) -> list[dict]:
    cfg = scenario or ScenarioConfig()

    print("\n" + "=" * 72)
    print("  VANET Routing — Learned vs Baseline")
    print("=" * 72)
    print(f"\n  Scenario: {cfg.vehicle_count} vehicles, {cfg.ticks} ticks, seed={cfg.seed}\n")

    print("  Running simulation with learned routing...")
    learned = run_policy(RoutingPolicy.LEARNED, cfg, _print_checkpoint)

    print("\n  Running simulation with baseline routing...")
    baseline = run_policy(RoutingPolicy.BASELINE, cfg, _print_checkpoint)

    rows = comparison_table(learned.metrics, baseline.metrics)
    print_comparison(rows)

    save_csv(rows, output_dir / CSV_NAME)
    plot_comparison(learned, baseline, output_dir / PLOT_NAME)
    print(f"  Results saved → {output_dir / CSV_NAME}")
    print(f"  📊 Chart saved → {output_dir / PLOT_NAME}\n")
    return rows


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s — %(message)s")
    main()
