"""
metrics_models.py — Pydantic schemas for metrics endpoints.
============================================================
"""

from pydantic import BaseModel

from .simulation_models import PolicyName


class MetricsSummary(BaseModel):
    """GET /metrics — collector summary for the running simulation."""
    policy: PolicyName
    time_ms: int
    messages_sent: int
    messages_delivered: int
    messages_dropped: int

    # Delivery
    delivery_ratio: float
    safety_delivery_ratio: float
    telemetry_delivery_ratio: float
    infotainment_delivery_ratio: float

    # Latency (ms)
    average_latency_ms: float
    safety_latency_ms: float
    telemetry_latency_ms: float
    infotainment_latency_ms: float

    # Network behaviour
    network_overhead_bytes: int
    average_hop_count: float
    path_breaks: int
    route_recomputations: int
    congestion_loss_rate: float
    environment_loss_rate: float
    packets_attempted: int

    # Learning
    model_updates: int
    current_link_quality: float
    link_quality_improvement_percent: float
