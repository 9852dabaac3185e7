"""
router_metrics.py — API endpoint for simulation metrics.
=========================================================
Prefix: /metrics
"""

from fastapi import APIRouter

from vanet.models.metrics_models import MetricsSummary
from vanet.services.simulation_service import get_service

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.get(
    "",
    response_model=MetricsSummary,
    summary="Get delivery, loss and learning metrics",
)
def get_metrics():
    """
    Return the metrics collector summary for the running simulation.

    **Example response:**
    ```json
    {
      "policy": "learned", "time_ms": 5000,
      "messages_sent": 300, "messages_delivered": 230,
      "delivery_ratio": 0.7667, "safety_delivery_ratio": 0.96,
      "average_latency_ms": 14.2, "average_hop_count": 1.31,
      "path_breaks": 0, "congestion_loss_rate": 0.12,
      "environment_loss_rate": 0.41, "model_updates": 5,
      "current_link_quality": 0.5412, "link_quality_improvement_percent": 3.18
    }
    ```
    """
    svc = get_service()
    return MetricsSummary(**svc.get_metrics())
