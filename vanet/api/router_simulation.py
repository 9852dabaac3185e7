"""
router_simulation.py — API endpoints for the simulation lifecycle.
===================================================================
Prefix: /simulation
"""

from fastapi import APIRouter

from vanet.models.simulation_models import SimulationCreateRequest, SimulationStats, TickRequest
from vanet.services.simulation_service import get_service

router = APIRouter(prefix="/simulation", tags=["Simulation"])


@router.post(
    "",
    response_model=SimulationStats,
    status_code=201,
    summary="Create / reset the simulation",
)
def create_simulation(req: SimulationCreateRequest):
    """
    Build a fresh reference scenario (4 roads, 4 RSUs, 3 obstacles,
    3 congestion zones) with `vehicle_count` vehicles.
    **Warning:** This discards the running simulation and its metrics.

    **Example request:**
    ```json
    {"policy": "learned", "vehicle_count": 50, "seed": 42}
    ```
    """
    svc = get_service()
    return SimulationStats(**svc.create_simulation(
        policy=req.policy.value,
        vehicle_count=req.vehicle_count,
        seed=req.seed,
    ))


@router.post(
    "/tick",
    response_model=SimulationStats,
    summary="Advance the simulation",
)
def advance(req: TickRequest):
    """
    Run `ticks` steps of 100 ms each and return the resulting stats.

    **Example request:**
    ```json
    {"ticks": 50}
    ```

    **Example response:**
    ```json
    {
      "policy": "learned", "ticks": 50,
      "vehicle_count": 50, "infrastructure_count": 4,
      "queue_size": 12, "delivered_count": 230,
      "sim_time": 5000, "avg_link_quality": 0.5412, "total_links": 614,
      "seed": 42
    }
    ```
    """
    svc = get_service()
    return SimulationStats(**svc.advance(req.ticks))


@router.get(
    "/stats",
    response_model=SimulationStats,
    summary="Get current simulation stats",
)
def get_stats():
    """Read-only snapshot: node counts, queue size, delivered count, link quality."""
    svc = get_service()
    return SimulationStats(**svc.get_stats())
