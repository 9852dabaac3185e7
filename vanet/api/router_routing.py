"""
router_routing.py — API endpoints for routing and policy comparison.
=====================================================================
Prefix: /route & /compare
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from vanet.models.routing_models import (
    CompareRequest, CompareResponse, ComparisonRow, HopDetail,
    MessageTypeName, RouteResponse,
)
from vanet.models.simulation_models import PolicyName
from vanet.services.simulation_service import get_service

router = APIRouter(tags=["Routing"])


@router.get(
    "/route",
    response_model=RouteResponse,
    summary="Route a message on the current link graph",
)
def route_message(
    source: str = Query(..., description="Source node ID"),
    dest: str = Query(..., description="Destination node ID"),
    message_type: MessageTypeName = Query(MessageTypeName.SAFETY, description="Traffic class"),
    policy: Optional[PolicyName] = Query(None, description="Defaults to the simulation's policy"),
):
    """
    Compute (but do not deliver) the lowest-weight path from `source` to
    `dest` under the chosen policy.  An unreachable destination returns an
    empty path with `found: false`.

    **Example:** `GET /route?source=V3&dest=RSU2&message_type=telemetry&policy=learned`

    **Example response:**
    ```json
    {
      "policy": "learned", "message_type": "telemetry",
      "source": "V3", "destination": "RSU2",
      "path": ["V3", "V17", "RSU2"],
      "total_cost": 9.73,
      "hop_count": 2,
      "found": true,
      "per_hop_details": [
        {"from_node": "V3", "to_node": "V17", "quality": 0.62,
         "reliability": 0.48, "edge_weight": 0.21}
      ]
    }
    ```
    """
    svc = get_service()
    _validate_nodes(svc, source, dest)

    result = svc.route(source, dest, message_type.value, policy.value if policy else None)
    return RouteResponse(
        **{**result, "per_hop_details": [HopDetail(**h) for h in result["per_hop_details"]]}
    )


@router.post(
    "/compare",
    response_model=CompareResponse,
    summary="Compare learned vs baseline routing",
)
def compare_policies(req: CompareRequest):
    """
    Run the reference scenario twice (same seed and layout), once per
    policy, and return a per-metric comparison.  Positive
    `improvement_percent` means the learned policy did better.

    **Example request:**
    ```json
    {"vehicle_count": 50, "ticks": 300, "seed": 42}
    ```
    """
    svc = get_service()
    result = svc.compare_policies(vehicle_count=req.vehicle_count, ticks=req.ticks, seed=req.seed)
    return CompareResponse(
        vehicle_count=result["vehicle_count"],
        ticks=result["ticks"],
        seed=result["seed"],
        rows=[ComparisonRow(**r) for r in result["rows"]],
        learned=result["learned"],
        baseline=result["baseline"],
    )


def _validate_nodes(svc, *node_ids: str) -> None:
    """Raise 404 if any node ID is not in the simulation."""
    for nid in node_ids:
        if not svc.has_node(nid):
            raise HTTPException(status_code=404, detail=f"Node {nid!r} not found in the simulation")
