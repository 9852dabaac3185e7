"""
router_network.py — API endpoint for the live link graph.
==========================================================
Prefix: /network
"""

from fastapi import APIRouter

from vanet.models.network_models import (
    LinkResponse, NetworkMetadata, NetworkResponse, NodeResponse,
)
from vanet.services.simulation_service import get_service

router = APIRouter(prefix="/network", tags=["Network"])


@router.get(
    "",
    response_model=NetworkResponse,
    summary="Get current network topology",
    response_description="Nodes with positions plus every directed link of the current tick",
)
def get_network():
    """
    Retrieve the link graph built on the last tick.  Links touching an RSU
    never expire, so their `duration` is `null`.

    **Example response:**
    ```json
    {
      "nodes": [{"id": "V0", "kind": "vehicle", "x": 412.5, "y": 250.0,
                 "tx_range": 300.0, "speed": 12.3, "direction": 0.0,
                 "neighbor_count": 14, "congestion": 0.35}],
      "links": [{"source": "V0", "target": "RSU1", "quality": 0.41,
                 "reliability": 0.33, "duration": null, "relative_speed": 12.3}],
      "metadata": {"node_count": 54, "link_count": 614, "sim_time": 5000,
                   "width": 1000.0, "height": 1000.0}
    }
    ```
    """
    svc = get_service()
    data = svc.get_topology()
    return NetworkResponse(
        nodes=[NodeResponse(**n) for n in data["nodes"]],
        links=[LinkResponse(**link) for link in data["links"]],
        metadata=NetworkMetadata(**data["metadata"]),
    )
