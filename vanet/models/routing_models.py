"""
routing_models.py — Pydantic schemas for routing endpoints.
============================================================
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .simulation_models import PolicyName


class MessageTypeName(str, Enum):
    SAFETY = "safety"
    TELEMETRY = "telemetry"
    INFOTAINMENT = "infotainment"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class CompareRequest(BaseModel):
    """POST /compare — run the reference scenario under both policies."""
    vehicle_count: int = Field(default=50, ge=1, le=200)
    ticks: int = Field(default=300, ge=1, le=3000, description="100 ms steps per run")
    seed: int = 42

    model_config = {"json_schema_extra": {
        "examples": [{"vehicle_count": 50, "ticks": 300, "seed": 42}]
    }}


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class HopDetail(BaseModel):
    from_node: str
    to_node: str
    quality: float
    reliability: float
    edge_weight: Optional[float] = None


class RouteResponse(BaseModel):
    """Single routing result on the current link graph."""
    policy: PolicyName
    message_type: MessageTypeName
    source: str
    destination: str
    path: list[str]
    total_cost: Optional[float] = None
    hop_count: int
    found: bool
    per_hop_details: list[HopDetail] = []


class ComparisonRow(BaseModel):
    metric: str
    learned: float
    baseline: float
    improvement_percent: float


class CompareResponse(BaseModel):
    """Side-by-side comparison of the learned and baseline policies."""
    vehicle_count: int
    ticks: int
    seed: int
    rows: list[ComparisonRow]
    learned: dict
    baseline: dict
