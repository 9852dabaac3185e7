"""
simulation_models.py — Pydantic schemas for simulation lifecycle endpoints.
============================================================================
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PolicyName(str, Enum):
    LEARNED = "learned"
    BASELINE = "baseline"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class SimulationCreateRequest(BaseModel):
    """POST /simulation — build (or rebuild) the reference scenario."""
    policy: PolicyName = PolicyName.LEARNED
    vehicle_count: int = Field(default=50, ge=0, le=500, description="Vehicles placed on the roads")
    seed: int = Field(default=42, description="Seed for placement and the simulation stream")

    model_config = {"json_schema_extra": {
        "examples": [{"policy": "learned", "vehicle_count": 50, "seed": 42}]
    }}


class TickRequest(BaseModel):
    """POST /simulation/tick — advance the running simulation."""
    ticks: int = Field(default=10, ge=1, le=1000, description="Number of 100 ms steps")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class SimulationStats(BaseModel):
    policy: PolicyName
    ticks: int
    vehicle_count: int
    infrastructure_count: int
    queue_size: int
    delivered_count: int
    sim_time: int
    avg_link_quality: float
    total_links: int
    seed: Optional[int] = None
