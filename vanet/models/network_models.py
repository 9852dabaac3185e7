"""
network_models.py — Pydantic schemas for the topology snapshot endpoint.
=========================================================================
"""

from typing import Optional

from pydantic import BaseModel

from vanet.core.nodes import NodeKind


class NodeResponse(BaseModel):
    id: str
    kind: NodeKind
    x: float
    y: float
    tx_range: float
    speed: float
    direction: Optional[float] = None     # radians, vehicles only
    neighbor_count: int
    congestion: float


class LinkResponse(BaseModel):
    source: str
    target: str
    quality: float
    reliability: float
    duration: Optional[float] = None      # null for fixed (infrastructure) links
    relative_speed: float


class NetworkMetadata(BaseModel):
    node_count: int
    link_count: int
    sim_time: int
    width: float
    height: float


class NetworkResponse(BaseModel):
    """Full link graph at the current tick."""
    nodes: list[NodeResponse]
    links: list[LinkResponse]
    metadata: NetworkMetadata
