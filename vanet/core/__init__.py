"""
core — Channel model, link graph, routing, delivery and the simulator.
======================================================================
Convenience re-exports so other modules can do:
    from vanet.core import VanetSimulator, RoutingPolicy
"""

from .nodes import MessageType, EnvironmentType, NodeKind, Node, Message
from .channel import ChannelModel, ChannelConfig
from .estimator import LinkQualityEstimator, TrainingSample
from .topology import TopologyEngine
from .routing import RoutingEngine, RoutingPolicy
from .delivery import DeliverySimulator, DeliveryResult, LossConfig
from .metrics import MetricsCollector
from .simulator import VanetSimulator, SimulationConfig, NetworkStats
from .scenario import ScenarioConfig, build_reference_scenario
