"""
models — Pydantic schema package.
==================================
Re-exports all schemas for convenient imports.
"""

from .simulation_models import *
from .network_models import *
from .routing_models import *
from .metrics_models import *
