"""Turbine: a dataflow routing engine for composing channel topologies.

Route specs describe workers that move values between named channels:
  - broadcast (scatter, splatter, spread)
  - conditional dispatch (select)
  - synchronized join and non-deterministic merge (gather, union)
  - terminal consumption and running reduction (sink, collect)

Each dispatched route runs on its own thread and closes its outputs when
its inputs are exhausted, so shutdown propagates through the topology.
"""

__version__ = "0.1.0"
__description__ = "Dataflow routing engine over concurrent channels"

from turbine.core.aliases import normalize
from turbine.core.channel import CLOSED, Channel
from turbine.core.topology import Topology
from turbine.routing.dispatcher import dispatch

__all__ = ["CLOSED", "Channel", "Topology", "dispatch", "normalize", "__version__"]
