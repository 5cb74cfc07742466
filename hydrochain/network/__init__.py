"""
hydrochain Network

Provides:
- PropagationEngine: downstream station/elevation propagation
- ConnectionManager: link/unlink/edit operations, serialized by a lock
"""

from hydrochain.network.propagation import (
    PropagationEngine,
    PropagationResult,
    propagate,
    recalculate_chain,
)
from hydrochain.network.connections import (
    ConnectionManager,
    connect,
    disconnect,
)

__all__ = [
    "PropagationEngine",
    "PropagationResult",
    "propagate",
    "recalculate_chain",
    "ConnectionManager",
    "connect",
    "disconnect",
]
