"""
hydrochain Propagation Engine

Keeps station and elevation placement consistent along a chain after an
edit. The chain is singly linked, so propagation is an iterative walk with
exactly one successor per step:

    next.start_station   = current.end_station
    next.start_elevation = current.end_elevation
    next.end_station     = next.start_station + next.horizontal_length()
    next.end_elevation   = next.start_elevation - next.total_drop()

Propagation is pure arithmetic over links the ConnectionManager has already
validated; the only failure it reports is a corrupt store (a revisited
element), which connect() makes unconstructible.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging
import uuid

from hydrochain.core.elements import HydraulicElement
from hydrochain.core.store import ElementStore
from hydrochain.errors import ChainIntegrityError

logger = logging.getLogger(__name__)

# Called once per element whose placement was rewritten
PlacementListener = Callable[[HydraulicElement], None]


# =============================================================================
# PROPAGATION RESULT
# =============================================================================

@dataclass
class PropagationResult:
    """Outcome of one propagation walk."""
    origin_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    propagation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    # Ids re-placed, origin first, in chain order
    updated_ids: List[str] = field(default_factory=list)

    elapsed_ms: float = 0.0

    # Walk stopped at a downstream id missing from the store
    stopped_at_dangling: Optional[str] = None

    @property
    def updated_count(self) -> int:
        return len(self.updated_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "propagation_id": self.propagation_id,
            "origin_id": self.origin_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "updated_ids": list(self.updated_ids),
            "updated_count": self.updated_count,
            "elapsed_ms": round(self.elapsed_ms, 3),
            "stopped_at_dangling": self.stopped_at_dangling,
        }


# =============================================================================
# ENGINE
# =============================================================================

class PropagationEngine:
    """
    Walks a chain downstream re-placing every element.

    The engine keeps no reference to the store between calls.
    """

    def __init__(self):
        self._listeners: List[PlacementListener] = []

    def add_listener(self, listener: PlacementListener) -> None:
        """Register a callback invoked for every re-placed element."""
        self._listeners.append(listener)

    def remove_listener(self, listener: PlacementListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def propagate(self, store: ElementStore, origin_id: str) -> PropagationResult:
        """
        Recompute the origin's end point from its start point, then re-place
        every element downstream of it.

        Raises:
            ElementNotFound: If origin_id is not in the store.
            ChainIntegrityError: If the walk revisits an element.
        """
        origin = store.require(origin_id)
        result = PropagationResult(origin_id=origin_id, started_at=datetime.now(timezone.utc))

        origin.place(origin.start_station, origin.start_elevation)
        self._record(result, origin)

        visited = {origin.id}
        current = origin
        while current.downstream_id is not None:
            nxt = store.get(current.downstream_id)
            if nxt is None:
                logger.warning(
                    f"Propagation from {origin_id} stopped: {current.id} links to "
                    f"missing element {current.downstream_id}"
                )
                result.stopped_at_dangling = current.downstream_id
                break
            if nxt.id in visited:
                raise ChainIntegrityError(
                    f"Cycle detected while propagating from {origin_id}: {nxt.id} revisited",
                    element_id=nxt.id,
                )
            visited.add(nxt.id)

            nxt.place(current.end_station, current.end_elevation)
            self._record(result, nxt)
            current = nxt

        result.completed_at = datetime.now(timezone.utc)
        result.elapsed_ms = (result.completed_at - result.started_at).total_seconds() * 1000

        logger.debug(
            f"Propagated from {origin_id}: {result.updated_count} elements re-placed, "
            f"chain ends at station {current.end_station:.3f} elevation {current.end_elevation:.3f}"
        )
        return result

    def recalculate_chain(self, store: ElementStore) -> List[PropagationResult]:
        """Propagate from every chain head, in store order."""
        results = [self.propagate(store, head.id) for head in store.heads()]
        logger.info(
            f"Recalculated {len(results)} chains, "
            f"{sum(r.updated_count for r in results)} elements"
        )
        return results

    def _record(self, result: PropagationResult, element: HydraulicElement) -> None:
        result.updated_ids.append(element.id)
        for listener in self._listeners:
            listener(element)


# =============================================================================
# MODULE-LEVEL API
# =============================================================================

_default_engine = PropagationEngine()


def propagate(store: ElementStore, origin_id: str) -> PropagationResult:
    """Propagate placement downstream from origin_id."""
    return _default_engine.propagate(store, origin_id)


def recalculate_chain(store: ElementStore) -> List[PropagationResult]:
    """Propagate from every chain head."""
    return _default_engine.recalculate_chain(store)
