"""
hydrochain Connection Manager

Owns every mutation of the link graph: connect, disconnect, add, remove and
element edits. Each mutating call validates first, then mutates, then runs
the Propagation Engine, so a rejected operation leaves the store exactly as
it was.

Edits are serialized through the store's re-entrant lock, held for the
whole call and shared by every manager over that store, so a propagation
walk always sees a consistent predecessor chain.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
import logging
import math

from hydrochain.core.basin import StillingBasinConfig
from hydrochain.core.elements import BASIN_HOSTS, Channel, Chute, HydraulicElement, Transition
from hydrochain.core.enums import LinkSide
from hydrochain.core.store import ElementStore
from hydrochain.errors import ErrorCode, InvalidConnection, InvalidEditError
from hydrochain.hydraulics.stilling_basin import (
    AUTO,
    BasinDesignInput,
    BasinDesignResult,
    StillingBasinDesigner,
)
from hydrochain.network.propagation import PropagationEngine, PropagationResult

logger = logging.getLogger(__name__)

PLACEMENT_FIELDS = frozenset({"start_station", "start_elevation"})


class ConnectionManager:
    """
    Link and edit operations over an ElementStore.

    Usage:
        manager = ConnectionManager(store)
        manager.add_element(Channel(id="c1", length=50, slope=0.01))
        manager.add_element(Chute(id="r1", inlet_length=1, length=20, drop=10))
        manager.connect("c1", "r1")
    """

    def __init__(
        self,
        store: ElementStore,
        designer: Optional[StillingBasinDesigner] = None,
        engine: Optional[PropagationEngine] = None,
    ):
        self.store = store
        self.designer = designer or StillingBasinDesigner()
        self.engine = engine or PropagationEngine()
        self._lock = store.lock

    # ==================== Elements ====================

    def add_element(self, element: HydraulicElement) -> HydraulicElement:
        """
        Add an unlinked element and derive its end point.

        Raises:
            InvalidConnection: If the element already carries links.
            InvalidEditError: If the element fails validation.
            DuplicateElementError: If the id is taken.
        """
        with self._lock:
            if element.upstream_id is not None or element.downstream_id is not None:
                logger.warning(f"Rejected add of {element.id}: new elements must be unlinked")
                raise InvalidConnection(
                    f"New element {element.id} must not carry links; use connect()",
                    code=ErrorCode.CON_DANGLING,
                    element_id=element.id,
                )
            problems = self._problems(element)
            if problems:
                logger.warning(f"Rejected add of {element.id}: {problems}")
                raise InvalidEditError(
                    f"Invalid values for {element.id}: {'; '.join(problems)}",
                    code=ErrorCode.VAL_OUT_OF_RANGE,
                    element_id=element.id,
                    problems=problems,
                )
            self.store.add(element)
            element.place(element.start_station, element.start_elevation)
            logger.info(f"Added {element.element_type.value} {element.id}")
            return element

    def remove_element(self, element_id: str) -> HydraulicElement:
        """
        Sever both links of an element, then drop it from the store. The
        former neighbours become a chain tail and a chain head.

        Raises:
            ElementNotFound: If the id is not in the store.
        """
        with self._lock:
            element = self.store.require(element_id)
            self._unlink(element, LinkSide.UPSTREAM)
            self._unlink(element, LinkSide.DOWNSTREAM)
            self.store.discard(element_id)
            logger.info(f"Removed {element.element_type.value} {element_id}")
            return element

    # ==================== Links ====================

    def connect(self, upstream_id: str, downstream_id: str) -> PropagationResult:
        """
        Link upstream_id -> downstream_id and propagate from upstream_id.

        Existing links on the facing sides of the pair are severed first, so
        link symmetry holds afterwards.

        Raises:
            InvalidConnection: For a self-loop, a missing id, or when
                downstream_id is already a transitive ancestor of upstream_id.
        """
        with self._lock:
            if upstream_id == downstream_id:
                logger.warning(f"Rejected self-loop on {upstream_id}")
                raise InvalidConnection(
                    f"Cannot connect {upstream_id} to itself",
                    code=ErrorCode.CON_SELF_LOOP,
                    element_id=upstream_id,
                )

            upstream = self.store.get(upstream_id)
            downstream = self.store.get(downstream_id)
            for element_id, element in ((upstream_id, upstream), (downstream_id, downstream)):
                if element is None:
                    logger.warning(f"Rejected connect {upstream_id} -> {downstream_id}: {element_id} missing")
                    raise InvalidConnection(
                        f"Cannot connect {upstream_id} -> {downstream_id}: element {element_id} not found",
                        code=ErrorCode.CON_DANGLING,
                        element_id=element_id,
                    )

            if downstream_id in self.store.upstream_ids(upstream_id):
                logger.warning(f"Rejected connect {upstream_id} -> {downstream_id}: would create a cycle")
                raise InvalidConnection(
                    f"Cannot connect {upstream_id} -> {downstream_id}: "
                    f"{downstream_id} is already upstream of {upstream_id}",
                    code=ErrorCode.CON_CYCLE,
                    element_id=downstream_id,
                )

            if upstream.downstream_id not in (None, downstream_id):
                self._unlink(upstream, LinkSide.DOWNSTREAM)
            if downstream.upstream_id not in (None, upstream_id):
                self._unlink(downstream, LinkSide.UPSTREAM)

            upstream.downstream_id = downstream_id
            downstream.upstream_id = upstream_id
            logger.info(f"Connected {upstream_id} -> {downstream_id}")

            return self.engine.propagate(self.store, upstream_id)

    def disconnect(self, element_id: str, side: Union[LinkSide, str]) -> Optional[str]:
        """
        Clear one link of an element on both sides of the pair.

        Placement is not propagated: the detached sub-chain keeps its last
        computed positions until the next edit reaches it.

        Returns:
            The id of the former neighbour, or None if there was no link.

        Raises:
            ElementNotFound: If the id is not in the store.
        """
        with self._lock:
            element = self.store.require(element_id)
            return self._unlink(element, LinkSide(side))

    def _unlink(self, element: HydraulicElement, side: LinkSide) -> Optional[str]:
        if side == LinkSide.UPSTREAM:
            neighbour_id = element.upstream_id
            element.upstream_id = None
            neighbour = self.store.get(neighbour_id)
            if neighbour is not None and neighbour.downstream_id == element.id:
                neighbour.downstream_id = None
        else:
            neighbour_id = element.downstream_id
            element.downstream_id = None
            neighbour = self.store.get(neighbour_id)
            if neighbour is not None and neighbour.upstream_id == element.id:
                neighbour.upstream_id = None

        if neighbour_id is not None:
            logger.info(f"Disconnected {element.id} {side.value} from {neighbour_id}")
        return neighbour_id

    # ==================== Edits ====================

    def edit_element(self, element_id: str, **changes: Any) -> PropagationResult:
        """
        Apply geometry/hydraulic changes to an element and propagate.

        A start_station/start_elevation edit on an element with an upstream
        neighbour is only accepted when that neighbour is a Transition; the
        transition absorbs the move by adapting its length and drop_height.

        Raises:
            ElementNotFound: If the id is not in the store.
            InvalidEditError: For protected or unknown fields, a placement
                edit the chain owns, or values that fail validation. The
                element is left unchanged.
        """
        with self._lock:
            element = self.store.require(element_id)
            decoded = self._decode_changes(element, changes)

            upstream = self.store.get(element.upstream_id)
            placement = PLACEMENT_FIELDS & decoded.keys()
            if placement and upstream is not None and not isinstance(upstream, Transition):
                logger.warning(f"Rejected placement edit on {element_id}: owned by {upstream.id}")
                raise InvalidEditError(
                    f"Placement of {element_id} is derived from upstream {upstream.id}; "
                    f"only a Transition upstream can absorb a placement edit",
                    element_id=element_id,
                    fields=sorted(placement),
                )

            previous = {name: getattr(element, name) for name in decoded}
            for name, value in decoded.items():
                setattr(element, name, value)

            problems = self._problems(element)
            if problems:
                self._restore(element, previous)
                logger.warning(f"Rejected edit on {element_id}: {problems}")
                raise InvalidEditError(
                    f"Invalid values for {element_id}: {'; '.join(problems)}",
                    code=ErrorCode.VAL_OUT_OF_RANGE,
                    element_id=element_id,
                    problems=problems,
                )

            origin = element
            if placement and upstream is not None:
                try:
                    self._absorb_into_transition(upstream, element)
                except InvalidEditError:
                    self._restore(element, previous)
                    raise
                origin = upstream

            logger.info(f"Edited {element_id}: {sorted(decoded)}")
            return self.engine.propagate(self.store, origin.id)

    def _decode_changes(self, element: HydraulicElement, changes: Dict[str, Any]) -> Dict[str, Any]:
        editable = element.editable_fields()
        decoded = {}
        for name, value in changes.items():
            if name in element.PROTECTED_FIELDS:
                raise InvalidEditError(
                    f"Field {name!r} of {element.id} is managed by the chain and cannot be edited",
                    element_id=element.id,
                    field=name,
                )
            if name not in editable:
                raise InvalidEditError(
                    f"{type(element).__name__} has no editable field {name!r}",
                    code=ErrorCode.VAL_UNKNOWN_FIELD,
                    element_id=element.id,
                    field=name,
                )
            decoder = element._DECODERS.get(name)
            if decoder is not None and isinstance(value, (dict, str)):
                try:
                    value = decoder(value)
                except (KeyError, TypeError, ValueError) as e:
                    raise InvalidEditError(
                        f"Invalid value for {name!r}: {e}",
                        code=ErrorCode.VAL_OUT_OF_RANGE,
                        element_id=element.id,
                        field=name,
                    ) from e
            decoded[name] = value
        return decoded

    def _absorb_into_transition(self, transition: Transition, element: HydraulicElement) -> None:
        new_length = element.start_station - transition.start_station
        new_drop = transition.start_elevation - element.start_elevation
        if not math.isfinite(new_length) or new_length <= 0:
            raise InvalidEditError(
                f"Moving {element.id} to station {element.start_station} would give "
                f"transition {transition.id} a non-positive length ({new_length})",
                code=ErrorCode.VAL_OUT_OF_RANGE,
                element_id=element.id,
            )
        transition.length = new_length
        transition.drop_height = new_drop
        logger.debug(
            f"Transition {transition.id} absorbed move of {element.id}: "
            f"length={new_length:.3f} drop_height={new_drop:.3f}"
        )

    @staticmethod
    def _problems(element: HydraulicElement) -> List[str]:
        try:
            return element.validate()
        except (TypeError, ValueError) as e:
            return [f"invalid field value: {e}"]

    @staticmethod
    def _restore(element: HydraulicElement, previous: Dict[str, Any]) -> None:
        for name, value in previous.items():
            setattr(element, name, value)
        element.place(element.start_station, element.start_elevation)

    # ==================== Sections & Basins ====================

    def sync_transitions_with_channel(self, channel_id: str) -> List[str]:
        """
        Match adjacent transitions to a channel's section: the inlet of a
        downstream transition and the outlet of an upstream one.

        Returns:
            Ids of the transitions updated.
        """
        with self._lock:
            channel = self.store.require(channel_id)
            if not isinstance(channel, Channel):
                raise InvalidEditError(
                    f"{channel_id} is a {channel.element_type.value}, not a channel",
                    code=ErrorCode.VAL_FAILED,
                    element_id=channel_id,
                )

            updated = []
            downstream = self.store.get(channel.downstream_id)
            if isinstance(downstream, Transition):
                downstream.inlet = channel.section
                updated.append(downstream.id)
            upstream = self.store.get(channel.upstream_id)
            if isinstance(upstream, Transition):
                upstream.outlet = channel.section
                updated.append(upstream.id)

            if updated:
                logger.debug(f"Synced transitions {updated} with channel {channel_id}")
            return updated

    def set_stilling_basin(self, element_id: str, config: Optional[StillingBasinConfig]) -> None:
        """Replace (or clear, with None) the stilling basin of a chute or transition."""
        with self._lock:
            element = self._require_basin_host(element_id)
            element.stilling_basin = config
            logger.info(
                f"Set stilling basin on {element_id}: {config.type.value if config else 'none'}"
            )

    def apply_basin_design(
        self,
        chute_id: str,
        discharge: float,
        tailwater_depth: Optional[float] = None,
        basin_type: str = AUTO,
    ) -> BasinDesignResult:
        """
        Auto-design a basin from a chute's geometry and install it.

        Raises:
            ElementNotFound: If the id is not in the store.
            InvalidEditError: If the element is not a chute.
            DesignError.InvalidInput: For invalid design input; the chute's
                existing basin is kept.
        """
        with self._lock:
            chute = self.store.require(chute_id)
            if not isinstance(chute, Chute):
                raise InvalidEditError(
                    f"{chute_id} is a {chute.element_type.value}; basin auto-design needs a chute",
                    code=ErrorCode.VAL_FAILED,
                    element_id=chute_id,
                )

            if tailwater_depth is None:
                tailwater_depth = self.designer.config.default_tailwater_depth
            inp = BasinDesignInput(
                discharge=discharge,
                width=chute.width,
                drop=chute.total_drop(),
                slope=chute.slope,
                manning_n=chute.manning_n,
                tailwater_depth=tailwater_depth,
                basin_type=basin_type,
                chute_thickness=chute.thickness,
            )
            result = self.designer.design(inp)
            chute.stilling_basin = result.config
            logger.info(f"Installed {result.config.type.value} basin on {chute_id}")
            return result

    def _require_basin_host(self, element_id: str) -> HydraulicElement:
        element = self.store.require(element_id)
        if not isinstance(element, BASIN_HOSTS):
            raise InvalidEditError(
                f"{element_id} is a {element.element_type.value}; only chutes and "
                f"transitions carry a stilling basin",
                code=ErrorCode.VAL_FAILED,
                element_id=element_id,
            )
        return element

    # ==================== Propagation ====================

    def propagate(self, origin_id: str) -> PropagationResult:
        with self._lock:
            return self.engine.propagate(self.store, origin_id)

    def recalculate_chain(self) -> List[PropagationResult]:
        with self._lock:
            return self.engine.recalculate_chain(self.store)


# =============================================================================
# MODULE-LEVEL API
# =============================================================================

def connect(store: ElementStore, upstream_id: str, downstream_id: str) -> PropagationResult:
    """
    Link two elements and propagate. Serialized with every other manager
    over the same store through ``store.lock``.
    """
    return ConnectionManager(store).connect(upstream_id, downstream_id)


def disconnect(store: ElementStore, element_id: str, side: Union[LinkSide, str]) -> Optional[str]:
    """Clear one link of an element on both sides of the pair."""
    return ConnectionManager(store).disconnect(element_id, side)
