"""
hydrochain Hydraulic Elements

Channel, Transition and Chute dataclasses. Every element knows its own
horizontal length and total drop; placement along the network axis
(stations and elevations) is written by the propagation engine through
``place()``.

Each dataclass includes to_dict() and from_dict() for serialization.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, FrozenSet, List, Optional, Type
import uuid

from hydrochain.core.basin import StillingBasinConfig
from hydrochain.core.constants import (
    DEFAULT_MANNING_N,
    DEFAULT_CHANNEL_SLOPE,
    DEFAULT_WALL_THICKNESS_M,
    DEFAULT_CHUTE_THICKNESS_M,
    DEFAULT_FREEBOARD_M,
)
from hydrochain.core.enums import ElementType, TransitionType, ChuteType
from hydrochain.core.sections import (
    CrossSection,
    RectangularSection,
    TrapezoidalSection,
    section_from_dict,
)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _encode(value: Any) -> Any:
    if value is None:
        return None
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    return value


# ==================== Base Element ====================

@dataclass
class HydraulicElement(ABC):
    """
    Common state of every element in a conveyance chain.

    Invariants maintained by the network engines:
        end_station   = start_station + horizontal_length()
        end_elevation = start_elevation - total_drop()
    """
    id: str = ""
    name: str = ""

    # Hydraulics
    manning_n: float = DEFAULT_MANNING_N
    slope: float = 0.0

    # Placement along the network axis
    start_station: float = 0.0
    start_elevation: float = 0.0
    end_station: float = 0.0
    end_elevation: float = 0.0

    # Weak links (lookup by id only)
    upstream_id: Optional[str] = None
    downstream_id: Optional[str] = None

    element_type: ClassVar[ElementType]

    # Never written through an edit; owned by the store/network engines
    PROTECTED_FIELDS: ClassVar[FrozenSet[str]] = frozenset({
        "id", "upstream_id", "downstream_id", "end_station", "end_elevation",
    })

    # Field name -> decoder used by from_dict()
    _DECODERS: ClassVar[Dict[str, Callable[[Any], Any]]] = {}

    def __post_init__(self):
        if not self.id:
            self.id = _new_id(self.element_type.value)
        if not self.name:
            self.name = self.id
        self.place(self.start_station, self.start_elevation)

    @abstractmethod
    def horizontal_length(self) -> float:
        """Horizontal extent along the network axis (m)."""

    @abstractmethod
    def total_drop(self) -> float:
        """Invert elevation lost from start to end (m); positive means dropping."""

    def place(self, start_station: float, start_elevation: float) -> None:
        """Set the start point and derive the end point from own geometry."""
        self._refresh_derived()
        self.start_station = start_station
        self.start_elevation = start_elevation
        self.end_station = start_station + self.horizontal_length()
        self.end_elevation = start_elevation - self.total_drop()

    def _refresh_derived(self) -> None:
        """Hook for elements whose fields are derived from other fields."""

    @classmethod
    def editable_fields(cls) -> FrozenSet[str]:
        return frozenset(f.name for f in fields(cls)) - cls.PROTECTED_FIELDS

    def validate(self) -> List[str]:
        """Return a list of geometry problems; empty when valid."""
        errors = []
        if self.manning_n <= 0:
            errors.append(f"manning_n must be positive, got {self.manning_n}")
        if self.horizontal_length() < 0:
            errors.append(f"horizontal length must not be negative, got {self.horizontal_length()}")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.element_type.value}
        for f in fields(self):
            data[f.name] = _encode(getattr(self, f.name))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HydraulicElement":
        """Deserialize any element; dispatches on the ``type`` key."""
        target = ELEMENT_CLASSES.get(data.get("type", ""))
        if target is None:
            raise ValueError(f"Unknown element type: {data.get('type')!r}")
        if cls is not HydraulicElement and not issubclass(target, cls):
            raise ValueError(f"Expected {cls.__name__} data, got type {data.get('type')!r}")

        kwargs = {}
        for f in fields(target):
            if f.name not in data or f.name in ("end_station", "end_elevation"):
                continue
            value = data[f.name]
            decoder = target._DECODERS.get(f.name)
            kwargs[f.name] = decoder(value) if decoder and value is not None else value

        element = target(**kwargs)
        # Persisted placement wins over the freshly derived one
        if data.get("end_station") is not None:
            element.end_station = data["end_station"]
        if data.get("end_elevation") is not None:
            element.end_elevation = data["end_elevation"]
        return element


# ==================== Channel ====================

@dataclass
class Channel(HydraulicElement):
    """
    Prismatic open channel.

    horizontal_length = length; total_drop = length * slope.
    """
    section: CrossSection = field(default_factory=RectangularSection)
    length: float = 10.0  # m
    thickness: float = DEFAULT_WALL_THICKNESS_M  # m, walls and floor
    free_board: float = DEFAULT_FREEBOARD_M  # m
    slope: float = DEFAULT_CHANNEL_SLOPE

    element_type: ClassVar[ElementType] = ElementType.CHANNEL
    _DECODERS: ClassVar[Dict[str, Callable[[Any], Any]]] = {"section": section_from_dict}

    def horizontal_length(self) -> float:
        return self.length

    def total_drop(self) -> float:
        return self.length * self.slope

    def validate(self) -> List[str]:
        errors = super().validate()
        if self.length <= 0:
            errors.append(f"length must be positive, got {self.length}")
        if self.thickness < 0:
            errors.append(f"thickness must not be negative, got {self.thickness}")
        return errors


# ==================== Transition ====================

@dataclass
class Transition(HydraulicElement):
    """
    Transition between two cross sections of differing shape or size.

    The drop is ``drop_height`` when given, otherwise length * slope.
    """
    transition_type: TransitionType = TransitionType.LINEAR
    length: float = 5.0  # m
    inlet: CrossSection = field(default_factory=RectangularSection)
    outlet: CrossSection = field(default_factory=RectangularSection)
    drop_height: Optional[float] = None  # m
    stilling_basin: Optional[StillingBasinConfig] = None

    element_type: ClassVar[ElementType] = ElementType.TRANSITION
    _DECODERS: ClassVar[Dict[str, Callable[[Any], Any]]] = {
        "transition_type": TransitionType,
        "inlet": section_from_dict,
        "outlet": section_from_dict,
        "stilling_basin": StillingBasinConfig.from_dict,
    }

    def horizontal_length(self) -> float:
        return self.length

    def total_drop(self) -> float:
        if self.drop_height is not None:
            return self.drop_height
        return self.length * self.slope

    def validate(self) -> List[str]:
        errors = super().validate()
        if self.length <= 0:
            errors.append(f"length must be positive, got {self.length}")
        return errors


# ==================== Chute ====================

@dataclass
class Chute(HydraulicElement):
    """
    Steep conveyance (rápida): a low-slope inlet reach followed by the main
    steep section, optionally ending in a stilling basin.

    horizontal_length = inlet_length + length
    total_drop        = inlet_length * inlet_slope + drop
    slope             = drop / length (main section, derived)
    """
    chute_type: ChuteType = ChuteType.SMOOTH
    inlet_length: float = 2.0  # m
    inlet_slope: float = 0.0  # m/m
    length: float = 20.0  # m, horizontal length of main section
    drop: float = 5.0  # m, elevation lost over main section
    width: float = 2.0  # m
    depth: float = 1.0  # m
    side_slope: float = 0.0  # H:V, 0 for rectangular
    thickness: float = DEFAULT_CHUTE_THICKNESS_M  # m

    # Stepped chutes
    step_height: float = 0.5  # m
    step_length: float = 1.0  # m

    # Baffled chutes
    baffle_spacing: float = 2.0  # m
    baffle_height: float = 0.3  # m

    stilling_basin: Optional[StillingBasinConfig] = None

    element_type: ClassVar[ElementType] = ElementType.CHUTE
    PROTECTED_FIELDS: ClassVar[FrozenSet[str]] = HydraulicElement.PROTECTED_FIELDS | {"slope"}
    _DECODERS: ClassVar[Dict[str, Callable[[Any], Any]]] = {
        "chute_type": ChuteType,
        "stilling_basin": StillingBasinConfig.from_dict,
    }

    def horizontal_length(self) -> float:
        return self.inlet_length + self.length

    def total_drop(self) -> float:
        return self.inlet_length * self.inlet_slope + self.drop

    def _refresh_derived(self) -> None:
        self.slope = self.drop / self.length if self.length > 0 else 0.0

    @property
    def section(self) -> CrossSection:
        """Cross section of the main chute body."""
        if self.side_slope > 0:
            return TrapezoidalSection(self.width, self.depth, self.side_slope)
        return RectangularSection(self.width, self.depth)

    def validate(self) -> List[str]:
        errors = super().validate()
        if self.length <= 0:
            errors.append(f"length must be positive, got {self.length}")
        if self.width <= 0:
            errors.append(f"width must be positive, got {self.width}")
        if self.inlet_length < 0:
            errors.append(f"inlet_length must not be negative, got {self.inlet_length}")
        if self.chute_type == ChuteType.STEPPED and self.step_length <= 0:
            errors.append(f"step_length must be positive for stepped chutes, got {self.step_length}")
        return errors


ELEMENT_CLASSES: Dict[str, Type[HydraulicElement]] = {
    ElementType.CHANNEL.value: Channel,
    ElementType.TRANSITION.value: Transition,
    ElementType.CHUTE.value: Chute,
}

# Elements that may own a stilling basin
BASIN_HOSTS = (Transition, Chute)
