"""
hydrochain Stilling Basin Configuration

Immutable configuration records for an energy dissipator appended to a chute
(or a drop transition). A configuration is owned by exactly one element and
is replaced wholesale, never edited in place.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from hydrochain.core.enums import StillingBasinType, EndSillType


@dataclass(frozen=True)
class ChuteBlockConfig:
    """Chute blocks at the basin inlet (Type II, III, SAF)."""
    count: int
    width: float  # m, W1 ≈ d1
    height: float  # m, h1 ≈ d1
    thickness: float  # m, along flow
    spacing: float  # m, between blocks

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChuteBlockConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class BaffleBlockConfig:
    """Baffle blocks on the basin floor (Type III, SAF)."""
    rows: int
    blocks_per_row: int
    width: float  # m
    height: float  # m, h3 ≈ 0.8 d1 for Type III
    thickness: float  # m
    distance_from_inlet: float  # m, basin start to first row
    row_spacing: float  # m

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaffleBlockConfig":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class EndSillConfig:
    """End sill at the basin outlet."""
    type: EndSillType
    height: float  # m
    tooth_width: Optional[float] = None  # dentated only
    tooth_spacing: Optional[float] = None  # dentated only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "height": self.height,
            "tooth_width": self.tooth_width,
            "tooth_spacing": self.tooth_spacing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EndSillConfig":
        return cls(
            type=EndSillType(data.get("type", EndSillType.SOLID.value)),
            height=data.get("height", 0.0),
            tooth_width=data.get("tooth_width"),
            tooth_spacing=data.get("tooth_spacing"),
        )


@dataclass(frozen=True)
class StillingBasinConfig:
    """
    Complete stilling basin configuration.

    ``length`` and ``depth`` come from the hydraulic jump; block and sill
    geometry is proportional to the entering depth d1.
    """
    type: StillingBasinType
    length: float  # m
    depth: float  # m, floor below outlet invert
    floor_thickness: float  # m
    chute_blocks: Optional[ChuteBlockConfig] = None
    baffle_blocks: Optional[BaffleBlockConfig] = None
    end_sill: Optional[EndSillConfig] = None
    wingwall_angle: float = 0.0  # degrees, SAF basins

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "length": self.length,
            "depth": self.depth,
            "floor_thickness": self.floor_thickness,
            "chute_blocks": self.chute_blocks.to_dict() if self.chute_blocks else None,
            "baffle_blocks": self.baffle_blocks.to_dict() if self.baffle_blocks else None,
            "end_sill": self.end_sill.to_dict() if self.end_sill else None,
            "wingwall_angle": self.wingwall_angle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StillingBasinConfig":
        chute_blocks = data.get("chute_blocks")
        baffle_blocks = data.get("baffle_blocks")
        end_sill = data.get("end_sill")
        return cls(
            type=StillingBasinType(data.get("type", StillingBasinType.NONE.value)),
            length=data.get("length", 0.0),
            depth=data.get("depth", 0.0),
            floor_thickness=data.get("floor_thickness", 0.0),
            chute_blocks=ChuteBlockConfig.from_dict(chute_blocks) if chute_blocks else None,
            baffle_blocks=BaffleBlockConfig.from_dict(baffle_blocks) if baffle_blocks else None,
            end_sill=EndSillConfig.from_dict(end_sill) if end_sill else None,
            wingwall_angle=data.get("wingwall_angle", 0.0),
        )
