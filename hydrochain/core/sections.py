"""
hydrochain Cross Sections

Cross-section descriptors for channels, transition ends and chutes, with the
geometric properties needed by the flow formulas.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Union
import math

from hydrochain.core.enums import SectionType


@dataclass(frozen=True)
class SectionProperties:
    """Wetted geometry of a section at a given water depth."""
    area: float  # m²
    wetted_perimeter: float  # m
    hydraulic_radius: float  # m
    top_width: float  # m
    hydraulic_depth: float  # m, A / T


def _properties(area: float, perimeter: float, top_width: float) -> SectionProperties:
    return SectionProperties(
        area=area,
        wetted_perimeter=perimeter,
        hydraulic_radius=area / perimeter if perimeter > 0 else 0.0,
        top_width=top_width,
        hydraulic_depth=area / top_width if top_width > 0 else 0.0,
    )


@dataclass(frozen=True)
class RectangularSection:
    """Rectangular section: vertical walls, flat bed."""
    width: float = 2.0
    depth: float = 1.5

    section_type = SectionType.RECTANGULAR

    @property
    def bottom_width(self) -> float:
        return self.width

    @property
    def side_slope(self) -> float:
        return 0.0

    @property
    def top_width(self) -> float:
        return self.width

    def hydraulic_properties(self, water_depth: float) -> SectionProperties:
        y = max(water_depth, 0.0)
        return _properties(self.width * y, self.width + 2.0 * y, self.width)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.section_type.value, **asdict(self)}


@dataclass(frozen=True)
class TrapezoidalSection:
    """Trapezoidal section; side slope is horizontal:vertical (z:1)."""
    bottom_width: float = 2.0
    depth: float = 1.5
    side_slope: float = 1.5

    section_type = SectionType.TRAPEZOIDAL

    @property
    def top_width(self) -> float:
        return self.bottom_width + 2.0 * self.side_slope * self.depth

    def hydraulic_properties(self, water_depth: float) -> SectionProperties:
        y = max(water_depth, 0.0)
        z = self.side_slope
        area = (self.bottom_width + z * y) * y
        perimeter = self.bottom_width + 2.0 * y * math.sqrt(1.0 + z * z)
        return _properties(area, perimeter, self.bottom_width + 2.0 * z * y)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.section_type.value, **asdict(self)}


@dataclass(frozen=True)
class TriangularSection:
    """V-shaped section with symmetric side slopes (z:1)."""
    depth: float = 1.5
    side_slope: float = 1.0

    section_type = SectionType.TRIANGULAR

    @property
    def bottom_width(self) -> float:
        return 0.0

    @property
    def top_width(self) -> float:
        return 2.0 * self.side_slope * self.depth

    def hydraulic_properties(self, water_depth: float) -> SectionProperties:
        y = max(water_depth, 0.0)
        z = self.side_slope
        area = z * y * y
        perimeter = 2.0 * y * math.sqrt(1.0 + z * z)
        return _properties(area, perimeter, 2.0 * z * y)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.section_type.value, **asdict(self)}


CrossSection = Union[RectangularSection, TrapezoidalSection, TriangularSection]

_SECTION_CLASSES = {
    SectionType.RECTANGULAR.value: RectangularSection,
    SectionType.TRAPEZOIDAL.value: TrapezoidalSection,
    SectionType.TRIANGULAR.value: TriangularSection,
}


def section_from_dict(data: Dict[str, Any]) -> CrossSection:
    """
    Deserialize a cross section from its ``to_dict()`` form.

    Raises:
        ValueError: If the section type is unknown.
    """
    section_type = data.get("type", SectionType.RECTANGULAR.value)
    cls = _SECTION_CLASSES.get(section_type)
    if cls is None:
        raise ValueError(f"Unknown section type: {section_type}")
    return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
