"""
hydrochain Open-Channel Flow

Uniform-flow (Manning) and critical-flow calculations on the cross-section
descriptors of ``hydrochain.core.sections``.

    V  = (1/n) * R^(2/3) * S^(1/2)
    Q  = V * A
    Fr = V / sqrt(g * D),  D = A / T
    E  = y + V² / 2g
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict
import logging
import math

from hydrochain.core.constants import (
    GRAVITY_M_S2,
    DEFAULT_MANNING_N,
    SOLVER_TOLERANCE,
    SOLVER_MAX_ITERATIONS,
)
from hydrochain.core.enums import FlowRegime
from hydrochain.core.sections import CrossSection
from hydrochain.errors import HydraulicCalculationError

logger = logging.getLogger(__name__)


# =============================================================================
# FLOW RESULT
# =============================================================================

@dataclass
class FlowResult:
    """Uniform-flow state of a section at a given depth."""
    discharge: float  # m³/s
    velocity: float  # m/s
    froude: float
    flow_regime: FlowRegime
    area: float  # m²
    wetted_perimeter: float  # m
    hydraulic_radius: float  # m
    water_depth: float  # m
    top_width: float  # m
    specific_energy: float  # m

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discharge": round(self.discharge, 4),
            "velocity": round(self.velocity, 4),
            "froude": round(self.froude, 4),
            "flow_regime": self.flow_regime.value,
            "area": round(self.area, 4),
            "wetted_perimeter": round(self.wetted_perimeter, 4),
            "hydraulic_radius": round(self.hydraulic_radius, 4),
            "water_depth": round(self.water_depth, 4),
            "top_width": round(self.top_width, 4),
            "specific_energy": round(self.specific_energy, 4),
        }


# =============================================================================
# FORMULAS
# =============================================================================

def specific_energy(velocity: float, depth: float) -> float:
    """E = y + V² / 2g (m)."""
    return depth + velocity ** 2 / (2.0 * GRAVITY_M_S2)


def froude_number(velocity: float, hydraulic_depth: float) -> float:
    """Fr = V / sqrt(g·D); 0 for a dry section."""
    if hydraulic_depth <= 0:
        return 0.0
    return velocity / math.sqrt(GRAVITY_M_S2 * hydraulic_depth)


def manning_flow(
    section: CrossSection,
    slope: float,
    manning_n: float,
    water_depth: float,
) -> FlowResult:
    """
    Uniform flow through a section using Manning's equation.

    Args:
        section: Cross-section descriptor
        slope: Bed slope (m/m); the magnitude is used
        manning_n: Manning roughness coefficient
        water_depth: Flow depth (m)

    Returns:
        FlowResult; velocity is 0 for zero slope or a dry section

    Raises:
        HydraulicCalculationError: If manning_n is not positive
    """
    if manning_n <= 0:
        raise HydraulicCalculationError(f"Manning's n must be positive, got {manning_n}")

    props = section.hydraulic_properties(water_depth)
    slope_abs = abs(slope)

    if props.hydraulic_radius > 0 and slope_abs > 0:
        velocity = (1.0 / manning_n) * props.hydraulic_radius ** (2.0 / 3.0) * math.sqrt(slope_abs)
    else:
        velocity = 0.0

    froude = froude_number(velocity, props.hydraulic_depth)

    return FlowResult(
        discharge=velocity * props.area,
        velocity=velocity,
        froude=froude,
        flow_regime=FlowRegime.from_froude(froude),
        area=props.area,
        wetted_perimeter=props.wetted_perimeter,
        hydraulic_radius=props.hydraulic_radius,
        water_depth=water_depth,
        top_width=props.top_width,
        specific_energy=specific_energy(velocity, water_depth),
    )


def normal_depth(
    section: CrossSection,
    discharge: float,
    slope: float,
    manning_n: float,
    tolerance: float = SOLVER_TOLERANCE,
    max_iterations: int = SOLVER_MAX_ITERATIONS,
) -> float:
    """
    Depth of uniform flow carrying ``discharge``, by bisection on Manning's
    equation.

    Raises:
        HydraulicCalculationError: If slope is not positive
    """
    if discharge <= 0:
        return 0.0
    if slope <= 0:
        raise HydraulicCalculationError(
            "Slope must be positive for normal depth calculation", slope=slope
        )

    y_low = 0.001
    y_high = max(section.depth, 0.001) * 2.0

    # Expand the bracket until it carries the discharge
    while manning_flow(section, slope, manning_n, y_high).discharge < discharge:
        y_high *= 2.0
        if y_high > 1.0e4:
            raise HydraulicCalculationError(
                f"No normal depth below {y_high:.0f} m for Q={discharge}", discharge=discharge
            )

    for _ in range(max_iterations):
        y_mid = (y_low + y_high) / 2.0
        q_mid = manning_flow(section, slope, manning_n, y_mid).discharge

        if abs(q_mid - discharge) < tolerance:
            return y_mid

        if q_mid < discharge:
            y_low = y_mid
        else:
            y_high = y_mid

    logger.debug(f"normal_depth did not converge in {max_iterations} iterations")
    return (y_low + y_high) / 2.0


def critical_depth(
    section: CrossSection,
    discharge: float,
    tolerance: float = SOLVER_TOLERANCE,
    max_iterations: int = SOLVER_MAX_ITERATIONS,
) -> float:
    """
    Critical depth for ``discharge``: the depth where Q²/g = A³/T (Fr = 1).
    """
    if discharge <= 0:
        return 0.0

    target = discharge ** 2 / GRAVITY_M_S2

    def section_factor(y: float) -> float:
        props = section.hydraulic_properties(y)
        return props.area ** 3 / props.top_width if props.top_width > 0 else 0.0

    y_low = 0.001
    y_high = max(section.depth, 0.001) * 1.5
    while section_factor(y_high) < target:
        y_high *= 2.0
        if y_high > 1.0e4:
            raise HydraulicCalculationError(
                f"No critical depth below {y_high:.0f} m for Q={discharge}", discharge=discharge
            )

    for _ in range(max_iterations):
        y_mid = (y_low + y_high) / 2.0
        factor = section_factor(y_mid)

        if abs(factor - target) < tolerance:
            return y_mid

        if factor < target:
            y_low = y_mid
        else:
            y_high = y_mid

    return (y_low + y_high) / 2.0


# =============================================================================
# QUICK ESTIMATES (design review)
# =============================================================================

def estimate_velocity(
    slope: float,
    depth: float,
    width: float,
    manning_n: float = DEFAULT_MANNING_N,
) -> float:
    """
    Manning velocity for a rectangular section flowing at ``depth``.

    R = b·y / (b + 2y)
    """
    perimeter = width + 2.0 * depth
    if perimeter <= 0 or slope <= 0 or manning_n <= 0:
        return 0.0
    hydraulic_radius = (width * depth) / perimeter
    return (1.0 / manning_n) * hydraulic_radius ** (2.0 / 3.0) * math.sqrt(slope)


def estimate_froude_number(
    slope: float,
    depth: float,
    width: float,
    manning_n: float = DEFAULT_MANNING_N,
) -> float:
    """Froude number of the ``estimate_velocity`` flow, using D ≈ y."""
    if depth <= 0:
        return 0.0
    return estimate_velocity(slope, depth, width, manning_n) / math.sqrt(GRAVITY_M_S2 * depth)
