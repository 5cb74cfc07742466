"""
hydrochain Hydraulics

Open-channel flow formulas and the Stilling Basin Design Engine.
"""

from hydrochain.hydraulics.flow import (
    FlowResult,
    specific_energy,
    froude_number,
    manning_flow,
    normal_depth,
    critical_depth,
    estimate_velocity,
    estimate_froude_number,
)
from hydrochain.hydraulics.stilling_basin import (
    AUTO,
    STILLING_BASIN_TYPE_INFO,
    BasinDesignInput,
    BasinDesignResult,
    StillingBasinDesigner,
    classify_basin_type,
    conjugate_depth,
    entering_velocity,
    design_basin,
    build_manual_basin,
)

__all__ = [
    # Flow
    "FlowResult",
    "specific_energy",
    "froude_number",
    "manning_flow",
    "normal_depth",
    "critical_depth",
    "estimate_velocity",
    "estimate_froude_number",
    # Stilling basin
    "AUTO",
    "STILLING_BASIN_TYPE_INFO",
    "BasinDesignInput",
    "BasinDesignResult",
    "StillingBasinDesigner",
    "classify_basin_type",
    "conjugate_depth",
    "entering_velocity",
    "design_basin",
    "build_manual_basin",
]
