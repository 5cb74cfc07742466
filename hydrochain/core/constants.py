"""
hydrochain Physical Constants and Design Conventions

Constants used throughout the hydrochain system for hydraulic calculations,
stilling basin sizing (USBR EM-25 conventions) and design review limits.
"""

from typing import Dict, Tuple

# ==================== Physical Constants ====================

# Gravitational acceleration
GRAVITY_M_S2 = 9.81  # m/s²

# ==================== Element Defaults ====================

DEFAULT_MANNING_N = 0.015  # Finished concrete
DEFAULT_CHANNEL_SLOPE = 0.001
DEFAULT_WALL_THICKNESS_M = 0.15
DEFAULT_CHUTE_THICKNESS_M = 0.20
DEFAULT_FREEBOARD_M = 0.30

# ==================== Flow Regime ====================

# Band around Fr = 1 treated as critical flow
FROUDE_CRITICAL_LOW = 0.95
FROUDE_CRITICAL_HIGH = 1.05

# Bisection solver defaults
SOLVER_TOLERANCE = 1e-6
SOLVER_MAX_ITERATIONS = 100

# ==================== Stilling Basin Design (USBR EM-25) ====================

# Froude number regime boundaries for basin classification
FROUDE_TYPE_I_MAX = 1.7
FROUDE_SAF_MAX = 2.5
FROUDE_TYPE_IV_MAX = 4.5
FROUDE_VALIDATED_MAX = 17.0

# Entering velocity above which a Type II basin replaces Type III (m/s)
TYPE_II_VELOCITY_THRESHOLD_M_S = 15.0

# Jump length L = 6.9 * (d2 - d1), basin length = 1.1 * L
JUMP_LENGTH_COEFFICIENT = 6.9
BASIN_LENGTH_SAFETY_FACTOR = 1.1

# Block and sill proportions relative to the entering depth d1
BLOCK_SIZE_RATIO = 1.0
BLOCK_CLEARANCE_RATIO = 0.5
BAFFLE_HEIGHT_RATIO = 0.8  # h3 = 0.8 * d1 for Type III
END_SILL_HEIGHT_RATIO = 0.6

# Proportions relative to the conjugate depth d2
BAFFLE_DISTANCE_RATIO = 0.8  # Baffle row at 0.8 * d2 from the chute blocks
DENTATE_TOOTH_RATIO = 0.15  # Type II dentated sill teeth: 0.15 * d2

# Floor thickness = max(MIN_FLOOR_THICKNESS_M, FLOOR_THICKNESS_RATIO * chute thickness)
MIN_FLOOR_THICKNESS_M = 0.25
FLOOR_THICKNESS_RATIO = 1.5

# Practical construction minimums (advisory only)
MIN_PRACTICAL_BLOCK_HEIGHT_M = 0.20
MIN_PRACTICAL_BASIN_LENGTH_M = 3.0

# Advisory design limits
HIGH_OUTLET_VELOCITY_M_S = 20.0  # Aeration slots and erosion protection above this
MODEL_TEST_FROUDE = 12.0  # Physical model testing above this
TAILWATER_SUFFICIENCY_RATIO = 0.85  # Stable jump needs tailwater >= 0.85 * d2

SAF_WINGWALL_ANGLE_DEG = 45.0

# Validated Froude range per basin type: (min, max)
STILLING_BASIN_FROUDE_RANGES: Dict[str, Tuple[float, float]] = {
    "none": (0.0, float("inf")),
    "type-i": (FROUDE_TYPE_I_MAX, FROUDE_SAF_MAX),
    "type-ii": (FROUDE_TYPE_IV_MAX, float("inf")),
    "type-iii": (FROUDE_TYPE_IV_MAX, FROUDE_VALIDATED_MAX),
    "type-iv": (FROUDE_SAF_MAX, FROUDE_TYPE_IV_MAX),
    "saf": (FROUDE_TYPE_I_MAX, FROUDE_VALIDATED_MAX),
}

# ==================== Design Review Limits ====================

# Maximum recommended mean velocities by lining material (m/s)
MAX_VELOCITIES_M_S: Dict[str, float] = {
    "concrete": 10.0,
    "rock": 4.5,
    "earth": 1.5,
}

STEEP_CHANNEL_SLOPE = 0.05
STEEP_SMOOTH_CHUTE_SLOPE = 0.15
TRANSITION_BASIN_DROP_M = 1.0
CHUTE_BASIN_DROP_M = 3.0
MIN_FREEBOARD_M = 0.15
MAX_TRANSITION_WIDTH_RATIO = 3.0
TRANSITION_LENGTH_PER_WIDTH_CHANGE = 4.0
TRANSITION_MIN_WIDTH_CHANGE_M = 0.5
ELEVATION_GAP_WARNING_M = 0.01
ELEVATION_GAP_ERROR_M = 0.10
