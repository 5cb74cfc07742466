"""
hydrochain Stilling Basin Design Engine

Classifies and dimensions an energy dissipator at the foot of a chute from
hydraulic-jump first principles, following USBR EM-25 conventions.

Procedure:
    1. V  = sqrt(2·g·H)              free-fall estimate of the entering velocity
    2. d1 = Q / (b·V)                supercritical depth from continuity
    3. Fr = V / sqrt(g·d1)
    4. basin type from the Froude regime (and V for Type II vs III)
    5. d2 = d1·(sqrt(1 + 8·Fr²) - 1) / 2      conjugate depth (Bélanger)
    6. L  = 1.1 · 6.9·(d2 - d1)               jump length + 10% margin
    7. basin depth = d2 - tailwater, clamped at 0
    8. chute blocks, baffle blocks and end sill proportional to d1

The free-fall velocity is a deliberate simplification: no water-surface
profile is integrated along the chute.

The engine is a pure function of its input: identical input gives an
identical result.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
import logging
import math

from hydrochain.bootstrap.config import DesignConfig
from hydrochain.core.basin import (
    BaffleBlockConfig,
    ChuteBlockConfig,
    EndSillConfig,
    StillingBasinConfig,
)
from hydrochain.core.constants import (
    GRAVITY_M_S2,
    DEFAULT_MANNING_N,
    DEFAULT_CHUTE_THICKNESS_M,
    FROUDE_TYPE_I_MAX,
    FROUDE_SAF_MAX,
    FROUDE_TYPE_IV_MAX,
    FROUDE_VALIDATED_MAX,
    TYPE_II_VELOCITY_THRESHOLD_M_S,
    STILLING_BASIN_FROUDE_RANGES,
    SAF_WINGWALL_ANGLE_DEG,
)
from hydrochain.core.enums import EndSillType, StillingBasinType
from hydrochain.errors import DesignError

logger = logging.getLogger(__name__)

AUTO = "auto"

# Types that carry chute blocks / baffle blocks / no end sill
CHUTE_BLOCK_TYPES = frozenset({
    StillingBasinType.TYPE_II, StillingBasinType.TYPE_III, StillingBasinType.SAF,
})
BAFFLE_BLOCK_TYPES = frozenset({StillingBasinType.TYPE_III, StillingBasinType.SAF})
NO_SILL_TYPES = frozenset({StillingBasinType.NONE, StillingBasinType.TYPE_I})

# Dentated sill teeth for manual basins, relative to sill height
MANUAL_TOOTH_RATIO = 0.75


# =============================================================================
# TYPE DESCRIPTORS
# =============================================================================

STILLING_BASIN_TYPE_INFO: Dict[StillingBasinType, Dict[str, Any]] = {
    StillingBasinType.NONE: {
        "label": "None",
        "description": "No stilling basin",
        "froude_range": "-",
        "features": [],
    },
    StillingBasinType.TYPE_I: {
        "label": "USBR Type I",
        "description": "Undular jump basin",
        "froude_range": "Fr < 1.7",
        "features": ["Flat apron only"],
    },
    StillingBasinType.TYPE_II: {
        "label": "USBR Type II",
        "description": "High dam spillways",
        "froude_range": "Fr > 4.5, V > 15 m/s",
        "features": ["Chute blocks", "Dentated sill"],
    },
    StillingBasinType.TYPE_III: {
        "label": "USBR Type III",
        "description": "Small dams & canal structures",
        "froude_range": "Fr 4.5-17, V < 15 m/s",
        "features": ["Chute blocks", "Baffle blocks", "Solid end sill"],
    },
    StillingBasinType.TYPE_IV: {
        "label": "USBR Type IV",
        "description": "Oscillating jump suppression",
        "froude_range": "Fr 2.5-4.5",
        "features": ["Deflector blocks", "Optional end sill"],
    },
    StillingBasinType.SAF: {
        "label": "SAF Basin",
        "description": "St. Anthony Falls - compact design",
        "froude_range": "Fr 1.7-17",
        "features": ["Chute blocks", "Baffle blocks", "End sill", "Wingwalls"],
    },
}


# =============================================================================
# INPUT / RESULT
# =============================================================================

@dataclass(frozen=True)
class BasinDesignInput:
    """Hydraulic and geometric state at the foot of a chute."""
    discharge: float  # Q, m³/s
    width: float  # b, m
    drop: float  # H, total drop, m
    slope: float = 0.0  # chute bed slope, m/m
    manning_n: float = DEFAULT_MANNING_N
    tailwater_depth: float = 0.0  # m
    basin_type: str = AUTO  # "auto" or a StillingBasinType value
    chute_thickness: float = DEFAULT_CHUTE_THICKNESS_M  # m

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discharge": self.discharge,
            "width": self.width,
            "drop": self.drop,
            "slope": self.slope,
            "manning_n": self.manning_n,
            "tailwater_depth": self.tailwater_depth,
            "basin_type": self.basin_type,
            "chute_thickness": self.chute_thickness,
        }


@dataclass
class BasinDesignResult:
    """Outcome of an auto-design; warnings are advisory, never errors."""
    froude_number: float
    outlet_velocity: float  # m/s, velocity entering the basin
    recommended_type: StillingBasinType
    config: StillingBasinConfig
    warnings: List[str] = field(default_factory=list)

    # Jump geometry
    entry_depth: float = 0.0  # d1, m
    conjugate_depth: float = 0.0  # d2, m
    jump_length: float = 0.0  # m, before safety margin

    def to_dict(self) -> Dict[str, Any]:
        return {
            "froude_number": round(self.froude_number, 3),
            "outlet_velocity": round(self.outlet_velocity, 3),
            "recommended_type": self.recommended_type.value,
            "config": self.config.to_dict(),
            "warnings": list(self.warnings),
            "entry_depth": round(self.entry_depth, 4),
            "conjugate_depth": round(self.conjugate_depth, 4),
            "jump_length": round(self.jump_length, 3),
        }


# =============================================================================
# HYDRAULIC JUMP RELATIONS
# =============================================================================

def entering_velocity(drop: float) -> float:
    """Free-fall estimate V = sqrt(2·g·H)."""
    return math.sqrt(2.0 * GRAVITY_M_S2 * drop)


def conjugate_depth(d1: float, froude: float) -> float:
    """Sequent depth of a hydraulic jump: d2 = d1·(sqrt(1 + 8·Fr²) - 1)/2."""
    return d1 * (math.sqrt(1.0 + 8.0 * froude * froude) - 1.0) / 2.0


def classify_basin_type(froude: float, velocity: float) -> StillingBasinType:
    """
    USBR basin type for a Froude regime.

    Fr < 1.7 → Type I; 1.7-2.5 → SAF; 2.5-4.5 → Type IV;
    Fr ≥ 4.5 → Type II when V ≥ 15 m/s, otherwise Type III.
    Above Fr 17 the nearest type is still returned.
    """
    if froude < FROUDE_TYPE_I_MAX:
        return StillingBasinType.TYPE_I
    if froude < FROUDE_SAF_MAX:
        return StillingBasinType.SAF
    if froude < FROUDE_TYPE_IV_MAX:
        return StillingBasinType.TYPE_IV
    if velocity >= TYPE_II_VELOCITY_THRESHOLD_M_S:
        return StillingBasinType.TYPE_II
    return StillingBasinType.TYPE_III


def froude_range(basin_type: StillingBasinType) -> Tuple[float, float]:
    return STILLING_BASIN_FROUDE_RANGES[basin_type.value]


# =============================================================================
# DESIGNER
# =============================================================================

class StillingBasinDesigner:
    """
    Stilling basin auto-design and manual construction.

    All coefficients come from a DesignConfig; its defaults are the USBR
    EM-25 values in hydrochain.core.constants.
    """

    def __init__(self, config: Optional[DesignConfig] = None):
        self.config = config or DesignConfig()

    def design(self, inp: BasinDesignInput) -> BasinDesignResult:
        """
        Classify and dimension a basin.

        Raises:
            DesignError.InvalidInput: For non-positive width/discharge/drop,
                non-finite values or an unknown basin type.
        """
        cfg = self.config
        requested = self._validate_input(inp)
        warnings: List[str] = []

        velocity = entering_velocity(inp.drop)
        d1 = inp.discharge / (inp.width * velocity)
        if not math.isfinite(d1) or d1 <= 0:
            raise DesignError.InvalidInput(
                f"Entry depth d1={d1} is not a positive finite number", **inp.to_dict()
            )
        froude = velocity / math.sqrt(GRAVITY_M_S2 * d1)
        if not math.isfinite(froude):
            raise DesignError.InvalidInput(
                f"Froude number is not finite for d1={d1}", **inp.to_dict()
            )

        recommended = classify_basin_type(froude, velocity)
        warnings.extend(self._regime_warnings(froude, recommended))

        basin_type = recommended if requested is None else requested
        if requested is not None:
            warnings.extend(self._selection_warnings(requested, froude, velocity))

        d2 = conjugate_depth(d1, froude)
        if not math.isfinite(d2):
            raise DesignError.InvalidInput(
                f"Conjugate depth overflows for d1={d1}, Fr={froude}", **inp.to_dict()
            )
        # No jump forms below Fr = 1
        jump_length = max(0.0, cfg.jump_length_coefficient * (d2 - d1))
        length = cfg.basin_length_safety_factor * jump_length

        depth = d2 - inp.tailwater_depth
        if depth < 0:
            warnings.append(
                f"Tailwater depth {inp.tailwater_depth:.3f} m exceeds conjugate depth "
                f"{d2:.3f} m; basin depth clamped to 0 and the jump is not submerged as designed"
            )
            depth = 0.0

        chute_blocks = self._size_chute_blocks(basin_type, d1, inp.width, warnings)
        baffle_blocks = self._size_baffle_blocks(basin_type, d1, d2, chute_blocks)
        end_sill = self._size_end_sill(basin_type, d1, d2)

        config = StillingBasinConfig(
            type=basin_type,
            length=length,
            depth=depth,
            floor_thickness=self._floor_thickness(inp.chute_thickness),
            chute_blocks=chute_blocks,
            baffle_blocks=baffle_blocks,
            end_sill=end_sill,
            wingwall_angle=SAF_WINGWALL_ANGLE_DEG if basin_type == StillingBasinType.SAF else 0.0,
        )
        warnings.extend(self._dimension_warnings(config))
        warnings.extend(self._hydraulic_warnings(basin_type, froude, velocity, d2, inp.tailwater_depth))

        logger.info(
            f"Basin design: Q={inp.discharge} b={inp.width} H={inp.drop} -> "
            f"Fr={froude:.2f} V={velocity:.2f} type={basin_type.value} L={length:.2f}"
        )

        return BasinDesignResult(
            froude_number=froude,
            outlet_velocity=velocity,
            recommended_type=recommended,
            config=config,
            warnings=warnings,
            entry_depth=d1,
            conjugate_depth=d2,
            jump_length=jump_length,
        )

    def build_manual(
        self,
        basin_type: Union[StillingBasinType, str],
        length: float,
        depth: float,
        end_sill_height: float,
    ) -> StillingBasinConfig:
        """
        Build a basin from user-supplied dimensions, without auto-design.

        Raises:
            DesignError.InvalidInput: For an unknown type or invalid dimensions.
        """
        basin_type = self._parse_type(basin_type)
        for name, value in (("length", length), ("depth", depth), ("end_sill_height", end_sill_height)):
            if not math.isfinite(value) or value < 0:
                raise DesignError.InvalidInput(f"{name} must be a finite, non-negative number, got {value}")
        if basin_type != StillingBasinType.NONE and length <= 0:
            raise DesignError.InvalidInput(f"length must be positive, got {length}")

        end_sill = None
        if basin_type != StillingBasinType.NONE and end_sill_height > 0:
            if basin_type == StillingBasinType.TYPE_II:
                tooth = MANUAL_TOOTH_RATIO * end_sill_height
                end_sill = EndSillConfig(EndSillType.DENTATED, end_sill_height, tooth, tooth)
            else:
                end_sill = EndSillConfig(EndSillType.SOLID, end_sill_height)

        return StillingBasinConfig(
            type=basin_type,
            length=length,
            depth=depth,
            floor_thickness=self._floor_thickness(self.config.default_chute_thickness),
            end_sill=end_sill,
            wingwall_angle=SAF_WINGWALL_ANGLE_DEG if basin_type == StillingBasinType.SAF else 0.0,
        )

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _parse_type(self, value: Union[StillingBasinType, str]) -> StillingBasinType:
        if isinstance(value, StillingBasinType):
            return value
        try:
            return StillingBasinType(value)
        except ValueError:
            raise DesignError.InvalidInput(f"Unknown stilling basin type: {value!r}") from None

    def _validate_input(self, inp: BasinDesignInput) -> Optional[StillingBasinType]:
        """Return the explicitly requested type, or None for auto."""
        for name in ("discharge", "width", "drop", "slope", "manning_n",
                     "tailwater_depth", "chute_thickness"):
            value = getattr(inp, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise DesignError.InvalidInput(f"{name} must be a finite number, got {value!r}")

        if inp.discharge <= 0:
            raise DesignError.InvalidInput(f"discharge must be positive, got {inp.discharge}")
        if inp.width <= 0:
            raise DesignError.InvalidInput(f"width must be positive, got {inp.width}")
        if inp.drop <= 0:
            raise DesignError.InvalidInput(
                f"drop must be positive (zero drop gives zero entering velocity), got {inp.drop}"
            )
        if inp.manning_n <= 0:
            raise DesignError.InvalidInput(f"manning_n must be positive, got {inp.manning_n}")
        if inp.tailwater_depth < 0:
            raise DesignError.InvalidInput(
                f"tailwater_depth must not be negative, got {inp.tailwater_depth}"
            )
        if inp.chute_thickness < 0:
            raise DesignError.InvalidInput(
                f"chute_thickness must not be negative, got {inp.chute_thickness}"
            )

        if inp.basin_type == AUTO:
            return None
        requested = self._parse_type(inp.basin_type)
        if requested == StillingBasinType.NONE:
            raise DesignError.InvalidInput("Cannot design a basin of type 'none'")
        return requested

    # =========================================================================
    # SIZING
    # =========================================================================

    def _floor_thickness(self, chute_thickness: float) -> float:
        cfg = self.config
        return max(cfg.min_floor_thickness, cfg.floor_thickness_ratio * chute_thickness)

    def _size_chute_blocks(
        self,
        basin_type: StillingBasinType,
        d1: float,
        width: float,
        warnings: List[str],
    ) -> Optional[ChuteBlockConfig]:
        if basin_type not in CHUTE_BLOCK_TYPES:
            return None

        cfg = self.config
        size = cfg.block_size_ratio * d1
        spacing = cfg.block_clearance_ratio * d1
        fit = width / (size + spacing)
        if not math.isfinite(fit):
            raise DesignError.InvalidInput(
                f"Chute block count is unbounded for width {width} and block size {size}"
            )
        count = int(math.floor(fit))
        if count < 1:
            warnings.append(
                f"Chute width {width:.3f} m is narrower than one block plus clearance "
                f"({size + spacing:.3f} m); using a single block"
            )
            count = 1

        return ChuteBlockConfig(
            count=count,
            width=size,
            height=size,
            thickness=size,
            spacing=spacing,
        )

    def _size_baffle_blocks(
        self,
        basin_type: StillingBasinType,
        d1: float,
        d2: float,
        chute_blocks: Optional[ChuteBlockConfig],
    ) -> Optional[BaffleBlockConfig]:
        if basin_type not in BAFFLE_BLOCK_TYPES:
            return None

        cfg = self.config
        size = cfg.block_size_ratio * d1
        chute_count = chute_blocks.count if chute_blocks else 1
        return BaffleBlockConfig(
            rows=1,
            blocks_per_row=max(1, chute_count - 1),
            width=size,
            height=cfg.baffle_height_ratio * d1,
            thickness=size,
            distance_from_inlet=cfg.baffle_distance_ratio * d2,
            row_spacing=0.0,
        )

    def _size_end_sill(
        self,
        basin_type: StillingBasinType,
        d1: float,
        d2: float,
    ) -> Optional[EndSillConfig]:
        if basin_type in NO_SILL_TYPES:
            return None

        cfg = self.config
        height = cfg.end_sill_height_ratio * d1
        if basin_type == StillingBasinType.TYPE_II:
            tooth = cfg.dentate_tooth_ratio * d2
            return EndSillConfig(EndSillType.DENTATED, height, tooth, tooth)
        return EndSillConfig(EndSillType.SOLID, height)

    # =========================================================================
    # ADVISORY WARNINGS
    # =========================================================================

    def _regime_warnings(self, froude: float, recommended: StillingBasinType) -> List[str]:
        warnings = []
        if froude < 1.0:
            warnings.append(
                f"Entering flow is subcritical (Fr={froude:.2f}); no hydraulic jump forms "
                f"and the classical basin types are not validated for this regime"
            )
        if froude >= FROUDE_VALIDATED_MAX:
            warnings.append(
                f"Fr={froude:.2f} is at or above {FROUDE_VALIDATED_MAX:g}; the classical basin "
                f"types are not validated for this regime, using nearest type {recommended.value}"
            )
        return warnings

    def _selection_warnings(
        self,
        basin_type: StillingBasinType,
        froude: float,
        velocity: float,
    ) -> List[str]:
        warnings = []
        fr_min, fr_max = froude_range(basin_type)
        label = STILLING_BASIN_TYPE_INFO[basin_type]["label"]
        if froude < fr_min:
            warnings.append(f"{label} basin requires Fr > {fr_min:g}; design Fr={froude:.2f}")
        elif froude > fr_max:
            warnings.append(f"{label} basin is limited to Fr < {fr_max:g}; design Fr={froude:.2f}")
        if basin_type == StillingBasinType.TYPE_III and velocity >= TYPE_II_VELOCITY_THRESHOLD_M_S:
            warnings.append(
                f"{label} basin is limited to entering velocities below "
                f"{TYPE_II_VELOCITY_THRESHOLD_M_S:g} m/s; design V={velocity:.2f} m/s"
            )
        return warnings

    def _dimension_warnings(self, config: StillingBasinConfig) -> List[str]:
        cfg = self.config
        warnings = []
        if config.length < cfg.min_practical_basin_length:
            warnings.append(
                f"Basin length {config.length:.2f} m is below the practical minimum "
                f"of {cfg.min_practical_basin_length:g} m"
            )
        if config.chute_blocks and config.chute_blocks.height < cfg.min_practical_block_height:
            warnings.append(
                f"Chute block height {config.chute_blocks.height:.3f} m is below the practical "
                f"minimum of {cfg.min_practical_block_height:g} m"
            )
        return warnings


    def _hydraulic_warnings(
        self,
        basin_type: StillingBasinType,
        froude: float,
        velocity: float,
        d2: float,
        tailwater_depth: float,
    ) -> List[str]:
        cfg = self.config
        warnings = []
        if basin_type == StillingBasinType.TYPE_IV:
            warnings.append("Type IV basins are prone to wave action; consider downstream protection")
        if velocity > cfg.high_outlet_velocity:
            warnings.append(
                f"Outlet velocity {velocity:.2f} m/s exceeds {cfg.high_outlet_velocity:g} m/s; "
                f"consider aeration slots and erosion protection"
            )
        if froude > cfg.model_test_froude:
            warnings.append(
                f"Fr={froude:.2f} exceeds {cfg.model_test_froude:g}; verify the design "
                f"with physical model testing"
            )
        # Zero tailwater means none was supplied
        if 0 < tailwater_depth < cfg.tailwater_sufficiency_ratio * d2:
            warnings.append(
                f"Tailwater depth {tailwater_depth:.3f} m is below "
                f"{cfg.tailwater_sufficiency_ratio:g} x conjugate depth ({d2:.3f} m); "
                f"it may be insufficient for a stable jump, consider deepening the basin"
            )
        return warnings


# =============================================================================
# MODULE-LEVEL API
# =============================================================================

def design_basin(inp: BasinDesignInput, config: Optional[DesignConfig] = None) -> BasinDesignResult:
    """Auto-design a stilling basin. See StillingBasinDesigner.design()."""
    return StillingBasinDesigner(config).design(inp)


def build_manual_basin(
    basin_type: Union[StillingBasinType, str],
    length: float,
    depth: float,
    end_sill_height: float,
) -> StillingBasinConfig:
    """Construct a basin from user-supplied dimensions."""
    return StillingBasinDesigner().build_manual(basin_type, length, depth, end_sill_height)
