"""
Unit tests for hydraulics/stilling_basin.py

Tests classification, jump geometry, block/sill sizing, advisory warnings
and manual construction of stilling basins.
"""

import math

import pytest

from hydrochain.bootstrap.config import DesignConfig
from hydrochain.core.basin import EndSillConfig
from hydrochain.core.enums import EndSillType, StillingBasinType
from hydrochain.errors import DesignError, HydroChainError
from hydrochain.hydraulics.stilling_basin import (
    STILLING_BASIN_TYPE_INFO,
    BasinDesignInput,
    StillingBasinDesigner,
    build_manual_basin,
    classify_basin_type,
    conjugate_depth,
    design_basin,
    entering_velocity,
    froude_range,
)


def _design(discharge=5.0, width=2.0, drop=10.0, **kwargs):
    return design_basin(BasinDesignInput(discharge=discharge, width=width, drop=drop, **kwargs))


# =============================================================================
# JUMP RELATIONS
# =============================================================================

class TestJumpRelations:
    """Test entering velocity, conjugate depth and classification."""

    def test_entering_velocity(self):
        assert entering_velocity(10.0) == pytest.approx(14.00714, rel=1e-5)

    def test_conjugate_depth_identity(self):
        """d2/d1 = (sqrt(1 + 8 Fr²) - 1) / 2."""
        for froude in (1.0, 2.0, 4.5, 9.0, 16.0):
            d2 = conjugate_depth(0.3, froude)
            assert d2 / 0.3 == pytest.approx((math.sqrt(1 + 8 * froude ** 2) - 1) / 2)

    def test_conjugate_depth_at_critical(self):
        assert conjugate_depth(0.5, 1.0) == pytest.approx(0.5)

    @pytest.mark.parametrize("froude,velocity,expected", [
        (1.2, 3.0, StillingBasinType.TYPE_I),
        (1.7, 3.0, StillingBasinType.SAF),
        (2.49, 5.0, StillingBasinType.SAF),
        (2.5, 5.0, StillingBasinType.TYPE_IV),
        (4.49, 8.0, StillingBasinType.TYPE_IV),
        (4.5, 14.99, StillingBasinType.TYPE_III),
        (10.0, 15.0, StillingBasinType.TYPE_II),
        (25.0, 12.0, StillingBasinType.TYPE_III),
    ])
    def test_classification(self, froude, velocity, expected):
        assert classify_basin_type(froude, velocity) == expected

    def test_froude_range(self):
        assert froude_range(StillingBasinType.TYPE_IV) == (2.5, 4.5)
        assert froude_range(StillingBasinType.TYPE_III) == (4.5, 17.0)

    def test_type_info_covers_every_type(self):
        assert set(STILLING_BASIN_TYPE_INFO) == set(StillingBasinType)


# =============================================================================
# AUTO-DESIGN
# =============================================================================

class TestDesignTypeIII:
    """Q = 5 m³/s, b = 2 m, H = 10 m: Fr ≈ 10.6 with V ≈ 14 m/s."""

    @pytest.fixture
    def result(self):
        return _design()

    def test_hydraulics(self, result):
        assert result.outlet_velocity == pytest.approx(14.00714, rel=1e-5)
        assert result.entry_depth == pytest.approx(0.178480, rel=1e-4)
        assert result.froude_number == pytest.approx(10.586, rel=1e-3)
        assert result.conjugate_depth == pytest.approx(2.5842, rel=1e-3)
        assert result.recommended_type == StillingBasinType.TYPE_III

    def test_jump_and_basin_length(self, result):
        assert result.jump_length == pytest.approx(6.9 * (result.conjugate_depth - result.entry_depth))
        assert result.config.length == pytest.approx(1.1 * result.jump_length)
        assert result.config.length == pytest.approx(18.26, rel=1e-3)

    def test_depth_without_tailwater(self, result):
        assert result.config.depth == pytest.approx(result.conjugate_depth)

    def test_chute_blocks(self, result):
        blocks = result.config.chute_blocks

        assert blocks.count == 7
        assert blocks.height == pytest.approx(result.entry_depth)
        assert blocks.width == pytest.approx(result.entry_depth)
        assert blocks.spacing == pytest.approx(0.5 * result.entry_depth)

    def test_baffle_blocks(self, result):
        baffles = result.config.baffle_blocks

        assert baffles.rows == 1
        assert baffles.blocks_per_row == 6
        assert baffles.height == pytest.approx(0.8 * result.entry_depth)
        assert baffles.distance_from_inlet == pytest.approx(0.8 * result.conjugate_depth)

    def test_solid_end_sill(self, result):
        sill = result.config.end_sill

        assert sill.type == EndSillType.SOLID
        assert sill.height == pytest.approx(0.6 * result.entry_depth)
        assert sill.tooth_width is None

    def test_floor_and_wingwalls(self, result):
        assert result.config.floor_thickness == pytest.approx(0.3)
        assert result.config.wingwall_angle == 0.0

    def test_small_block_warning(self, result):
        assert any("Chute block height" in w for w in result.warnings)

    def test_tailwater_reduces_depth(self):
        result = _design(tailwater_depth=1.0)
        assert result.config.depth == pytest.approx(result.conjugate_depth - 1.0)

    def test_tailwater_above_conjugate_clamps(self):
        result = _design(tailwater_depth=3.0)

        assert result.config.depth == 0.0
        assert any("exceeds conjugate depth" in w for w in result.warnings)

    def test_deterministic(self):
        assert _design() == _design()

    def test_to_dict(self, result):
        data = result.to_dict()

        assert data["recommended_type"] == "type-iii"
        assert data["config"]["type"] == "type-iii"
        assert data["froude_number"] == pytest.approx(10.586, abs=1e-3)


class TestDesignOtherRegimes:
    """Classification across the Froude regimes."""

    def test_type_ii_at_high_velocity(self):
        """H = 20 m gives V ≈ 19.8 m/s."""
        result = _design(discharge=10.0, drop=20.0)

        assert result.outlet_velocity >= 15.0
        assert result.recommended_type == StillingBasinType.TYPE_II
        assert result.config.baffle_blocks is None
        assert result.config.chute_blocks is not None

        sill = result.config.end_sill
        assert sill.type == EndSillType.DENTATED
        assert sill.tooth_width == pytest.approx(0.15 * result.conjugate_depth)

    def test_type_i(self):
        result = _design(discharge=0.2, width=1.0, drop=0.1)

        assert result.froude_number == pytest.approx(1.1835, rel=1e-3)
        assert result.recommended_type == StillingBasinType.TYPE_I
        assert result.config.chute_blocks is None
        assert result.config.baffle_blocks is None
        assert result.config.end_sill is None
        assert any("practical minimum" in w and "Basin length" in w for w in result.warnings)

    def test_saf(self):
        result = _design(discharge=0.07, width=1.0, drop=0.1)

        assert result.froude_number == pytest.approx(2.0005, rel=1e-3)
        assert result.recommended_type == StillingBasinType.SAF
        assert result.config.wingwall_angle == 45.0
        assert result.config.baffle_blocks.blocks_per_row == result.config.chute_blocks.count - 1

    def test_type_iv(self):
        result = _design(discharge=0.02, width=1.0, drop=0.1)

        assert result.froude_number == pytest.approx(3.7425, rel=1e-3)
        assert result.recommended_type == StillingBasinType.TYPE_IV
        assert result.config.chute_blocks is None
        assert result.config.baffle_blocks is None
        assert result.config.end_sill.type == EndSillType.SOLID
        assert any("wave action" in w for w in result.warnings)

    def test_above_validated_range(self):
        result = _design(discharge=1.0)

        assert result.froude_number > 17.0
        assert result.recommended_type == StillingBasinType.TYPE_III
        assert any("not validated" in w for w in result.warnings)

    def test_subcritical_entry(self):
        result = _design(discharge=1.0, width=1.0, drop=0.1)

        assert result.froude_number < 1.0
        assert result.recommended_type == StillingBasinType.TYPE_I
        assert any("subcritical" in w for w in result.warnings)
        assert result.config.length == 0.0

    def test_narrow_chute_uses_single_block(self):
        result = _design(width=0.1)

        assert result.recommended_type == StillingBasinType.SAF
        assert result.config.chute_blocks.count == 1
        assert result.config.baffle_blocks.blocks_per_row == 1
        assert any("single block" in w for w in result.warnings)


class TestExplicitType:
    """A requested type is honoured; mismatches only warn."""

    def test_type_outside_froude_range(self):
        result = _design(basin_type="type-iv")

        assert result.config.type == StillingBasinType.TYPE_IV
        assert result.recommended_type == StillingBasinType.TYPE_III
        assert any("limited to Fr < 4.5" in w for w in result.warnings)

    def test_type_iii_at_high_velocity(self):
        result = _design(discharge=10.0, drop=20.0, basin_type="type-iii")

        assert result.config.type == StillingBasinType.TYPE_III
        assert any("entering velocities below 15" in w for w in result.warnings)

    def test_matching_type_has_no_selection_warning(self):
        result = _design(basin_type="type-iii")
        assert not any("basin requires" in w or "limited to" in w for w in result.warnings)

    def test_config_override(self):
        config = DesignConfig(jump_length_coefficient=6.0, basin_length_safety_factor=1.0)
        result = design_basin(BasinDesignInput(discharge=5.0, width=2.0, drop=10.0), config)

        assert result.config.length == pytest.approx(6.0 * (result.conjugate_depth - result.entry_depth))


class TestHydraulicWarnings:
    """Velocity, Froude and tailwater advisories."""

    def test_quiet_at_moderate_conditions(self):
        warnings = " ".join(_design().warnings)

        assert "aeration" not in warnings
        assert "model testing" not in warnings
        assert "stable jump" not in warnings

    def test_high_outlet_velocity(self):
        result = _design(discharge=10.0, drop=25.0)

        assert result.outlet_velocity > 20.0
        assert any("aeration slots" in w for w in result.warnings)

    def test_high_froude(self):
        result = _design(discharge=2.0)

        assert 12.0 < result.froude_number < 17.0
        assert any("physical model testing" in w for w in result.warnings)

    def test_froude_threshold_from_config(self):
        result = design_basin(
            BasinDesignInput(discharge=5.0, width=2.0, drop=10.0), DesignConfig(model_test_froude=10.0)
        )
        assert any("physical model testing" in w for w in result.warnings)

    def test_insufficient_tailwater(self):
        result = _design(tailwater_depth=1.0)

        assert 1.0 < 0.85 * result.conjugate_depth
        assert any("stable jump" in w for w in result.warnings)

    def test_sufficient_tailwater(self):
        result = _design(tailwater_depth=2.4)
        assert not any("stable jump" in w for w in result.warnings)

    def test_explicit_type_iv_wave_action(self):
        result = _design(basin_type="type-iv")
        assert any("wave action" in w for w in result.warnings)


class TestInvalidInput:
    """DesignError.InvalidInput cases."""

    @pytest.mark.parametrize("kwargs", [
        {"width": 0.0},
        {"width": -1.0},
        {"discharge": 0.0},
        {"drop": 0.0},
        {"discharge": float("nan")},
        {"drop": float("inf")},
        {"tailwater_depth": -0.5},
        {"manning_n": 0.0},
        {"basin_type": "type-v"},
        {"basin_type": "none"},
    ])
    def test_rejected(self, kwargs):
        with pytest.raises(DesignError.InvalidInput):
            _design(**kwargs)

    def test_is_a_hydrochain_error(self):
        with pytest.raises(HydroChainError):
            _design(width=0.0)

    def test_entry_depth_underflow(self):
        """A vanishing discharge over a huge width rounds d1 to zero."""
        with pytest.raises(DesignError.InvalidInput):
            _design(discharge=5e-324, width=1e300)

    def test_conjugate_depth_overflow(self):
        with pytest.raises(DesignError.InvalidInput):
            _design(discharge=1e-320)

    def test_unbounded_block_count(self):
        with pytest.raises(DesignError.InvalidInput):
            _design(discharge=10.0, width=1e300)


# =============================================================================
# MANUAL CONSTRUCTION
# =============================================================================

class TestBuildManual:
    """Test build_manual_basin()."""

    def test_type_ii_dentated_sill(self):
        config = build_manual_basin("type-ii", length=10.0, depth=2.0, end_sill_height=0.4)

        assert config.type == StillingBasinType.TYPE_II
        assert config.end_sill.type == EndSillType.DENTATED
        assert config.end_sill.tooth_width == pytest.approx(0.3)
        assert config.chute_blocks is None

    def test_solid_sill_and_floor(self):
        config = build_manual_basin(StillingBasinType.TYPE_III, 12.0, 1.5, 0.2)

        assert config.end_sill == EndSillConfig(EndSillType.SOLID, 0.2)
        assert config.floor_thickness == pytest.approx(0.3)

    def test_saf_wingwalls(self):
        assert build_manual_basin("saf", 5.0, 1.0, 0.1).wingwall_angle == 45.0

    def test_zero_sill_height_means_no_sill(self):
        assert build_manual_basin("type-iv", 5.0, 1.0, 0.0).end_sill is None

    def test_none_type(self):
        config = build_manual_basin("none", 0.0, 0.0, 0.5)

        assert config.type == StillingBasinType.NONE
        assert config.end_sill is None

    @pytest.mark.parametrize("args", [
        ("type-i", 0.0, 1.0, 0.0),
        ("type-i", 5.0, -1.0, 0.0),
        ("type-i", 5.0, 1.0, float("nan")),
        ("type-x", 5.0, 1.0, 0.0),
    ])
    def test_rejected(self, args):
        with pytest.raises(DesignError.InvalidInput):
            build_manual_basin(*args)

    def test_designer_uses_config_floor(self):
        designer = StillingBasinDesigner(DesignConfig(min_floor_thickness=0.5))
        assert designer.build_manual("type-i", 5.0, 1.0, 0.0).floor_thickness == pytest.approx(0.5)
