"""
Unit tests for review/checks.py

Tests the advisory design checks and notification bookkeeping.
"""

import pytest

from hydrochain.bootstrap.config import ReviewConfig
from hydrochain.core.basin import StillingBasinConfig
from hydrochain.core.elements import Channel
from hydrochain.core.enums import ChuteType, StillingBasinType
from hydrochain.core.sections import RectangularSection, TriangularSection
from hydrochain.core.store import ElementStore
from hydrochain.review import (
    DesignReviewer,
    NotificationCategory,
    NotificationSeverity,
    section_width,
)


def _basin(basin_type):
    return StillingBasinConfig(basin_type, length=10.0, depth=1.0, floor_thickness=0.3)


def _titles(notifications):
    return [n.title for n in notifications]


@pytest.fixture
def reviewer():
    return DesignReviewer()


# =============================================================================
# CHANNELS
# =============================================================================

class TestChannelChecks:
    """Test check_channel()."""

    def test_mild_channel_is_clean(self, reviewer, make_channel):
        assert reviewer.check_channel(make_channel("c1")) == []

    def test_steep_slope_and_high_velocity(self, reviewer, make_channel):
        """S = 6% gives V ≈ 9.3 m/s at half depth."""
        found = reviewer.check_channel(make_channel("c1", slope=0.06))

        assert _titles(found) == ["Steep Channel Slope", "High Velocity"]
        assert all(n.severity == NotificationSeverity.WARNING for n in found)

    def test_excessive_velocity(self, reviewer, make_channel):
        found = reviewer.check_channel(make_channel("c1", slope=0.1))

        excessive = [n for n in found if n.title == "Excessive Velocity"]
        assert len(excessive) == 1
        assert excessive[0].severity == NotificationSeverity.ERROR
        assert "High Velocity" not in _titles(found)

    def test_low_freeboard(self, reviewer, make_channel):
        found = reviewer.check_channel(make_channel("c1", free_board=0.05))

        assert _titles(found) == ["Low Freeboard"]
        assert found[0].category == NotificationCategory.GEOMETRY

    def test_thresholds_from_config(self, make_channel):
        reviewer = DesignReviewer(ReviewConfig(steep_channel_slope=0.005))
        assert "Steep Channel Slope" in _titles(reviewer.check_channel(make_channel("c1")))


# =============================================================================
# TRANSITIONS
# =============================================================================

class TestTransitionChecks:
    """Test check_transition()."""

    def test_drop_without_basin(self, reviewer, make_transition):
        found = reviewer.check_transition(make_transition("t1", drop_height=2.0))

        assert _titles(found) == ["Drop Without Stilling Basin"]
        assert found[0].category == NotificationCategory.STILLING_BASIN

    def test_froude_mismatch(self, reviewer, make_transition):
        """5 m long, 2 m drop: Fr ≈ 8.8, outside the Type IV range."""
        transition = make_transition("t1", drop_height=2.0, stilling_basin=_basin(StillingBasinType.TYPE_IV))

        found = reviewer.check_transition(transition)

        assert _titles(found) == ["Froude Number Mismatch"]
        assert "Type II or Type III" in found[0].recommendation

    def test_matching_basin_is_clean(self, reviewer, make_transition):
        transition = make_transition("t1", drop_height=2.0, stilling_basin=_basin(StillingBasinType.TYPE_III))
        assert reviewer.check_transition(transition) == []

    def test_basin_of_type_none_counts_as_missing(self, reviewer, make_transition):
        transition = make_transition("t1", drop_height=2.0, stilling_basin=_basin(StillingBasinType.NONE))
        assert _titles(reviewer.check_transition(transition)) == ["Drop Without Stilling Basin"]

    def test_width_change(self, reviewer, make_transition):
        transition = make_transition(
            "t1",
            inlet=RectangularSection(1.0, 1.0),
            outlet=RectangularSection(4.0, 1.0),
        )

        found = reviewer.check_transition(transition)

        assert _titles(found) == ["Large Width Change", "Short Transition"]
        assert found[1].severity == NotificationSeverity.INFO

    def test_long_transition_is_not_short(self, reviewer, make_transition):
        transition = make_transition(
            "t1",
            length=12.0,
            inlet=RectangularSection(2.0, 1.0),
            outlet=RectangularSection(5.0, 1.0),
        )
        assert reviewer.check_transition(transition) == []


# =============================================================================
# CHUTES
# =============================================================================

class TestChuteChecks:
    """Test check_chute()."""

    def test_chute_without_basin(self, reviewer, make_chute):
        """20 m long, 10 m drop: V ≈ 29.7 m/s, Fr ≈ 9.5."""
        found = reviewer.check_chute(make_chute("r1"))

        assert _titles(found) == [
            "Steep Smooth Chute",
            "High Drop Without Stilling Basin",
            "Excessive Outlet Velocity",
        ]

        action = found[1].action
        assert action["type"] == "add-stilling-basin"
        assert action["element_id"] == "r1"
        assert action["basin_type"] == "type-ii"
        assert action["froude"] == pytest.approx(9.48, abs=0.01)
        assert action["velocity"] == pytest.approx(29.70, abs=0.01)

    def test_stepped_chute_not_steep_smooth(self, reviewer, make_chute):
        found = reviewer.check_chute(make_chute("r1", chute_type=ChuteType.STEPPED))
        assert "Steep Smooth Chute" not in _titles(found)

    def test_basin_froude_too_high(self, reviewer, make_chute):
        chute = make_chute("r1", stilling_basin=_basin(StillingBasinType.TYPE_IV))

        titles = _titles(reviewer.check_chute(chute))

        assert "Froude Number Too High" in titles
        assert "High Drop Without Stilling Basin" not in titles

    def test_basin_froude_too_low(self, reviewer, make_chute):
        chute = make_chute("r1", length=20.0, drop=0.5, stilling_basin=_basin(StillingBasinType.TYPE_III))
        assert "Froude Number Too Low" in _titles(reviewer.check_chute(chute))

    def test_small_drop_needs_no_basin(self, reviewer, make_chute):
        found = reviewer.check_chute(make_chute("r1", drop=2.0))
        assert "High Drop Without Stilling Basin" not in _titles(found)


# =============================================================================
# CONNECTIONS
# =============================================================================

class TestConnectionChecks:
    """Test check_connections()."""

    def test_single_element_not_isolated(self, reviewer, store):
        store.add(Channel(id="c1"))
        assert reviewer.check_connections(store) == []

    def test_isolated_elements(self, reviewer, store):
        store.add(Channel(id="c1"))
        store.add(Channel(id="c2"))

        found = reviewer.check_connections(store)

        assert _titles(found) == ["Isolated Element", "Isolated Element"]
        assert {n.element_id for n in found} == {"c1", "c2"}

    @pytest.mark.parametrize("offset,severity", [
        (0.05, NotificationSeverity.WARNING),
        (0.5, NotificationSeverity.ERROR),
    ])
    def test_elevation_discontinuity(self, reviewer, offset, severity):
        up = Channel(id="a", length=10.0, slope=0.0)
        down = Channel(id="b", length=10.0, slope=0.0, start_station=10.0, start_elevation=-offset)
        up.downstream_id, down.upstream_id = "b", "a"

        found = reviewer.check_connections(ElementStore([up, down]))

        assert _titles(found) == ["Elevation Discontinuity"]
        assert found[0].severity == severity
        assert found[0].element_id == "b"

    def test_propagated_chain_is_continuous(self, reviewer, channel_chute_chain):
        assert reviewer.check_connections(channel_chute_chain.store) == []


# =============================================================================
# ANALYZE / BOOKKEEPING
# =============================================================================

class TestAnalyze:
    """Test analyze() and notification queries."""

    def test_analyze_and_summary(self, reviewer, channel_chute_chain):
        notifications = reviewer.analyze(channel_chute_chain.store)
        summary = reviewer.summary()

        assert len(notifications) == 3
        assert summary.error == 2
        assert summary.warning == 1
        assert summary.has_errors
        assert summary.to_dict()["total"] == 3

    def test_installed_basin_clears_drop_error(self, reviewer, channel_chute_chain):
        channel_chute_chain.apply_basin_design("r1", discharge=5.0, basin_type="type-ii")

        titles = _titles(reviewer.analyze(channel_chute_chain.store))

        assert "High Drop Without Stilling Basin" not in titles

    def test_analyze_never_mutates(self, reviewer, channel_chute_chain):
        before = channel_chute_chain.store.to_dict()["elements"]
        reviewer.analyze(channel_chute_chain.store)
        assert channel_chute_chain.store.to_dict()["elements"] == before

    def test_notifications_for_and_dismiss(self, reviewer, channel_chute_chain):
        reviewer.analyze(channel_chute_chain.store)
        chute_notes = reviewer.notifications_for("r1")

        assert len(chute_notes) == 3
        assert reviewer.dismiss(chute_notes[0].notification_id)
        assert len(reviewer.notifications_for("r1")) == 2
        assert not reviewer.dismiss("notif-missing")

        reviewer.dismiss_all()
        assert reviewer.active() == []
        assert reviewer.summary().total == 0

    def test_notification_to_dict(self, reviewer, make_chute):
        data = reviewer.check_chute(make_chute("r1"))[0].to_dict()

        assert data["notification_id"].startswith("notif-")
        assert data["severity"] == "warning"
        assert data["category"] == "hydraulics"
        assert data["dismissed"] is False


class TestSectionWidth:
    def test_rectangular(self):
        assert section_width(RectangularSection(3.0, 1.0)) == 3.0

    def test_triangular_uses_top_width(self):
        assert section_width(TriangularSection(depth=1.0, side_slope=1.0)) == pytest.approx(2.0)
