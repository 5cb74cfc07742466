"""
hydrochain Design Review

Scans an element store and produces design notifications for:
- Froude number out of range for the installed stilling basin type
- Excessive velocities (Manning estimates)
- Steep slopes and large drops without energy dissipation
- Transition geometry (width ratio, length)
- Connection problems (isolated elements, elevation discontinuities)

Checks are advisory: they never modify the store.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import logging
import uuid

from hydrochain.bootstrap.config import ReviewConfig
from hydrochain.core.constants import STILLING_BASIN_FROUDE_RANGES
from hydrochain.core.elements import Channel, Chute, HydraulicElement, Transition
from hydrochain.core.enums import ChuteType, StillingBasinType
from hydrochain.core.sections import CrossSection
from hydrochain.core.store import ElementStore
from hydrochain.hydraulics.flow import estimate_froude_number, estimate_velocity
from hydrochain.hydraulics.stilling_basin import STILLING_BASIN_TYPE_INFO, classify_basin_type

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================

class NotificationSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, Enum):
    HYDRAULICS = "hydraulics"
    GEOMETRY = "geometry"
    STILLING_BASIN = "stilling-basin"
    CONNECTION = "connection"


# =============================================================================
# NOTIFICATION
# =============================================================================

@dataclass
class DesignNotification:
    """A single design review finding."""
    element_id: Optional[str]
    element_name: Optional[str]
    severity: NotificationSeverity
    category: NotificationCategory
    title: str
    message: str
    recommendation: Optional[str] = None

    # Machine-actionable follow-up, e.g. {"type": "add-stilling-basin", ...}
    action: Optional[Dict[str, Any]] = None

    notification_id: str = field(default_factory=lambda: f"notif-{uuid.uuid4().hex[:8]}")
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    dismissed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "element_id": self.element_id,
            "element_name": self.element_name,
            "severity": self.severity.value,
            "category": self.category.value,
            "title": self.title,
            "message": self.message,
            "recommendation": self.recommendation,
            "action": self.action,
            "created_at": self.created_at.isoformat(),
            "dismissed": self.dismissed,
        }


@dataclass
class NotificationSummary:
    info: int = 0
    warning: int = 0
    error: int = 0

    @property
    def total(self) -> int:
        return self.info + self.warning + self.error

    @property
    def has_errors(self) -> bool:
        return self.error > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "info": self.info,
            "warning": self.warning,
            "error": self.error,
            "total": self.total,
        }


def section_width(section: CrossSection) -> float:
    """Representative width: bottom width, or top width for a triangle."""
    return section.bottom_width if section.bottom_width > 0 else section.top_width


def _has_basin(element: HydraulicElement) -> bool:
    basin = getattr(element, "stilling_basin", None)
    return basin is not None and basin.type != StillingBasinType.NONE


# =============================================================================
# REVIEWER
# =============================================================================

class DesignReviewer:
    """
    Runs every check over a store and keeps the latest notifications.

    Usage:
        reviewer = DesignReviewer()
        notifications = reviewer.analyze(store)
        reviewer.summary().error
    """

    def __init__(self, config: Optional[ReviewConfig] = None):
        self.config = config or ReviewConfig()
        self.notifications: List[DesignNotification] = []

    def analyze(self, store: ElementStore) -> List[DesignNotification]:
        """Regenerate notifications for every element in the store."""
        notifications: List[DesignNotification] = []

        for element in store:
            if isinstance(element, Channel):
                notifications.extend(self.check_channel(element))
            elif isinstance(element, Transition):
                notifications.extend(self.check_transition(element))
            elif isinstance(element, Chute):
                notifications.extend(self.check_chute(element))

        notifications.extend(self.check_connections(store))

        self.notifications = notifications
        summary = self.summary()
        logger.info(
            f"Design review: {summary.error} errors, {summary.warning} warnings, "
            f"{summary.info} info over {len(store)} elements"
        )
        return notifications

    # ==================== Queries ====================

    def active(self) -> List[DesignNotification]:
        return [n for n in self.notifications if not n.dismissed]

    def notifications_for(self, element_id: str) -> List[DesignNotification]:
        """Active notifications attached to one element."""
        return [n for n in self.active() if n.element_id == element_id]

    def summary(self) -> NotificationSummary:
        summary = NotificationSummary()
        for n in self.active():
            setattr(summary, n.severity.value, getattr(summary, n.severity.value) + 1)
        return summary

    def dismiss(self, notification_id: str) -> bool:
        for n in self.notifications:
            if n.notification_id == notification_id:
                n.dismissed = True
                return True
        return False

    def dismiss_all(self) -> None:
        for n in self.notifications:
            n.dismissed = True

    # ==================== Channel ====================

    def check_channel(self, channel: Channel) -> List[DesignNotification]:
        cfg = self.config
        found = []

        if channel.slope > cfg.steep_channel_slope:
            found.append(self._notify(
                channel, NotificationSeverity.WARNING, NotificationCategory.HYDRAULICS,
                "Steep Channel Slope",
                f"Slope {channel.slope:.1%} exceeds {cfg.steep_channel_slope:.0%}, which may cause "
                f"supercritical flow and erosion.",
                "Consider a chute with step blocks or a drop structure with stilling basin (USBR EM-25).",
            ))

        depth = channel.section.depth * cfg.assumed_depth_ratio
        velocity = estimate_velocity(channel.slope, depth, section_width(channel.section), channel.manning_n)
        if velocity > cfg.max_velocity_concrete:
            found.append(self._notify(
                channel, NotificationSeverity.ERROR, NotificationCategory.HYDRAULICS,
                "Excessive Velocity",
                f"Velocity {velocity:.1f} m/s exceeds {cfg.max_velocity_concrete:g} m/s, "
                f"the maximum for concrete-lined channels.",
                "Reduce slope, increase cross-section area, or add energy dissipators "
                "(USBR Design Standards No. 14).",
            ))
        elif velocity > cfg.max_velocity_rock:
            found.append(self._notify(
                channel, NotificationSeverity.WARNING, NotificationCategory.HYDRAULICS,
                "High Velocity",
                f"Velocity {velocity:.1f} m/s is in the {cfg.max_velocity_rock:g}-"
                f"{cfg.max_velocity_concrete:g} m/s range. Ensure adequate erosion protection.",
                "Consider concrete lining (n=0.013-0.015) or riprap protection per HEC-15.",
            ))

        if channel.free_board < cfg.min_freeboard:
            found.append(self._notify(
                channel, NotificationSeverity.WARNING, NotificationCategory.GEOMETRY,
                "Low Freeboard",
                f"Freeboard {channel.free_board:.2f} m is below the minimum "
                f"{cfg.min_freeboard:.2f} m recommended for small channels.",
                "Increase freeboard to 15-30 cm for small channels, 30-60 cm for large "
                "channels (ASCE Manual 108).",
            ))

        return found

    # ==================== Transition ====================

    def check_transition(self, transition: Transition) -> List[DesignNotification]:
        cfg = self.config
        found = []

        drop = transition.start_elevation - transition.end_elevation
        slope = drop / transition.length if transition.length > 0 else 0.0

        if drop > cfg.transition_basin_drop and not _has_basin(transition):
            found.append(self._notify(
                transition, NotificationSeverity.WARNING, NotificationCategory.STILLING_BASIN,
                "Drop Without Stilling Basin",
                f"Drop of {drop:.2f} m exceeds {cfg.transition_basin_drop:g} m without an "
                f"energy dissipation structure.",
                "Add a stilling basin per USBR EM-25 or a drop structure for energy dissipation.",
            ))

        if _has_basin(transition):
            basin_type = transition.stilling_basin.type
            froude = estimate_froude_number(
                slope,
                transition.outlet.depth * cfg.assumed_depth_ratio,
                section_width(transition.outlet),
                transition.manning_n,
            )
            fr_min, fr_max = STILLING_BASIN_FROUDE_RANGES[basin_type.value]
            if froude < fr_min or froude > fr_max:
                label = STILLING_BASIN_TYPE_INFO[basin_type]["label"]
                found.append(self._notify(
                    transition, NotificationSeverity.WARNING, NotificationCategory.STILLING_BASIN,
                    "Froude Number Mismatch",
                    f"{label} basin is designed for Fr {fr_min:g}-{fr_max:g}; current geometry "
                    f"gives Fr ≈ {froude:.1f}.",
                    "Consider Type I basin for lower Froude numbers, or increase slope to match the range."
                    if froude < fr_min else
                    "Consider Type II or Type III basin for higher Froude numbers (USBR Design Standards).",
                ))

        inlet_width = section_width(transition.inlet)
        outlet_width = section_width(transition.outlet)
        narrow = min(inlet_width, outlet_width)
        if narrow > 0 and max(inlet_width, outlet_width) / narrow > cfg.max_transition_width_ratio:
            found.append(self._notify(
                transition, NotificationSeverity.WARNING, NotificationCategory.GEOMETRY,
                "Large Width Change",
                f"Width ratio exceeds {cfg.max_transition_width_ratio:g}:1, which may cause flow "
                f"separation and eddies.",
                "Use multiple transitions with max 2:1 ratio each, or increase transition length "
                "(ASCE Manual 108).",
            ))

        width_change = abs(outlet_width - inlet_width)
        recommended_length = width_change * cfg.transition_length_per_width_change
        if width_change > cfg.transition_min_width_change and transition.length < recommended_length:
            found.append(self._notify(
                transition, NotificationSeverity.INFO, NotificationCategory.GEOMETRY,
                "Short Transition",
                f"Transition length {transition.length:.2f} m is below "
                f"{cfg.transition_length_per_width_change:g}x the width change "
                f"({recommended_length:.2f} m).",
                "Recommended minimum: 4-6x width change for expansions, 2-4x for contractions (Chow, 1959).",
            ))

        return found

    # ==================== Chute ====================

    def check_chute(self, chute: Chute) -> List[DesignNotification]:
        cfg = self.config
        found = []

        froude = estimate_froude_number(chute.slope, chute.depth, chute.width, chute.manning_n)
        velocity = estimate_velocity(chute.slope, chute.depth, chute.width, chute.manning_n)

        if chute.slope > cfg.steep_smooth_chute_slope and chute.chute_type == ChuteType.SMOOTH:
            found.append(self._notify(
                chute, NotificationSeverity.WARNING, NotificationCategory.HYDRAULICS,
                "Steep Smooth Chute",
                f"Slope {chute.slope:.1%} exceeds {cfg.steep_smooth_chute_slope:.0%} without energy "
                f"dissipation along the chute.",
                "Consider a stepped or baffled chute to reduce outlet velocity "
                "(USBR Design of Small Dams).",
            ))

        if chute.drop > cfg.chute_basin_drop and not _has_basin(chute):
            recommended = classify_basin_type(froude, velocity)
            found.append(self._notify(
                chute, NotificationSeverity.ERROR, NotificationCategory.STILLING_BASIN,
                "High Drop Without Stilling Basin",
                f"Drop of {chute.drop:.2f} m exceeds {cfg.chute_basin_drop:g} m without a stilling "
                f"basin. Fr ≈ {froude:.1f}, V ≈ {velocity:.1f} m/s.",
                f"Add a {STILLING_BASIN_TYPE_INFO[recommended]['label']} basin (EM-25).",
                action={
                    "type": "add-stilling-basin",
                    "element_id": chute.id,
                    "basin_type": recommended.value,
                    "froude": round(froude, 3),
                    "velocity": round(velocity, 3),
                },
            ))

        if _has_basin(chute):
            basin_type = chute.stilling_basin.type
            fr_min, fr_max = STILLING_BASIN_FROUDE_RANGES[basin_type.value]
            label = STILLING_BASIN_TYPE_INFO[basin_type]["label"]
            if froude < fr_min:
                found.append(self._notify(
                    chute, NotificationSeverity.WARNING, NotificationCategory.STILLING_BASIN,
                    "Froude Number Too Low",
                    f"{label} basin requires Fr > {fr_min:g}. Current geometry gives Fr ≈ {froude:.1f}.",
                    "Consider Type I basin for low Fr, or increase chute slope to match the range.",
                ))
            elif froude > fr_max:
                found.append(self._notify(
                    chute, NotificationSeverity.WARNING, NotificationCategory.STILLING_BASIN,
                    "Froude Number Too High",
                    f"{label} basin is limited to Fr < {fr_max:g}. Current geometry gives Fr ≈ {froude:.1f}.",
                    "Consider Type II basin (no upper Fr limit) for very high velocity flows.",
                ))

        if velocity > cfg.max_velocity_concrete:
            found.append(self._notify(
                chute, NotificationSeverity.ERROR, NotificationCategory.HYDRAULICS,
                "Excessive Outlet Velocity",
                f"Outlet velocity {velocity:.1f} m/s exceeds the {cfg.max_velocity_concrete:g} m/s "
                f"concrete limit.",
                "Add step blocks, deepen the stilling basin, or reduce chute slope "
                "(USBR Design Standards No. 14).",
            ))

        return found

    # ==================== Connections ====================

    def check_connections(self, store: ElementStore) -> List[DesignNotification]:
        cfg = self.config
        found = []

        if len(store) > 1:
            for element in store:
                if element.upstream_id is None and element.downstream_id is None:
                    found.append(self._notify(
                        element, NotificationSeverity.INFO, NotificationCategory.CONNECTION,
                        "Isolated Element",
                        f"{element.name!r} is not connected to other hydraulic elements.",
                        "Connect upstream or downstream to form a continuous hydraulic chain.",
                    ))

        for element in store:
            upstream = store.get(element.upstream_id)
            if upstream is None:
                continue
            gap = abs(upstream.end_elevation - element.start_elevation)
            if gap <= cfg.elevation_gap_warning:
                continue
            critical = gap > cfg.elevation_gap_error
            found.append(self._notify(
                element,
                NotificationSeverity.ERROR if critical else NotificationSeverity.WARNING,
                NotificationCategory.CONNECTION,
                "Elevation Discontinuity",
                f"{gap * 100:.0f} cm elevation gap between {upstream.name!r} outlet and "
                f"{element.name!r} inlet.",
                "Add a transition structure or recalculate the hydraulic chain."
                if critical else
                "Verify whether the drop is intentional or recalculate the chain.",
            ))

        return found

    @staticmethod
    def _notify(
        element: HydraulicElement,
        severity: NotificationSeverity,
        category: NotificationCategory,
        title: str,
        message: str,
        recommendation: Optional[str] = None,
        action: Optional[Dict[str, Any]] = None,
    ) -> DesignNotification:
        return DesignNotification(
            element_id=element.id,
            element_name=element.name,
            severity=severity,
            category=category,
            title=title,
            message=message,
            recommendation=recommendation,
            action=action,
        )
