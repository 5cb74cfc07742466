"""
hydrochain Core Enumerations

All enumeration types used throughout the hydrochain system.
"""

from enum import Enum

from hydrochain.core.constants import FROUDE_CRITICAL_LOW, FROUDE_CRITICAL_HIGH


class ElementType(str, Enum):
    """
    Kinds of hydraulic element that can be placed in a conveyance chain.
    """
    CHANNEL = "channel"
    TRANSITION = "transition"
    CHUTE = "chute"


class SectionType(str, Enum):
    """
    Cross-section shapes supported by channels, transitions and chutes.
    """
    RECTANGULAR = "rectangular"
    TRAPEZOIDAL = "trapezoidal"
    TRIANGULAR = "triangular"


class TransitionType(str, Enum):
    """
    Geometric family of a transition between two cross sections.
    """
    LINEAR = "linear"
    WARPED = "warped"
    CYLINDRICAL = "cylindrical"
    INLET = "inlet"
    OUTLET = "outlet"


class ChuteType(str, Enum):
    """
    Chute surface types; determines energy dissipation along the chute body.
    """
    SMOOTH = "smooth"            # Smooth concrete, highest velocity
    STEPPED = "stepped"          # Step drops, aerated flow
    BAFFLED = "baffled"          # Baffle blocks along the chute
    OGEE = "ogee"                # Ogee crest profile for spillway crests
    CONVERGING = "converging"    # Converging walls for side-channel spillways


class StillingBasinType(str, Enum):
    """
    Stilling basin types based on USBR EM-25.
    """
    NONE = "none"
    TYPE_I = "type-i"        # Undular jump, flat apron
    TYPE_II = "type-ii"      # High dam spillways
    TYPE_III = "type-iii"    # Small dams and canal structures
    TYPE_IV = "type-iv"      # Oscillating jump suppression
    SAF = "saf"              # St. Anthony Falls, compact design


class EndSillType(str, Enum):
    """End sill profile at the basin outlet."""
    SOLID = "solid"
    DENTATED = "dentated"


class LinkSide(str, Enum):
    """Which neighbour link of an element an operation refers to."""
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"


class FlowRegime(str, Enum):
    """
    Flow regime classified from the Froude number.
    """
    SUBCRITICAL = "subcritical"
    CRITICAL = "critical"
    SUPERCRITICAL = "supercritical"

    @classmethod
    def from_froude(cls, froude: float) -> "FlowRegime":
        if froude < FROUDE_CRITICAL_LOW:
            return cls.SUBCRITICAL
        if froude > FROUDE_CRITICAL_HIGH:
            return cls.SUPERCRITICAL
        return cls.CRITICAL
