"""
hydrochain Core

Element model, cross sections, stilling basin configuration and the element
store shared by every engine.
"""

from hydrochain.core.enums import (
    ElementType,
    SectionType,
    TransitionType,
    ChuteType,
    StillingBasinType,
    EndSillType,
    LinkSide,
    FlowRegime,
)
from hydrochain.core.sections import (
    SectionProperties,
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
    CrossSection,
    section_from_dict,
)
from hydrochain.core.basin import (
    ChuteBlockConfig,
    BaffleBlockConfig,
    EndSillConfig,
    StillingBasinConfig,
)
from hydrochain.core.elements import (
    HydraulicElement,
    Channel,
    Transition,
    Chute,
    ELEMENT_CLASSES,
)
from hydrochain.core.store import ElementStore

__all__ = [
    # Enums
    "ElementType",
    "SectionType",
    "TransitionType",
    "ChuteType",
    "StillingBasinType",
    "EndSillType",
    "LinkSide",
    "FlowRegime",
    # Sections
    "SectionProperties",
    "RectangularSection",
    "TrapezoidalSection",
    "TriangularSection",
    "CrossSection",
    "section_from_dict",
    # Basin
    "ChuteBlockConfig",
    "BaffleBlockConfig",
    "EndSillConfig",
    "StillingBasinConfig",
    # Elements
    "HydraulicElement",
    "Channel",
    "Transition",
    "Chute",
    "ELEMENT_CLASSES",
    # Store
    "ElementStore",
]
