"""
hydrochain Review

Advisory design checks over an element store.
"""

from hydrochain.review.checks import (
    NotificationSeverity,
    NotificationCategory,
    DesignNotification,
    NotificationSummary,
    DesignReviewer,
    section_width,
)

__all__ = [
    "NotificationSeverity",
    "NotificationCategory",
    "DesignNotification",
    "NotificationSummary",
    "DesignReviewer",
    "section_width",
]
