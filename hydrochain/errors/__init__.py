"""
errors/ - Error Taxonomy

Structured error classification shared by the element store, the network
engines and the hydraulic design engines.
"""

from .taxonomy import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    ErrorRecord,
    HydroChainError,
    InvalidConnection,
    ElementNotFound,
    DuplicateElementError,
    InvalidEditError,
    ChainIntegrityError,
    HydraulicCalculationError,
    DesignError,
    InvalidDesignInput,
)

__all__ = [
    # Taxonomy
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorCode",
    "ErrorRecord",
    # Exceptions
    "HydroChainError",
    "InvalidConnection",
    "ElementNotFound",
    "DuplicateElementError",
    "InvalidEditError",
    "ChainIntegrityError",
    "HydraulicCalculationError",
    "DesignError",
    "InvalidDesignInput",
]
