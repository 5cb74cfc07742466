"""
errors/taxonomy.py - Error classification system

Structured error codes and the exception hierarchy raised by the
connection manager, element store and design engines.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Type
from datetime import datetime, timezone
from enum import Enum
import uuid


class ErrorSeverity(Enum):
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""
    # Validation errors (1xxx)
    VALIDATION = "validation"

    # Connection errors (2xxx)
    CONNECTION = "connection"

    # Physics errors (4xxx)
    PHYSICS = "physics"

    # Numerical errors (4xxx)
    NUMERICAL = "numerical"

    # State errors (5xxx)
    STATE = "state"

    # Configuration errors (6xxx)
    CONFIGURATION = "configuration"


class ErrorCode(Enum):
    """Specific error codes."""

    # Validation (1xxx)
    VAL_FAILED = 1001
    VAL_UNKNOWN_FIELD = 1002
    VAL_PROTECTED_FIELD = 1003
    VAL_OUT_OF_RANGE = 1004

    # Connection (2xxx)
    CON_SELF_LOOP = 2001
    CON_CYCLE = 2002
    CON_DANGLING = 2003

    # Physics (4xxx)
    PHY_INVALID_INPUT = 4001
    PHY_NUMERICAL = 4004

    # State (5xxx)
    STA_NOT_FOUND = 5001
    STA_DUPLICATE = 5002
    STA_INCONSISTENT = 5003

    # System (6xxx)
    SYS_CONFIG = 6001


@dataclass
class ErrorRecord:
    """Structured error representation, suitable for logs and API payloads."""

    error_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    code: ErrorCode = ErrorCode.VAL_FAILED
    category: ErrorCategory = ErrorCategory.VALIDATION
    severity: ErrorSeverity = ErrorSeverity.ERROR

    message: str = ""

    # Context
    source: str = ""
    element_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    recoverable: bool = True

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
            "element_id": self.element_id,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# EXCEPTIONS
# =============================================================================

class HydroChainError(Exception):
    """
    Base exception for hydrochain errors.

    Subclasses pin a default code/category/severity; callers may override the
    code to narrow the failure (e.g. a cycle vs. a dangling id).
    """

    code: ErrorCode = ErrorCode.VAL_FAILED
    category: ErrorCategory = ErrorCategory.VALIDATION
    severity: ErrorSeverity = ErrorSeverity.ERROR
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        element_id: Optional[str] = None,
        **details: Any,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.element_id = element_id
        self.details = details

    def __str__(self) -> str:
        return self.message

    def to_record(self, source: str = "") -> ErrorRecord:
        return ErrorRecord(
            code=self.code,
            category=self.category,
            severity=self.severity,
            message=self.message,
            source=source or type(self).__name__,
            element_id=self.element_id,
            details=dict(self.details),
            recoverable=self.recoverable,
        )


class InvalidConnection(HydroChainError):
    """
    Raised when a connect operation would create a self-loop or a cycle, or
    references an element that does not exist. The store is left unmodified.
    """
    code = ErrorCode.CON_CYCLE
    category = ErrorCategory.CONNECTION


class ElementNotFound(HydroChainError, KeyError):
    """Raised when an element id is not present in the store."""
    code = ErrorCode.STA_NOT_FOUND
    category = ErrorCategory.STATE

    def __init__(self, element_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Element not found: {element_id}",
            element_id=element_id,
        )

    def __str__(self) -> str:
        return self.message


class DuplicateElementError(HydroChainError):
    """Raised when an element is added under an id already in the store."""
    code = ErrorCode.STA_DUPLICATE
    category = ErrorCategory.STATE


class InvalidEditError(HydroChainError):
    """Raised when an element edit names a protected or unknown field."""
    code = ErrorCode.VAL_PROTECTED_FIELD
    category = ErrorCategory.VALIDATION


class ChainIntegrityError(HydroChainError):
    """Raised when the link graph of a store is asymmetric, dangling or cyclic."""
    code = ErrorCode.STA_INCONSISTENT
    category = ErrorCategory.STATE
    severity = ErrorSeverity.CRITICAL
    recoverable = False


class HydraulicCalculationError(HydroChainError):
    """Raised when a flow formula is called outside its domain."""
    code = ErrorCode.PHY_NUMERICAL
    category = ErrorCategory.NUMERICAL


class DesignError(HydroChainError):
    """Base class for stilling basin design failures."""
    code = ErrorCode.PHY_INVALID_INPUT
    category = ErrorCategory.PHYSICS

    # Alias of InvalidDesignInput, bound below the subclass
    InvalidInput: ClassVar[Type[InvalidDesignInput]]


class InvalidDesignInput(DesignError):
    """
    Non-positive width or discharge, zero entering velocity, or a
    non-finite value. No partial basin configuration is produced.
    """
    code = ErrorCode.PHY_INVALID_INPUT


# Spelled DesignError.InvalidInput at call sites
DesignError.InvalidInput = InvalidDesignInput
