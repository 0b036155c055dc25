"""
Cargo Back Office Exception Hierarchy

Structured exception classes for the cargo fulfillment pipeline.
All exceptions include code, message, and details for audit trail and debugging.

Exception Hierarchy:
    CargoBaseError
    ├── UnauthorizedError
    ├── EmptyBatchError
    ├── OrderNotFoundError
    ├── AlreadyPrintedError
    ├── CarrierUnconfiguredError
    ├── CarrierError
    └── ShipmentValidationError
"""
import logging
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class CargoBaseError(Exception):
    """
    Base exception for all cargo pipeline errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
        severity: P0-P3 severity level
        status_code: HTTP status used when the error reaches the API layer
    """

    default_code: str = "CARGO_ERROR"
    default_severity: str = "P2"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[str] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.severity = severity or self.default_severity
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


# =============================================================================
# REQUEST ERRORS (fatal, abort before any I/O)
# =============================================================================

class UnauthorizedError(CargoBaseError):
    """No resolvable tenant context."""
    default_code = "UNAUTHORIZED"
    default_severity = "P1"
    status_code = 401


class EmptyBatchError(CargoBaseError):
    """Label batch requested without any order identifiers."""
    default_code = "EMPTY_BATCH"
    default_severity = "P3"
    status_code = 400


class OrderNotFoundError(CargoBaseError):
    """None of the requested orders exist for the tenant."""
    default_code = "ORDER_NOT_FOUND"
    default_severity = "P3"
    status_code = 404


class AlreadyPrintedError(CargoBaseError):
    """Soft conflict: some orders of the batch already have printed labels."""
    default_code = "ALREADY_PRINTED"
    default_severity = "P3"
    status_code = 409

    def __init__(
        self,
        message: str = "Some orders already have printed labels",
        order_numbers: Optional[List[str]] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        self.order_numbers = list(order_numbers or [])
        details["order_numbers"] = self.order_numbers
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# CARRIER ERRORS
# =============================================================================

class CarrierUnconfiguredError(CargoBaseError):
    """No active carrier connection for the tenant."""
    default_code = "CARRIER_NOT_CONFIGURED"
    default_severity = "P2"
    status_code = 400

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["provider"] = provider
        super().__init__(message, details=details, **kwargs)


class CarrierError(CargoBaseError):
    """Network failure or carrier-reported error."""
    default_code = "CARRIER_ERROR"
    default_severity = "P2"
    status_code = 502

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        order_reference: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "action": action,
            "order_reference": order_reference,
        })
        super().__init__(message, details=details, **kwargs)


class ShipmentValidationError(CargoBaseError):
    """Shipment request rejected before it reaches the carrier."""
    default_code = "SHIPMENT_VALIDATION_FAILED"
    default_severity = "P3"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["field"] = field
        super().__init__(message, details=details, **kwargs)

