"""
Custom Exceptions Module for TSForecast.

This module defines the exceptions raised by the forecasting engine. Input
validation failures propagate to the caller; numerical degeneracy is raised
as DegenerateFitError and absorbed by the engine's fallback paths.
"""

from typing import Any, Dict, Optional
from enum import IntEnum
import logging


logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """Error code enumeration for all exceptions."""

    # General errors (1xxx)
    UNKNOWN = 1000
    CONFIGURATION = 1001
    VALIDATION = 1003

    # Input errors (2xxx)
    INSUFFICIENT_DATA = 2000
    INVALID_PARAMETER = 2001
    UNKNOWN_METHOD = 2002

    # Numerical errors (3xxx)
    DEGENERATE_FIT = 3000
    MODEL_SELECTION = 3001


class ForecastError(Exception):
    """
    Base exception class for all forecasting engine exceptions.

    All custom exceptions should inherit from this class.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unknown forecasting error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Error code
            details: Additional error details
            cause: Original exception that caused this one
        """
        self.message = message or self.default_message
        self.error_code = error_code or self.__class__.error_code
        self.details = details or {}
        self.cause = cause

        full_message = f"[{self.error_code.name}:{self.error_code.value}] {self.message}"
        if self.details:
            full_message += f" | Details: {self.details}"

        super().__init__(full_message)

        logger.debug(
            f"Exception raised: {self.__class__.__name__}",
            extra={
                "error_code": self.error_code.value,
                "details": self.details,
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(ForecastError):
    """Raised when engine settings are inconsistent."""
    error_code = ErrorCode.CONFIGURATION
    default_message = "Configuration error"


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(ForecastError):
    """Raised when caller input fails validation."""
    error_code = ErrorCode.VALIDATION
    default_message = "Validation failed"


class InsufficientDataError(ValidationError):
    """Raised when a series is too short for the requested model."""
    error_code = ErrorCode.INSUFFICIENT_DATA
    default_message = "Not enough data points"

    def __init__(
        self,
        required: int,
        actual: int,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        details = kwargs.pop("details", None) or {}
        details.update({"required": required, "actual": actual})
        super().__init__(
            message or f"At least {required} data points are required, got {actual}",
            details=details,
            **kwargs
        )
        self.required = required
        self.actual = actual


class InvalidParameterError(ValidationError):
    """Raised when a forecasting parameter is out of range."""
    error_code = ErrorCode.INVALID_PARAMETER
    default_message = "Invalid parameter"


class UnknownMethodError(InvalidParameterError):
    """Raised when an unsupported forecasting method is requested."""
    error_code = ErrorCode.UNKNOWN_METHOD
    default_message = "Unknown forecasting method"


# =============================================================================
# NUMERICAL EXCEPTIONS
# =============================================================================

class DegenerateFitError(ForecastError):
    """Raised when a model cannot be estimated from the given data."""
    error_code = ErrorCode.DEGENERATE_FIT
    default_message = "Model fit is degenerate"


class ModelSelectionError(ForecastError):
    """Raised when no candidate method produced a forecast."""
    error_code = ErrorCode.MODEL_SELECTION
    default_message = "No forecasting method succeeded"
