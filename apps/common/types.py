"""
Type system for CompuCar Platform
Rust-inspired Result pattern and shared type aliases for the service layer.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

# Type variables for generic Result
T = TypeVar('T')  # Success type
E = TypeVar('E')  # Error type
U = TypeVar('U')

# ===============================================================================
# RESULT TYPES
# ===============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Success result containing a value"""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the success value"""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the success value (ignores default)"""
        return self.value

    def map(self, func: Callable[[T], U]) -> Result[U, Any]:
        """Transform the success value"""
        try:
            return Ok(func(self.value))
        except Exception as e:
            return Err(str(e))

    def and_then(self, func: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Chain another Result-returning step"""
        return func(self.value)


@dataclass(frozen=True)
class Err(Generic[E]):
    """Error result containing an error value"""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raises an exception - use unwrap_or() for safe access"""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        """Get the default value since this is an error"""
        return default

    def map(self, func: Callable[[Any], Any]) -> Result[Any, E]:
        """No-op for error results"""
        return self

    def and_then(self, func: Callable[[Any], Any]) -> Result[Any, E]:
        """Short-circuit: the chain stops at the first error"""
        return self


# Result type alias
Result = Ok[T] | Err[E]

# ===============================================================================
# BUSINESS TYPES
# ===============================================================================

OrderNumber = str  # Order reference: "COD-000001"
PhoneNumber = str  # Algerian national format: "0550123456"
WilayaId = int  # Algerian province code: 1..58
ShortFileId = str  # First 8 chars of a TuningFile UUID, used in bot callbacks

# ===============================================================================
# VALIDATION HELPERS
# ===============================================================================

ALGERIAN_PHONE_MIN_DIGITS = 9
ALGERIAN_PHONE_MAX_DIGITS = 10


def validate_algerian_phone(phone: str) -> Result[PhoneNumber, str]:
    """Normalize an Algerian phone number to digits only (9-10 digits)"""
    digits = re.sub(r'\D', '', phone or '')

    if not digits:
        return Err("Phone number is required")

    if not ALGERIAN_PHONE_MIN_DIGITS <= len(digits) <= ALGERIAN_PHONE_MAX_DIGITS:
        return Err("Phone must be 9-10 digits")

    return Ok(PhoneNumber(digits))


# ===============================================================================
# COMMON EXCEPTIONS
# ===============================================================================

class BusinessError(Exception):
    """Base exception for business logic errors"""


class ValidationError(BusinessError):
    """Validation error with field information"""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class AuthorizationError(BusinessError):
    """User not authorized for this operation"""


class ParcelValidationError(ValidationError):
    """Cart contents cannot be packed into a parcel"""


class TransitionError(BusinessError):
    """Tuning file status transition is not allowed"""
