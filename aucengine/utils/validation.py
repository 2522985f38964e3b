"""
Input Validation - Sanitization of values entering the ledger.

Provides validation for all external inputs to prevent:
- Non-integer or negative amounts
- Integer overflows beyond the 256-bit amount range
- Empty or oversized identities and item descriptions
"""

import re
from typing import Any, Optional, Tuple

# =============================================================================
# Constants
# =============================================================================

MAX_IDENTITY_LENGTH = 128
MAX_STRING_LENGTH = 1024

MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1
MAX_DURATION = 10 * 365 * 24 * 60 * 60  # ten years in seconds

IDENTITY_PATTERN = r"^[A-Za-z0-9_.:\-]+$"


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Booleans are rejected even though they subclass int.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a monetary amount in base units."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_duration(duration: Any) -> Tuple[bool, str]:
    """Validate an auction duration in seconds (0 selects the default)."""
    return validate_integer(duration, "duration", 0, MAX_DURATION)


def validate_string(
    value: Any,
    name: str,
    max_length: int = MAX_STRING_LENGTH,
    pattern: Optional[str] = None,
    allow_empty: bool = True,
) -> Tuple[bool, str]:
    """
    Validate string input.

    Args:
        value: Value to validate
        name: Field name for errors
        max_length: Maximum string length
        pattern: Optional regex pattern
        allow_empty: Whether "" is acceptable

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, f"{name} must be str, got {type(value).__name__}"

    if not allow_empty and not value:
        return False, f"{name} must not be empty"

    if len(value) > max_length:
        return False, f"{name} exceeds max length {max_length}"

    if pattern and not re.match(pattern, value):
        return False, f"{name} does not match required pattern"

    return True, ""


def validate_identity(identity: Any, name: str = "identity") -> Tuple[bool, str]:
    """Validate a caller identity (seller, buyer, owner address)."""
    return validate_string(
        identity,
        name,
        max_length=MAX_IDENTITY_LENGTH,
        pattern=IDENTITY_PATTERN,
        allow_empty=False,
    )


def validate_item(item: Any, max_length: int = MAX_STRING_LENGTH) -> Tuple[bool, str]:
    """Validate an item description."""
    return validate_string(item, "item", max_length=max_length)


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "validate_integer",
    "validate_amount",
    "validate_duration",
    "validate_string",
    "validate_identity",
    "validate_item",
    "MAX_IDENTITY_LENGTH",
    "MAX_STRING_LENGTH",
    "MAX_AMOUNT",
    "MAX_DURATION",
]
