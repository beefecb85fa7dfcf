"""
Request Validation - boundary checks run before any ledger call.

Reliability Level: CORE
Side Effects: None (pure validation)

ERROR CODES:
    - VALIDATION_ERROR: Missing field, blank party, malformed amount
"""

from decimal import Decimal
from typing import Any, Optional

from app.ledger.decimal_gateway import to_decimal
from app.ledger.errors import ValidationError


def require_fields(**fields: Any) -> None:
    """
    Reject the request when any named field is missing or blank.

    Raises:
        ValidationError: Naming every missing field
    """
    missing = [
        name for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_positive_amount(value: Any, field_name: str = "amount") -> Decimal:
    """
    Parse a request amount as a strictly positive Decimal.

    Booleans are rejected even though they are ints in Python.

    Raises:
        ValidationError: If the amount is missing, malformed or not positive
    """
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Missing required fields: {field_name}")
    try:
        amount = to_decimal(value)
    except ValueError as e:
        raise ValidationError(
            f"{field_name} must be a decimal number, got: {value!r}"
        ) from e
    if amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return amount


def optional_party(value: Optional[str], default: str) -> str:
    """Blank or missing party falls back to the default party."""
    if value is None or not value.strip():
        return default
    return value.strip()
