# ============================================================================
# Ledger Staking Gateway v1.0.0
# Decimal Gateway - Ledger Numeric Integrity
# ============================================================================
#
# Reliability Level: CORE (Ledger-Facing)
# Purpose: Ensures all ledger amounts use decimal.Decimal with ROUND_HALF_EVEN
#
# MANDATE:
#   - All ledger numeric values MUST pass through this gateway
#   - Float contamination is FORBIDDEN in balance and amount arithmetic
#   - Amounts travel to the ledger as strings, never numeric literals
#   - Display units convert to base units with a fixed scale (10^18)
#
# Error Codes:
#   - LGR-DEC-001: Decimal conversion failed
#
# ============================================================================

from decimal import Context, Decimal, ROUND_HALF_EVEN, InvalidOperation, localcontext
from typing import Optional, Union
import logging

logger = logging.getLogger(__name__)


NumericInput = Union[str, int, float, Decimal, None]


class DecimalGateway:
    """
    Decimal Gateway for ledger amounts.

    Central conversion layer ensuring all ledger amounts use decimal.Decimal
    with Banker's Rounding (ROUND_HALF_EVEN). Base-unit amounts routinely
    exceed the default 28-digit context, so every operation runs inside
    LEDGER_CONTEXT.

    Reliability Level: CORE
    Input Constraints: Any numeric value (str, int, float, Decimal, None)
    Side Effects: Logs LGR-DEC-001 on conversion failure

    Example Usage:
        gateway = DecimalGateway()

        base = gateway.to_base_units("1.5")       # 1500000000000000000
        display = gateway.from_base_units(base)   # Decimal('1.5')
        gateway.to_ledger_string(display)         # '1.500000000000000000'
    """

    # Fixed scale between display units and ledger base units
    DEFAULT_TOKEN_DECIMALS = 18

    # Daml Numeric default scale (10 decimal places)
    LEDGER_PRECISION = Decimal('0.0000000001')

    # Working context wide enough for 10^18-scaled balances
    LEDGER_CONTEXT = Context(prec=80, rounding=ROUND_HALF_EVEN)

    def __init__(self, token_decimals: int = DEFAULT_TOKEN_DECIMALS):
        self.token_decimals = token_decimals

    def to_decimal(
        self,
        value: NumericInput,
        precision: Optional[Decimal] = None,
        correlation_id: Optional[str] = None
    ) -> Decimal:
        """
        Convert any numeric value to Decimal.

        Reliability Level: CORE
        Input Constraints: str, int, float, Decimal or None
        Side Effects: Logs LGR-DEC-001 on failure

        Args:
            value: Numeric value to convert (None is treated as zero)
            precision: Optional quantum; exact value is kept when omitted
            correlation_id: Audit trail identifier

        Returns:
            Decimal, quantized with ROUND_HALF_EVEN when precision is given

        Raises:
            ValueError: If value cannot be converted (LGR-DEC-001)
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            value = '0'

        try:
            # Always convert via string to avoid float precision loss
            decimal_value = Decimal(str(value).strip())
            if not decimal_value.is_finite():
                raise ValueError("non-finite amount")

            if precision is not None:
                with localcontext(self.LEDGER_CONTEXT):
                    decimal_value = decimal_value.quantize(
                        precision, rounding=ROUND_HALF_EVEN
                    )
            return decimal_value

        except (InvalidOperation, ValueError, TypeError) as e:
            logger.error(
                f"[LGR-DEC-001] Decimal conversion failed | "
                f"value={value!r} | type={type(value).__name__} | "
                f"correlation_id={correlation_id} | error={e}"
            )
            raise ValueError(
                f"LGR-DEC-001: Cannot convert '{value}' to Decimal"
            ) from e

    def to_base_units(
        self,
        display_amount: NumericInput,
        correlation_id: Optional[str] = None
    ) -> int:
        """
        Convert a display amount to integral ledger base units.

        Digits beyond the fixed scale are rounded with ROUND_HALF_EVEN.
        """
        amount = self.to_decimal(display_amount, correlation_id=correlation_id)
        with localcontext(self.LEDGER_CONTEXT):
            scaled = amount.scaleb(self.token_decimals)
            return int(scaled.to_integral_value(rounding=ROUND_HALF_EVEN))

    def from_base_units(
        self,
        base_amount: NumericInput,
        correlation_id: Optional[str] = None
    ) -> Decimal:
        """Convert a ledger base-unit amount back to display units."""
        amount = self.to_decimal(base_amount, correlation_id=correlation_id)
        with localcontext(self.LEDGER_CONTEXT):
            return amount.scaleb(-self.token_decimals)

    def add(self, left: Decimal, right: Decimal) -> Decimal:
        """Add two amounts without losing digits to the default context."""
        with localcontext(self.LEDGER_CONTEXT):
            return left + right

    @staticmethod
    def to_ledger_string(value: Union[Decimal, int]) -> str:
        """
        Format an amount for the ledger wire (plain notation, never exponent).
        """
        if isinstance(value, int):
            return str(value)
        return format(value, 'f')


# ============================================================================
# Module-level convenience functions
# ============================================================================

_gateway = DecimalGateway()


def to_decimal(
    value: NumericInput,
    precision: Optional[Decimal] = None,
    correlation_id: Optional[str] = None
) -> Decimal:
    """Module-level convenience function for Decimal conversion."""
    return _gateway.to_decimal(value, precision, correlation_id)


def to_ledger_string(value: Union[Decimal, int]) -> str:
    """Module-level convenience function for wire formatting."""
    return DecimalGateway.to_ledger_string(value)
