"""
Amount conversion between user-facing USDC decimals and token smallest units.

All arithmetic goes through Decimal; floats are only accepted as inputs and
are converted via str() so that 25.5 becomes Decimal("25.5"), not its binary
approximation.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from domain.errors import AmountPrecisionError, ValidationError

Number = Union[int, float, str, Decimal]

_CENTS = Decimal("100")


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    """Parse a user/provider amount into a finite Decimal."""
    if isinstance(value, bool):
        raise ValidationError("must be a number", field=field)
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"not a valid number: {value!r}", field=field)
    if not parsed.is_finite():
        raise ValidationError("must be finite", field=field)
    return parsed


def credits_to_usdc(credits: int, usdc_per_credit: Number = 1) -> Decimal:
    """USDC owed for a number of credits. Credits must be a positive integer."""
    if isinstance(credits, bool) or not isinstance(credits, int) or credits <= 0:
        raise ValidationError("must be a positive integer", field="credits")
    return Decimal(credits) * to_decimal(usdc_per_credit, field="usdc_per_credit")


def to_smallest_unit(amount: Number, decimals: int) -> int:
    """
    Convert a decimal USDC amount into the token's smallest-unit integer.

    The amount is first scaled to whole cents (half-up), then multiplied by
    10 ** (decimals - 2). Tokens with fewer than two decimals only accept
    amounts that are exact at that precision.

        >>> to_smallest_unit("25.50", 6)
        25500000
    """
    if decimals < 0:
        raise AmountPrecisionError(f"token decimals must be >= 0, got {decimals}")

    value = to_decimal(amount)
    if value < 0:
        raise ValidationError("must not be negative", field="amount")

    cents = int((value * _CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    if decimals >= 2:
        return cents * 10 ** (decimals - 2)

    divisor = 10 ** (2 - decimals)
    if cents % divisor:
        raise AmountPrecisionError(
            f"{value} cannot be represented with {decimals} decimal(s)",
            details={"amount": str(value), "decimals": decimals},
        )
    return cents // divisor


def from_smallest_unit(units: int, decimals: int) -> Decimal:
    """Inverse of to_smallest_unit for display and logging."""
    return Decimal(units).scaleb(-decimals)


def has_sufficient_onchain_balance(balance_units: int | None, required_units: int) -> bool:
    """On-chain balances compare as integers in smallest units."""
    if balance_units is None:
        return False
    return balance_units >= required_units


def has_sufficient_custodial_balance(balance_amount: str | None, required_usdc: Number) -> bool:
    """
    Custodial balances arrive as decimal strings and compare as floats.

    This differs from the on-chain integer comparison; both are kept as-is.
    """
    if not balance_amount:
        return False
    try:
        return float(balance_amount) >= float(required_usdc)
    except (TypeError, ValueError):
        return False
