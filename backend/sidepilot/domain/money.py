"""Conversion between dollar amounts and integer cents.

Money is stored and transmitted as integer minor units; dollars only exist at
the client boundary.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS_PER_DOLLAR = 100


def dollars_to_cents(amount: Decimal | int | float | str) -> int:
    """Convert a dollar amount to integer cents, rounding half-up.

    Floats go through ``str`` first so 12.5 becomes Decimal("12.5"), not its
    binary approximation.

    Raises:
        ValueError: amount is not a finite number or is negative.
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary amount: {amount!r}") from exc

    if not value.is_finite():
        raise ValueError(f"Not a monetary amount: {amount!r}")
    if value < 0:
        raise ValueError("Monetary amount cannot be negative")

    cents = (value * CENTS_PER_DOLLAR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def cents_to_dollars(cents: int) -> Decimal:
    """Convert integer cents to an exact two-place Decimal dollar amount."""
    return (Decimal(cents) / CENTS_PER_DOLLAR).quantize(Decimal("0.01"))


def format_dollars(cents: int) -> str:
    """Format cents for display, e.g. 24700 -> "$247.00"."""
    return f"${cents_to_dollars(cents):,.2f}"
