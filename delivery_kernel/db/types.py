"""
Module: delivery_kernel.db.types
Responsibility: Annotated column types and the sanctioned rounding helpers
    for money and quantities.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.

Invariants enforced:
    - No floats anywhere: amounts and quantities are Decimal.
    - round_money() is the ONLY sanctioned rounding function for money.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import Numeric

# Column type for ordered / shorted quantities (kg, bunches, units).
# Money uses the Base type_annotation_map (Numeric(38, 9)).
QuantityType = Numeric(18, 3)

MONEY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 3
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Coerce a caller-supplied number into Decimal.

    Floats are rejected: a float has already lost precision by the time it
    reaches the ledger.

    Raises:
        TypeError: value is a float.
        ValueError: value is not a number.
    """
    if isinstance(value, float):
        raise TypeError(f"Float values are not accepted for money or quantities: {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the only sanctioned rounding function for money; everything
    else delegates here so display and persistence agree.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def normalize_quantity(value: Decimal) -> Decimal:
    """Quantize a quantity to the stored precision (3 decimal places)."""
    return round_money(value, QUANTITY_DECIMAL_PLACES)


def format_money(value: Decimal, symbol: str = "R") -> str:
    """Format an amount for display, e.g. ``R20.00`` or ``-R5.50``."""
    rounded = round_money(value)
    if rounded < ZERO:
        return f"-{symbol}{-rounded:,.2f}"
    return f"{symbol}{rounded:,.2f}"


def format_quantity(value: Decimal) -> str:
    """Format a quantity without trailing zeros: 2.000 -> '2', 1.250 -> '1.25'."""
    normalized = normalize_quantity(value).normalize()
    # normalize() turns 100 into 1E+2
    if normalized == normalized.to_integral_value():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")
