"""Decimal-string storage for coordinates and measurements.

Numbers are persisted as fixed-point strings and only turned back into
floats when building outbound DTOs.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from synoptics.errors import ValidationError

COORDINATE_PLACES = 2
GEO_PLACES = 8

# Stored columns hold up to eight integer digits
MAX_MAGNITUDE = Decimal("1e8")


def to_decimal_string(
    value: float | int | str | Decimal | None,
    places: int = COORDINATE_PLACES,
    field: str = "value",
) -> str | None:
    """Render a number as a fixed-point string with ``places`` decimals."""
    if value is None:
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be numeric, got {value!r}", {"field": field}) from None
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number", {"field": field})
    if abs(number) >= MAX_MAGNITUDE:
        raise ValidationError(
            f"{field} must be smaller than {MAX_MAGNITUDE:f} in magnitude, got {value!r}",
            {"field": field},
        )
    quantum = Decimal(1).scaleb(-places)
    try:
        rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} cannot be stored as a decimal", {"field": field}) from None
    return format(rounded, "f")


def parse_decimal(value: str | None) -> float | None:
    """Parse a stored decimal string back to float for presentation."""
    if value is None or value == "":
        return None
    return float(value)
