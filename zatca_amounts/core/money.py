"""
Decimal parsing and tolerance-based comparison for invoice amounts.
Never compares currency values as binary floating point.
"""
from decimal import Context, Decimal, InvalidOperation
from typing import Any, Optional, Union

Numeric = Union[Decimal, int, float, str]

DEFAULT_TOLERANCE = Decimal('0.01')

# Wide enough that price * quantity is exact for any realistic invoice
MONEY_CONTEXT = Context(prec=50)


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Parse a raw amount into a Decimal.

    Accepts int, float, Decimal and decimal-formatted strings. Floats go
    through str() so 0.1 becomes Decimal('0.1'), not its binary expansion.

    Args:
        value: Raw value taken from the invoice

    Returns:
        Parsed Decimal, or None if the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        # Digit-group underscores are valid for Decimal() but not in invoice amounts
        if not text or '_' in text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite():
        return None
    return parsed


def is_numeric(value: Any) -> bool:
    """True if the value parses as a finite decimal"""
    return to_decimal(value) is not None


class DecimalComparator:
    """
    Equality-within-tolerance predicate over Decimal amounts.
    The tolerance is fixed at construction; instances hold no other state.
    """

    def __init__(self, tolerance: Numeric = DEFAULT_TOLERANCE):
        parsed = to_decimal(tolerance)
        if parsed is None:
            raise ValueError(f'Tolerance must be a numeric value, got {tolerance!r}')
        if parsed < 0:
            raise ValueError(f'Tolerance cannot be negative, got {parsed}')
        self._tolerance = parsed

    @property
    def tolerance(self) -> Decimal:
        return self._tolerance

    def difference(self, a: Decimal, b: Decimal) -> Decimal:
        return MONEY_CONTEXT.abs(MONEY_CONTEXT.subtract(a, b))

    def equals_within_tolerance(self, a: Decimal, b: Decimal) -> bool:
        """True if |a - b| <= tolerance"""
        return self.difference(a, b) <= self._tolerance

    def multiply(self, a: Decimal, b: Decimal) -> Decimal:
        return MONEY_CONTEXT.multiply(a, b)

    def add(self, a: Decimal, b: Decimal) -> Decimal:
        return MONEY_CONTEXT.add(a, b)

    def __repr__(self) -> str:
        return f'DecimalComparator(tolerance={self._tolerance})'
