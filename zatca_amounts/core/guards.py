"""
Field guards shared by the totals and line validators.
Each guard reads one field, parses it into a Decimal, or raises ValidationFailure.
"""
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel

from zatca_amounts.core.errors import ValidationFailure
from zatca_amounts.core.money import to_decimal


_ZERO = Decimal('0')


def _model_attr(model: BaseModel, key: str) -> Any:
    # Paths are written with the camelCase wire names; models use snake_case
    for name, info in type(model).model_fields.items():
        if key == name or key == info.alias:
            return getattr(model, name)
    return None


def read_path(container: Any, field_path: str) -> Any:
    """
    Resolve a dotted path such as 'taxTotal.taxAmount'.

    Works over plain mappings and pydantic models. Any missing segment
    resolves to None instead of raising.
    """
    current = container
    for key in field_path.split('.'):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        elif isinstance(current, BaseModel):
            current = _model_attr(current, key)
        else:
            return None
    return current


def optional_numeric(container: Any, field_path: str) -> Optional[Decimal]:
    """Parsed value of the field, or None when missing or not numeric"""
    return to_decimal(read_path(container, field_path))


def require_numeric(container: Any, field_path: str, label: str,
                    line_index: Optional[int] = None) -> Decimal:
    """
    Require the field to be present and numeric.

    Args:
        container: Mapping or model holding the field
        field_path: Dotted path of the field
        label: Message prefix identifying the field to the reader
        line_index: Invoice line index, if the field belongs to a line

    Returns:
        The parsed Decimal

    Raises:
        ValidationFailure: If the field is missing or not numeric
    """
    value = optional_numeric(container, field_path)
    if value is None:
        raise ValidationFailure(
            f'{label} must be a numeric value.',
            field=field_path,
            rule='numeric',
            line_index=line_index
        )
    return value


def require_non_negative_numeric(container: Any, field_path: str, label: str,
                                 line_index: Optional[int] = None) -> Decimal:
    """
    Require the field to be present, numeric and >= 0.

    Raises:
        ValidationFailure: 'must be a numeric value' or 'cannot be negative'
    """
    value = require_numeric(container, field_path, label, line_index)
    if value < _ZERO:
        raise ValidationFailure(
            f'{label} cannot be negative.',
            field=field_path,
            rule='non_negative',
            line_index=line_index
        )
    return value
