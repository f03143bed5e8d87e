"""
Monetary consistency validators for ZATCA invoices.
Checks that amounts are numeric, non-negative and agree with the amounts
they are derived from, within a fixed decimal tolerance.
"""
import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError as PydanticValidationError

from zatca_amounts.core.errors import ValidationFailure
from zatca_amounts.core.guards import (
    optional_numeric,
    read_path,
    require_non_negative_numeric,
    require_numeric,
)
from zatca_amounts.core.models import InvoiceDocument, InvoiceLine, ValidationResult
from zatca_amounts.core.money import DEFAULT_TOLERANCE, DecimalComparator, Numeric, to_decimal
from zatca_amounts.utils.decorators import audit_log, measure_performance


logger = logging.getLogger(__name__)

_ZERO = Decimal('0')
_HUNDRED = Decimal('100')


class TotalsValidator:
    """
    Validates the Legal Monetary Total section against the aggregate tax amount.
    """

    REQUIRED_FIELDS = [
        'lineExtensionAmount',
        'taxExclusiveAmount',
        'taxInclusiveAmount',
        'payableAmount',
    ]

    def __init__(self, comparator: DecimalComparator):
        self.comparator = comparator

    def validate_monetary_totals(self, document: Any) -> None:
        """
        Check the document-level totals, stopping at the first violation.

        Args:
            document: Mapping or InvoiceDocument with legalMonetaryTotal
                and an optional taxTotal

        Raises:
            ValidationFailure: On the first rule the totals break
        """
        totals = read_path(document, 'legalMonetaryTotal')
        if totals is None:
            raise ValidationFailure(
                'Legal Monetary Total section is missing.',
                field='legalMonetaryTotal',
                rule='required'
            )

        amounts = {}
        for field in self.REQUIRED_FIELDS:
            amounts[field] = require_non_negative_numeric(
                totals, field, f"Legal Monetary Total field '{field}'"
            )

        # Absent or non-numeric aggregate tax counts as zero
        tax_amount = optional_numeric(document, 'taxTotal.taxAmount')
        if tax_amount is None:
            logger.debug("Document taxTotal.taxAmount missing or not numeric, using 0")
            tax_amount = _ZERO

        tax_exclusive = amounts['taxExclusiveAmount']
        tax_inclusive = amounts['taxInclusiveAmount']
        expected = self.comparator.add(tax_exclusive, tax_amount)

        if not self.comparator.equals_within_tolerance(expected, tax_inclusive):
            raise ValidationFailure(
                f'The taxInclusiveAmount ({tax_inclusive}) does not equal '
                f'taxExclusiveAmount ({tax_exclusive}) plus taxTotal ({tax_amount}) '
                f'within tolerance {self.comparator.tolerance}.',
                field='legalMonetaryTotal.taxInclusiveAmount',
                rule='tax_inclusive'
            )


def _structure_failure(error: PydanticValidationError, prefix: str,
                       line_index: Optional[int] = None) -> ValidationFailure:
    first = error.errors()[0]
    location = '.'.join(str(part) for part in first['loc'])
    return ValidationFailure(
        f'{prefix} has an invalid structure at {location}: {first["msg"]}.',
        field=location,
        rule='structure',
        line_index=line_index
    )


class LineValidator:
    """
    Validates invoice lines one by one.
    Every failure message starts with the 0-based line index.
    """

    def __init__(self, comparator: DecimalComparator):
        self.comparator = comparator

    def validate_invoice_lines(self, lines: Iterable[Any]) -> None:
        """
        Validate lines in order, stopping at the first violation.

        Raises:
            ValidationFailure: Naming the offending line index
        """
        for index, line in enumerate(lines):
            self.validate_line(index, line)

    @staticmethod
    def _as_line(index: int, line: Any) -> InvoiceLine:
        """Parse one raw line into an InvoiceLine, just before it is checked"""
        if isinstance(line, InvoiceLine):
            return line
        if isinstance(line, BaseModel) or not isinstance(line, Mapping):
            raise ValidationFailure(
                f'Invoice Line [{index}] must be a mapping of line fields.',
                rule='structure',
                line_index=index
            )
        try:
            return InvoiceLine.model_validate(line)
        except PydanticValidationError as e:
            raise _structure_failure(e, f'Invoice Line [{index}]', index) from e

    def validate_line(self, index: int, line: Any) -> None:
        """Validate a single line (mapping or InvoiceLine)"""
        line = self._as_line(index, line)
        prefix = f'Invoice Line [{index}]'

        quantity = require_non_negative_numeric(
            line, 'quantity', f"{prefix} field 'quantity'", index
        )
        line_extension = require_non_negative_numeric(
            line, 'lineExtensionAmount', f"{prefix} field 'lineExtensionAmount'", index
        )
        price = require_non_negative_numeric(
            line, 'price.amount', f'{prefix} Price amount', index
        )

        expected_extension = self.comparator.multiply(price, quantity)
        if not self.comparator.equals_within_tolerance(expected_extension, line_extension):
            raise ValidationFailure(
                f'{prefix} lineExtensionAmount is incorrect. '
                f'Expected {expected_extension}, got {line_extension}.',
                field='lineExtensionAmount',
                rule='line_extension',
                line_index=index
            )

        self._check_tax_percent(index, line)

        tax_amount = require_non_negative_numeric(
            line, 'taxTotal.taxAmount', f'{prefix} TaxTotal taxAmount', index
        )
        # Rounding may be negative, only numeric is enforced
        rounding = require_numeric(
            line, 'taxTotal.roundingAmount', f'{prefix} TaxTotal roundingAmount', index
        )

        expected_rounding = self.comparator.add(line_extension, tax_amount)
        if not self.comparator.equals_within_tolerance(expected_rounding, rounding):
            raise ValidationFailure(
                f'{prefix} roundingAmount is incorrect. '
                f'Expected {expected_rounding}, got {rounding}.',
                field='taxTotal.roundingAmount',
                rule='rounding',
                line_index=index
            )

    def _check_tax_percent(self, index: int, line: Any) -> None:
        raw = read_path(line, 'item.taxPercent')
        if raw is None:
            return

        tax_percent = to_decimal(raw)
        if tax_percent is None:
            raise ValidationFailure(
                f'Invoice Line [{index}] item taxPercent must be a numeric value.',
                field='item.taxPercent',
                rule='numeric',
                line_index=index
            )

        if tax_percent < _ZERO or tax_percent > _HUNDRED:
            raise ValidationFailure(
                f'Invoice Line [{index}] item taxPercent must be between 0 and 100.',
                field='item.taxPercent',
                rule='tax_percent_range',
                line_index=index
            )


DocumentInput = Union[InvoiceDocument, Mapping]


class InvoiceAmountValidator:
    """
    Main validator interface.
    Holds only the tolerance, so one instance can be shared between threads.
    """

    def __init__(self, tolerance: Numeric = DEFAULT_TOLERANCE):
        """
        Initialize validator.

        Args:
            tolerance: Largest accepted absolute difference between an
                expected and a provided amount

        Raises:
            ValueError: If the tolerance is negative or not numeric
        """
        self.comparator = DecimalComparator(tolerance)
        self.totals_validator = TotalsValidator(self.comparator)
        self.line_validator = LineValidator(self.comparator)

    @property
    def tolerance(self) -> Decimal:
        return self.comparator.tolerance

    def _as_document(self, document: DocumentInput) -> InvoiceDocument:
        """Parse a mapping into an InvoiceDocument at the boundary"""
        if isinstance(document, InvoiceDocument):
            return document
        if not isinstance(document, Mapping):
            raise TypeError(
                f'Expected a mapping or InvoiceDocument, got {type(document).__name__}'
            )
        try:
            return InvoiceDocument.model_validate(document)
        except PydanticValidationError as e:
            raise _structure_failure(e, 'Invoice document') from e

    @measure_performance
    @audit_log
    def validate_monetary_totals(self, document: DocumentInput) -> None:
        """
        Fail-fast check of the Legal Monetary Total section.

        Raises:
            ValidationFailure: On the first violation
        """
        self.totals_validator.validate_monetary_totals(self._as_document(document))

    @measure_performance
    @audit_log
    def validate_invoice_lines(self, lines: Iterable[Any]) -> None:
        """
        Fail-fast check of every invoice line, in order.

        Raises:
            ValidationFailure: On the first violation, naming the line index
        """
        self.line_validator.validate_invoice_lines(lines)

    @measure_performance
    @audit_log
    def validate(self, document: DocumentInput) -> None:
        """
        Validate totals, then lines. Returns None when the document is
        arithmetically sound.

        Raises:
            ValidationFailure: On the first violation
        """
        doc = self._as_document(document)
        self.totals_validator.validate_monetary_totals(doc)
        self.line_validator.validate_invoice_lines(doc.invoice_lines)

    @measure_performance
    @audit_log
    def collect_violations(self, document: DocumentInput,
                           document_id: Optional[str] = None) -> ValidationResult:
        """
        Aggregating mode: record the totals failure and the first failure of
        each line instead of stopping at the first one.

        Args:
            document: Invoice document to check
            document_id: Identifier for the result, defaults to the document id

        Returns:
            ValidationResult listing every recorded violation
        """
        result = ValidationResult(invoice_number=document_id or 'UNKNOWN')

        try:
            doc = self._as_document(document)
        except ValidationFailure as failure:
            result.add_failure(failure)
            return result

        if document_id is None and doc.id is not None:
            result.invoice_number = str(doc.id)

        try:
            self.totals_validator.validate_monetary_totals(doc)
        except ValidationFailure as failure:
            result.add_failure(failure)

        for index, line in enumerate(doc.invoice_lines):
            try:
                self.line_validator.validate_line(index, line)
            except ValidationFailure as failure:
                result.add_failure(failure)

        return result
