"""Exceptions raised by the amount validators."""
from typing import Optional


# Violation code reported for each failed rule
RULE_CODES = {
    'required': 'AMT_001',
    'numeric': 'AMT_002',
    'non_negative': 'AMT_003',
    'tax_inclusive': 'AMT_004',
    'line_extension': 'AMT_005',
    'tax_percent_range': 'AMT_006',
    'rounding': 'AMT_007',
    'structure': 'AMT_008',
    'document_type_code': 'AMT_009',
}


class ValidationFailure(ValueError):
    """
    Raised on the first monetary rule an invoice violates.

    Attributes:
        message: Human-readable description naming the field and the rule
        field: Dotted path of the offending field
        rule: Short name of the violated rule (see RULE_CODES)
        line_index: 0-based invoice line index, None for document-level fields
    """

    def __init__(self, message: str, field: str = '', rule: str = '',
                 line_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.rule = rule
        self.line_index = line_index

    @property
    def code(self) -> str:
        return RULE_CODES.get(self.rule, 'AMT_000')

    @property
    def field_path(self) -> str:
        """Field path including the line prefix, e.g. invoiceLines[2].quantity"""
        if self.line_index is None:
            return self.field
        return f'invoiceLines[{self.line_index}].{self.field}'
