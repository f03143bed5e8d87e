"""
ZATCA Amount Validator

Checks that the monetary fields of a ZATCA e-invoice are numeric, non-negative
and arithmetically consistent before the invoice is serialized to UBL XML.
"""

__version__ = '1.0.0'
__license__ = 'MIT'

from zatca_amounts.core import (
    InvoiceDocument,
    ValidationFailure,
    ValidationResult,
    BatchResult,
    DocumentReference,
    load_invoice,
    InvoiceAmountValidator
)

from zatca_amounts.processing import (
    BatchProcessor,
    ConcurrentValidator
)

__all__ = [
    'InvoiceDocument',
    'ValidationFailure',
    'ValidationResult',
    'BatchResult',
    'DocumentReference',
    'load_invoice',
    'InvoiceAmountValidator',
    'BatchProcessor',
    'ConcurrentValidator',
]
