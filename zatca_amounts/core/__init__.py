"""ZATCA Amount Validator - Core Package"""

from zatca_amounts.core.errors import ValidationFailure
from zatca_amounts.core.money import DecimalComparator, to_decimal
from zatca_amounts.core.models import (
    InvoiceDocument,
    InvoiceLine,
    LegalMonetaryTotal,
    ValidationResult,
    BatchResult,
)
from zatca_amounts.core.document_reference import DocumentReference, InvoiceTypeCode
from zatca_amounts.core.parsers import ParserError, load_invoice, invoice_generator
from zatca_amounts.core.validators import InvoiceAmountValidator

__all__ = [
    'ValidationFailure',
    'DecimalComparator',
    'to_decimal',
    'InvoiceDocument',
    'InvoiceLine',
    'LegalMonetaryTotal',
    'ValidationResult',
    'BatchResult',
    'DocumentReference',
    'InvoiceTypeCode',
    'ParserError',
    'load_invoice',
    'invoice_generator',
    'InvoiceAmountValidator',
]
