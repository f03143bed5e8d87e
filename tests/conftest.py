"""Shared fixtures: a consistent invoice with one 2 x 50.00 line at 15% VAT."""
import copy

import pytest

from zatca_amounts.core.validators import InvoiceAmountValidator


VALID_LINE = {
    'id': '1',
    'quantity': 2,
    'lineExtensionAmount': '100.00',
    'price': {'amount': '50.00'},
    'item': {'name': 'Laptop stand', 'taxPercent': 15},
    'taxTotal': {'taxAmount': '15.00', 'roundingAmount': '115.00'},
}

VALID_DOCUMENT = {
    'id': 'INV-2024-001',
    'legalMonetaryTotal': {
        'lineExtensionAmount': '100.00',
        'taxExclusiveAmount': '100.00',
        'taxInclusiveAmount': '115.00',
        'payableAmount': '115.00',
    },
    'taxTotal': {'taxAmount': '15.00'},
    'invoiceLines': [VALID_LINE],
}


def make_line(**overrides):
    """Copy of the valid line with top-level keys replaced"""
    line = copy.deepcopy(VALID_LINE)
    line.update(overrides)
    return line


def make_document(**totals_overrides):
    """Copy of the valid document with legalMonetaryTotal keys replaced"""
    document = copy.deepcopy(VALID_DOCUMENT)
    document['legalMonetaryTotal'].update(totals_overrides)
    return document


@pytest.fixture
def valid_line():
    return make_line()


@pytest.fixture
def valid_document():
    return make_document()


@pytest.fixture
def validator():
    return InvoiceAmountValidator(tolerance='0.01')
